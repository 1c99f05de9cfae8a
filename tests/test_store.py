"""Tests for ThreadCommentsStore."""

import pytest

from threadcomments.core.exceptions import DataIntegrityError
from threadcomments.core.store import ThreadCommentsStore
from threadcomments.core.types import (
    CommentDTO,
    FilterByState,
    ProcessDTO,
    Snapshot,
    SortField,
    ThreadDTO,
)


def make_thread(thread_id, reporter="bob", process=None, resolved=False):
    return ThreadDTO(id=thread_id, name=f"Thread {thread_id}", reporter=reporter,
                     process=process, resolved=resolved)


def make_comment(comment_id, thread_id, position=1, user="bob"):
    return CommentDTO(id=comment_id, thread_id=thread_id, position=position, user=user)


class TestIngestSnapshot:
    def test_replaces_dataset(self, store, sample_snapshot):
        store.merge_incremental([make_thread(99)])
        store.ingest_snapshot(sample_snapshot)

        assert sorted(store.thread_ids()) == [1, 2, 3]
        assert not store.has_thread(99)
        assert store.current_user == "alice"

    def test_comments_by_threads_in_position_order(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)

        assert store.comments_by_threads[1] == [11, 12]
        assert store.comments_by_threads[3] == []
        assert [c.content for c in store.get_comments_for_thread(1)] == ["first", "second"]

    def test_users_and_processes_derived(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)

        assert store.users == ["alice", "bob", "carol", "dave", "erin"]
        assert store.process_ids == [10, 20]
        assert store.processes_hash[10].name == "Steel production"

    def test_dangling_comment_rejected(self, store):
        snapshot = Snapshot(threads=[make_thread(1)], comments_hash={5: make_comment(5, 2)})

        with pytest.raises(DataIntegrityError):
            store.ingest_snapshot(snapshot)
        assert store.threads == []


class TestMergeIncremental:
    def test_new_thread_is_added(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)
        result = store.merge_incremental([make_thread(4, reporter="zed")])

        assert result.added_thread_ids == [4]
        assert result.changed_thread_ids == []
        assert store.has_thread(4)
        assert "zed" in store.users
        assert store.comments_by_threads[4] == []

    def test_existing_thread_replaced_in_place(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)
        position = store.thread_ids().index(1)
        result = store.merge_incremental([make_thread(1, resolved=True)])

        assert result.changed_thread_ids == [1]
        assert store.thread_ids().index(1) == position
        assert store.get_thread(1).resolved is True
        assert len(store.threads) == 3

    def test_new_comment_marks_thread_changed(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)
        result = store.merge_incremental(new_comments=[make_comment(30, 3, user="frank")])

        assert result.changed_thread_ids == [3]
        assert store.comments_by_threads[3] == [30]
        assert "frank" in store.users

    def test_comment_for_new_thread_in_same_batch(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)
        result = store.merge_incremental([make_thread(4)], [make_comment(40, 4)])

        assert result.added_thread_ids == [4]
        assert result.changed_thread_ids == []
        assert store.comments_by_threads[4] == [40]

    def test_dangling_comment_merges_nothing(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)

        with pytest.raises(DataIntegrityError):
            store.merge_incremental([make_thread(4)], [make_comment(50, 77)])
        assert not store.has_thread(4)
        assert 50 not in store.comments_hash

    def test_empty_merge(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)
        assert store.merge_incremental().is_empty

    def test_new_process_registered(self, store):
        process = ProcessDTO(id=7, name="Rail", location="IT")
        store.merge_incremental([make_thread(1, process=process)])
        assert store.process_ids == [7]
        assert store.processes_hash[7] is process


class TestSetters:
    def test_filter_setters_replace_sets(self, store):
        store.set_filter_by_users(["a", "b"])
        store.set_filter_by_users(["c"])
        store.set_filter_by_processes([1])
        store.set_filter_by_state("open")
        store.set_filter_by_my_threads(True)

        assert store.filters.by_users == {"c"}
        assert store.filters.by_processes == {1}
        assert store.filters.by_state is FilterByState.OPEN
        assert store.filters.by_my_threads is True

    def test_sort_setters(self, store):
        store.set_sort_by("name")
        store.set_sort_reversed(True)
        assert store.sort_spec.field is SortField.NAME
        assert store.sort_spec.reversed is True

    def test_invalid_sort_field_rejected(self, store):
        with pytest.raises(ValueError):
            store.set_sort_by("popularity")

    def test_error_flag_follows_error(self, store):
        store.set_error(RuntimeError("x"))
        assert store.is_error
        store.set_error(None)
        assert not store.is_error
        assert store.error is None

    def test_clear_keeps_filters(self, store, sample_snapshot):
        store.ingest_snapshot(sample_snapshot)
        store.set_filter_by_state(FilterByState.RESOLVED)
        store.clear()

        assert store.threads == []
        assert store.comments_by_threads == {}
        assert store.filters.by_state is FilterByState.RESOLVED


def test_fresh_store_is_empty():
    store = ThreadCommentsStore()
    assert store.users == []
    assert store.process_ids == []
    assert not store.has_data

"""Tests for ThreadCommentsHandlers."""

import pytest
from unittest.mock import MagicMock

from threadcomments.controller.handlers import (
    SNAPSHOT_TASK_KEY,
    ThreadCommentsHandlers,
    run_task_sync,
)
from threadcomments.core.exceptions import CommentsFetchError, DataIntegrityError
from threadcomments.core.types import CommentDTO, Snapshot, ThreadDTO


@pytest.fixture
def service(sample_snapshot):
    service = MagicMock()
    service.load_snapshot.return_value = sample_snapshot
    return service


@pytest.fixture
def handlers(controller, service):
    handlers = ThreadCommentsHandlers(controller, service)
    handlers.start()
    return handlers


class TestRunTaskSync:
    def test_result_goes_to_on_done(self):
        on_done, on_error = MagicMock(), MagicMock()
        run_task_sync(lambda: 42, on_done, on_error)
        on_done.assert_called_once_with(42)
        on_error.assert_not_called()

    def test_library_error_goes_to_on_error(self):
        on_done, on_error = MagicMock(), MagicMock()
        error = CommentsFetchError("down")

        def task():
            raise error

        run_task_sync(task, on_done, on_error)
        on_error.assert_called_once_with(error)
        on_done.assert_not_called()

    def test_programming_errors_propagate(self):
        def task():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            run_task_sync(task, MagicMock(), MagicMock())


class TestReload:
    def test_reload_renders_snapshot(self, handlers, controller, view_tree):
        handlers.reload()

        assert not controller.store.is_loading
        assert len(view_tree.get_threads_list_node().children) == 3
        assert not view_tree.get_root_node().has_class("loading")

    def test_reload_uses_snapshot_key(self, controller, service):
        runner = MagicMock()
        ThreadCommentsHandlers(controller, service, run_task=runner).reload()

        assert runner.call_args.kwargs["key"] == SNAPSHOT_TASK_KEY
        assert controller.store.is_loading

    def test_fetch_error_shown(self, handlers, controller, service, view_tree):
        service.load_snapshot.side_effect = CommentsFetchError("Network down")

        handlers.reload()

        assert controller.store.is_error
        assert not controller.store.is_loading
        assert view_tree.get_error_node().content == "Network down"

    def test_successful_reload_clears_error(self, handlers, controller):
        controller.set_error(CommentsFetchError("old"))
        handlers.reload()
        assert not controller.store.is_error

    def test_inconsistent_snapshot_shown_as_error(self, handlers, controller, service):
        service.load_snapshot.return_value = Snapshot(
            threads=[ThreadDTO(id=1, name="T")],
            comments_hash={5: CommentDTO(id=5, thread_id=9)},
        )
        handlers.reload()
        assert isinstance(controller.store.error, DataIntegrityError)


class TestExpand:
    def test_header_click_toggles_expansion(self, handlers, controller, view_tree):
        handlers.reload()
        header = view_tree.get_thread_header_node(1)

        header.trigger("expand-thread")
        assert controller.renderer.is_thread_expanded(1)
        assert controller.renderer.is_thread_comments_ready(1)

        header.trigger("expand-thread")
        assert not controller.renderer.is_thread_expanded(1)
        assert not controller.renderer.is_thread_comments_ready(1)
        assert view_tree.get_thread_comments_node(1).content == ""


class TestResolve:
    def test_resolve_flips_state_and_merges(self, handlers, controller, service, view_tree):
        handlers.reload()
        service.set_thread_resolved.return_value = (
            [ThreadDTO(id=1, name="Alpha", modified="2023-01-01", reporter="carol", resolved=True)],
            [],
        )

        view_tree.get_thread_header_node(1).trigger("resolve-thread")

        service.set_thread_resolved.assert_called_once_with(1, True)
        assert controller.store.get_thread(1).resolved is True
        assert view_tree.get_thread_node(1).has_class("resolved")

    def test_reopen_resolved_thread(self, handlers, service, view_tree):
        handlers.reload()
        service.set_thread_resolved.return_value = ([], [])

        view_tree.get_thread_header_node(2).trigger("resolve-thread")

        service.set_thread_resolved.assert_called_once_with(2, False)

    def test_api_error_shown(self, handlers, controller, service, view_tree):
        handlers.reload()
        service.set_thread_resolved.side_effect = CommentsFetchError("timeout")

        view_tree.get_thread_header_node(1).trigger("resolve-thread")

        assert view_tree.get_error_node().content == "timeout"
        assert controller.store.get_thread(1).resolved is False


class TestAddComment:
    def test_comment_added_and_thread_expanded(self, handlers, controller, service, view_tree):
        handlers.reload()
        handlers.set_comment_prompt(lambda thread_id: "new text")
        service.add_comment.return_value = (
            [], [CommentDTO(id=31, thread_id=3, position=1, user="alice", content="new text")],
        )

        view_tree.get_thread_header_node(3).trigger("add-comment")

        service.add_comment.assert_called_once_with(3, "new text")
        assert controller.renderer.is_thread_expanded(3)
        assert "new text" in view_tree.get_thread_comments_node(3).content
        assert not view_tree.get_thread_node(3).has_class("empty")

    def test_cancelled_prompt_sends_nothing(self, handlers, service, view_tree):
        handlers.reload()
        handlers.set_comment_prompt(lambda thread_id: None)

        view_tree.get_thread_header_node(3).trigger("add-comment")

        service.add_comment.assert_not_called()

    def test_no_prompt_configured(self, handlers, service, view_tree):
        handlers.reload()
        view_tree.get_thread_header_node(3).trigger("add-comment")
        service.add_comment.assert_not_called()

    def test_dangling_comment_from_server_shown_as_error(self, handlers, controller, service, view_tree):
        handlers.reload()
        handlers.set_comment_prompt(lambda thread_id: "x")
        service.add_comment.return_value = ([], [CommentDTO(id=31, thread_id=77)])

        view_tree.get_thread_header_node(3).trigger("add-comment")

        assert isinstance(controller.store.error, DataIntegrityError)

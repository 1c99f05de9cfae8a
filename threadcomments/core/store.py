"""Canonical in-memory dataset for the thread list."""

import logging
from typing import Iterable, Optional

from threadcomments.core.exceptions import DataIntegrityError
from threadcomments.core.types import (
    CommentDTO,
    FilterByState,
    FilterState,
    MergeResult,
    ProcessDTO,
    Snapshot,
    SortField,
    SortSpec,
    ThreadDTO,
)
from threadcomments.core.visibility import sort_comments

logger = logging.getLogger("threadcomments")


class ThreadCommentsStore:
    """Holds threads, comments, processes, filters, sort spec and status flags.

    Plain data holder: no rendering, no sorting policy. Derived indices
    (comments by thread, users, process ids) are dropped on every mutation of
    the underlying collections and rebuilt on the next read.
    """

    def __init__(self):
        self.threads: list[ThreadDTO] = []
        self.comments_hash: dict[int, CommentDTO] = {}
        self.processes_hash: dict[int, ProcessDTO] = {}
        self.current_user: str = ""

        self.filters = FilterState()
        self.sort_spec = SortSpec()

        self.is_loading: bool = False
        self.has_data: bool = False
        self.is_error: bool = False
        self.error: Optional[BaseException] = None
        self.total_threads: int = 0
        self.total_comments: int = 0

        self._threads_hash: dict[int, ThreadDTO] = {}
        self._comments_by_threads: Optional[dict[int, list[int]]] = None
        self._users: Optional[list[str]] = None
        self._process_ids: Optional[list[int]] = None

    # ------------------------------------------------------------------
    # Bulk mutation
    # ------------------------------------------------------------------

    def ingest_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the whole dataset with a full snapshot."""
        threads_hash = {thread.id: thread for thread in snapshot.threads}
        self._check_comment_refs(snapshot.comments_hash.values(), threads_hash)

        self.threads = list(threads_hash.values())
        self._threads_hash = threads_hash
        self.comments_hash = dict(snapshot.comments_hash)
        self.processes_hash = dict(snapshot.processes_hash)
        for thread in self.threads:
            if thread.process is not None:
                self.processes_hash.setdefault(thread.process.id, thread.process)
        self.current_user = snapshot.shared_params.get("current_user", "")
        self._invalidate()
        logger.debug(
            f"Snapshot ingested: {len(self.threads)} threads, {len(self.comments_hash)} comments"
        )

    def merge_incremental(
        self,
        new_threads: Iterable[ThreadDTO] = (),
        new_comments: Iterable[CommentDTO] = (),
    ) -> MergeResult:
        """Append new threads/comments; an existing id is replaced (last write wins).

        Raises:
            DataIntegrityError: a comment references an unknown thread. Nothing
                is merged in that case.
        """
        new_threads = list(new_threads)
        new_comments = list(new_comments)

        known = dict(self._threads_hash)
        known.update((thread.id, thread) for thread in new_threads)
        self._check_comment_refs(new_comments, known)

        result = MergeResult()
        for thread in new_threads:
            if self.has_thread(thread.id):
                index = self.threads.index(self._threads_hash[thread.id])
                self.threads[index] = thread
                if thread.id not in result.changed_thread_ids:
                    result.changed_thread_ids.append(thread.id)
            else:
                self.threads.append(thread)
                result.added_thread_ids.append(thread.id)
            self._threads_hash[thread.id] = thread
            if thread.process is not None:
                self.processes_hash.setdefault(thread.process.id, thread.process)

        for comment in new_comments:
            previous = self.comments_hash.get(comment.id)
            if previous is not None and previous.thread_id != comment.thread_id:
                self._mark_changed(result, previous.thread_id)
            self.comments_hash[comment.id] = comment
            self._mark_changed(result, comment.thread_id)

        if not result.is_empty:
            self._invalidate()
        return result

    def clear(self) -> None:
        """Drop all data, keeping filters and sort spec."""
        self.threads = []
        self._threads_hash = {}
        self.comments_hash = {}
        self.processes_hash = {}
        self._invalidate()

    # ------------------------------------------------------------------
    # Field setters
    # ------------------------------------------------------------------

    def set_filter_by_users(self, values: Iterable[str]) -> None:
        self.filters.by_users = set(values)

    def set_filter_by_processes(self, values: Iterable[int]) -> None:
        self.filters.by_processes = set(values)

    def set_filter_by_state(self, value: FilterByState) -> None:
        self.filters.by_state = FilterByState(value)

    def set_filter_by_my_threads(self, value: bool) -> None:
        self.filters.by_my_threads = value

    def set_sort_by(self, field: SortField) -> None:
        self.sort_spec.field = SortField(field)

    def set_sort_reversed(self, value: bool) -> None:
        self.sort_spec.reversed = value

    def set_loading(self, value: bool) -> None:
        self.is_loading = value

    def set_has_data(self, value: bool) -> None:
        self.has_data = value

    def set_error(self, error: Optional[BaseException]) -> None:
        self.is_error = error is not None
        self.error = error

    def set_total_counts(self, total_threads: int, total_comments: int) -> None:
        self.total_threads = total_threads
        self.total_comments = total_comments

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def has_thread(self, thread_id: int) -> bool:
        return thread_id in self._threads_hash

    def get_thread(self, thread_id: int) -> ThreadDTO:
        return self._threads_hash[thread_id]

    def thread_ids(self) -> list[int]:
        return [thread.id for thread in self.threads]

    @property
    def comments_by_threads(self) -> dict[int, list[int]]:
        self._ensure_indices()
        return self._comments_by_threads

    @property
    def users(self) -> list[str]:
        self._ensure_indices()
        return self._users

    @property
    def process_ids(self) -> list[int]:
        self._ensure_indices()
        return self._process_ids

    def get_comments_for_thread(self, thread_id: int) -> list[CommentDTO]:
        """Comments of a thread, ascending by position."""
        ids = self.comments_by_threads.get(thread_id, [])
        return [self.comments_hash[comment_id] for comment_id in ids]

    # ------------------------------------------------------------------
    # Derived indices
    # ------------------------------------------------------------------

    def _invalidate(self) -> None:
        self._comments_by_threads = None
        self._users = None
        self._process_ids = None

    def _ensure_indices(self) -> None:
        if self._comments_by_threads is not None:
            return

        grouped: dict[int, list[CommentDTO]] = {thread.id: [] for thread in self.threads}
        for comment in self.comments_hash.values():
            grouped.setdefault(comment.thread_id, []).append(comment)
        by_threads = {}
        for thread_id, comments in grouped.items():
            sort_comments(comments)
            by_threads[thread_id] = [comment.id for comment in comments]

        users = {thread.reporter for thread in self.threads if thread.reporter}
        users.update(comment.user for comment in self.comments_hash.values() if comment.user)

        process_ids = {thread.process.id for thread in self.threads if thread.process is not None}

        self._comments_by_threads = by_threads
        self._users = sorted(users, key=str.lower)
        self._process_ids = sorted(process_ids)

    @staticmethod
    def _mark_changed(result: MergeResult, thread_id: int) -> None:
        if thread_id in result.added_thread_ids or thread_id in result.changed_thread_ids:
            return
        result.changed_thread_ids.append(thread_id)

    @staticmethod
    def _check_comment_refs(comments: Iterable[CommentDTO], threads_hash: dict) -> None:
        for comment in comments:
            if comment.thread_id not in threads_hash:
                raise DataIntegrityError(
                    f"Comment {comment.id} references unknown thread {comment.thread_id}"
                )

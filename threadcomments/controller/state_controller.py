"""The only sanctioned mutation API for thread list state."""

import logging
from typing import Iterable, Optional

from threadcomments.core.store import ThreadCommentsStore
from threadcomments.core.types import (
    CommentDTO,
    FilterByState,
    MergeResult,
    Snapshot,
    SortField,
    ThreadDTO,
)
from threadcomments.core.visibility import sort_threads
from threadcomments.view.renderer import ViewRenderer

logger = logging.getLogger("threadcomments")


class StateController:
    """Mutates the store, then brings the view back in sync.

    Each setter renders immediately unless `omit_update=True` is passed, which
    lets callers batch several changes before one explicit render. There is
    no debouncing: N calls cause N render passes.

    Refresh policy:
    - filter setters: visibility toggling only (update_visible_threads)
    - sort setters: re-sort the store, then a full render_data
    - status setters: their own display region only
    """

    def __init__(self, store: ThreadCommentsStore, renderer: ViewRenderer):
        self._store = store
        self._renderer = renderer

    @property
    def store(self) -> ThreadCommentsStore:
        return self._store

    @property
    def renderer(self) -> ViewRenderer:
        return self._renderer

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def set_filter_by_users(self, values: Iterable[str], omit_update: bool = False) -> None:
        self._store.set_filter_by_users(values)
        if not omit_update:
            self._renderer.update_visible_threads()

    def set_filter_by_processes(self, values: Iterable[int], omit_update: bool = False) -> None:
        self._store.set_filter_by_processes(values)
        if not omit_update:
            self._renderer.update_visible_threads()

    def set_filter_by_state(self, value: FilterByState, omit_update: bool = False) -> None:
        self._store.set_filter_by_state(value)
        if not omit_update:
            self._renderer.update_visible_threads()

    def set_filter_by_my_threads(self, value: bool, omit_update: bool = False) -> None:
        self._store.set_filter_by_my_threads(value)
        self._renderer.render_filter_by_my_threads(value)
        if not omit_update:
            self._renderer.update_visible_threads()

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def set_sort_by(self, field: SortField, omit_update: bool = False) -> None:
        self._store.set_sort_by(field)
        self._sort_store_threads()
        if not omit_update:
            self._renderer.render_data()

    def set_sort_reversed(self, value: bool, omit_update: bool = False) -> None:
        self._store.set_sort_reversed(value)
        self._sort_store_threads()
        if not omit_update:
            self._renderer.render_data()

    # ------------------------------------------------------------------
    # Status regions
    # ------------------------------------------------------------------

    def set_loading(self, is_loading: bool) -> None:
        self._store.set_loading(is_loading)
        self._renderer.render_loading(is_loading)

    def set_has_data(self, has_data: bool) -> None:
        self._store.set_has_data(has_data)
        self._renderer.render_empty(not has_data)

    def set_empty(self, is_empty: bool) -> None:
        """Shorthand for set_has_data(not is_empty)."""
        self.set_has_data(not is_empty)

    def set_error(self, error: Optional[BaseException]) -> None:
        """Store and show the latest error; None clears the error region."""
        self._store.set_error(error)
        self._renderer.render_error(error)

    def set_total_counts(self, total_threads: int, total_comments: int) -> None:
        self._store.set_total_counts(total_threads, total_comments)
        self._renderer.render_total_counts(total_threads, total_comments)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def load_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the dataset and render everything from scratch."""
        store = self._store
        store.ingest_snapshot(snapshot)
        self._sort_store_threads()
        self.set_total_counts(len(store.threads), len(store.comments_hash))
        self.set_has_data(bool(store.threads))
        self._renderer.render_derived_filters()
        self._renderer.render_data()
        logger.info(f"Loaded {len(store.threads)} threads, {len(store.comments_hash)} comments")

    def merge_incremental(
        self,
        new_threads: Iterable[ThreadDTO] = (),
        new_comments: Iterable[CommentDTO] = (),
    ) -> MergeResult:
        """Merge new or updated records and re-render only what changed.

        New threads get nodes appended, then existing nodes are reconciled
        into sort order. Changed threads get their header refreshed; a ready
        body is re-rendered, a non-ready one stays lazy.

        Not batchable: every stored thread must have a node once this returns.
        """
        store = self._store
        result = store.merge_incremental(new_threads, new_comments)
        self._sort_store_threads()
        if result.is_empty:
            return result

        renderer = self._renderer
        if result.added_thread_ids:
            renderer.render_data(append=True, thread_ids=result.added_thread_ids)
        renderer.reorder_rendered_threads()
        for thread_id in result.changed_thread_ids:
            renderer.update_thread_header(thread_id)
            if renderer.is_thread_comments_ready(thread_id):
                renderer.update_thread_comments(thread_id)
        renderer.update_visible_threads()
        renderer.render_derived_filters()
        self.set_total_counts(len(store.threads), len(store.comments_hash))
        self.set_has_data(bool(store.threads))
        logger.debug(
            f"Merged: added={result.added_thread_ids} changed={result.changed_thread_ids}"
        )
        return result

    def clear_data(self) -> None:
        self._store.clear()
        self.set_has_data(False)
        self._renderer.clear_rendered_data()

    def _sort_store_threads(self) -> None:
        sort_threads(self._store.threads, self._store.sort_spec)

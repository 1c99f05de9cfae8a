"""Action handlers registered with the renderer, plus data loading.

Network work goes through an injected task runner. The GUI runs tasks on
QThread workers; `run_task_sync` runs them inline. Completion callbacks
re-enter the single-threaded flow and merge results in completion order.
"""

import logging
from typing import Callable, Optional, TypeVar

from threadcomments.controller.state_controller import StateController
from threadcomments.core.exceptions import DataError, ThreadCommentsError
from threadcomments.core.types import Snapshot, ThreadAction
from threadcomments.services.comments_service import CommentsService, MergePayload

logger = logging.getLogger("threadcomments")

T = TypeVar("T")

TaskRunner = Callable[..., None]
CommentPrompt = Callable[[int], Optional[str]]

SNAPSHOT_TASK_KEY = "snapshot"


def run_task_sync(task: Callable[[], T], on_done: Callable[[T], None],
                  on_error: Callable[[Exception], None], key: Optional[str] = None) -> None:
    """Run a task inline. Only library errors are routed to on_error.

    `key` names a task slot; runners that can cancel use it to drop a stale
    task with the same key. Inline runs never overlap, so it is unused here.
    """
    try:
        result = task()
    except ThreadCommentsError as e:
        on_error(e)
        return
    on_done(result)


class ThreadCommentsHandlers:
    """Dispatch table targets for thread header actions."""

    def __init__(
        self,
        controller: StateController,
        service: CommentsService,
        run_task: TaskRunner = run_task_sync,
        ask_comment_text: Optional[CommentPrompt] = None,
    ):
        self._controller = controller
        self._service = service
        self._run_task = run_task
        self._ask_comment_text = ask_comment_text

    def set_comment_prompt(self, ask_comment_text: Optional[CommentPrompt]) -> None:
        self._ask_comment_text = ask_comment_text

    def dispatch_table(self) -> dict:
        return {
            ThreadAction.EXPAND_THREAD: self.handle_expand_thread,
            ThreadAction.ADD_COMMENT: self.handle_add_comment,
            ThreadAction.RESOLVE_THREAD: self.handle_resolve_thread,
        }

    def start(self) -> None:
        """Register the dispatch table with the renderer."""
        self._controller.renderer.start(self.dispatch_table())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Fetch a full snapshot and replace the store with it."""
        self._controller.set_loading(True)
        self._run_task(
            self._service.load_snapshot, self._on_snapshot_loaded, self._on_load_error,
            key=SNAPSHOT_TASK_KEY,
        )

    def _on_snapshot_loaded(self, snapshot: Snapshot) -> None:
        controller = self._controller
        controller.set_loading(False)
        controller.set_error(None)
        try:
            controller.load_snapshot(snapshot)
        except DataError as e:
            self._on_task_error(e)

    def _on_load_error(self, error: Exception) -> None:
        self._controller.set_loading(False)
        self._on_task_error(error)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def handle_expand_thread(self, thread_id: int) -> None:
        """Toggle expansion; collapsing evicts bodies that are no longer shown."""
        renderer = self._controller.renderer
        expanded = not renderer.is_thread_expanded(thread_id)
        renderer.set_thread_expanded(thread_id, expanded)
        if not expanded:
            renderer.clear_all_hidden_threads_comments()

    def handle_resolve_thread(self, thread_id: int) -> None:
        thread = self._controller.store.get_thread(thread_id)
        resolved = not thread.resolved
        self._run_task(
            lambda: self._service.set_thread_resolved(thread_id, resolved),
            self._on_merge_payload,
            self._on_task_error,
        )

    def handle_add_comment(self, thread_id: int) -> None:
        if self._ask_comment_text is None:
            logger.warning("No comment prompt configured; ignoring add-comment")
            return
        text = self._ask_comment_text(thread_id)
        if not text or not text.strip():
            return

        def on_done(payload: MergePayload):
            self._on_merge_payload(payload)
            self._controller.renderer.set_thread_expanded(thread_id, True)

        self._run_task(
            lambda: self._service.add_comment(thread_id, text),
            on_done,
            self._on_task_error,
        )

    def _on_merge_payload(self, payload: MergePayload) -> None:
        threads, comments = payload
        try:
            self._controller.merge_incremental(threads, comments)
        except DataError as e:
            self._on_task_error(e)

    def _on_task_error(self, error: Exception) -> None:
        logger.error(f"Thread comments task failed: {error}")
        self._controller.set_error(error)

"""Comments service: loading and thread actions over a CommentsAdapter."""

import logging

from threadcomments.adapters.comments_adapter import CommentsAdapter
from threadcomments.core.types import CommentDTO, Snapshot, ThreadDTO

logger = logging.getLogger("threadcomments")

MergePayload = tuple[list[ThreadDTO], list[CommentDTO]]


class CommentsService:
    """Turns API calls into snapshot / incremental-merge inputs.

    All methods block on the network and are meant to run on a worker.
    """

    def __init__(self, adapter: CommentsAdapter):
        self._adapter = adapter

    def load_snapshot(self) -> Snapshot:
        """Fetch the full dataset.

        Raises:
            CommentsFetchError: General fetch failure
            CommentsApiError: Non-success HTTP status
            RateLimitError: 429 Too Many Requests
            DataIntegrityError: Malformed payload
        """
        snapshot = self._adapter.read_comments()
        logger.info(
            f"Fetched {len(snapshot.threads)} threads, {len(snapshot.comments_hash)} comments"
        )
        return snapshot

    def set_thread_resolved(self, thread_id: int, resolved: bool) -> MergePayload:
        thread = self._adapter.resolve_thread(thread_id, resolved)
        logger.info(f"Thread {thread_id} {'resolved' if thread.resolved else 'reopened'}")
        return [thread], []

    def add_comment(self, thread_id: int, content: str) -> MergePayload:
        """Post a comment. Empty content is not sent."""
        content = content.strip()
        if not content:
            return [], []
        comment = self._adapter.create_comment(thread_id, content)
        logger.info(f"Comment {comment.id} added to thread {thread_id}")
        return [], [comment]

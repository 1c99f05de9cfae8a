"""Abstract base class for comments data access."""

from abc import ABC, abstractmethod

from threadcomments.core.types import CommentDTO, Snapshot, ThreadDTO


class CommentsAdapter(ABC):
    """Abstract interface for loading threads and posting thread updates."""

    @abstractmethod
    def read_comments(self) -> Snapshot:
        """Fetch the full threads + comments dataset.

        Returns:
            Snapshot with threads, comments hash, per-thread comment ids,
            shared params (current user), users and processes.

        Raises:
            CommentsFetchError: General fetch failure
            CommentsApiError: Non-success HTTP status
            RateLimitError: 429 Too Many Requests
            DataIntegrityError: Malformed payload
        """
        ...

    @abstractmethod
    def resolve_thread(self, thread_id: int, resolved: bool) -> ThreadDTO:
        """Set a thread's resolved state.

        Returns:
            The updated thread record

        Raises:
            CommentsFetchError, CommentsApiError, RateLimitError
        """
        ...

    @abstractmethod
    def create_comment(self, thread_id: int, content: str) -> CommentDTO:
        """Append a comment to a thread.

        Returns:
            The created comment record (with server-assigned id and position)

        Raises:
            CommentsFetchError, CommentsApiError, RateLimitError
        """
        ...

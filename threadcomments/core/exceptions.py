"""Custom exception hierarchy for ThreadComments."""


class ThreadCommentsError(Exception):
    """Base exception for all ThreadComments errors."""

    def __init__(self, message: str = "An error occurred in ThreadComments"):
        self.message = message
        super().__init__(self.message)


class NetworkError(ThreadCommentsError):
    """Base exception for network-related errors."""

    def __init__(self, message: str = "A network error occurred"):
        super().__init__(message)


class CommentsFetchError(NetworkError):
    """Error fetching data from the comments API."""

    def __init__(self, message: str = "Failed to fetch comments data"):
        super().__init__(message)


class CommentsApiError(NetworkError):
    """Comments API answered with an error status."""

    def __init__(self, message: str = "Comments API request failed", status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(NetworkError):
    """HTTP 429 - Rate limit exceeded."""

    def __init__(self, message: str = "Comments API rate limit exceeded"):
        super().__init__(message)


class DataError(ThreadCommentsError):
    """Base exception for data-related errors."""

    def __init__(self, message: str = "A data error occurred"):
        super().__init__(message)


class DataIntegrityError(DataError):
    """Dataset violates a structural invariant (e.g. dangling thread reference)."""

    def __init__(self, message: str = "Data integrity violation"):
        super().__init__(message)


class ConfigError(DataError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)


class ViewError(ThreadCommentsError):
    """Base exception for view tree faults."""

    def __init__(self, message: str = "A view error occurred"):
        super().__init__(message)


class ViewNodeNotFoundError(ViewError):
    """A required view node does not exist. Never recovered."""

    def __init__(self, message: str = "View node not found"):
        super().__init__(message)

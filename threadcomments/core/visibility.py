"""Thread visibility predicates and sort comparators.

Everything here is a pure function of its arguments. VisibilityEngine only
binds the functions to a store so callers can ask by thread id.
"""

from functools import cmp_to_key
from typing import Iterable, Optional

from threadcomments.core.timestamps import timestamp_sort_key
from threadcomments.core.types import (
    CommentDTO,
    FilterByState,
    FilterState,
    ProcessDTO,
    SortField,
    SortSpec,
    ThreadDTO,
)


def _compare(a, b) -> int:
    return (a > b) - (a < b)


# ------------------------------------------------------------------
# Visibility
# ------------------------------------------------------------------

def is_state_matched(thread: ThreadDTO, by_state: FilterByState) -> bool:
    if by_state == FilterByState.OPEN:
        return not thread.resolved
    if by_state == FilterByState.RESOLVED:
        return thread.resolved
    return True


def is_users_matched(thread: ThreadDTO, comments: Iterable[CommentDTO], by_users: set[str]) -> bool:
    if not by_users:
        return True
    if thread.reporter in by_users:
        return True
    return any(comment.user in by_users for comment in comments)


def is_process_matched(thread: ThreadDTO, by_processes: set[int]) -> bool:
    if not by_processes:
        return True
    return thread.process is not None and thread.process.id in by_processes


def is_my_thread(thread: ThreadDTO, comments: Iterable[CommentDTO], current_user: str) -> bool:
    if thread.reporter == current_user:
        return True
    return any(comment.user == current_user for comment in comments)


def is_thread_visible(
    thread: ThreadDTO,
    comments: list[CommentDTO],
    filters: FilterState,
    current_user: str,
) -> bool:
    """Check all filter dimensions (logical AND) for one thread.

    Filtering is thread-level only: a visible thread shows all of its comments.
    """
    if not is_state_matched(thread, filters.by_state):
        return False
    if not is_users_matched(thread, comments, filters.by_users):
        return False
    if not is_process_matched(thread, filters.by_processes):
        return False
    if filters.by_my_threads and not is_my_thread(thread, comments, current_user):
        return False
    return True


# ------------------------------------------------------------------
# Sorting
# ------------------------------------------------------------------

def _thread_field_value(thread: ThreadDTO, field: SortField):
    if field == SortField.MODIFIED:
        return timestamp_sort_key(thread.modified)
    if field == SortField.CREATED:
        return timestamp_sort_key(thread.created)
    if field == SortField.NAME:
        return (thread.name or "").lower()
    if field == SortField.REPORTER:
        return (thread.reporter or "").lower()
    raise ValueError(f"Unknown sort field: {field!r}")


def sort_threads_compare(a: ThreadDTO, b: ThreadDTO, spec: SortSpec) -> int:
    """Three-way thread comparison.

    `spec.reversed` negates the primary field comparison only; ties are always
    broken by ascending id so equal entries keep one order across toggles.
    """
    result = _compare(_thread_field_value(a, spec.field), _thread_field_value(b, spec.field))
    if spec.reversed:
        result = -result
    if result:
        return result
    return _compare(a.id, b.id)


def sort_threads(threads: list[ThreadDTO], spec: SortSpec) -> None:
    """Sort threads in place (stable)."""
    threads.sort(key=cmp_to_key(lambda a, b: sort_threads_compare(a, b, spec)))


def sort_comments_compare(a: CommentDTO, b: CommentDTO) -> int:
    """Ascending by position. Never depends on the thread sort direction."""
    return _compare(a.position, b.position) or _compare(a.id, b.id)


def sort_comments(comments: list[CommentDTO]) -> None:
    comments.sort(key=cmp_to_key(sort_comments_compare))


def create_process_name(process: Optional[ProcessDTO]) -> str:
    """Display name for an associated process."""
    if process is None:
        return ""
    name = process.name or f"#{process.id}"
    if process.location:
        return f"{name} ({process.location})"
    return name


class VisibilityEngine:
    """Store-bound facade over the pure predicates."""

    def __init__(self, store):
        self._store = store

    def is_thread_visible(self, thread_id: int) -> bool:
        store = self._store
        thread = store.get_thread(thread_id)
        comments = store.get_comments_for_thread(thread_id)
        return is_thread_visible(thread, comments, store.filters, store.current_user)

    @staticmethod
    def sort_threads(threads: list[ThreadDTO], spec: SortSpec) -> None:
        sort_threads(threads, spec)

    @staticmethod
    def sort_comments_compare(a: CommentDTO, b: CommentDTO) -> int:
        return sort_comments_compare(a, b)

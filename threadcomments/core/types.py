"""Data Transfer Objects and state types for ThreadComments."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class FilterByState(str, Enum):
    """Thread state filter values."""

    ALL = "all"
    OPEN = "open"
    RESOLVED = "resolved"


class SortField(str, Enum):
    """Thread fields the list can be sorted by."""

    MODIFIED = "modified"
    CREATED = "created"
    NAME = "name"
    REPORTER = "reporter"


class ThreadAction(str, Enum):
    """Action markers carried by thread header elements."""

    EXPAND_THREAD = "expand-thread"
    ADD_COMMENT = "add-comment"
    RESOLVE_THREAD = "resolve-thread"


@dataclass
class ProcessDTO:
    """Domain entity a thread can be associated with."""

    id: int
    name: str = ""
    location: str = ""


@dataclass
class ThreadDTO:
    """Discussion thread data transfer object."""

    id: int
    name: str
    created: str = ""                    # wire timestamp, e.g. "Sat, 12 Aug 2023 12:36:08 GMT"
    modified: str = ""
    reporter: str = ""
    resolved: bool = False
    process: Optional[ProcessDTO] = None


@dataclass
class CommentDTO:
    """Thread comment data transfer object."""

    id: int
    thread_id: int
    position: int = 0                    # order within the thread (ascending)
    user: str = ""                       # author
    content: str = ""
    created: str = ""


@dataclass
class FilterState:
    """Active list filters. An empty set means "no restriction"."""

    by_users: set[str] = field(default_factory=set)
    by_processes: set[int] = field(default_factory=set)
    by_state: FilterByState = FilterByState.ALL
    by_my_threads: bool = False


@dataclass
class SortSpec:
    """Thread list sort order."""

    field: SortField = SortField.MODIFIED
    reversed: bool = False


@dataclass
class Snapshot:
    """Full dataset as delivered by the data-loading collaborator."""

    threads: list[ThreadDTO] = field(default_factory=list)
    comments_hash: dict[int, CommentDTO] = field(default_factory=dict)
    comments_by_threads: dict[int, list[int]] = field(default_factory=dict)
    shared_params: dict = field(default_factory=dict)   # {"current_user": str}
    users: list[str] = field(default_factory=list)
    process_ids: list[int] = field(default_factory=list)
    processes_hash: dict[int, ProcessDTO] = field(default_factory=dict)


@dataclass
class MergeResult:
    """Outcome of an incremental merge, used to scope re-rendering."""

    added_thread_ids: list[int] = field(default_factory=list)
    changed_thread_ids: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added_thread_ids and not self.changed_thread_ids


@dataclass
class FilterOption:
    """Selectable option projected into a filter control."""

    value: str
    text: str
    selected: bool = False

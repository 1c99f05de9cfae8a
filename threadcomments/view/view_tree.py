"""Addressable retained view tree.

ViewNode is a headless node: classes, attributes, markup content, ordered
children, filter options and action listeners. ViewTree builds the standard
skeleton and resolves nodes by id. Toolkit backends subclass both and mirror
changes through the `_on_*` hooks; the headless classes are complete on their
own and are what the tests drive.
"""

import logging
from typing import Callable, Iterable, Optional

from threadcomments.core.exceptions import ViewNodeNotFoundError
from threadcomments.core.types import FilterOption

logger = logging.getLogger("threadcomments")

ActionListener = Callable[[str, "ViewNode"], None]

# Standard node ids
ROOT_ID = "thread-comments-root"
THREADS_LIST_ID = "threads-list"
ERROR_ID = "error"

CONTROL_FILTER_BY_USERS = "filterByUsers"
CONTROL_FILTER_BY_PROCESSES = "filterByProcesses"
CONTROL_FILTER_BY_MY_THREADS = "filterByMyThreads"
CONTROL_TOTAL_THREADS = "totalThreads"
CONTROL_TOTAL_COMMENTS = "totalComments"

CONTROL_IDS = (
    CONTROL_FILTER_BY_USERS,
    CONTROL_FILTER_BY_PROCESSES,
    CONTROL_FILTER_BY_MY_THREADS,
    CONTROL_TOTAL_THREADS,
    CONTROL_TOTAL_COMMENTS,
)


def thread_node_id(thread_id: int) -> str:
    return f"thread-{thread_id}"


def thread_header_id(thread_id: int) -> str:
    return f"thread-{thread_id}-header"


def thread_comments_id(thread_id: int) -> str:
    return f"comments-for-thread-{thread_id}"


class ViewNode:
    """One node of the view tree.

    `kind` tells backends which widget to build: "container", "thread",
    "header", "comments", "text", "select" or "toggle".
    """

    def __init__(self, node_id: str, kind: str = "container",
                 classes: Iterable[str] = (), attributes: Optional[dict] = None):
        self.node_id = node_id
        self.kind = kind
        self.parent: Optional["ViewNode"] = None
        self._classes: set[str] = set(classes)
        self._attributes: dict[str, str] = dict(attributes or {})
        self._content: str = ""
        self._children: list["ViewNode"] = []
        self._options: list[FilterOption] = []
        self._action_listeners: list[ActionListener] = []

    def __repr__(self):
        return f"<ViewNode {self.node_id} {sorted(self._classes)}>"

    # -- classes -------------------------------------------------------

    @property
    def classes(self) -> frozenset:
        return frozenset(self._classes)

    def has_class(self, name: str) -> bool:
        return name in self._classes

    def toggle_class(self, name: str, force: Optional[bool] = None) -> bool:
        """Add/remove a class like DOM classList.toggle. Returns presence after."""
        present = name in self._classes
        wanted = (not present) if force is None else bool(force)
        if wanted != present:
            if wanted:
                self._classes.add(name)
            else:
                self._classes.discard(name)
            self._on_classes_changed()
        return wanted

    # -- attributes ----------------------------------------------------

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._attributes.get(name, default)

    # -- content -------------------------------------------------------

    @property
    def content(self) -> str:
        return self._content

    def set_content(self, markup: str) -> None:
        self._content = markup
        self._on_content_changed()

    # -- children ------------------------------------------------------

    @property
    def children(self) -> tuple:
        return tuple(self._children)

    def append(self, *nodes: "ViewNode") -> None:
        for node in nodes:
            self._detach(node)
            node.parent = self
            self._children.append(node)
        self._on_children_changed([])

    def replace_children(self, nodes: Iterable["ViewNode"]) -> None:
        """Replace the child list.

        Nodes already in the list are moved, not recreated; previous children
        that are not in `nodes` are detached.
        """
        nodes = list(nodes)
        keep = {id(node) for node in nodes}
        removed = [child for child in self._children if id(child) not in keep]
        for child in removed:
            child.parent = None
        for node in nodes:
            if node.parent is not self:
                self._detach(node)
                node.parent = self
        self._children = nodes
        self._on_children_changed(removed)

    def clear_children(self) -> None:
        self.replace_children([])

    def root(self) -> "ViewNode":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def walk(self):
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self._children:
            yield from child.walk()

    @staticmethod
    def _detach(node: "ViewNode") -> None:
        if node.parent is not None:
            siblings = node.parent._children
            if node in siblings:
                siblings.remove(node)
            node.parent = None

    # -- filter options ------------------------------------------------

    @property
    def options(self) -> tuple:
        return tuple(self._options)

    def set_options(self, options: Iterable[FilterOption]) -> None:
        self._options = list(options)
        self._on_options_changed()

    def selected_values(self) -> list[str]:
        return [option.value for option in self._options if option.selected]

    # -- actions -------------------------------------------------------

    def add_action_listener(self, listener: ActionListener) -> None:
        self._action_listeners.append(listener)

    def trigger(self, action: str) -> None:
        """Deliver an action (a click on an element with an action marker)."""
        for listener in list(self._action_listeners):
            listener(action, self)

    # -- backend hooks -------------------------------------------------

    def _on_classes_changed(self) -> None:
        pass

    def _on_content_changed(self) -> None:
        pass

    def _on_children_changed(self, removed: list) -> None:
        pass

    def _on_options_changed(self) -> None:
        pass


class ViewTree:
    """Owns the skeleton nodes and resolves nodes by id.

    Every getter raises ViewNodeNotFoundError when the node is missing or no
    longer attached under the root. Rendering into a missing region is a
    caller bug and is never recovered.
    """

    node_class = ViewNode

    def __init__(self):
        self._index: dict[str, ViewNode] = {}
        self.root: Optional[ViewNode] = None

    def build(self) -> "ViewTree":
        """Create the standard skeleton: root, error region, controls, thread list."""
        root = self.create_node(ROOT_ID, kind="container", classes=("thread-comments",))
        error = self.create_node(ERROR_ID, kind="text", classes=("error",))
        controls = [
            self.create_node(CONTROL_FILTER_BY_USERS, kind="select"),
            self.create_node(CONTROL_FILTER_BY_PROCESSES, kind="select"),
            self.create_node(CONTROL_FILTER_BY_MY_THREADS, kind="toggle"),
            self.create_node(CONTROL_TOTAL_THREADS, kind="text"),
            self.create_node(CONTROL_TOTAL_COMMENTS, kind="text"),
        ]
        threads_list = self.create_node(THREADS_LIST_ID, kind="container", classes=("threads",))
        root.append(error, *controls, threads_list)
        self.root = root
        return self

    def create_node(self, node_id: str, kind: str = "container",
                    classes: Iterable[str] = (), attributes: Optional[dict] = None) -> ViewNode:
        """Factory for nodes of this tree's backend. New nodes are indexed by id."""
        node = self.node_class(node_id, kind=kind, classes=classes, attributes=attributes)
        self._index[node_id] = node
        return node

    def find(self, node_id: str) -> Optional[ViewNode]:
        """Attached node by id, or None."""
        node = self._index.get(node_id)
        if node is None or self.root is None or node.root() is not self.root:
            return None
        return node

    def get_node(self, node_id: str) -> ViewNode:
        node = self.find(node_id)
        if node is None:
            raise ViewNodeNotFoundError(f"View node not found: {node_id}")
        return node

    # Typed accessors

    def get_root_node(self) -> ViewNode:
        if self.root is None:
            raise ViewNodeNotFoundError("View tree is not built")
        return self.root

    def get_threads_list_node(self) -> ViewNode:
        return self.get_node(THREADS_LIST_ID)

    def get_error_node(self) -> ViewNode:
        return self.get_node(ERROR_ID)

    def get_thread_node(self, thread_id: int) -> ViewNode:
        return self.get_node(thread_node_id(thread_id))

    def get_thread_header_node(self, thread_id: int) -> ViewNode:
        return self.get_node(thread_header_id(thread_id))

    def get_thread_comments_node(self, thread_id: int) -> ViewNode:
        return self.get_node(thread_comments_id(thread_id))

    def get_control_node(self, name: str) -> ViewNode:
        return self.get_node(name)

"""Projects store state into the view tree.

Each thread node carries an eager header and a lazy comments body. The body is
only rendered while the thread is expanded and visible; the "ready" class on
the comments node marks a rendered body. Bodies are a pure projection of the
store, so evicting one never loses information.
"""

import logging
from typing import Callable, Mapping, Optional

from threadcomments.core.store import ThreadCommentsStore
from threadcomments.core.types import ThreadAction, ThreadDTO
from threadcomments.core.visibility import VisibilityEngine
from threadcomments.view import templates
from threadcomments.view.templates import DEFAULT_DATE_FORMAT, RenderContext
from threadcomments.view.view_tree import (
    CONTROL_FILTER_BY_MY_THREADS,
    CONTROL_FILTER_BY_PROCESSES,
    CONTROL_FILTER_BY_USERS,
    CONTROL_TOTAL_COMMENTS,
    CONTROL_TOTAL_THREADS,
    ViewNode,
    ViewTree,
    thread_comments_id,
    thread_header_id,
    thread_node_id,
)

logger = logging.getLogger("threadcomments")

ThreadHandler = Callable[[int], None]

READY = "ready"
HIDDEN = "hidden"
EXPANDED = "expanded"


class ViewRenderer:
    """Owns all writes to the view tree."""

    def __init__(self, store: ThreadCommentsStore, view_tree: ViewTree,
                 date_format: str = DEFAULT_DATE_FORMAT):
        self._store = store
        self._tree = view_tree
        self._visibility = VisibilityEngine(store)
        self._date_format = date_format
        self._handlers: dict[ThreadAction, ThreadHandler] = {}

    def start(self, handlers: Mapping[ThreadAction, ThreadHandler]) -> None:
        """Register the action dispatch table (once, at startup)."""
        self._handlers = {ThreadAction(action): handler for action, handler in handlers.items()}
        logger.debug(f"Renderer started with handlers: {sorted(a.value for a in self._handlers)}")

    @property
    def context(self) -> RenderContext:
        return RenderContext(current_user=self._store.current_user, date_format=self._date_format)

    # ------------------------------------------------------------------
    # Global regions
    # ------------------------------------------------------------------

    def render_error(self, error: Optional[BaseException]) -> None:
        """Update (or clear) the single error region."""
        text = templates.render_error(error)
        if text:
            logger.error(f"Rendering error: {text}")
        self._tree.get_root_node().toggle_class("error", bool(text))
        self._tree.get_error_node().set_content(text)

    def render_loading(self, is_loading: bool) -> None:
        self._tree.get_root_node().toggle_class("loading", is_loading)

    def render_empty(self, is_empty: bool) -> None:
        self._tree.get_root_node().toggle_class("empty", is_empty)

    def render_total_counts(self, total_threads: int, total_comments: int) -> None:
        self._tree.get_control_node(CONTROL_TOTAL_THREADS).set_content(str(total_threads))
        self._tree.get_control_node(CONTROL_TOTAL_COMMENTS).set_content(str(total_comments))

    def render_filter_by_my_threads(self, value: bool) -> None:
        self._tree.get_control_node(CONTROL_FILTER_BY_MY_THREADS).toggle_class("active", value)

    def render_derived_filters(self) -> None:
        """Project the author and process sets into the filter controls."""
        store = self._store
        user_options = templates.build_user_options(
            store.users, store.filters.by_users, store.current_user
        )
        process_options = templates.build_process_options(
            store.process_ids, store.processes_hash, store.filters.by_processes
        )
        self._tree.get_control_node(CONTROL_FILTER_BY_USERS).set_options(user_options)
        self._tree.get_control_node(CONTROL_FILTER_BY_PROCESSES).set_options(process_options)
        root = self._tree.get_root_node()
        root.toggle_class("has-users", bool(user_options))
        root.toggle_class("has-processes", bool(process_options))

    # ------------------------------------------------------------------
    # Thread list
    # ------------------------------------------------------------------

    def clear_rendered_data(self) -> None:
        self._tree.get_threads_list_node().clear_children()

    def render_data(self, append: bool = False, thread_ids: Optional[list[int]] = None) -> None:
        """Render header + empty body nodes for threads in store order.

        Args:
            append: Append nodes after the existing ones instead of replacing
                the whole list.
            thread_ids: Render only these threads (default: all threads).
        """
        store = self._store
        if thread_ids is None:
            threads = list(store.threads)
        else:
            threads = [store.get_thread(thread_id) for thread_id in thread_ids]
        list_node = self._tree.get_threads_list_node()
        nodes = [self._create_thread_node(thread) for thread in threads]
        if append:
            list_node.append(*nodes)
        else:
            list_node.replace_children(nodes)
        self.update_visible_threads_status()
        logger.debug(f"Rendered {len(nodes)} threads (append={append})")

    def reorder_rendered_threads(self) -> bool:
        """Move existing thread nodes into store order.

        Nodes are relocated by identity, so rendered bodies survive. Returns
        False (and touches nothing) when the order already matches.
        """
        actual_ids = self._store.thread_ids()
        list_node = self._tree.get_threads_list_node()
        rendered_nodes = {}
        rendered_ids = []
        for node in list_node.children:
            thread_id = int(node.get_attribute("data-thread-id"))
            rendered_nodes[thread_id] = node
            rendered_ids.append(thread_id)

        if rendered_ids == actual_ids:
            return False

        sorted_nodes = []
        for thread_id in actual_ids:
            node = rendered_nodes.get(thread_id)
            if node is None:
                node = self._create_thread_node(self._store.get_thread(thread_id))
            sorted_nodes.append(node)
        list_node.replace_children(sorted_nodes)
        logger.debug(f"Reordered {len(sorted_nodes)} thread nodes")
        return True

    def update_thread_header(self, thread_id: int) -> None:
        """Refresh title markup and data-derived classes of one thread node."""
        thread = self._store.get_thread(thread_id)
        comments_count = len(self._store.get_comments_for_thread(thread_id))
        self._tree.get_thread_header_node(thread_id).set_content(
            templates.render_thread_header(thread, comments_count, self.context)
        )
        node = self._tree.get_thread_node(thread_id)
        for name, on in templates.thread_class_names(thread, comments_count).items():
            node.toggle_class(name, on)

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def update_thread_visible_state(self, thread_id: int) -> None:
        is_visible = self._visibility.is_thread_visible(thread_id)
        thread_node = self._tree.get_thread_node(thread_id)
        thread_node.toggle_class(HIDDEN, not is_visible)
        if is_visible and thread_node.has_class(EXPANDED):
            self.ensure_thread_comments_ready(thread_id)

    def update_visible_threads(self) -> None:
        """Toggle the hidden marker of every thread. No reorder, no header render."""
        for thread_id in self._store.thread_ids():
            self.update_thread_visible_state(thread_id)
        self.update_visible_threads_status()

    def update_visible_threads_status(self) -> None:
        list_node = self._tree.get_threads_list_node()
        has_visible = any(not node.has_class(HIDDEN) for node in list_node.children)
        self._tree.get_root_node().toggle_class("has-visible-threads", has_visible)

    # ------------------------------------------------------------------
    # Expansion and comment bodies
    # ------------------------------------------------------------------

    def is_thread_expanded(self, thread_id: int) -> bool:
        return self._tree.get_thread_node(thread_id).has_class(EXPANDED)

    def set_thread_expanded(self, thread_id: int, expanded: bool) -> None:
        thread_node = self._tree.get_thread_node(thread_id)
        thread_node.toggle_class(EXPANDED, expanded)
        if expanded and not thread_node.has_class(HIDDEN):
            self.ensure_thread_comments_ready(thread_id)

    def is_thread_comments_ready(self, thread_id: int) -> bool:
        return self._tree.get_thread_comments_node(thread_id).has_class(READY)

    def update_thread_comments(self, thread_id: int) -> None:
        """Render the comment body unconditionally and mark it ready."""
        comments_node = self._tree.get_thread_comments_node(thread_id)
        comments = self._store.get_comments_for_thread(thread_id)
        comments_node.set_content(templates.render_thread_comments(comments, self.context))
        comments_node.toggle_class(READY, True)

    def ensure_thread_comments_ready(self, thread_id: int) -> None:
        """Render the comment body only if it is not ready yet."""
        comments_node = self._tree.get_thread_comments_node(thread_id)
        if not comments_node.has_class(READY):
            self.update_thread_comments(thread_id)

    def clear_all_hidden_threads_comments(self) -> int:
        """Evict rendered bodies of collapsed or hidden threads.

        Returns the number of evicted bodies.
        """
        evicted = 0
        for thread_node in self._tree.get_threads_list_node().children:
            if thread_node.has_class(EXPANDED) and not thread_node.has_class(HIDDEN):
                continue
            thread_id = int(thread_node.get_attribute("data-thread-id"))
            comments_node = self._tree.get_thread_comments_node(thread_id)
            if comments_node.has_class(READY):
                comments_node.toggle_class(READY, False)
                comments_node.set_content("")
                evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} comment bodies")
        return evicted

    def rerender_all_visible_comments(self) -> None:
        """Evict hidden bodies, then re-render every visible expanded thread."""
        self.clear_all_hidden_threads_comments()
        for thread_node in self._tree.get_threads_list_node().children:
            if thread_node.has_class(EXPANDED) and not thread_node.has_class(HIDDEN):
                self.update_thread_comments(int(thread_node.get_attribute("data-thread-id")))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create_thread_node(self, thread: ThreadDTO) -> ViewNode:
        """Build a thread node in its initial Collapsed-NotReady state."""
        tree = self._tree
        comments_count = len(self._store.get_comments_for_thread(thread.id))
        attributes = {"data-thread-id": str(thread.id)}

        thread_node = tree.create_node(
            thread_node_id(thread.id), kind="thread", classes=("thread",), attributes=attributes
        )
        for name, on in templates.thread_class_names(thread, comments_count).items():
            thread_node.toggle_class(name, on)
        thread_node.toggle_class(HIDDEN, not self._visibility.is_thread_visible(thread.id))

        header_node = tree.create_node(
            thread_header_id(thread.id), kind="header", classes=("main-row",), attributes=attributes
        )
        header_node.set_content(templates.render_thread_header(thread, comments_count, self.context))
        header_node.add_action_listener(self._handle_action)

        comments_node = tree.create_node(
            thread_comments_id(thread.id), kind="comments", classes=("comments",),
            attributes={"data-for-thread-id": str(thread.id)},
        )
        thread_node.append(header_node, comments_node)
        return thread_node

    def _handle_action(self, action: str, node: ViewNode) -> None:
        """Delegated click handler for header action markers."""
        thread_id = int(node.get_attribute("data-thread-id"))
        try:
            action = ThreadAction(action)
        except ValueError:
            logger.warning(f"Unknown action '{action}' on thread {thread_id}")
            return
        handler = self._handlers.get(action)
        if handler is None:
            logger.warning(f"No handler registered for '{action.value}'")
            return
        handler(thread_id)

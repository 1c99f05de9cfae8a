"""PyQt6 backend for the view tree: every node mirrors into a widget."""

import logging
from typing import Callable, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QAbstractItemView, QFrame, QLabel, QListWidget, QListWidgetItem,
    QPushButton, QVBoxLayout, QWidget,
)

from threadcomments.view.view_tree import ERROR_ID, ViewNode, ViewTree

logger = logging.getLogger("threadcomments")

ACTION_HREF_PREFIX = "action:"


class QtViewNode(ViewNode):
    """ViewNode that owns a widget chosen by its kind.

    - container / thread: QWidget/QFrame with a vertical layout of children
    - header / comments / text: rich-text QLabel showing `content`
    - select: multi-selection QListWidget showing `options`
    - toggle: checkable QPushButton reflecting the "active" class
    """

    def __init__(self, node_id, kind="container", classes=(), attributes=None):
        super().__init__(node_id, kind=kind, classes=classes, attributes=attributes)
        self._syncing = False
        self.on_selection_changed: Optional[Callable[[list[str]], None]] = None
        self.on_toggled: Optional[Callable[[bool], None]] = None
        self.widget = self._build_widget()
        self._layout: Optional[QVBoxLayout] = None
        if kind in ("container", "thread"):
            self._layout = QVBoxLayout(self.widget)
            self._layout.setContentsMargins(0, 0, 0, 0)
            self._layout.setSpacing(2)
            if kind == "container":
                self._layout.setAlignment(Qt.AlignmentFlag.AlignTop)
        self._on_classes_changed()

    def _build_widget(self) -> QWidget:
        if self.kind == "thread":
            frame = QFrame()
            frame.setFrameShape(QFrame.Shape.StyledPanel)
            return frame
        if self.kind in ("header", "comments", "text"):
            label = QLabel()
            label.setTextFormat(Qt.TextFormat.RichText)
            label.setWordWrap(True)
            label.linkActivated.connect(self._on_link_activated)
            if self.kind == "comments":
                label.setContentsMargins(20, 0, 4, 4)
            return label
        if self.kind == "select":
            widget = QListWidget()
            widget.setSelectionMode(QAbstractItemView.SelectionMode.MultiSelection)
            widget.setMaximumHeight(120)
            widget.itemSelectionChanged.connect(self._on_item_selection_changed)
            return widget
        if self.kind == "toggle":
            button = QPushButton(self.node_id)
            button.setCheckable(True)
            button.toggled.connect(self._on_button_toggled)
            return button
        return QWidget()

    # -- mirror hooks ----------------------------------------------------

    def _on_classes_changed(self) -> None:
        if not hasattr(self, "widget"):
            return
        if self.kind == "thread":
            self.widget.setVisible(not self.has_class("hidden"))
            for child in self.children:
                if child.kind == "comments":
                    child.widget.setVisible(self.has_class("expanded"))
        elif self.kind == "toggle":
            self._syncing = True
            self.widget.setChecked(self.has_class("active"))
            self._syncing = False
        elif self.node_id == ERROR_ID:
            self.widget.setVisible(bool(self.content))

    def _on_content_changed(self) -> None:
        if self.kind in ("header", "comments", "text"):
            self.widget.setText(self.content)
        if self.node_id == ERROR_ID:
            self.widget.setVisible(bool(self.content))

    def _on_children_changed(self, removed: list) -> None:
        if self._layout is None:
            return
        # Take every widget out without deleting, then re-add in child order.
        while self._layout.count():
            self._layout.takeAt(0)
        for child in self.children:
            self._layout.addWidget(child.widget)
        for node in removed:
            node.widget.setParent(None)
            node.widget.deleteLater()
        if self.kind == "thread":
            self._on_classes_changed()

    def _on_options_changed(self) -> None:
        self._syncing = True
        try:
            self.widget.clear()
            for option in self.options:
                item = QListWidgetItem(option.text)
                item.setData(Qt.ItemDataRole.UserRole, option.value)
                self.widget.addItem(item)
                item.setSelected(option.selected)
        finally:
            self._syncing = False

    # -- widget signals --------------------------------------------------

    def _on_link_activated(self, href: str) -> None:
        if href.startswith(ACTION_HREF_PREFIX):
            self.trigger(href[len(ACTION_HREF_PREFIX):])

    def _on_item_selection_changed(self) -> None:
        if self._syncing or self.on_selection_changed is None:
            return
        for row, option in enumerate(self.options):
            option.selected = self.widget.item(row).isSelected()
        self.on_selection_changed(self.selected_values())

    def _on_button_toggled(self, checked: bool) -> None:
        if self._syncing or self.on_toggled is None:
            return
        self.on_toggled(checked)


class QtViewTree(ViewTree):
    """ViewTree whose nodes are QtViewNode instances."""

    node_class = QtViewNode

    @property
    def root_widget(self) -> QWidget:
        return self.get_root_node().widget

"""Main application window: filter bar + thread list."""

import logging
from typing import Optional

from PyQt6.QtWidgets import (
    QCheckBox, QComboBox, QHBoxLayout, QInputDialog, QLabel,
    QMainWindow, QPushButton, QScrollArea, QStatusBar, QVBoxLayout, QWidget,
)

from threadcomments.controller.handlers import ThreadCommentsHandlers
from threadcomments.controller.state_controller import StateController
from threadcomments.core.config_manager import ConfigManager
from threadcomments.core.exceptions import ConfigError
from threadcomments.core.types import FilterByState, SortField
from threadcomments.gui.qt_view_tree import QtViewTree
from threadcomments.gui.workers import QtTaskRunner
from threadcomments.view.view_tree import (
    CONTROL_FILTER_BY_MY_THREADS,
    CONTROL_FILTER_BY_PROCESSES,
    CONTROL_FILTER_BY_USERS,
)

logger = logging.getLogger("threadcomments")


class MainWindow(QMainWindow):
    """Hosts the Qt view tree and wires toolbar controls to the controller."""

    def __init__(
        self,
        controller: StateController,
        view_tree: QtViewTree,
        handlers: ThreadCommentsHandlers,
        task_runner: QtTaskRunner,
        config: ConfigManager,
    ):
        super().__init__()
        self._controller = controller
        self._tree = view_tree
        self._handlers = handlers
        self._task_runner = task_runner
        self._config = config

        self.setWindowTitle("Thread Comments")
        self.setMinimumSize(900, 600)

        self._init_ui()
        self._connect_tree_controls()

    def _init_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        # === Toolbar: state filter, sort, reload ===
        toolbar = QHBoxLayout()

        toolbar.addWidget(QLabel("State:"))
        self._state_combo = QComboBox()
        for state in FilterByState:
            self._state_combo.addItem(state.value.capitalize(), state.value)
        self._select_data(self._state_combo, self._controller.store.filters.by_state.value)
        self._state_combo.currentIndexChanged.connect(self._on_state_changed)
        toolbar.addWidget(self._state_combo)

        toolbar.addWidget(QLabel("Sort by:"))
        self._sort_combo = QComboBox()
        for field in SortField:
            self._sort_combo.addItem(field.value.capitalize(), field.value)
        self._select_data(self._sort_combo, self._controller.store.sort_spec.field.value)
        self._sort_combo.currentIndexChanged.connect(self._on_sort_changed)
        toolbar.addWidget(self._sort_combo)

        self._reversed_check = QCheckBox("Reversed")
        self._reversed_check.setChecked(self._controller.store.sort_spec.reversed)
        self._reversed_check.toggled.connect(self._controller.set_sort_reversed)
        toolbar.addWidget(self._reversed_check)

        toolbar.addStretch()

        self._reload_btn = QPushButton("Reload")
        self._reload_btn.clicked.connect(self._handlers.reload)
        toolbar.addWidget(self._reload_btn)

        layout.addLayout(toolbar)

        # === View tree (filters, counters, thread list) ===
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self._tree.root_widget)
        layout.addWidget(scroll)

        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

    def _connect_tree_controls(self):
        users_node = self._tree.get_control_node(CONTROL_FILTER_BY_USERS)
        users_node.on_selection_changed = self._controller.set_filter_by_users

        processes_node = self._tree.get_control_node(CONTROL_FILTER_BY_PROCESSES)
        processes_node.on_selection_changed = lambda values: self._controller.set_filter_by_processes(
            [int(value) for value in values]
        )

        my_threads_node = self._tree.get_control_node(CONTROL_FILTER_BY_MY_THREADS)
        my_threads_node.widget.setText("My threads")
        my_threads_node.on_toggled = self._controller.set_filter_by_my_threads

    @staticmethod
    def _select_data(combo: QComboBox, value: str):
        index = combo.findData(value)
        if index >= 0:
            combo.setCurrentIndex(index)

    # ------------------------------------------------------------------
    # Toolbar handlers
    # ------------------------------------------------------------------

    def _on_state_changed(self, _index: int):
        self._controller.set_filter_by_state(FilterByState(self._state_combo.currentData()))

    def _on_sort_changed(self, _index: int):
        self._controller.set_sort_by(SortField(self._sort_combo.currentData()))

    def ask_comment_text(self, thread_id: int) -> Optional[str]:
        """Prompt for a new comment on a thread. None when cancelled."""
        thread = self._controller.store.get_thread(thread_id)
        text, ok = QInputDialog.getMultiLineText(self, "Add comment", thread.name)
        if not ok:
            return None
        return text

    def closeEvent(self, event):
        self._task_runner.stop_all()
        store = self._controller.store
        try:
            self._config.save_view_preferences(store.sort_spec, store.filters.by_state)
        except ConfigError as e:
            logger.error(f"Could not save view preferences: {e}")
        super().closeEvent(event)

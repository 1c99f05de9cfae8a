"""ThreadComments application entry point."""

import sys

from PyQt6.QtWidgets import QApplication

from threadcomments.adapters.http_comments_adapter import HttpCommentsAdapter
from threadcomments.controller.handlers import ThreadCommentsHandlers
from threadcomments.controller.state_controller import StateController
from threadcomments.core.config_manager import ConfigManager
from threadcomments.core.logger import setup_logger, shutdown_logger
from threadcomments.core.store import ThreadCommentsStore
from threadcomments.gui.main_window import MainWindow
from threadcomments.gui.qt_view_tree import QtViewTree
from threadcomments.gui.workers import QtTaskRunner
from threadcomments.services.comments_service import CommentsService
from threadcomments.view.renderer import ViewRenderer


def main():
    """Main entry point for ThreadComments application.

    Startup sequence:
    1. ConfigManager init (loads or creates settings.yaml)
    2. Logger init (reads log_level from config)
    3. Adapter + service creation
    4. QApplication creation (before any widget)
    5. Store, view tree, renderer, controller
    6. Initial filter/sort state from config (batched, no render)
    7. Handlers registered with the renderer
    8. MainWindow creation, show, first load
    9. Event loop
    """
    # 1. ConfigManager (loads or creates settings.yaml)
    config = ConfigManager()

    # 2. Logger (reads log_level from config)
    logger = setup_logger(
        log_level=config.get("app.log_level", "INFO"),
        mask_logs=config.get("security.mask_logs", True),
    )
    logger.info("ThreadComments starting...")

    # 3. Adapter + service
    adapter = HttpCommentsAdapter(
        base_url=config.get("api.base_url", "http://localhost:5000"),
        read_comments_path=config.get("api.read_comments_path", "/comments/read"),
        resolve_thread_path=config.get("api.resolve_thread_path", "/comments/resolve-thread"),
        create_comment_path=config.get("api.create_comment_path", "/comments/create-comment"),
        timeout=config.get("api.timeout", 30),
        max_retries=config.get("api.max_retries", 3),
        mock_mode=config.get("api.mock_mode", False),
    )
    service = CommentsService(adapter)

    # 4. QApplication
    app = QApplication(sys.argv)

    # 5. Core wiring
    store = ThreadCommentsStore()
    view_tree = QtViewTree().build()
    renderer = ViewRenderer(store, view_tree, date_format=config.get("view.date_format", "%d/%m/%Y, %H:%M"))
    controller = StateController(store, renderer)

    # 6. Initial state, rendered once the snapshot arrives
    sort_spec = config.get_sort_spec()
    controller.set_sort_by(sort_spec.field, omit_update=True)
    controller.set_sort_reversed(sort_spec.reversed, omit_update=True)
    controller.set_filter_by_state(config.get_filter_by_state(), omit_update=True)

    # 7. Handlers
    task_runner = QtTaskRunner()
    handlers = ThreadCommentsHandlers(controller, service, run_task=task_runner)
    handlers.start()

    # 8. Window
    window = MainWindow(controller, view_tree, handlers, task_runner, config)
    handlers.set_comment_prompt(window.ask_comment_text)
    window.show()
    handlers.reload()
    logger.info("ThreadComments UI ready")

    # 9. Event loop
    exit_code = app.exec()
    logger.info("ThreadComments shutting down")
    shutdown_logger()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

"""Shared test fixtures for ThreadComments tests."""

import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from threadcomments.controller.state_controller import StateController
from threadcomments.core.config_manager import ConfigManager, DEFAULT_CONFIG
from threadcomments.core.store import ThreadCommentsStore
from threadcomments.core.types import CommentDTO, ProcessDTO, Snapshot, ThreadDTO
from threadcomments.view.renderer import ViewRenderer
from threadcomments.view.view_tree import ViewTree


CURRENT_USER = "alice"


def make_thread(thread_id, name=None, modified="2023-01-01", created="2023-01-01",
                reporter="bob", resolved=False, process=None):
    return ThreadDTO(
        id=thread_id,
        name=name or f"Thread {thread_id}",
        created=created,
        modified=modified,
        reporter=reporter,
        resolved=resolved,
        process=process,
    )


def make_comment(comment_id, thread_id, position=1, user="bob", content=None):
    return CommentDTO(
        id=comment_id,
        thread_id=thread_id,
        position=position,
        user=user,
        content=content or f"Comment {comment_id}",
    )


def make_snapshot(threads, comments=(), current_user=CURRENT_USER):
    comments = list(comments)
    by_threads = {thread.id: [] for thread in threads}
    for comment in sorted(comments, key=lambda c: c.position):
        by_threads[comment.thread_id].append(comment.id)
    processes = {t.process.id: t.process for t in threads if t.process is not None}
    return Snapshot(
        threads=list(threads),
        comments_hash={comment.id: comment for comment in comments},
        comments_by_threads=by_threads,
        shared_params={"current_user": current_user},
        users=sorted({t.reporter for t in threads} | {c.user for c in comments}),
        process_ids=sorted(processes),
        processes_hash=processes,
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset all singletons before each test."""
    yield
    ConfigManager.reset()


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def config_file(tmp_dir):
    """Create a temporary settings.yaml and return its path."""
    config_dir = tmp_dir / "config"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "settings.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(dict(DEFAULT_CONFIG), f, default_flow_style=False, sort_keys=False)

    return config_path


@pytest.fixture
def sample_snapshot():
    """Three threads, two processes, comments from several users.

    Modified order: T1 < T2 < T3. T2 is resolved. T3 has no comments.
    """
    p1 = ProcessDTO(id=10, name="Steel production", location="DE")
    p2 = ProcessDTO(id=20, name="Transport", location="FR")
    threads = [
        make_thread(2, name="Beta", modified="2023-02-01", reporter="bob", resolved=True, process=p2),
        make_thread(1, name="Alpha", modified="2023-01-01", reporter="carol", process=p1),
        make_thread(3, name="Gamma", modified="2023-03-01", reporter="dave"),
    ]
    comments = [
        make_comment(12, 1, position=2, user=CURRENT_USER, content="second"),
        make_comment(11, 1, position=1, user="carol", content="first"),
        make_comment(21, 2, position=1, user="erin", content="only"),
    ]
    return make_snapshot(threads, comments)


@pytest.fixture
def store():
    return ThreadCommentsStore()


@pytest.fixture
def view_tree():
    return ViewTree().build()


@pytest.fixture
def renderer(store, view_tree):
    return ViewRenderer(store, view_tree)


@pytest.fixture
def controller(store, renderer):
    return StateController(store, renderer)


@pytest.fixture
def loaded_controller(controller, sample_snapshot):
    """Controller with the sample snapshot loaded and rendered."""
    controller.load_snapshot(sample_snapshot)
    return controller

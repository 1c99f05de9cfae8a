"""Comments HTTP API adapter with retry backoff."""

import logging
import time
from typing import Optional

import requests

from threadcomments.adapters.comments_adapter import CommentsAdapter
from threadcomments.core.exceptions import (
    CommentsApiError,
    CommentsFetchError,
    DataIntegrityError,
    RateLimitError,
)
from threadcomments.core.types import CommentDTO, ProcessDTO, Snapshot, ThreadDTO

logger = logging.getLogger("threadcomments")

# App version for User-Agent
_APP_VERSION = "1.0.0"


class RetryPolicy:
    """Exponential backoff between attempts."""

    def __init__(self, base_delay_sec: float = 1.0, max_retries: int = 3):
        self._base_delay = base_delay_sec
        self._max_retries = max_retries

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def get_backoff_time(self, attempt: int) -> float:
        """base * 2^attempt. E.g., 1s -> 2s -> 4s"""
        return self._base_delay * (2 ** attempt)


class HttpCommentsAdapter(CommentsAdapter):
    """Talks to the comments endpoints of the web service."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        read_comments_path: str = "/comments/read",
        resolve_thread_path: str = "/comments/resolve-thread",
        create_comment_path: str = "/comments/create-comment",
        timeout: float = 30,
        max_retries: int = 3,
        retry_delay_sec: float = 1.0,
        mock_mode: bool = False,
    ):
        self._base_url = base_url.rstrip("/")
        self._read_path = read_comments_path
        self._resolve_path = resolve_thread_path
        self._create_path = create_comment_path
        self._timeout = timeout
        self._mock_mode = mock_mode
        self._retry = RetryPolicy(retry_delay_sec, max_retries)
        self._mock_data: Optional[dict] = None
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": f"threadcomments/{_APP_VERSION}",
            "Accept": "application/json",
        })

    # ------------------------------------------------------------------
    # CommentsAdapter
    # ------------------------------------------------------------------

    def read_comments(self) -> Snapshot:
        if self._mock_mode:
            return self.build_snapshot(self._get_mock_data())
        data = self._request_json("GET", self._read_path)
        return self.build_snapshot(data)

    def resolve_thread(self, thread_id: int, resolved: bool) -> ThreadDTO:
        if self._mock_mode:
            return self._mock_resolve(thread_id, resolved)
        data = self._request_json(
            "POST", self._resolve_path, json={"thread": thread_id, "resolved": resolved}
        )
        return self._parse_thread(data)

    def create_comment(self, thread_id: int, content: str) -> CommentDTO:
        if self._mock_mode:
            return self._mock_create_comment(thread_id, content)
        data = self._request_json(
            "POST", self._create_path, json={"thread": thread_id, "content": content}
        )
        return self._parse_comment(data)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _request_json(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        """Send a request with retry/backoff and map failures to exceptions.

        Retries on connection errors, 5xx and 429. Other 4xx fail at once.
        """
        url = self._base_url + path
        last_error = None
        for attempt in range(self._retry.max_retries + 1):
            try:
                response = self._session.request(method, url, json=json, timeout=self._timeout)

                if response.status_code == 429:
                    if attempt < self._retry.max_retries:
                        backoff = self._retry.get_backoff_time(attempt)
                        logger.warning(f"Rate limited (429). Backoff: {backoff}s (attempt {attempt + 1})")
                        time.sleep(backoff)
                        continue
                    raise RateLimitError("Rate limit exceeded after max retries")

                if response.status_code >= 500:
                    last_error = CommentsApiError(
                        f"Server error {response.status_code}: {url}", response.status_code
                    )
                    if attempt < self._retry.max_retries:
                        backoff = self._retry.get_backoff_time(attempt)
                        logger.warning(f"Server error {response.status_code}. Retrying in {backoff}s")
                        time.sleep(backoff)
                        continue
                    raise last_error

                if response.status_code >= 400:
                    raise CommentsApiError(
                        f"Request failed with {response.status_code}: {url}", response.status_code
                    )

                try:
                    return response.json()
                except ValueError as e:
                    raise CommentsFetchError(f"Invalid JSON response from {url}: {e}")

            except requests.RequestException as e:
                last_error = e
                if attempt < self._retry.max_retries:
                    backoff = self._retry.get_backoff_time(attempt)
                    logger.warning(f"Request failed: {e}. Retrying in {backoff}s")
                    time.sleep(backoff)
                    continue

        raise CommentsFetchError(f"Failed to fetch data: {last_error}")

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_process(item: Optional[dict]) -> Optional[ProcessDTO]:
        if not item or item.get("id") is None:
            return None
        return ProcessDTO(
            id=int(item["id"]),
            name=item.get("name", ""),
            location=item.get("location", ""),
        )

    @staticmethod
    def _parse_thread(item: dict) -> ThreadDTO:
        try:
            return ThreadDTO(
                id=int(item["id"]),
                name=item.get("name", ""),
                created=item.get("created", ""),
                modified=item.get("modified", ""),
                reporter=item.get("reporter", ""),
                resolved=bool(item.get("resolved", False)),
                process=HttpCommentsAdapter._parse_process(item.get("process")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataIntegrityError(f"Malformed thread record: {e}")

    @staticmethod
    def _parse_comment(item: dict) -> CommentDTO:
        try:
            return CommentDTO(
                id=int(item["id"]),
                thread_id=int(item["thread"]),
                position=int(item.get("position", 0)),
                user=item.get("user", ""),
                content=item.get("content", ""),
                created=item.get("created", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataIntegrityError(f"Malformed comment record: {e}")

    @staticmethod
    def build_snapshot(data: dict) -> Snapshot:
        """Build the normalized snapshot from a read-comments payload.

        Payload: {"threads": [...], "comments": [...], "current_user": str}
        """
        if not isinstance(data, dict):
            raise DataIntegrityError("Unexpected read-comments response format")

        threads = [HttpCommentsAdapter._parse_thread(t) for t in data.get("threads", [])]
        comments = [HttpCommentsAdapter._parse_comment(c) for c in data.get("comments", [])]

        comments_hash = {comment.id: comment for comment in comments}
        comments_by_threads: dict[int, list[int]] = {thread.id: [] for thread in threads}
        for comment in sorted(comments, key=lambda c: (c.position, c.id)):
            comments_by_threads.setdefault(comment.thread_id, []).append(comment.id)

        processes_hash = {t.process.id: t.process for t in threads if t.process is not None}
        users = {t.reporter for t in threads if t.reporter}
        users.update(c.user for c in comments if c.user)

        return Snapshot(
            threads=threads,
            comments_hash=comments_hash,
            comments_by_threads=comments_by_threads,
            shared_params={"current_user": data.get("current_user", "")},
            users=sorted(users, key=str.lower),
            process_ids=sorted(processes_hash),
            processes_hash=processes_hash,
        )

    # ------------------------------------------------------------------
    # Mock mode
    # ------------------------------------------------------------------

    def _get_mock_data(self) -> dict:
        if self._mock_data is None:
            self._mock_data = self._mock_payload()
        return self._mock_data

    def _mock_resolve(self, thread_id: int, resolved: bool) -> ThreadDTO:
        for item in self._get_mock_data()["threads"]:
            if item["id"] == thread_id:
                item["resolved"] = resolved
                return self._parse_thread(item)
        raise CommentsApiError(f"Thread not found: {thread_id}", 404)

    def _mock_create_comment(self, thread_id: int, content: str) -> CommentDTO:
        data = self._get_mock_data()
        if not any(item["id"] == thread_id for item in data["threads"]):
            raise CommentsApiError(f"Thread not found: {thread_id}", 404)
        positions = [c["position"] for c in data["comments"] if c["thread"] == thread_id]
        item = {
            "id": max((c["id"] for c in data["comments"]), default=0) + 1,
            "thread": thread_id,
            "position": max(positions, default=0) + 1,
            "user": data["current_user"],
            "content": content,
            "created": "",
        }
        data["comments"].append(item)
        return self._parse_comment(item)

    @staticmethod
    def _mock_payload() -> dict:
        """Return fake payload for mock mode (no network)."""
        users = ["Puccio Bernini", "mock_user", "Ada Reviewer"]
        processes = [
            {"id": 633, "name": "Clothing; at manufacturer", "location": "United States"},
            {"id": 701, "name": "Electricity, high voltage", "location": "Germany"},
        ]
        threads = []
        comments = []
        comment_id = 1
        for i in range(5):
            thread_id = i + 1
            threads.append({
                "id": thread_id,
                "name": f"[Mock] Thread {thread_id}",
                "created": f"2023-08-{10 + i:02d}T09:00:00",
                "modified": f"2023-08-{12 + i:02d}T12:36:08",
                "reporter": users[i % len(users)],
                "resolved": i % 3 == 2,
                "process": processes[i % len(processes)] if i % 4 != 3 else None,
            })
            for position in range(1, i + 2):
                comments.append({
                    "id": comment_id,
                    "thread": thread_id,
                    "position": position,
                    "user": users[(i + position) % len(users)],
                    "content": f"Mock comment #{position} in thread {thread_id}.",
                    "created": f"2023-08-{12 + i:02d}T12:{position:02d}:00",
                })
                comment_id += 1
        return {"threads": threads, "comments": comments, "current_user": "mock_user"}

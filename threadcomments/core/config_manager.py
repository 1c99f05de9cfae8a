"""Thread-safe singleton configuration manager for ThreadComments."""

import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from threadcomments.core.exceptions import ConfigError
from threadcomments.core.types import FilterByState, SortField, SortSpec

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    "app": {
        "version": "1.0.0",
        "log_level": "INFO",
    },
    "api": {
        "base_url": "http://localhost:5000",
        "read_comments_path": "/comments/read",
        "resolve_thread_path": "/comments/resolve-thread",
        "create_comment_path": "/comments/create-comment",
        "timeout": 30,
        "max_retries": 3,
        "mock_mode": False,
    },
    "view": {
        "date_format": "%d/%m/%Y, %H:%M",
        "sort_by": "modified",
        "sort_reversed": False,
        "filter_by_state": "all",
    },
    "security": {
        "mask_logs": True,
    },
}

# Environment variables that override a config key for the running process only.
ENV_OVERRIDES = {
    "THREADCOMMENTS_API_BASE_URL": "api.base_url",
    "THREADCOMMENTS_MOCK_MODE": "api.mock_mode",
    "THREADCOMMENTS_LOG_LEVEL": "app.log_level",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def _choice(allowed: list[str]) -> Callable[[Any], Optional[str]]:
    def validate(value):
        if value not in allowed:
            raise ValueError(f"must be one of {allowed}")
        return value
    return validate


def _int_at_least(minimum: int) -> Callable[[Any], int]:
    def validate(value):
        number = int(value)
        if number < minimum:
            logger.warning(f"Value {number} < {minimum}. Forcing to {minimum}.")
            return minimum
        return number
    return validate


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


# key -> validator; a validator returns the value to store or raises
# TypeError/ValueError, in which case the change is ignored.
VALIDATORS: dict[str, Callable[[Any], Any]] = {
    "app.log_level": _choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    "api.timeout": _int_at_least(5),
    "api.max_retries": _int_at_least(0),
    "api.mock_mode": _flag,
    "view.sort_by": _choice([f.value for f in SortField]),
    "view.sort_reversed": _flag,
    "view.filter_by_state": _choice([s.value for s in FilterByState]),
    "security.mask_logs": _flag,
}


class ConfigManager:
    """Thread-safe singleton configuration manager.

    - One instance per process, guarded by an RLock
    - `config/settings.yaml` is created from DEFAULT_CONFIG if missing
    - Keys missing from the file fall back to DEFAULT_CONFIG
    - Dot-notation access (e.g. "view.sort_by")
    - `update()` validates through VALIDATORS before saving
    - ENV_OVERRIDES apply at load time and are never written back
    """

    _instance = None
    _lock = threading.RLock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        with self._lock:
            if hasattr(self, '_initialized'):
                return

            self.PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
            self.CONFIG_PATH = self.PROJECT_ROOT / "config" / "settings.yaml"

            self._config = {}
            self._overrides = {}
            self._instance_lock = threading.RLock()

            self._load_or_create_config()
            self._apply_env_overrides()

            self._initialized = True

    def _load_or_create_config(self):
        """Load settings.yaml merged over the defaults, or create it."""
        if not self.CONFIG_PATH.exists():
            logger.info(f"Config file not found at {self.CONFIG_PATH}")
            self._config = self._deep_copy(DEFAULT_CONFIG)
            self.save()
            logger.info(f"Created default configuration at {self.CONFIG_PATH}")
            return

        try:
            with open(self.CONFIG_PATH, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.error(f"Failed to load {self.CONFIG_PATH}: {e}")
            logger.warning("Using DEFAULT_CONFIG")
            self._config = self._deep_copy(DEFAULT_CONFIG)
            return

        if not isinstance(loaded, dict):
            logger.warning(f"{self.CONFIG_PATH} is not a mapping. Using DEFAULT_CONFIG")
            loaded = {}
        self._config = self._merge(self._deep_copy(DEFAULT_CONFIG), loaded)
        logger.info(f"Loaded configuration from {self.CONFIG_PATH}")

    def _apply_env_overrides(self):
        for env_name, key in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            value = self._validate_key_value(key, raw)
            if value is not None:
                self._overrides[key] = value
                logger.info(f"{key} overridden by {env_name}")

    def get(self, key: str, default=None) -> Any:
        """Get configuration value using dot-notation key.

        Example:
            >>> config.get("view.sort_by")
            'modified'
        """
        with self._instance_lock:
            if key in self._overrides:
                return self._overrides[key]

            value = self._config
            for part in key.split('.'):
                if isinstance(value, dict) and part in value:
                    value = value[part]
                else:
                    return default
            return value

    def set(self, key: str, value: Any) -> None:
        """Set a value in memory only. Use save() or update() to persist."""
        with self._instance_lock:
            parts = key.split('.')
            target = self._config
            for part in parts[:-1]:
                target = target.setdefault(part, {})
            target[parts[-1]] = value

    def update(self, changes: dict) -> None:
        """Validate a flat dict of dot-notation keys, apply it and save once.

        Invalid values are logged and skipped; the rest still apply.
        """
        with self._instance_lock:
            for key, value in changes.items():
                validated = self._validate_key_value(key, value)
                if validated is not None:
                    self.set(key, validated)
            self.save()

    def _validate_key_value(self, key: str, value: Any) -> Any:
        """Returns the value to store, or None when it must be ignored."""
        validator = VALIDATORS.get(key)
        if validator is None:
            return value
        try:
            return validator(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid value {value!r} for {key}: {e}. Ignoring.")
            return None

    def save(self) -> None:
        """Write current configuration to settings.yaml."""
        with self._instance_lock:
            try:
                self.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
                with open(self.CONFIG_PATH, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
                logger.debug(f"Saved configuration to {self.CONFIG_PATH}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to save configuration: {e}")
                raise ConfigError(f"Failed to save configuration: {e}")

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def get_api_url(self, path_key: str) -> str:
        """Join api.base_url with one of the configured endpoint paths.

        Example:
            >>> config.get_api_url("read_comments_path")
            'http://localhost:5000/comments/read'
        """
        base = str(self.get("api.base_url", "")).rstrip("/")
        path = str(self.get(f"api.{path_key}", ""))
        if path and not path.startswith("/"):
            path = "/" + path
        return base + path

    def get_sort_spec(self) -> SortSpec:
        """Saved sort order; a hand-edited invalid field falls back to the default."""
        field = self._validate_key_value("view.sort_by", self.get("view.sort_by"))
        return SortSpec(
            field=SortField(field or DEFAULT_CONFIG["view"]["sort_by"]),
            reversed=_flag(self.get("view.sort_reversed", False)),
        )

    def get_filter_by_state(self) -> FilterByState:
        state = self._validate_key_value("view.filter_by_state", self.get("view.filter_by_state"))
        return FilterByState(state or DEFAULT_CONFIG["view"]["filter_by_state"])

    def save_view_preferences(self, sort_spec: SortSpec, by_state: FilterByState) -> None:
        self.update({
            "view.sort_by": sort_spec.field.value,
            "view.sort_reversed": sort_spec.reversed,
            "view.filter_by_state": by_state.value,
        })

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        with cls._lock:
            cls._instance = None

    @staticmethod
    def _merge(base: dict, overlay: dict) -> dict:
        """Recursively overlay `overlay` onto `base` (mutates and returns base)."""
        for key, value in overlay.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                ConfigManager._merge(base[key], value)
            else:
                base[key] = value
        return base

    @staticmethod
    def _deep_copy(obj):
        """Create a deep copy of nested dict/list structures."""
        if isinstance(obj, dict):
            return {k: ConfigManager._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [ConfigManager._deep_copy(item) for item in obj]
        else:
            return obj

"""Tests for ConfigManager."""

import threading

import yaml
import pytest
from pathlib import Path
from unittest.mock import patch

from threadcomments.core.config_manager import ConfigManager, DEFAULT_CONFIG
from threadcomments.core.exceptions import ConfigError
from threadcomments.core.types import FilterByState, SortField, SortSpec


def _bare_cm(tmp_dir, initialized=False, config=None):
    ConfigManager.reset()
    cm = ConfigManager.__new__(ConfigManager)
    if initialized:
        cm._initialized = True
    cm.PROJECT_ROOT = tmp_dir
    cm.CONFIG_PATH = tmp_dir / "config" / "settings.yaml"
    cm._config = config if config is not None else {}
    cm._overrides = {}
    cm._instance_lock = threading.RLock()
    return cm


class TestConfigManagerInit:
    """Test configuration loading and creation."""

    def test_creates_default_config_when_missing(self, tmp_dir):
        """When no settings.yaml exists, should create one with defaults."""
        cm = _bare_cm(tmp_dir)
        cm._load_or_create_config()

        assert cm.CONFIG_PATH.exists()
        with open(cm.CONFIG_PATH, 'r') as f:
            saved = yaml.safe_load(f)
        assert saved["view"]["sort_by"] == "modified"
        assert saved["api"]["read_comments_path"] == "/comments/read"

    def test_loads_existing_config(self, tmp_dir, config_file):
        """Should load values from existing settings.yaml."""
        with open(config_file, 'w') as f:
            yaml.safe_dump({"view": {"sort_by": "name"}, "api": {"base_url": "http://example.test"}}, f)

        cm = _bare_cm(tmp_dir)
        cm._load_or_create_config()

        assert cm.get("view.sort_by") == "name"
        assert cm.get("api.base_url") == "http://example.test"

    def test_missing_keys_fall_back_to_defaults(self, tmp_dir, config_file):
        with open(config_file, 'w') as f:
            yaml.safe_dump({"api": {"base_url": "http://example.test"}}, f)

        cm = _bare_cm(tmp_dir)
        cm._load_or_create_config()

        assert cm.get("api.timeout") == 30
        assert cm.get("view.filter_by_state") == "all"

    def test_env_override_not_saved(self, tmp_dir, monkeypatch):
        monkeypatch.setenv("THREADCOMMENTS_API_BASE_URL", "http://env.test")
        monkeypatch.setenv("THREADCOMMENTS_MOCK_MODE", "yes")

        cm = _bare_cm(tmp_dir)
        cm._load_or_create_config()
        cm._apply_env_overrides()
        cm.save()

        assert cm.get("api.base_url") == "http://env.test"
        assert cm.get("api.mock_mode") is True
        with open(cm.CONFIG_PATH, 'r') as f:
            assert yaml.safe_load(f)["api"]["base_url"] == "http://localhost:5000"

    def test_uses_defaults_on_invalid_yaml(self, tmp_dir, config_file):
        """Should fall back to defaults when YAML is invalid."""
        config_file.write_text("{{invalid yaml: [")

        cm = _bare_cm(tmp_dir)
        cm._load_or_create_config()

        assert cm.get("view.sort_by") == "modified"


class TestConfigManagerGetSet:
    """Test get/set with dot notation."""

    def _make_cm(self):
        cm = _bare_cm(Path("."), initialized=True, config=ConfigManager._deep_copy(DEFAULT_CONFIG))
        ConfigManager._instance = cm
        return cm

    def test_get_simple_key(self):
        cm = self._make_cm()
        assert cm.get("app.log_level") == "INFO"

    def test_get_nested_key(self):
        cm = self._make_cm()
        assert cm.get("api.timeout") == 30

    def test_get_missing_key_returns_default(self):
        cm = self._make_cm()
        assert cm.get("nonexistent.key") is None
        assert cm.get("nonexistent.key", "fallback") == "fallback"

    def test_set_updates_value(self):
        cm = self._make_cm()
        cm.set("view.sort_by", "name")
        assert cm.get("view.sort_by") == "name"

    def test_set_creates_nested_path(self):
        cm = self._make_cm()
        cm.set("new.nested.key", "value")
        assert cm.get("new.nested.key") == "value"

    def test_deep_copy_does_not_share_defaults(self):
        cm = self._make_cm()
        cm.set("view.sort_by", "name")
        assert DEFAULT_CONFIG["view"]["sort_by"] == "modified"

    def test_api_url_joins_base_and_path(self):
        cm = self._make_cm()
        cm.set("api.base_url", "http://example.test/")
        assert cm.get_api_url("read_comments_path") == "http://example.test/comments/read"


class TestConfigManagerValidation:
    """Test validation rules in update()."""

    def _make_cm(self, tmp_dir):
        cm = _bare_cm(tmp_dir, initialized=True, config=ConfigManager._deep_copy(DEFAULT_CONFIG))
        ConfigManager._instance = cm
        return cm

    def test_invalid_sort_field_ignored(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"view.sort_by": "popularity"})
        assert cm.get("view.sort_by") == "modified"

    def test_valid_sort_field_accepted(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"view.sort_by": "created"})
        assert cm.get("view.sort_by") == "created"

    def test_invalid_state_filter_ignored(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"view.filter_by_state": "closed"})
        assert cm.get("view.filter_by_state") == "all"

    def test_timeout_below_min_forced_to_5(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"api.timeout": 1})
        assert cm.get("api.timeout") == 5

    def test_non_numeric_retries_ignored(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"api.max_retries": "many"})
        assert cm.get("api.max_retries") == 3

    def test_negative_retries_forced_to_0(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"api.max_retries": -2})
        assert cm.get("api.max_retries") == 0

    def test_invalid_log_level_ignored(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"app.log_level": "LOUD"})
        assert cm.get("app.log_level") == "INFO"

    def test_one_bad_value_does_not_block_others(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"view.sort_by": "popularity", "view.sort_reversed": True})
        assert cm.get("view.sort_by") == "modified"
        assert cm.get("view.sort_reversed") is True

    def test_update_persists_to_disk(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.update({"view.sort_reversed": True})
        with open(cm.CONFIG_PATH, 'r') as f:
            saved = yaml.safe_load(f)
        assert saved["view"]["sort_reversed"] is True


class TestViewPreferences:
    def _make_cm(self, tmp_dir):
        return _bare_cm(tmp_dir, initialized=True, config=ConfigManager._deep_copy(DEFAULT_CONFIG))

    def test_defaults(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        assert cm.get_sort_spec() == SortSpec(SortField.MODIFIED, False)
        assert cm.get_filter_by_state() is FilterByState.ALL

    def test_hand_edited_invalid_values_fall_back(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.set("view.sort_by", "popularity")
        cm.set("view.filter_by_state", "closed")
        assert cm.get_sort_spec().field is SortField.MODIFIED
        assert cm.get_filter_by_state() is FilterByState.ALL

    def test_round_trip(self, tmp_dir):
        cm = self._make_cm(tmp_dir)
        cm.save_view_preferences(SortSpec(SortField.NAME, True), FilterByState.OPEN)
        assert cm.get_sort_spec() == SortSpec(SortField.NAME, True)
        assert cm.get_filter_by_state() is FilterByState.OPEN


class TestConfigManagerSave:
    def test_save_failure_raises_config_error(self, tmp_dir):
        cm = _bare_cm(tmp_dir, initialized=True, config={"app": {}})
        with patch("builtins.open", side_effect=OSError("disk full")):
            with pytest.raises(ConfigError):
                cm.save()

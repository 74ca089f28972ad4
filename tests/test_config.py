"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from annoctx.foundation.config import (
    AnnoConfig,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from annoctx.foundation.errors import ConfigError, ErrorCode


class TestAnnoConfig:
    """Validation of config values."""

    def test_defaults(self) -> None:
        config = AnnoConfig()

        assert config.key_strategy == "uuid"
        assert config.drop_orphan_actions is True
        assert config.debug is False

    def test_unknown_key_strategy(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            AnnoConfig(key_strategy="random")  # type: ignore[arg-type]

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID
        assert "key_strategy" in str(exc_info.value)

    def test_non_boolean_flag(self) -> None:
        with pytest.raises(ConfigError):
            AnnoConfig(debug="maybe")  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            AnnoConfig().debug = True  # type: ignore[misc]


class TestLoadConfig:
    """File discovery and environment overrides."""

    def test_defaults_without_files(self) -> None:
        assert load_config() == AnnoConfig()

    def test_project_file(self, tmp_path: Path) -> None:
        (tmp_path / ".anno").mkdir()
        (tmp_path / ".anno" / "config.yaml").write_text("key_strategy: sequence\n")

        assert load_config().key_strategy == "sequence"

    def test_explicit_path_wins(self, tmp_path: Path) -> None:
        (tmp_path / ".anno").mkdir()
        (tmp_path / ".anno" / "config.yaml").write_text("debug: false\n")
        explicit = tmp_path / "custom.yaml"
        explicit.write_text("debug: true\n")

        assert load_config(explicit).debug is True

    def test_user_global_file(self, tmp_path: Path, monkeypatch) -> None:
        home_dir = tmp_path / "home"
        (home_dir / ".anno").mkdir(parents=True)
        (home_dir / ".anno" / "config.yaml").write_text("drop_orphan_actions: false\n")

        monkeypatch.setenv("HOME", str(home_dir))

        assert load_config().drop_orphan_actions is False

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path) == AnnoConfig()

    def test_unknown_keys_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("verbose: true\n")

        with pytest.raises(ConfigError, match="unknown keys"):
            load_config(path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("key_strategy: uuid\ndebug: false\n")
        monkeypatch.setenv("ANNO_KEY_STRATEGY", "sequence")
        monkeypatch.setenv("ANNO_DEBUG", "yes")
        monkeypatch.setenv("ANNO_DROP_ORPHAN_ACTIONS", "0")

        config = load_config(path)

        assert config.key_strategy == "sequence"
        assert config.debug is True
        assert config.drop_orphan_actions is False

    def test_invalid_env_value(self, monkeypatch) -> None:
        monkeypatch.setenv("ANNO_DEBUG", "sometimes")

        with pytest.raises(ConfigError):
            load_config()


class TestGlobalConfig:
    """Lazy global config."""

    def test_get_config_caches(self) -> None:
        first = get_config()

        assert get_config() is first

    def test_reset_config_reloads(self, monkeypatch) -> None:
        first = get_config()
        monkeypatch.setenv("ANNO_KEY_STRATEGY", "sequence")
        reset_config()

        second = get_config()

        assert second is not first
        assert second.key_strategy == "sequence"


class TestSaveDefaultConfig:
    """Writing the starter config file."""

    def test_round_trips_defaults(self, tmp_path: Path) -> None:
        path = save_default_config()

        assert path == Path(".anno/config.yaml")
        assert (tmp_path / ".anno" / "config.yaml").exists()
        assert yaml.safe_load(path.read_text()) == {
            "key_strategy": "uuid",
            "drop_orphan_actions": True,
            "debug": False,
        }
        assert load_config() == AnnoConfig()

    def test_custom_path(self, tmp_path: Path) -> None:
        path = save_default_config(tmp_path / "nested" / "anno.yaml")

        assert path.exists()
        assert load_config(path) == AnnoConfig()

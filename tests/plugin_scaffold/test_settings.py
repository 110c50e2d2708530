"""Configuration defaults, YAML loading, and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from AcodeKit.PluginScaffold.errors import UserConfigError
from AcodeKit.PluginScaffold.settings import (
    ScaffoldConfiguration,
    get_default_config,
    invalidate_default_config_cache,
    load_config,
    load_raw_yaml,
)


def test_defaults() -> None:
    config = ScaffoldConfiguration()

    assert config.http.timeout_sec == 60.0
    assert config.http.max_redirects == 10
    assert config.extraction.staged_extraction is True
    assert config.logging.level == "INFO"


def test_config_hash_is_stable_and_sensitive() -> None:
    first = ScaffoldConfiguration()
    second = ScaffoldConfiguration()
    assert first.config_hash() == second.config_hash()

    second.http.timeout_sec = 5
    assert first.config_hash() != second.config_hash()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValueError):
        ScaffoldConfiguration.model_validate({"http": {"retries": 3}})


def test_log_level_is_normalised() -> None:
    config = ScaffoldConfiguration()
    config.logging.level = "debug"
    assert config.logging.level == "DEBUG"
    with pytest.raises(ValueError):
        config.logging.level = "chatty"


def test_default_config_is_cached_until_invalidated(monkeypatch) -> None:
    first = get_default_config()
    assert get_default_config() is first
    assert get_default_config(copy=True) is not first

    monkeypatch.setenv("ACODE_KIT_TIMEOUT_SEC", "7")
    assert get_default_config().http.timeout_sec == 60.0
    invalidate_default_config_cache()
    assert get_default_config().http.timeout_sec == 7.0


def test_env_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("ACODE_KIT_STAGED_EXTRACTION", "false")
    monkeypatch.setenv("ACODE_KIT_LOG_LEVEL", "warning")
    monkeypatch.setenv("ACODE_KIT_MAX_UNCOMPRESSED_BYTES", "1024")

    config = load_config(None)

    assert config.extraction.staged_extraction is False
    assert config.logging.level == "WARNING"
    assert config.extraction.max_uncompressed_bytes == 1024


def test_load_config_from_yaml(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "acode.yaml"
    path.write_text(
        "http:\n  timeout_sec: 15\nextraction:\n  staged_extraction: false\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ACODE_KIT_CONNECT_TIMEOUT_SEC", "3")

    config = load_config(path)

    assert config.http.timeout_sec == 15
    assert config.http.connect_timeout_sec == 3
    assert config.extraction.staged_extraction is False


def test_empty_yaml_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_raw_yaml(path) == {}
    assert load_config(path).http.timeout_sec == 60.0


@pytest.mark.parametrize(
    ("content", "fragment"),
    [
        ("http: [unclosed", "invalid YAML"),
        ("- just\n- a list\n", "mapping at the root"),
        ("http:\n  timeout_sec: -1\n", "http -> timeout_sec"),
    ],
)
def test_invalid_configuration_files(tmp_path: Path, content: str, fragment: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(UserConfigError, match=fragment):
        load_config(path)


def test_missing_configuration_file(tmp_path: Path) -> None:
    with pytest.raises(UserConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml")

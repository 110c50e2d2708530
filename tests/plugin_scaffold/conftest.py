"""Shared fixtures for the plugin_scaffold test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from AcodeKit.PluginScaffold import net as net_mod
from AcodeKit.PluginScaffold.logging_utils import LOGGER_NAME
from AcodeKit.PluginScaffold.manifests import PluginAuthor, PluginMetadata
from AcodeKit.PluginScaffold.settings import invalidate_default_config_cache
from AcodeKit.PluginScaffold.testing import build_zip


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch) -> Iterator[None]:
    """Keep logs out of the home directory and start each test with fresh globals."""

    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("ACODE_KIT_LOG_DIR", str(log_dir))
    for name in (
        "ACODE_KIT_TIMEOUT_SEC",
        "ACODE_KIT_CONNECT_TIMEOUT_SEC",
        "ACODE_KIT_LOG_LEVEL",
        "ACODE_KIT_STAGED_EXTRACTION",
        "ACODE_KIT_MAX_UNCOMPRESSED_BYTES",
        "ACODE_KIT_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    invalidate_default_config_cache()
    net_mod.reset_http_client()
    yield
    net_mod.reset_http_client()
    invalidate_default_config_cache()
    _reset_package_logger()


def _reset_package_logger() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_acode_kit_managed", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def wrapped_archive() -> bytes:
    """Archive shaped like a GitHub branch download."""

    return build_zip(
        {
            "acode-plugin-main/": None,
            "acode-plugin-main/plugin.json": '{"id": "template"}',
            "acode-plugin-main/readme.md": "# Template\n",
            "acode-plugin-main/src/": None,
            "acode-plugin-main/src/main.js": "console.log('hi');\n",
        }
    )


@pytest.fixture
def metadata() -> PluginMetadata:
    return PluginMetadata(
        name="Demo Plugin",
        plugin_id="com.demoplugin.demoplugin",
        version="1.2.3",
        description="A demo",
        repository="https://github.com/example/demo",
        author=PluginAuthor(name="Ada", email="ada@example.com", url="", github="ada"),
        license="MIT",
        price=0,
        min_version_code=292,
        keywords=["demo", "test"],
        files=[],
    )


@pytest.fixture
def tree():
    """Return a helper listing relative POSIX paths of everything under a root."""

    def _tree(root: Path) -> set:
        return {path.relative_to(root).as_posix() for path in root.rglob("*")}

    return _tree

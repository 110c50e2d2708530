"""Template catalog lookups."""

from __future__ import annotations

import pytest

from AcodeKit.PluginScaffold.errors import UserConfigError
from AcodeKit.PluginScaffold.templates import TEMPLATES, get_template, template_choices


@pytest.mark.parametrize(
    ("name", "key"),
    [("javascript", "javascript"), ("JS", "javascript"), (" ts ", "typescript"), ("TypeScript", "typescript")],
)
def test_get_template_resolves_keys_and_aliases(name: str, key: str) -> None:
    assert get_template(name).key == key


def test_unknown_template_is_a_user_error() -> None:
    with pytest.raises(UserConfigError, match="javascript, js, typescript, ts"):
        get_template("python")


def test_catalog_urls_and_wrappers() -> None:
    js = TEMPLATES["javascript"]
    ts = TEMPLATES["typescript"]

    assert js.url.endswith("/acode-plugin/archive/refs/heads/main.zip")
    assert js.wrapper_dir == "acode-plugin-main"
    assert ts.url.endswith("/AcodeTSTemplate/archive/refs/heads/main.zip")
    assert ts.wrapper_dir == "AcodeTSTemplate-main"
    assert template_choices() == ("javascript", "js", "typescript", "ts")

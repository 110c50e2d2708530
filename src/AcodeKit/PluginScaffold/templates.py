"""Catalog of the official Acode plugin templates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import UserConfigError

__all__ = ["TemplateSpec", "TEMPLATES", "DEFAULT_TEMPLATE", "get_template", "template_choices"]


@dataclass(frozen=True)
class TemplateSpec:
    """One downloadable template and the wrapper folder its archive carries."""

    key: str
    label: str
    language: str
    url: str
    wrapper_dir: str
    aliases: Tuple[str, ...] = ()


TEMPLATES: Dict[str, TemplateSpec] = {
    "javascript": TemplateSpec(
        key="javascript",
        label="JavaScript",
        language="JavaScript",
        url="https://github.com/Acode-Foundation/acode-plugin/archive/refs/heads/main.zip",
        wrapper_dir="acode-plugin-main",
        aliases=("js",),
    ),
    "typescript": TemplateSpec(
        key="typescript",
        label="TypeScript",
        language="TypeScript",
        url="https://github.com/Acode-Foundation/AcodeTSTemplate/archive/refs/heads/main.zip",
        wrapper_dir="AcodeTSTemplate-main",
        aliases=("ts",),
    ),
}

DEFAULT_TEMPLATE = "javascript"


def get_template(name: str) -> TemplateSpec:
    """Return the template registered under ``name`` or one of its aliases."""

    lookup = name.strip().lower()
    for spec in TEMPLATES.values():
        if lookup == spec.key or lookup in spec.aliases:
            return spec
    known = ", ".join(template_choices())
    raise UserConfigError(f"Unknown template '{name}'. Choose one of: {known}")


def template_choices() -> Tuple[str, ...]:
    """Template keys plus aliases, in catalog order."""

    choices = []
    for spec in TEMPLATES.values():
        choices.append(spec.key)
        choices.extend(spec.aliases)
    return tuple(choices)

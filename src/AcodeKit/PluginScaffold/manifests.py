# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.manifests",
#   "purpose": "Model plugin metadata and persist the generated plugin.json descriptor",
#   "sections": [
#     {"id": "models", "name": "Metadata Models", "anchor": "MOD", "kind": "pydantic"},
#     {"id": "io", "name": "Manifest Persistence", "anchor": "IO", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Plugin metadata models and ``plugin.json`` persistence.

The descriptor schema belongs to the Acode plugin platform; this module only
fills it from :class:`PluginMetadata` and writes it atomically into a finished
project directory.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import IoError, UserConfigError

__all__ = [
    "MANIFEST_FILENAME",
    "PluginAuthor",
    "PluginMetadata",
    "PluginManifest",
    "build_manifest",
    "write_json_atomic",
    "write_manifest",
    "load_manifest",
]

MANIFEST_FILENAME = "plugin.json"
_DEFAULT_FILE_MODE = 0o666


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class PluginAuthor(BaseModel):
    """Author block of the descriptor."""

    name: str
    email: str = ""
    url: str = ""
    github: str = ""


class PluginMetadata(BaseModel):
    """Fields collected from the user before scaffolding."""

    name: str = Field(min_length=1)
    plugin_id: str = Field(min_length=1)
    version: str = Field(default="1.0.0", min_length=1)
    description: str = ""
    repository: str = ""
    author: PluginAuthor
    license: str = "MIT"
    price: int = Field(default=0, ge=0)
    min_version_code: int = Field(default=292, ge=0)
    keywords: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)


class PluginManifest(BaseModel):
    """Serialized ``plugin.json`` descriptor; field order is the on-disk key order."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    main: str = "dist/main.js"
    version: str
    readme: str = "readme.md"
    icon: str = "icon.png"
    min_version_code: int = Field(alias="minVersionCode")
    price: int = 0
    repository: str = ""
    license: str = "MIT"
    author: PluginAuthor
    description: str = ""
    keywords: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)
    changelogs: str = "changelogs.md"

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def build_manifest(metadata: PluginMetadata) -> PluginManifest:
    """Map collected metadata onto the descriptor with the template's fixed entries."""

    return PluginManifest(
        id=metadata.plugin_id,
        name=metadata.name,
        version=metadata.version,
        min_version_code=metadata.min_version_code,
        price=metadata.price,
        repository=metadata.repository,
        license=metadata.license,
        author=metadata.author,
        description=metadata.description,
        keywords=list(metadata.keywords),
        files=list(metadata.files),
    )


def write_json_atomic(path: Path, payload: object) -> Path:
    """Atomically persist ``payload`` as indented JSON to ``path``."""

    resolved = Path(path).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=str(resolved.parent), delete=False, suffix=".tmp"
    )
    temp_path = Path(handle.name)
    try:
        with handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
            handle.flush()
            try:
                os.fsync(handle.fileno())
            except (AttributeError, OSError):
                pass
        # NamedTemporaryFile creates 0600; published files get the usual umask-derived mode.
        os.chmod(temp_path, _DEFAULT_FILE_MODE & ~_current_umask())
        temp_path.replace(resolved)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    return resolved


def write_manifest(project_dir: Path, metadata: PluginMetadata) -> Path:
    """Write ``plugin.json`` into ``project_dir``, replacing the template's copy."""

    manifest = build_manifest(metadata)
    target = Path(project_dir) / MANIFEST_FILENAME
    try:
        return write_json_atomic(target, manifest.to_payload())
    except OSError as exc:
        raise IoError(f"Unable to write {target}: {exc}", path=target) from exc


def load_manifest(path: Path) -> PluginManifest:
    """Read and validate a ``plugin.json`` descriptor."""

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise IoError(f"Unable to read {path}: {exc}", path=path) from exc
    except json.JSONDecodeError as exc:
        raise UserConfigError(f"{path} is not valid JSON: {exc}") from exc
    try:
        return PluginManifest.model_validate(raw)
    except ValidationError as exc:
        raise UserConfigError(f"{path} is not a valid plugin manifest: {exc}") from exc

# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.pipeline",
#   "purpose": "Orchestrate fetch, extraction, layout normalisation, and manifest hand-off",
#   "sections": [
#     {"id": "results", "name": "Result Types", "anchor": "RES", "kind": "dataclasses"},
#     {"id": "preconditions", "name": "Destination Checks", "anchor": "PRE", "kind": "helpers"},
#     {"id": "materialise", "name": "Staged & In-place Materialisation", "anchor": "MAT", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""End-to-end scaffolding pipeline.

The stages run strictly one after another: the archive is downloaded in full,
extracted, flattened, and only then handed to the manifest writer.  In the
default staged mode extraction and flattening happen in a hidden sibling of
the destination that is renamed into place once everything succeeded, so a
failure leaves the destination untouched.  In-place mode writes straight into
the destination and reports the partially written directory on failure.
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx

from .errors import DestinationNotEmpty, IoError, ScaffoldError
from .io_safe import extract_zip_bytes, generate_correlation_id
from .layout import normalize_layout
from .manifests import PluginMetadata, write_manifest
from .net import fetch_archive
from .settings import ScaffoldConfiguration, get_default_config
from .templates import TemplateSpec

__all__ = [
    "ProjectDirectory",
    "ScaffoldResult",
    "ensure_fresh_destination",
    "prepare_project_directory",
    "scaffold_project",
]

LOGGER = logging.getLogger("AcodeKit.PluginScaffold.pipeline")


@dataclass(frozen=True)
class ProjectDirectory:
    """Extracted and normalised template, ready for its manifest."""

    path: Path
    template: TemplateSpec
    wrapper: Optional[str]
    files: List[Path]


@dataclass(frozen=True)
class ScaffoldResult:
    project: ProjectDirectory
    manifest_path: Path


# --- Destination checks --------------------------------------------------------


def ensure_fresh_destination(destination: Path) -> Path:
    """Require ``destination`` to be absent or an empty directory."""

    # Absolute and normalised: staging is created beside the last path component.
    dest = Path(os.path.normpath(Path(destination).expanduser().absolute()))
    if not os.path.lexists(dest):
        return dest
    if dest.is_symlink() or not dest.is_dir():
        raise DestinationNotEmpty(f"{dest} already exists and is not a directory", path=dest)
    try:
        occupied = any(dest.iterdir())
    except OSError as exc:
        raise IoError(f"Unable to inspect {dest}: {exc}", path=dest) from exc
    if occupied:
        raise DestinationNotEmpty(f"{dest} already exists and is not empty", path=dest)
    return dest


def _ensure_writable(path: Path) -> None:
    if not path.is_dir() or not os.access(path, os.W_OK):
        raise IoError(f"Project directory {path} is missing or not writable", path=path)


# --- Staged & in-place materialisation -------------------------------------------


def _commit(staging: Path, dest: Path) -> None:
    try:
        if dest.is_dir() and not dest.is_symlink():
            dest.rmdir()
        os.rename(staging, dest)
    except OSError as exc:
        raise IoError(f"Unable to move staged project into {dest}: {exc}", path=dest) from exc


def _materialize_staged(
    payload: bytes,
    dest: Path,
    template: TemplateSpec,
    config: ScaffoldConfiguration,
    log: logging.Logger,
) -> ProjectDirectory:
    staging = dest.parent / f".{dest.name}.staging-{uuid.uuid4().hex[:8]}"
    try:
        staging.mkdir(parents=True)
    except OSError as exc:
        raise IoError(f"Unable to create staging directory {staging}: {exc}", path=staging) from exc

    try:
        files = extract_zip_bytes(payload, staging, config=config.extraction, logger=log)
        wrapper = normalize_layout(staging, expected_wrapper=template.wrapper_dir, logger=log)
        _commit(staging, dest)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    relocated = [dest / path.relative_to(staging) for path in files]
    if wrapper is not None:
        relocated = [_strip_wrapper(dest, path, wrapper) for path in relocated]
    return ProjectDirectory(path=dest, template=template, wrapper=wrapper, files=relocated)


def _materialize_in_place(
    payload: bytes,
    dest: Path,
    template: TemplateSpec,
    config: ScaffoldConfiguration,
    log: logging.Logger,
) -> ProjectDirectory:
    try:
        files = extract_zip_bytes(payload, dest, config=config.extraction, logger=log)
        wrapper = normalize_layout(dest, expected_wrapper=template.wrapper_dir, logger=log)
    except ScaffoldError as exc:
        if dest.is_dir() and any(dest.iterdir()):
            exc.partial_path = dest
        raise

    if wrapper is not None:
        files = [_strip_wrapper(dest, path, wrapper) for path in files]
    return ProjectDirectory(path=dest, template=template, wrapper=wrapper, files=files)


def _strip_wrapper(root: Path, path: Path, wrapper: str) -> Path:
    relative = path.relative_to(root)
    return root.joinpath(*relative.parts[1:]) if relative.parts[0] == wrapper else path


# --- Public API ----------------------------------------------------------------


def prepare_project_directory(
    template: TemplateSpec,
    destination: Path,
    *,
    config: Optional[ScaffoldConfiguration] = None,
    client: Optional[httpx.Client] = None,
    logger: Optional[logging.Logger] = None,
    correlation_id: Optional[str] = None,
) -> ProjectDirectory:
    """Download ``template`` and materialise it as a flattened project at ``destination``.

    Raises:
        DestinationNotEmpty: ``destination`` already holds files.
        NetworkError: The archive could not be downloaded; nothing is written.
        MalformedArchive: The payload is not a usable zip container.
        UnsafeArchiveEntry: An entry tried to escape the destination.
        IoError: A filesystem operation failed.
    """

    settings = config or get_default_config()
    log = logger or LOGGER
    cid = correlation_id or generate_correlation_id()
    dest = ensure_fresh_destination(destination)

    log.info(
        "preparing project directory",
        extra={
            "stage": "scaffold",
            "correlation_id": cid,
            "extra_fields": {
                "template": template.key,
                "destination": str(dest),
                "staged": settings.extraction.staged_extraction,
                "config_hash": settings.config_hash(),
            },
        },
    )

    payload = fetch_archive(template.url, config=settings.http, client=client, correlation_id=cid)

    if settings.extraction.staged_extraction:
        project = _materialize_staged(payload, dest, template, settings, log)
    else:
        project = _materialize_in_place(payload, dest, template, settings, log)

    _ensure_writable(project.path)
    return project


def scaffold_project(
    template: TemplateSpec,
    destination: Path,
    metadata: PluginMetadata,
    *,
    config: Optional[ScaffoldConfiguration] = None,
    client: Optional[httpx.Client] = None,
    logger: Optional[logging.Logger] = None,
) -> ScaffoldResult:
    """Create a complete plugin project: template files plus a generated ``plugin.json``."""

    log = logger or LOGGER
    cid = generate_correlation_id()
    project = prepare_project_directory(
        template, destination, config=config, client=client, logger=log, correlation_id=cid
    )
    manifest_path = write_manifest(project.path, metadata)
    log.info(
        "scaffold complete",
        extra={
            "stage": "scaffold",
            "correlation_id": cid,
            "extra_fields": {"project": str(project.path), "manifest": str(manifest_path)},
        },
    )
    return ScaffoldResult(project=project, manifest_path=manifest_path)

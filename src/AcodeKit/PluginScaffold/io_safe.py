# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.io_safe",
#   "purpose": "Filesystem and payload safety helpers: path containment, hashing, masking, zip extraction",
#   "sections": [
#     {"id": "identifiers", "name": "Identifiers & Masking", "anchor": "IDM", "kind": "helpers"},
#     {"id": "hashing", "name": "Hashing Utilities", "anchor": "HAS", "kind": "helpers"},
#     {"id": "containment", "name": "Path Containment", "anchor": "PTH", "kind": "api"},
#     {"id": "extraction", "name": "Zip Extraction", "anchor": "ARC", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Filesystem and payload safety utilities for the scaffolder.

Template archives come from a third party, so every entry name is treated as
untrusted text.  :func:`contained_path` is the single gatekeeper deciding where
an entry may land; it performs no I/O so it can be exercised directly by unit
and property tests.  :func:`extract_zip_bytes` validates the whole archive with
it before the first byte is written to disk.
"""

from __future__ import annotations

import hashlib
import io
import logging
import re
import shutil
import stat
import uuid
import zipfile
import zlib
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import ArchiveTooLarge, IoError, MalformedArchive, UnsafeArchiveEntry
from .settings import ExtractionConfiguration, get_default_config

__all__ = [
    "generate_correlation_id",
    "mask_sensitive_data",
    "sha256_bytes",
    "contained_path",
    "extract_zip_bytes",
]

LOGGER = logging.getLogger("AcodeKit.PluginScaffold.io_safe")

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")
_PARSE_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError)
_DECODE_ERRORS = (
    zipfile.BadZipFile,
    EOFError,
    zlib.error,
    NotImplementedError,
    RuntimeError,
)


def generate_correlation_id() -> str:
    """Return a short-lived identifier that links related log entries."""

    return uuid.uuid4().hex[:12]


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with common secret fields masked."""

    sensitive_keys = {"authorization", "api_key", "apikey", "token", "secret", "password"}

    def _mask_value(value: object, key_hint: Optional[str] = None) -> object:
        if isinstance(value, dict):
            return {
                sub_key: _mask_value(sub_value, str(sub_key).lower())
                for sub_key, sub_value in value.items()
            }
        if isinstance(value, list):
            return [_mask_value(item, key_hint) for item in value]
        if isinstance(value, str):
            if key_hint in sensitive_keys:
                return "***masked***"
            if "bearer " in value.lower():
                return "***masked***"
        return value

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        lower = key.lower()
        if lower in sensitive_keys:
            masked[key] = "***masked***"
        else:
            masked[key] = _mask_value(value, lower)
    return masked


def sha256_bytes(data: bytes) -> str:
    """Compute the SHA-256 digest of an in-memory payload."""

    return hashlib.sha256(data).hexdigest()


# --- Path containment ----------------------------------------------------------


def contained_path(root: Path, raw_name: str) -> Path:
    """Map an archive entry name onto a path strictly inside ``root``.

    Backslashes are treated as separators, ``.`` segments are dropped and
    ``..`` segments are collapsed lexically.  Absolute names, drive-letter
    prefixes, NUL bytes, and names that climb above ``root`` or collapse onto
    ``root`` itself raise :class:`UnsafeArchiveEntry`.
    """

    if "\x00" in raw_name:
        raise UnsafeArchiveEntry(
            f"Archive entry contains a NUL byte: {raw_name!r}", entry_name=raw_name
        )
    normalized = raw_name.replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PATTERN.match(normalized):
        raise UnsafeArchiveEntry(
            f"Unsafe absolute path detected in archive: {raw_name}", entry_name=raw_name
        )

    parts: List[str] = []
    for part in normalized.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise UnsafeArchiveEntry(
                    f"Archive entry escapes the destination root: {raw_name}",
                    entry_name=raw_name,
                )
            parts.pop()
            continue
        parts.append(part)

    if not parts:
        raise UnsafeArchiveEntry(
            f"Archive entry resolves to the destination root itself: {raw_name!r}",
            entry_name=raw_name,
        )
    return Path(root).joinpath(*parts)


def _is_symlink_entry(member: zipfile.ZipInfo) -> bool:
    mode = (member.external_attr >> 16) & 0xFFFF
    return stat.S_ISLNK(mode)


def _ensure_within(root_real: Path, target: Path, entry_name: str) -> None:
    """Re-check containment against the filesystem, following existing symlinks."""

    resolved = target.resolve(strict=False)
    if resolved != root_real and root_real not in resolved.parents:
        raise UnsafeArchiveEntry(
            f"Archive entry resolves outside the destination root via a link: {entry_name}",
            entry_name=entry_name,
        )


# --- Zip extraction ------------------------------------------------------------


def _prescan(
    archive: zipfile.ZipFile, destination: Path, settings: ExtractionConfiguration
) -> List[Tuple[zipfile.ZipInfo, Path]]:
    members = archive.infolist()
    if len(members) > settings.max_entries:
        raise ArchiveTooLarge(
            f"Archive holds {len(members)} entries, exceeding the limit of {settings.max_entries}"
        )

    planned: List[Tuple[zipfile.ZipInfo, Path]] = []
    total_uncompressed = 0
    for member in members:
        target = contained_path(destination, member.filename)
        if _is_symlink_entry(member):
            raise UnsafeArchiveEntry(
                f"Unsafe link detected in archive: {member.filename}",
                entry_name=member.filename,
            )
        if not member.is_dir():
            total_uncompressed += int(member.file_size)
            if total_uncompressed > settings.max_uncompressed_bytes:
                raise ArchiveTooLarge(
                    f"Archive expands beyond {settings.max_uncompressed_bytes} bytes"
                )
        planned.append((member, target))
    return planned


def extract_zip_bytes(
    data: bytes,
    destination: Path,
    *,
    config: Optional[ExtractionConfiguration] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """Extract an in-memory zip container beneath ``destination``.

    Every entry is validated before anything is written.  Entries are then
    materialised in container order; ancestor directories are created lazily
    so archives that omit directory records still extract.  Files already
    written stay in place if a later entry fails.

    Args:
        data: Complete zip container bytes.
        destination: Destination root; created when absent.
        config: Extraction budgets; defaults to the process configuration.
        logger: Optional logger for the summary record.

    Returns:
        Extracted regular-file paths in container order.

    Raises:
        MalformedArchive: The bytes are not a readable zip container.
        UnsafeArchiveEntry: An entry would land outside ``destination``.
        IoError: A filesystem operation failed.
    """

    settings = config or get_default_config().extraction
    log = logger or LOGGER
    destination = Path(destination)

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except _PARSE_ERRORS as exc:
        raise MalformedArchive(f"Downloaded payload is not a valid zip archive: {exc}") from exc

    extracted: List[Path] = []
    directories = 0
    with archive:
        planned = _prescan(archive, destination, settings)

        try:
            destination.mkdir(parents=True, exist_ok=True)
            root_real = destination.resolve()
        except OSError as exc:
            raise IoError(
                f"Unable to create destination directory {destination}: {exc}", path=destination
            ) from exc

        for member, target in planned:
            _ensure_within(root_real, target, member.filename)
            if member.is_dir():
                try:
                    target.mkdir(parents=True, exist_ok=True)
                except OSError as exc:
                    raise IoError(f"Unable to create directory {target}: {exc}", path=target) from exc
                directories += 1
                continue

            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(member, "r") as source, target.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
            except OSError as exc:
                raise IoError(f"Unable to write {target}: {exc}", path=target) from exc
            except _DECODE_ERRORS as exc:
                raise MalformedArchive(
                    f"Failed to decompress archive entry {member.filename}: {exc}"
                ) from exc
            extracted.append(target)

    log.info(
        "extracted zip archive",
        extra={
            "stage": "extract",
            "extra_fields": {
                "destination": str(destination),
                "files": len(extracted),
                "directories": directories,
            },
        },
    )
    return extracted

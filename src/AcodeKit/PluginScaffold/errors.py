"""Exception hierarchy shared across template fetching, extraction, and layout.

Scaffolding a plugin spans an HTTP download, archive materialisation, and a
small amount of directory surgery.  This module groups those failure modes into
a tidy hierarchy so the CLI can react to one base class while callers that care
can still catch the specialised subclasses (for example, treating unsafe
archive entries as a security fault rather than a transient error).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

__all__ = [
    "ScaffoldError",
    "NetworkError",
    "MalformedArchive",
    "ArchiveTooLarge",
    "UnsafeArchiveEntry",
    "IoError",
    "DestinationNotEmpty",
    "UserConfigError",
]

PathLike = Union[str, Path]


class ScaffoldError(RuntimeError):
    """Base exception for plugin scaffolding failures.

    ``partial_path`` is populated by the pipeline when a failure left a
    partially written directory behind that the user should inspect.
    """

    partial_path: Optional[Path] = None


class NetworkError(ScaffoldError):
    """Raised when a template archive could not be fetched."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MalformedArchive(ScaffoldError):
    """Raised when the downloaded bytes cannot be parsed as a zip container."""


class ArchiveTooLarge(MalformedArchive):
    """Raised when an archive exceeds the configured entry or size budget."""


class UnsafeArchiveEntry(ScaffoldError):
    """Raised when an archive entry would escape the destination root."""

    def __init__(self, message: str, *, entry_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.entry_name = entry_name


class IoError(ScaffoldError):
    """Raised when a local filesystem create/write/rename/remove fails."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[PathLike] = None,
        rollback_complete: bool = True,
    ) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        self.rollback_complete = rollback_complete


class DestinationNotEmpty(ScaffoldError):
    """Raised when the target directory already holds files."""

    def __init__(self, message: str, *, path: Optional[PathLike] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class UserConfigError(ScaffoldError):
    """Raised when CLI arguments or YAML configuration inputs are invalid."""


# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.errors",
#   "purpose": "Define the exception hierarchy used across fetch, extraction, and layout normalisation",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "network", "name": "Network Errors", "anchor": "NET", "kind": "api"},
#     {"id": "archive", "name": "Archive Errors", "anchor": "ARC", "kind": "api"},
#     {"id": "filesystem", "name": "Filesystem Errors", "anchor": "FS", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

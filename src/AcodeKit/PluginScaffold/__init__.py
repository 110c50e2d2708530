"""Public API for the Acode plugin scaffolder.

The package downloads one of the official plugin templates, extracts it
without letting archive entries escape the target directory, flattens the
archive's wrapper folder, and writes a generated ``plugin.json``.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .errors import (  # noqa: E402
    ArchiveTooLarge,
    DestinationNotEmpty,
    IoError,
    MalformedArchive,
    NetworkError,
    ScaffoldError,
    UnsafeArchiveEntry,
    UserConfigError,
)
from .io_safe import contained_path, extract_zip_bytes  # noqa: E402
from .layout import normalize_layout  # noqa: E402
from .manifests import PluginAuthor, PluginMetadata, write_manifest  # noqa: E402
from .net import fetch_archive  # noqa: E402
from .pipeline import (  # noqa: E402
    ProjectDirectory,
    ScaffoldResult,
    prepare_project_directory,
    scaffold_project,
)
from .templates import TEMPLATES, TemplateSpec, get_template  # noqa: E402

__all__ = [
    "__version__",
    "ArchiveTooLarge",
    "DestinationNotEmpty",
    "IoError",
    "MalformedArchive",
    "NetworkError",
    "ScaffoldError",
    "UnsafeArchiveEntry",
    "UserConfigError",
    "contained_path",
    "extract_zip_bytes",
    "normalize_layout",
    "PluginAuthor",
    "PluginMetadata",
    "write_manifest",
    "fetch_archive",
    "ProjectDirectory",
    "ScaffoldResult",
    "prepare_project_directory",
    "scaffold_project",
    "TEMPLATES",
    "TemplateSpec",
    "get_template",
]

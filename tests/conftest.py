# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest configuration for the suite",
#   "sections": [
#     {
#       "id": "pytest-configure",
#       "name": "pytest_configure",
#       "anchor": "function-pytest-configure",
#       "kind": "function"
#     },
#     {
#       "id": "pytest-collection-modifyitems",
#       "name": "pytest_collection_modifyitems",
#       "anchor": "function-pytest-collection-modifyitems",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

This module makes ``src`` importable without an editable install and registers
the markers used across the suite.

Key Scenarios:
- Prepends ``src`` to ``sys.path`` so ``AcodeKit`` resolves from the checkout
- Skips ``posix_only`` tests on Windows
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# --- Test Cases ---


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "property: mark test as property-based (Hypothesis). "
        "Use for generative testing of archive entry names.",
    )
    config.addinivalue_line(
        "markers",
        "posix_only: mark test as POSIX-specific (Linux/macOS). "
        "Use for tests that require symlinks or POSIX rename semantics.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    if not sys.platform.startswith("win"):
        return
    skip_posix = pytest.mark.skip(reason="requires a POSIX filesystem")
    for item in items:
        if "posix_only" in item.keywords:
            item.add_marker(skip_posix)

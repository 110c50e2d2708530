"""Flatten the single wrapper directory that source-hosting archives add.

GitHub branch archives wrap every file in ``<repo>-<branch>/``.  After
extraction the wrapper's children are promoted into the destination root and
the empty wrapper is removed.  The promotion is a sequence of renames, so a
failure part-way is rolled back to the wrapped shape before the error is
raised; callers never see a half-flattened tree unless the rollback itself
failed, which :class:`~AcodeKit.PluginScaffold.errors.IoError` reports through
``rollback_complete``.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import List, Optional

from .errors import IoError

__all__ = ["find_wrapper_dir", "normalize_layout"]

LOGGER = logging.getLogger("AcodeKit.PluginScaffold.layout")


def find_wrapper_dir(root: Path) -> Optional[Path]:
    """Return the sole child of ``root`` when it is a real directory, else ``None``."""

    try:
        children = list(Path(root).iterdir())
    except OSError as exc:
        raise IoError(f"Unable to list {root}: {exc}", path=root) from exc
    if len(children) != 1:
        return None
    only = children[0]
    if only.is_symlink() or not only.is_dir():
        return None
    return only


def _rollback(root: Path, holding: Path, wrapper: Path, moved: List[str], log: logging.Logger) -> bool:
    complete = True
    for name in reversed(moved):
        try:
            os.rename(root / name, holding / name)
        except OSError:
            complete = False
            log.exception(
                "failed to restore promoted entry",
                extra={"stage": "normalize", "extra_fields": {"entry": name}},
            )
    try:
        os.rename(holding, wrapper)
    except OSError:
        complete = False
        log.exception(
            "failed to restore wrapper directory",
            extra={"stage": "normalize", "extra_fields": {"wrapper": wrapper.name}},
        )
    return complete


def normalize_layout(
    root: Path,
    *,
    expected_wrapper: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Promote the contents of a lone wrapper directory into ``root``.

    Returns the wrapper's name when the tree was flattened and ``None`` when
    the layout was left as-is (empty root, several children, or a lone file).
    """

    log = logger or LOGGER
    root = Path(root)
    wrapper = find_wrapper_dir(root)
    if wrapper is None:
        log.debug("layout already flat", extra={"stage": "normalize"})
        return None

    name = wrapper.name
    if expected_wrapper is not None and name != expected_wrapper:
        log.warning(
            "unexpected wrapper directory name",
            extra={
                "stage": "normalize",
                "extra_fields": {"found": name, "expected": expected_wrapper},
            },
        )

    # Park the wrapper under a unique name so a child called like the wrapper can be promoted.
    holding = root / f".{name}.flatten-{uuid.uuid4().hex[:8]}"
    try:
        os.rename(wrapper, holding)
    except OSError as exc:
        raise IoError(f"Unable to rename wrapper directory {wrapper}: {exc}", path=wrapper) from exc

    moved: List[str] = []
    try:
        for child in sorted(holding.iterdir()):
            target = root / child.name
            if os.path.lexists(target):
                raise FileExistsError(f"{target} already exists")
            os.rename(child, target)
            moved.append(child.name)
        holding.rmdir()
    except OSError as exc:
        complete = _rollback(root, holding, wrapper, moved, log)
        state = "restored" if complete else "left partially flattened"
        raise IoError(
            f"Failed to flatten wrapper directory {name!r} ({state}): {exc}",
            path=wrapper,
            rollback_complete=complete,
        ) from exc

    log.info(
        "flattened wrapper directory",
        extra={"stage": "normalize", "extra_fields": {"wrapper": name, "entries": len(moved)}},
    )
    return name

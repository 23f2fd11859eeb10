"""Filesystem helpers for the default SheetMap workspace."""

# Module responsibilities:
# - Define the default ~/SheetMap directory layout and create folders on demand.
# - Resolve output paths inside the workspace.

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

DEFAULT_BASE = Path.home() / "SheetMap"


def ensure_default_structure(base: Optional[Path] = None) -> Dict[str, Path]:
    """Ensure the default SheetMap directory structure exists.

    Args:
        base: Optional override for the SheetMap base directory.

    Returns:
        Mapping with keys ``base``, ``out``, ``logs``.
    """

    target_base = base or DEFAULT_BASE
    paths = {
        "base": target_base,
        "out": target_base / "out",
        "logs": target_base / "logs",
    }
    for path in paths.values():
        path.mkdir(parents=True, exist_ok=True)
    return paths


def prepare_output_path(filename: str, base: Optional[Path] = None) -> Path:
    """Return *filename* inside the workspace ``out`` directory."""

    return ensure_default_structure(base)["out"] / filename

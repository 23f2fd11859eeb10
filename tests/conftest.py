from __future__ import annotations

import faulthandler
import os
import sys
import tempfile
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, Sequence

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.

# Keep test logs out of the user's home directory; must happen before sheetmap is imported.
os.environ.setdefault("SHEETMAP_LOG_DIR", tempfile.mkdtemp(prefix="sheetmap-logs-"))

from sheetmap.registry import SchemaRegistry


def build_workbook(
    rows: Iterable[Sequence[Any]],
    *,
    sheet_name: str = "Sheet1",
) -> BytesIO:
    """Return an in-memory xlsx whose first sheet holds *rows* from row 0."""

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    for row in rows:
        ws.append(list(row))
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


@pytest.fixture()
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture()
def make_workbook():
    return build_workbook

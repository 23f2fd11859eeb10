"""Date pattern helpers shared by the reader and writer.

Value formats are declared with spreadsheet-style date patterns such as
``yyyy-MM-dd HH:mm:ss`` (``MM`` month, ``mm`` minute, ``SSS`` milliseconds,
``a`` AM/PM marker, text in single quotes is literal). One pattern is used in
three places: rendering a temporal value as text, parsing text back into a
``datetime`` and producing the Excel number format written on the cell.
"""

# Module responsibilities:
# - Tokenize date patterns once and cache the result.
# - Render/parse datetimes against a pattern and translate it to an Excel number format.

from __future__ import annotations

from datetime import date, datetime
from functools import lru_cache
from typing import List, Tuple

DEFAULT_PATTERN = "MM/dd/yyyy HH:mm:ss"

_PATTERN_LETTERS = frozenset("yMdHhmsSaE")
_EXCEL_PLAIN_LITERALS = frozenset(" -/:.,()")


@lru_cache(maxsize=128)
def tokenize(pattern: str) -> Tuple[Tuple[str, int, str], ...]:
    """Split *pattern* into ``(kind, count, text)`` tokens.

    ``kind`` is a pattern letter for date fields or an empty string for
    literal text (carried in ``text``).

    Raises:
        ValueError: On an unsupported pattern letter or unterminated quote.
    """

    tokens: List[Tuple[str, int, str]] = []
    literal: List[str] = []
    i = 0
    length = len(pattern)

    def flush() -> None:
        if literal:
            tokens.append(("", 0, "".join(literal)))
            literal.clear()

    while i < length:
        char = pattern[i]
        if char == "'":
            if i + 1 < length and pattern[i + 1] == "'":
                literal.append("'")
                i += 2
                continue
            i += 1
            while True:
                if i >= length:
                    raise ValueError(f"Unterminated quote in date pattern: {pattern!r}")
                if pattern[i] == "'":
                    if i + 1 < length and pattern[i + 1] == "'":
                        literal.append("'")
                        i += 2
                        continue
                    i += 1
                    break
                literal.append(pattern[i])
                i += 1
            continue
        if char.isalpha():
            if char not in _PATTERN_LETTERS:
                raise ValueError(f"Unsupported letter {char!r} in date pattern: {pattern!r}")
            run = 1
            while i + run < length and pattern[i + run] == char:
                run += 1
            flush()
            tokens.append((char, run, ""))
            i += run
            continue
        literal.append(char)
        i += 1
    flush()
    return tuple(tokens)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def format_value(value: date | datetime, pattern: str | None = None) -> str:
    """Render a date/datetime using a date pattern (default ``DEFAULT_PATTERN``)."""

    moment = _as_datetime(value)
    parts: List[str] = []
    for kind, count, text in tokenize(pattern or DEFAULT_PATTERN):
        if not kind:
            parts.append(text)
        elif kind == "y":
            parts.append(f"{moment.year % 100:02d}" if count == 2 else f"{moment.year:0{count}d}")
        elif kind == "M":
            if count >= 4:
                parts.append(moment.strftime("%B"))
            elif count == 3:
                parts.append(moment.strftime("%b"))
            else:
                parts.append(f"{moment.month:0{count}d}")
        elif kind == "d":
            parts.append(f"{moment.day:0{count}d}")
        elif kind == "H":
            parts.append(f"{moment.hour:0{count}d}")
        elif kind == "h":
            parts.append(f"{(moment.hour % 12) or 12:0{count}d}")
        elif kind == "m":
            parts.append(f"{moment.minute:0{count}d}")
        elif kind == "s":
            parts.append(f"{moment.second:0{count}d}")
        elif kind == "S":
            parts.append(f"{moment.microsecond // 1000:0{count}d}")
        elif kind == "a":
            parts.append("AM" if moment.hour < 12 else "PM")
        elif kind == "E":
            parts.append(moment.strftime("%A" if count >= 4 else "%a"))
    return "".join(parts)


@lru_cache(maxsize=128)
def to_strptime(pattern: str) -> str:
    """Translate a date pattern into a ``datetime.strptime`` directive string."""

    parts: List[str] = []
    for kind, count, text in tokenize(pattern):
        if not kind:
            parts.append(text.replace("%", "%%"))
        elif kind == "y":
            parts.append("%y" if count == 2 else "%Y")
        elif kind == "M":
            parts.append("%B" if count >= 4 else "%b" if count == 3 else "%m")
        elif kind == "d":
            parts.append("%d")
        elif kind == "H":
            parts.append("%H")
        elif kind == "h":
            parts.append("%I")
        elif kind == "m":
            parts.append("%M")
        elif kind == "s":
            parts.append("%S")
        elif kind == "S":
            parts.append("%f")
        elif kind == "a":
            parts.append("%p")
        elif kind == "E":
            parts.append("%A" if count >= 4 else "%a")
    return "".join(parts)


def parse_value(text: str, pattern: str | None = None) -> datetime:
    """Parse *text* with a date pattern.

    Raises:
        ValueError: When the text does not match the pattern.
    """

    return datetime.strptime(text, to_strptime(pattern or DEFAULT_PATTERN))


def _excel_literal(text: str) -> str:
    if all(char in _EXCEL_PLAIN_LITERALS for char in text):
        return text
    return '"' + text.replace('"', '\\"') + '"'


@lru_cache(maxsize=128)
def to_excel_format(pattern: str) -> str:
    """Translate a date pattern into an Excel number format string.

    Excel decides between month and minute for ``m`` from context, so both
    ``MM`` and ``mm`` become ``mm``; the 12/24 hour switch is carried by the
    ``AM/PM`` marker alone.
    """

    parts: List[str] = []
    for kind, count, text in tokenize(pattern):
        if not kind:
            parts.append(_excel_literal(text))
        elif kind == "y":
            parts.append("yy" if count == 2 else "yyyy")
        elif kind == "M":
            parts.append("m" * min(count, 4))
        elif kind == "d":
            parts.append("d" * min(count, 2))
        elif kind in ("H", "h"):
            parts.append("h" * min(count, 2))
        elif kind == "m":
            parts.append("m" * min(count, 2))
        elif kind == "s":
            parts.append("s" * min(count, 2))
        elif kind == "S":
            parts.append("0" * min(count, 3))
        elif kind == "a":
            parts.append("AM/PM")
        elif kind == "E":
            parts.append("dddd" if count >= 4 else "ddd")
    return "".join(parts)

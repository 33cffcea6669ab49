# backend/app/utils/values.py
"""
Cell value helpers.

A cell is one of three kinds:
    Number -> int | float   (bool is never produced and is not treated as a number)
    Text   -> str
    Empty  -> None          (column missing from the row)

Everything that compares, groups or aggregates cells goes through the helpers
below so that the kind is always branched on explicitly.
"""
from __future__ import annotations

import math
import re
from typing import Any, Optional, Union

Number = Union[int, float]
Cell = Union[int, float, str, None]

# Decimal literal only: no hex, no underscores, no "inf"/"nan" spellings.
_NUMERIC_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str) -> Optional[Number]:
    """Return the number `text` spells, or None if it is not fully numeric."""
    s = text.strip()
    if not s or not _NUMERIC_RE.match(s):
        return None
    num = float(s)
    if not math.isfinite(num):
        return None
    if num.is_integer() and abs(num) < 2 ** 53:
        return int(num)
    return num


def coerce_cell(raw: Any) -> Cell:
    """Typed cell for a raw value: numeric text becomes a number, '' stays ''."""
    if raw is None or is_number(raw):
        return raw
    text = str(raw)
    num = parse_number(text)
    return text if num is None else num


def to_number(value: Cell) -> Optional[Number]:
    """Numeric view of a cell (numeric text included), None when there is none."""
    if is_number(value):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        return parse_number(value)
    return None


def to_text(value: Cell) -> str:
    """
    String form of a cell. Integral floats print without a trailing '.0' so that
    42 and 42.0 stringify (and therefore group and compare) identically.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def round2(value: float) -> Number:
    """Round half up to 2 decimals."""
    rounded = math.floor(value * 100 + 0.5) / 100
    return int(rounded) if rounded.is_integer() else rounded

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

# Sign, digits with optional decimal part, optional exponent. Thousands
# separators are removed before matching.
_NUMBER_RX = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_SEPARATORS_RX = re.compile(r"[,\s]")


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a culture-invariant decimal; ``None`` when blank or unparseable.

    Accepts thousands separators (``1,234``), a leading sign, exponent
    notation and accounting negatives such as ``(12)``.
    """

    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isinf(value):
            return None
        return Decimal(repr(value))
    s = str(value).strip()
    if s == "":
        return None
    neg = False
    if s.startswith("(") and s.endswith(")"):
        neg = True
        s = s[1:-1].strip()
    s = _SEPARATORS_RX.sub("", s)
    if not _NUMBER_RX.fullmatch(s):
        return None
    try:
        val = Decimal(s)
    except InvalidOperation:
        return None
    if not val.is_finite():
        return None
    return -val if neg else val


def parse_quantity(value: Any) -> int:
    """Integer quantity truncated toward zero; blank or unparseable input gives 0."""
    val = parse_decimal(value)
    if val is None:
        return 0
    return int(val)


def is_numeric(value: Any) -> bool:
    return parse_decimal(value) is not None

"""Receipt line parsing: split a raw OCR line into name, quantity and unit."""

from __future__ import annotations

import re

from ..models import ParsedLine

_NUMBER_PATTERN = re.compile(r"^\d+(\.\d+)?$", re.ASCII)

# Receipt unit keyword → normalized unit
_UNIT_KEYWORDS: dict[str, str] = {
    "LB": "lb",
    "LBS": "lb",
    "KG": "kg",
    "G": "g",
    "ML": "ml",
    "L": "l",
    "CUP": "cup",
    "CUPS": "cups",
    "UNIT": "unit",
    "UNITS": "unit",
}

_SIZE_KEYWORDS: frozenset[str] = frozenset({"SMALL", "MEDIUM", "LARGE", "XL"})

DEFAULT_QUANTITY = 1.0
DEFAULT_UNIT = "unit"


def normalize_unit(token: str) -> str | None:
    """Return the normalized unit for a receipt unit keyword, or None."""
    return _UNIT_KEYWORDS.get(token.upper())


def parse_line(raw_text: str) -> ParsedLine:
    """Parse one receipt line.

    Args:
        raw_text: e.g. "CHICKEN BREAST 2.5 LB", "BELL PEPPERS 4 UNITS"

    Returns:
        ParsedLine. Quantity defaults to 1 and unit to "unit" when the line
        carries neither; every other token becomes part of the name.
    """
    quantity = DEFAULT_QUANTITY
    unit = DEFAULT_UNIT
    size_text: str | None = None
    name_tokens: list[str] = []

    for token in raw_text.split():
        upper = token.upper()

        if _NUMBER_PATTERN.match(token):
            quantity = float(token)
            continue

        normalized = normalize_unit(token)
        if normalized is not None:
            unit = normalized
            continue

        if upper in _SIZE_KEYWORDS:
            size_text = upper
            continue

        name_tokens.append(token)

    return ParsedLine(
        name=" ".join(name_tokens).strip(),
        quantity=quantity,
        unit=unit,
        size_text=size_text,
    )

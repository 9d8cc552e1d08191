"""
Ingredient string parser.

Decodes "Name1:Qty1:Unit1;Name2:Qty2:Unit2" into (name, quantity, unit)
triples. Each entry is checked on its own, so one bad entry never hides
the others in the same string.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.utils.constants import (
    ENTRY_SEPARATOR,
    FIELD_SEPARATOR,
    FIELDS_PER_ENTRY,
    ERROR_MALFORMED_ENTRY,
    ERROR_INVALID_QUANTITY,
)


@dataclass(frozen=True)
class ParsedIngredient:
    """One syntactically valid ingredient entry (not yet resolved)."""

    name: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class ParseResult:
    """Valid entries plus one error message per rejected entry."""

    ingredients: Tuple[ParsedIngredient, ...]
    errors: Tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.ingredients


_PLAIN_NUMBER = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def _parse_quantity(raw: str) -> Optional[float]:
    # float() alone would also take digit separators such as "1_000"
    if not _PLAIN_NUMBER.fullmatch(raw):
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def parse_ingredients_string(text: Optional[str]) -> ParseResult:
    """
    Parse an ingredient string.

    Args:
        text: "Name:Quantity:Unit" entries separated by ";". None is
            treated as an empty string.

    Returns:
        ParseResult; both lists may be non-empty at the same time

    Example:
        >>> result = parse_ingredients_string("Tomato:500:g; BadEntry")
        >>> result.ingredients
        (ParsedIngredient(name='Tomato', quantity=500.0, unit='g'),)
        >>> result.errors
        ("malformed entry: 'BadEntry', expected Name:Quantity:Unit",)
    """
    ingredients: List[ParsedIngredient] = []
    errors: List[str] = []

    segments = [s.strip() for s in (text or "").split(ENTRY_SEPARATOR)]
    for segment in filter(None, segments):
        parts = [p.strip() for p in segment.split(FIELD_SEPARATOR)]
        if len(parts) != FIELDS_PER_ENTRY or not parts[0]:
            errors.append(ERROR_MALFORMED_ENTRY.format(segment=segment))
            continue

        name, raw_quantity, unit = parts
        quantity = _parse_quantity(raw_quantity)
        if quantity is None:
            errors.append(ERROR_INVALID_QUANTITY.format(raw=raw_quantity, name=name))
            continue

        ingredients.append(ParsedIngredient(name=name, quantity=quantity, unit=unit))

    return ParseResult(ingredients=tuple(ingredients), errors=tuple(errors))

"""
Upstream field access helpers.

The account payload names the same quantity differently across API
versions and omits whole sections freely. These helpers resolve alias
lists and nested paths with zero defaults instead of raising.
"""

import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

# Ordered candidates, first present wins
USAGE_ALIASES: Sequence[str] = ("monthEleNum", "eleNum", "usage", "monthElec")
COST_ALIASES: Sequence[str] = ("monthEleCost", "cost", "eleCost")


def is_present(value: Any) -> bool:
    """A field is present when it is neither None nor an empty string."""
    return value is not None and value != ""


def first_present(item: Any, aliases: Iterable[str]) -> Any:
    """Return the first present value among ``aliases`` in ``item``.

    Args:
        item: Upstream mapping (anything else yields None)
        aliases: Candidate keys in priority order

    Returns:
        The first present value, or None
    """
    if not isinstance(item, Mapping):
        return None
    for alias in aliases:
        value = item.get(alias)
        if is_present(value):
            return value
    return None


def to_number(value: Any) -> Optional[float]:
    """Parse an upstream numeric field.

    Accepts ints, floats and numeric strings. Returns None for anything
    else, including booleans, NaN and infinities.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def dig(data: Any, *path: Any) -> Any:
    """Follow ``path`` through nested mappings and lists.

    String steps index mappings, integer steps index lists. Returns None
    as soon as a step is missing or the container has the wrong type.
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
    return current


def dig_list(data: Any, *path: Any) -> List[Any]:
    """Like ``dig`` but always returns a list (empty when absent)."""
    value = dig(data, *path)
    return value if isinstance(value, list) else []

"""Helpers for name tables and result maps handed to scripts."""

from __future__ import annotations

import math
from collections.abc import MutableMapping, Sequence


def _key(name: str) -> str:
    # A leading non-letter marks the value type and is not part of the name.
    if name and not (("a" <= name[0] <= "z") or ("A" <= name[0] <= "Z")):
        return name[1:]
    return name


def bin_search(needle: str, names: Sequence[str]) -> int:
    """Index of ``needle`` in ``names`` sorted by name, or -1 when absent.

    A leading character that is not an ASCII letter is ignored when comparing.
    """
    low, high = 0, len(names) - 1
    while low <= high:
        mid = (low + high) // 2
        elt = _key(names[mid])
        if needle < elt:
            high = mid - 1
        elif needle > elt:
            low = mid + 1
        else:
            return mid
    return -1


def insert_real(mapping: MutableMapping[str, float], key: str, value: float) -> None:
    """Store ``value`` under ``key`` unless it is NaN."""
    if not math.isnan(value):
        mapping[key] = value
"""Locale-aware string ordering for catalog names.

Brazilian Portuguese has no tailoring over the CLDR root collation, so the
Unicode Collation Algorithm default table gives the pt-BR order. Comparisons
use the primary level only ("base" sensitivity): ``"Árvore" == "arvore"``.
"""
from functools import lru_cache
from typing import Tuple

from pyuca import Collator

LEVEL_SEPARATOR = 0


@lru_cache(maxsize=1)
def get_collator() -> Collator:
    # Loading the DUCET table is slow; one instance per process is enough.
    return Collator()


def full_key(value: str) -> Tuple[int, ...]:
    return get_collator().sort_key(value or "")


def primary_key(value: str) -> Tuple[int, ...]:
    """Primary weights only: letters, ignoring case and diacritics."""
    key = full_key(value)
    try:
        return key[: key.index(LEVEL_SEPARATOR)]
    except ValueError:
        return key


def compare(left: str, right: str) -> int:
    """Negative, zero or positive, like ``localeCompare(..., {sensitivity: 'base'})``."""
    a, b = primary_key(left), primary_key(right)
    return (a > b) - (a < b)


def name_sort_key(value: str, tie_breaker: str = "") -> Tuple:
    """Total order consistent with :func:`compare`.

    Base-equal names fall back to the full collation key and then to
    ``tie_breaker`` so descending order is the exact reverse of ascending.
    """
    return (primary_key(value), full_key(value), tie_breaker)

"""Shared service helpers."""

from datetime import datetime
from typing import Optional

from rentari.models.store import Store
from rentari.utils import filters


def _store() -> Store:
    """Get the singleton store instance."""
    return Store.instance()


def _now() -> datetime:
    """Wrapper for easier testing/mocking."""
    return filters.utcnow()


def to_float_safe(value) -> Optional[float]:
    """Safely convert to float; return None if invalid."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int_safe(value) -> Optional[int]:
    """Safely convert to int; return None if invalid."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _lc(s):
    """Safe lowercase for case-insensitive compare."""
    return (s or "").lower()

"""Helpers for safely working with untyped TOML data."""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    """Return obj as StrDict if it matches, else None."""
    if is_str_dict(obj):
        return obj
    return None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested table (dict with string keys) from a mapping."""
    return as_str_dict(table.get(key))


def scalar_text(value: object) -> str | None:
    """Render a TOML scalar or array as option text.

    Booleans become "true"/"false", arrays are space separated and other
    scalars use str(). Nested tables are rejected (None).
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, list):
        items = cast(list[object], value)
        parts = [scalar_text(item) for item in items]
        if any(p is None for p in parts):
            return None
        return " ".join(p for p in parts if p is not None)
    return None

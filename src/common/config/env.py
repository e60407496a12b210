"""Typed readers for environment configuration.

Blank values count as unset, so ``DATABASE_URL=`` in a ``.env`` file disables
the backend rather than producing an empty DSN. Parse failures raise
``ValueError`` naming the variable; missing required values raise ``KeyError``.
"""

import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    if value:
        return value
    if required:
        raise KeyError(f"Environment variable '{name}' is required but not set.")
    return default


def _get_parsed(
    name: str,
    parse: Callable[[str], T],
    kind: str,
    default: Optional[T],
    required: bool,
) -> Optional[T]:
    raw = get_env_str(name, required=required)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be {kind}, got '{raw}'.") from None


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    return _get_parsed(name, int, "an integer", default, required)


def get_env_float(
    name: str, default: Optional[float] = None, required: bool = False
) -> Optional[float]:
    return _get_parsed(name, float, "a float", default, required)


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(raw)


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Parse true/1/yes/on and false/0/no/off, case-insensitively."""
    return _get_parsed(name, _parse_bool, "a boolean", default, required)

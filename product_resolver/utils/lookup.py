"""
Explicit lookup results for best-effort reads from loosely shaped JSON.

Site payloads are duck-typed: any key on any level may be missing or hold
an unexpected type. Accessors here return ``Found(value)`` or ``NOT_FOUND``
so callers see absence in the signature instead of chaining ``.get()``.
"""
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union


@dataclass(frozen=True)
class Found:
    """A value that was present at the looked-up location."""
    value: Any


class _NotFound:
    """Singleton marker for an absent value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

Lookup = Union[Found, _NotFound]


def found(value: Any) -> Lookup:
    """Wrap a value, treating None and empty strings as absent."""
    if value is None:
        return NOT_FOUND
    if isinstance(value, str) and not value.strip():
        return NOT_FOUND
    return Found(value)


def dig(data: Any, *path: Union[str, int]) -> Lookup:
    """
    Walk a key/index path through nested dicts and lists.

    Returns NOT_FOUND as soon as a step is missing or the container
    has the wrong type for the key.
    """
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return NOT_FOUND
            current = current[key]
        else:
            if not isinstance(current, dict) or key not in current:
                return NOT_FOUND
            current = current[key]
    return found(current)


def first_found(*lookups: Lookup) -> Lookup:
    """Return the first Found in the chain, or NOT_FOUND."""
    for lookup in lookups:
        if isinstance(lookup, Found):
            return lookup
    return NOT_FOUND


def find_attribute(attributes: Any, name: str) -> Lookup:
    """
    Find a value in a ``[{"name": ..., "value": ...}]`` attribute list.

    Name comparison is case-insensitive.
    """
    if not isinstance(attributes, list):
        return NOT_FOUND
    wanted = name.upper()
    for attr in attributes:
        if not isinstance(attr, dict):
            continue
        attr_name = attr.get("name")
        if isinstance(attr_name, str) and attr_name.strip().upper() == wanted:
            value = attr.get("value")
            if isinstance(value, str):
                value = value.strip()
            lookup = found(value)
            if lookup:
                return lookup
    return NOT_FOUND


def or_none(lookup: Lookup, convert: Optional[Callable[[Any], Any]] = None) -> Any:
    """Unwrap a lookup into a plain optional value at a model boundary."""
    if isinstance(lookup, Found):
        return convert(lookup.value) if convert else lookup.value
    return None

"""Utility functions for bootstrap-config."""

from collections.abc import Iterable
from typing import Any

from .exceptions import MergeConflictError

Fragment = dict[str, Any]


def deep_merge(target: Fragment | None, source: Fragment | None) -> Fragment | None:
    """Deep merge two fragments, treating lists as sets.

    ``None`` is the absent value and acts as identity on either side.
    Nested dictionaries are merged recursively. Lists are unioned with
    duplicates removed, keeping first-seen order. Any other value in
    ``source`` overwrites the value in ``target``, except ``None``, which
    never overwrites.

    Args:
        target: Fragment merged into (lower precedence)
        source: Fragment merged from (wins scalar collisions)

    Returns:
        New merged fragment, or None if both sides are absent
        (target and source are not modified)

    Raises:
        MergeConflictError: If a list or dict in source meets a present
            value of a different shape in target

    Examples:
        >>> deep_merge({"a": [1, 2]}, {"a": [2, 3]})
        {'a': [1, 2, 3]}

        >>> deep_merge(None, {"a": 1})
        {'a': 1}

        >>> deep_merge({"a": {"b": 1}}, {"a": {"c": 2}, "d": "x"})
        {'a': {'b': 1, 'c': 2}, 'd': 'x'}
    """
    if target is None:
        return _copy(source)
    if source is None:
        return _copy(target)

    result = _copy(target)

    for key, value in source.items():
        existing = result.get(key)

        if isinstance(value, list):
            if existing is not None and not isinstance(existing, list):
                raise MergeConflictError(key, existing, value)
            result[key] = _union(existing or [], value)
        elif isinstance(value, dict):
            if existing is not None and not isinstance(existing, dict):
                raise MergeConflictError(key, existing, value)
            result[key] = deep_merge(existing or {}, value)
        elif value is not None:
            result[key] = value

    return result


def merge_all(fragments: Iterable[Fragment | None]) -> Fragment | None:
    """Left-fold fragments through deep_merge, starting from absent.

    Returns None when every fragment is absent (or there are none).
    """
    merged: Fragment | None = None
    for fragment in fragments:
        merged = deep_merge(merged, fragment)
    return merged


def _union(first: list[Any], second: list[Any]) -> list[Any]:
    # Equality-based so unhashable items (dicts) are deduplicated too
    result: list[Any] = []
    for item in [*first, *second]:
        if item not in result:
            result.append(_copy(item))
    return result


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy(v) for v in value]
    return value

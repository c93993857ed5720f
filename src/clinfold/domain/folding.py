"""Recursive merge used to fold log records into per-entity state."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import cast

from clinfold.domain.normalization import is_absent as is_absent_value

type State = dict[str, object]


def deep_merge(
    target: Mapping[str, object],
    source: Mapping[str, object],
    *,
    is_absent: Callable[[object], bool] = is_absent_value,
) -> State:
    """Return a new mapping with ``source`` merged over ``target``.

    Absent source values never overwrite. Nested mappings merge key by key;
    lists and scalars replace the accumulated value wholesale. Neither input
    is mutated.
    """

    result: State = dict(target)
    for key, value in source.items():
        if is_absent(value):
            continue
        if isinstance(value, Mapping):
            current = result.get(key)
            base = cast("Mapping[str, object]", current) if isinstance(current, Mapping) else {}
            nested = cast("Mapping[str, object]", value)
            result[key] = deep_merge(base, nested, is_absent=is_absent)
        elif isinstance(value, list):
            result[key] = list(cast("list[object]", value))
        else:
            result[key] = value
    return result


def fold(states: Iterable[Mapping[str, object]]) -> State:
    """Left-fold a sequence of documents with :func:`deep_merge`."""

    accumulated: State = {}
    for state in states:
        accumulated = deep_merge(accumulated, state)
    return accumulated


__all__ = ["State", "deep_merge", "fold"]

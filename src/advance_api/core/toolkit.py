"""Object helpers exposed to setup functions as ``utils._``.

``pick``/``omit``/``get`` work on mappings and plain objects. Paths are dotted
strings (``"user.address.city"``) or sequences of keys; integer-like keys
index into sequences.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Dict, Iterable, List, Union

__all__ = ["pick", "omit", "get", "Toolkit"]

_MISSING = object()

PathLike = Union[str, Sequence[Any]]


def _split(path: PathLike) -> List[Any]:
    if isinstance(path, str):
        return [chunk for chunk in path.split(".") if chunk]
    return list(path)


def _step(current: Any, key: Any) -> Any:
    if isinstance(current, Mapping):
        if key in current:
            return current[key]
        return _MISSING
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            return current[int(key)]
        except (ValueError, IndexError, TypeError):
            return _MISSING
    return getattr(current, str(key), _MISSING)


def get(obj: Any, path: PathLike, default: Any = None) -> Any:
    """Return the value at ``path`` or ``default`` when any step is missing."""
    current = obj
    keys = _split(path)
    if not keys:
        return default
    for key in keys:
        current = _step(current, key)
        if current is _MISSING:
            return default
    return current


def _set(target: Dict[str, Any], keys: List[Any], value: Any) -> None:
    for key in keys[:-1]:
        target = target.setdefault(key, {})
    target[keys[-1]] = value


def pick(obj: Any, paths: Iterable[PathLike]) -> Dict[str, Any]:
    """Return a new dict holding only the given paths that exist on ``obj``."""
    result: Dict[str, Any] = {}
    for path in paths:
        keys = _split(path)
        if not keys:
            continue
        value = get(obj, keys, _MISSING)
        if value is not _MISSING:
            _set(result, keys, value)
    return result


def omit(obj: Any, paths: Iterable[PathLike]) -> Dict[str, Any]:
    """Return a shallow copy of ``obj`` as a dict without the given paths."""
    if isinstance(obj, Mapping):
        result = dict(obj)
    else:
        result = dict(vars(obj))
    for path in paths:
        keys = _split(path)
        if not keys:
            continue
        parent: Any = result
        for key in keys[:-1]:
            child = parent.get(key) if isinstance(parent, dict) else None
            if not isinstance(child, Mapping):
                parent = None
                break
            child = dict(child)
            parent[key] = child
            parent = child
        if isinstance(parent, dict):
            parent.pop(keys[-1], None)
    return result


class Toolkit:
    """Namespace bundling the three helpers."""

    __slots__ = ()

    pick = staticmethod(pick)
    omit = staticmethod(omit)
    get = staticmethod(get)

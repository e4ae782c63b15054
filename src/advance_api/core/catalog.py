"""Route catalog (source of truth).

The catalog is the ordered, append-only record of every endpoint mounted on a
registrar. It backs ``list_routes()``, the console listing and the HTML docs
page, so its order is observable behaviour.

RouteEntry
----------
Frozen dataclass created once per registration:

- ``method``: upper-cased verb. Unsupported verbs are still recorded (the
  registrar skips binding them, the catalog keeps them for documentation).
- ``path``: absolute path as seen from outside, mount prefix included.
- ``module``: owning-module label (``"builtin"``, ``"object"``,
  ``"direct"``, ``"routes"``) or ``None``.
- ``description``: free text or ``None``.
- ``doc``: read-only mapping with optional ``params`` and ``response``
  documentation.

RouteCatalog
------------
- ``add(method, path, module=None, description=None, doc=None)`` appends and
  returns the new entry. It never rejects and never deduplicates: duplicates
  represent overrides and stay visible.
- ``list()`` returns a tuple snapshot in registration order; callers cannot
  mutate internal storage through it.
- ``lines()`` formats one line per entry: method padded to ``METHOD_WIDTH``,
  path, then ``[module]`` and ``- description`` when present.
- ``render(sink=None)`` writes a header followed by ``lines()``; the default
  sink is :func:`advance_api.core.sink.emit_line`.
- ``members()`` returns a plain-dict introspection tree.

Invariants
----------
- ``len(catalog)`` grows by exactly one per ``add`` and never shrinks.
- Registration order is preserved everywhere (list, lines, render, docs).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from .sink import emit_line

__all__ = ["RouteEntry", "RouteCatalog", "METHOD_WIDTH"]

METHOD_WIDTH = 7

_EMPTY_DOC: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class RouteEntry:
    """One recorded endpoint."""

    method: str
    path: str
    module: Optional[str] = None
    description: Optional[str] = None
    doc: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_DOC, compare=False)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "module": self.module,
            "description": self.description,
            "doc": dict(self.doc),
        }


class RouteCatalog:
    """Ordered, append-only store of :class:`RouteEntry`."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: List[RouteEntry] = []

    def add(
        self,
        method: str,
        path: str,
        module: Optional[str] = None,
        description: Optional[str] = None,
        doc: Optional[Mapping[str, Any]] = None,
    ) -> RouteEntry:
        entry = RouteEntry(
            method=str(method).upper(),
            path=path,
            module=module,
            description=description,
            doc=MappingProxyType(dict(doc)) if doc else _EMPTY_DOC,
        )
        self._entries.append(entry)
        return entry

    def list(self) -> Tuple[RouteEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self.list())

    def lines(self) -> List[str]:
        result = []
        for entry in self._entries:
            line = f"{entry.method:<{METHOD_WIDTH}} {entry.path}"
            if entry.module:
                line += f"  [{entry.module}]"
            if entry.description:
                line += f"  - {entry.description}"
            result.append(line)
        return result

    def render(self, sink: Optional[Callable[[str], None]] = None) -> None:
        """Write the human-readable listing, one line per entry."""
        write = sink or emit_line
        write(f"Registered routes ({len(self._entries)}):")
        for line in self.lines():
            write(f"  {line}")

    def members(self) -> Dict[str, Any]:
        modules: Dict[str, List[str]] = {}
        for entry in self._entries:
            modules.setdefault(entry.module or "", []).append(entry.path)
        return {
            "count": len(self._entries),
            "entries": [entry.as_dict() for entry in self._entries],
            "modules": modules,
        }

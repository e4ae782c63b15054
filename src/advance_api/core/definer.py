"""Scoped registration capability handed to imperative module builders."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from advance_api.core.catalog import RouteEntry

if TYPE_CHECKING:
    from advance_api.core.base_registrar import BaseRegistrar

__all__ = ["RouterDefiner"]


class RouterDefiner:
    """One registration method per HTTP verb, bound to a module base and label.

    Created fresh for each imperative module and discarded once its ``build``
    callback returns.
    """

    __slots__ = ("_registrar", "base", "module")

    def __init__(self, registrar: "BaseRegistrar", base: str, module: Optional[str] = "direct"):
        self._registrar = registrar
        self.base = base
        self.module = module

    def route(
        self,
        method: str,
        path: str,
        handler: Callable,
        description: Optional[str] = None,
        **doc: Any,
    ) -> RouteEntry:
        return self._registrar.register(
            method,
            self.base,
            path,
            handler,
            module=self.module,
            description=description,
            doc=doc,
        )

    def get(self, path: str, handler: Callable, description: Optional[str] = None, **doc: Any) -> RouteEntry:
        return self.route("GET", path, handler, description, **doc)

    def post(self, path: str, handler: Callable, description: Optional[str] = None, **doc: Any) -> RouteEntry:
        return self.route("POST", path, handler, description, **doc)

    def put(self, path: str, handler: Callable, description: Optional[str] = None, **doc: Any) -> RouteEntry:
        return self.route("PUT", path, handler, description, **doc)

    def delete(self, path: str, handler: Callable, description: Optional[str] = None, **doc: Any) -> RouteEntry:
        return self.route("DELETE", path, handler, description, **doc)

"""Plugin-free registration engine (source of truth).

The module exposes :class:`BaseRegistrar`, which binds ``(method, path,
handler)`` triples on a host Starlette router and records every registration
into a :class:`~advance_api.core.catalog.RouteCatalog`. Subclasses add
middleware but must preserve these semantics.

Constructor
-----------
``BaseRegistrar(router=None, catalog=None, *, prefix="/")``

- ``router``: host ``starlette.routing.Router``; a fresh one when omitted.
- ``catalog``: shared catalog; a fresh one when omitted.
- ``prefix``: external mount prefix. It only affects catalog paths; the host
  router sees paths without it.

Registration
------------
``register(method, base_path, route_path, handler, *, module=None,
description=None, doc=None)``

1. ``full_path = join_path(base_path, route_path)``.
2. When the upper-cased method is in ``SUPPORTED_METHODS`` a ``RouteBinding``
   is created, ``_after_entry_registered`` runs, handlers are rebuilt and a
   Starlette ``Route(full_path, endpoint, methods=[method])`` is bound.
   Otherwise a warning is logged and nothing is bound.
3. The catalog receives ``join_path(prefix, full_path)`` in both cases.

A second registration for the same method and full path replaces the first
on the host router (last wins, logged at info level). Both catalog entries
remain.

Request cycle
-------------
The bound endpoint creates a fresh ``CommonResponse``, looks up the current
wrapped handler (so plugins attached after registration apply) and awaits
``handler(request, res)``. It returns the adapter's response, else a
Starlette ``Response`` returned by the handler, else an empty ``204``.
Exceptions are not caught here.

Introspection
-------------
- ``entries()``: tuple of bound route names (``"GET /users"``).
- ``members()``: dict with ``prefix``, bound ``entries`` (per-route info and
  plugin extras) and the ``catalog`` tree.

Hooks for subclasses
--------------------
``_wrap_handler``, ``_after_entry_registered``, ``_describe_entry_extra``.
Default implementations are no-ops/passthrough.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route, Router

from advance_api.core.catalog import RouteCatalog, RouteEntry
from advance_api.core.paths import join_path
from advance_api.core.response import CommonResponse
from advance_api.plugins._base_plugin import RouteBinding

__all__ = ["BaseRegistrar", "SUPPORTED_METHODS", "invoke"]

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")

logger = logging.getLogger("advance_api.registrar")


async def invoke(handler: Callable, *args: Any, **kwargs: Any) -> Any:
    """Call a sync or async handler and await the result when needed."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class BaseRegistrar:
    """Plugin-free registrar bound to one host router and one catalog.

    Responsibilities:
    - normalise paths and bind handlers on the host router
    - record every registration (bound or not) in the catalog
    - expose binding tables and introspection data
    - provide hooks for subclasses to wrap handlers
    """

    __slots__ = (
        "router",
        "catalog",
        "prefix",
        "_bindings",
        "_handlers",
        "_routes",
    )

    def __init__(
        self,
        router: Optional[Router] = None,
        catalog: Optional[RouteCatalog] = None,
        *,
        prefix: str = "/",
    ) -> None:
        self.router = router if router is not None else Router()
        self.catalog = catalog if catalog is not None else RouteCatalog()
        self.prefix = join_path(prefix)
        self._bindings: Dict[str, RouteBinding] = {}
        self._handlers: Dict[str, Callable] = {}
        self._routes: Dict[str, Route] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        method: str,
        base_path: Optional[str],
        route_path: Optional[str],
        handler: Callable,
        *,
        module: Optional[str] = None,
        description: Optional[str] = None,
        doc: Optional[Mapping[str, Any]] = None,
    ) -> RouteEntry:
        """Bind one endpoint and record it in the catalog.

        Returns:
            The catalog entry, recorded even when the method cannot be bound.
        """
        verb = str(method).upper()
        full_path = join_path(base_path, route_path)
        entry_doc = {key: value for key, value in (doc or {}).items() if value is not None}
        if verb in SUPPORTED_METHODS:
            self._bind(verb, full_path, handler, module=module, doc=entry_doc)
        else:
            logger.warning(
                "Unsupported method %s for %s: recorded in catalog, not bound", verb, full_path
            )
        entry = self.catalog.add(
            verb,
            join_path(self.prefix, full_path),
            module=module,
            description=description,
            doc=entry_doc,
        )
        if verb in SUPPORTED_METHODS:
            self._bindings[f"{verb} {full_path}"].entry = entry
        return entry

    def _bind(
        self,
        method: str,
        full_path: str,
        handler: Callable,
        *,
        module: Optional[str],
        doc: Dict[str, Any],
    ) -> None:
        name = f"{method} {full_path}"
        binding = RouteBinding(
            name=name,
            method=method,
            path=full_path,
            handler=handler,
            registrar=self,
            entry=None,
            metadata={"module": module, **doc},
        )
        self._bindings[name] = binding
        self._after_entry_registered(binding)
        self._rebuild_handlers()

        previous = self._routes.pop(name, None)
        if previous is not None:
            self.router.routes.remove(previous)
            logger.info("Route %s overridden by a later registration", name)
        route = Route(full_path, self._make_endpoint(name), methods=[method], name=name)
        self.router.routes.append(route)
        self._routes[name] = route
        logger.debug("Bound %s (module=%s)", name, module)

    def _make_endpoint(self, name: str) -> Callable:
        async def endpoint(request: Request) -> Response:
            res = CommonResponse()
            result = await self._handlers[name](request, res)
            if res.response is not None:
                return res.response
            if isinstance(result, Response):
                return result
            return Response(status_code=204)

        endpoint.__name__ = name
        return endpoint

    # ------------------------------------------------------------------
    # Handler pipeline
    # ------------------------------------------------------------------
    def _rebuild_handlers(self) -> None:
        handlers: Dict[str, Callable] = {}
        for name, binding in self._bindings.items():
            handlers[name] = self._wrap_handler(binding, self._base_call(binding))
        self._handlers = handlers

    @staticmethod
    def _base_call(binding: RouteBinding) -> Callable:
        handler = binding.handler

        async def call(request: Request, res: CommonResponse) -> Any:
            return await invoke(handler, request, res)

        return call

    def _wrap_handler(self, binding: RouteBinding, call_next: Callable) -> Callable:
        return call_next

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def entries(self) -> Tuple[str, ...]:
        """Return the names of routes currently bound on the host router."""
        return tuple(self._handlers.keys())

    def get(self, method: str, path: str) -> Callable:
        """Return the wrapped async handler bound for ``method`` + ``path``."""
        name = f"{str(method).upper()} {join_path(path)}"
        handler = self._handlers.get(name)
        if handler is None:
            raise NotImplementedError(f"No route bound for {name!r}")
        return handler

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def members(self) -> Dict[str, Any]:
        """Return bound routes, their metadata and the catalog tree."""
        return {
            "prefix": self.prefix,
            "entries": {
                name: self._entry_member_info(binding) for name, binding in self._bindings.items()
            },
            "catalog": self.catalog.members(),
        }

    def _entry_member_info(self, binding: RouteBinding) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "name": binding.name,
            "method": binding.method,
            "path": binding.path,
            "callable": binding.handler,
            "metadata": binding.metadata,
            "doc": inspect.getdoc(binding.handler) or "",
        }
        extra = self._describe_entry_extra(binding, info)
        if extra:
            info.update(extra)
        return info

    # ------------------------------------------------------------------
    # Plugin hooks (no-op for BaseRegistrar)
    # ------------------------------------------------------------------
    def iter_plugins(self) -> list:
        return []

    def _after_entry_registered(self, binding: RouteBinding) -> None:
        """Hook invoked after a route is bound (subclasses may override)."""
        return None

    def _describe_entry_extra(
        self, binding: RouteBinding, base_description: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Hook used by subclasses to inject extra description data."""
        return {}

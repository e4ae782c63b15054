"""Facade: build one mountable API instance (source of truth).

``create_advance_api(options=None, **kwargs)`` returns an :class:`AdvanceApi`.

Options
-------
Merged with ``SmartOptions`` over ``DEFAULT_OPTIONS``; ``None`` values fall
back to the default. Unknown keys raise ``ConfigurationError``.

- ``prefix`` (``"/api"``): external mount path, part of every catalog path.
- ``base`` (``"/"``): global base joined in front of every module base.
  Built-in endpoints ignore it.
- ``cors``: dict forwarded to Starlette's ``CORSMiddleware``. ``origin`` /
  ``methods`` / ``credentials`` keys are translated to their Starlette
  names; any other unknown key raises ``ConfigurationError`` at build time.
  Default allows every origin, method and header.
- ``setup``: callable receiving :class:`Utils` and returning module
  descriptors.
- ``plugins``: plugin names (or ``{name: config}``) attached to the registrar
  before any route is bound.
- ``version`` / ``title``: reported by the liveness endpoint and the docs
  page.

Construction
------------
Registrar and catalog → built-ins (``GET /advance-api-test``, ``GET /docs``,
label ``"builtin"``) → ``setup(utils)`` → ``ModuleMounter.mount``. Any
exception raised meanwhile propagates and no instance is returned. Each call
builds an independent instance with its own router and catalog.

Composition
-----------
``handler``: Starlette app holding the CORS middleware and the server-error
handler around the host router. ``app``: standalone ASGI app mounting
``handler`` at the prefix; ``AdvanceApi.__call__`` delegates to it. The bare
prefix (``/api``) is served as the root path of ``handler``, so a route at the
module root answers without a redirect. ``configure_server(server)`` adds the
same routes to an existing Starlette app instead; the host then owns shutdown
and must call ``aclose()``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

import httpx
from smartseeds import SmartOptions
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import BaseRoute, Mount, Route, Router
from starlette.types import ASGIApp, Receive, Scope, Send

from advance_api import __version__
from advance_api.core.catalog import RouteCatalog, RouteEntry
from advance_api.core.modules import ObjectModule, parse_module
from advance_api.core.mounter import ModuleMounter
from advance_api.core.paths import join_path
from advance_api.core.registrar import Registrar
from advance_api.core.response import CommonResponse
from advance_api.core.sink import emit_line
from advance_api.core.toolkit import Toolkit
from advance_api.docs import render_docs_page
from advance_api.errors import ConfigurationError

__all__ = [
    "AdvanceApi",
    "Utils",
    "create_advance_api",
    "DEFAULT_OPTIONS",
    "TEST_PATH",
    "DOCS_PATH",
    "LIVENESS_MESSAGE",
]

logger = logging.getLogger("advance_api")

TEST_PATH = "/advance-api-test"
DOCS_PATH = "/docs"
BUILTIN_LABEL = "builtin"
ROUTES_LABEL = "routes"
LIVENESS_MESSAGE = "Advance API is working!"
INTERNAL_ERROR_MESSAGE = "Internal Server Error"

DEFAULT_OPTIONS: Dict[str, Any] = {
    "prefix": "/api",
    "base": "/",
    "cors": None,
    "setup": None,
    "plugins": (),
    "version": __version__,
    "title": "Advance API",
}

_DEFAULT_CORS: Dict[str, Any] = {
    "allow_origins": ["*"],
    "allow_methods": ["*"],
    "allow_headers": ["*"],
}

_CORS_ALIASES = {
    "origin": "allow_origins",
    "methods": "allow_methods",
    "credentials": "allow_credentials",
}


class Utils:
    """Capability bundle handed to the ``setup`` function."""

    __slots__ = ("router", "_", "_registrar", "_mounter", "_http")

    def __init__(self, registrar: Registrar, mounter: ModuleMounter) -> None:
        self.router: Router = registrar.router
        self._ = Toolkit()
        self._registrar = registrar
        self._mounter = mounter
        self._http: Optional[httpx.AsyncClient] = None

    @staticmethod
    def uuid() -> str:
        return str(uuid4())

    @property
    def http(self) -> httpx.AsyncClient:
        """Shared async HTTP client, created on first access."""
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    def define_routes(self, base: str, endpoints: Iterable[Any]) -> ObjectModule:
        """Register ``endpoints`` under ``base`` now and return the descriptor.

        Returning the descriptor from ``setup`` is harmless: the mounter
        skips descriptors it already registered.
        """
        module = parse_module({"type": "object", "base": base, "endpoints": list(endpoints)})
        self._mounter.mount_one(module, label=ROUTES_LABEL)
        return module

    def list_routes(self) -> Tuple[RouteEntry, ...]:
        return self._registrar.catalog.list()

    def render_routes(self, sink: Optional[Callable[[str], None]] = None) -> None:
        self._registrar.catalog.render(sink)

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None


def _resolve_options(options: Optional[Mapping], overrides: Dict[str, Any]) -> SmartOptions:
    incoming = dict(options or {})
    incoming.update(overrides)
    unknown = sorted(set(incoming) - set(DEFAULT_OPTIONS))
    if unknown:
        raise ConfigurationError(f"Unknown option(s): {', '.join(unknown)}")
    if incoming.get("setup") is not None and not callable(incoming["setup"]):
        raise ConfigurationError("Option 'setup' must be callable")
    incoming = {key: value for key, value in incoming.items() if value is not None}
    return SmartOptions(incoming, defaults=DEFAULT_OPTIONS)


def _cors_kwargs(policy: Optional[Mapping]) -> Dict[str, Any]:
    if policy is None:
        return dict(_DEFAULT_CORS)
    if not isinstance(policy, Mapping):
        raise ConfigurationError("Option 'cors' must be a mapping")
    accepted = set(inspect.signature(CORSMiddleware).parameters) - {"app"}
    kwargs: Dict[str, Any] = {}
    for key, value in policy.items():
        key = _CORS_ALIASES.get(key, key)
        if key not in accepted:
            raise ConfigurationError(f"Unknown cors option '{key}'")
        if key in ("allow_origins", "allow_methods", "allow_headers") and isinstance(value, str):
            value = [value]
        kwargs[key] = value
    return kwargs


class _PrefixRoot:
    """Serve the bare prefix (``/api``) as the root path of ``app``."""

    __slots__ = ("app", "prefix")

    def __init__(self, app: ASGIApp, prefix: str) -> None:
        self.app = app
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        child = dict(scope)
        child["root_path"] = scope.get("root_path", "") + self.prefix
        child["path"] = scope["path"] + "/"
        if "raw_path" in scope:
            child["raw_path"] = scope["raw_path"] + b"/"
        await self.app(child, receive, send)


def _plugin_specs(plugins: Any) -> List[Tuple[str, Dict[str, Any]]]:
    if isinstance(plugins, str):
        return [(plugins, {})]
    if isinstance(plugins, Mapping):
        return [(name, dict(config or {})) for name, config in plugins.items()]
    return [(name, {}) for name in plugins]


async def _handle_server_error(request: Request, exc: Exception) -> Response:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        {"code": 500, "data": None, "message": INTERNAL_ERROR_MESSAGE}, status_code=500
    )


class AdvanceApi:
    """One assembled API: registrar, catalog, composed ASGI handler."""

    name = "advance-api"

    def __init__(self, options: Optional[Mapping] = None, **kwargs: Any) -> None:
        opts = _resolve_options(options, kwargs)
        setup = getattr(opts, "setup", None)
        cors = _cors_kwargs(getattr(opts, "cors", None))
        self.prefix: str = join_path(getattr(opts, "prefix", DEFAULT_OPTIONS["prefix"]))
        self.base: str = join_path(getattr(opts, "base", DEFAULT_OPTIONS["base"]))
        self.version: str = str(getattr(opts, "version", DEFAULT_OPTIONS["version"]))
        self.title: str = str(getattr(opts, "title", DEFAULT_OPTIONS["title"]))
        self.has_setup: bool = setup is not None

        self.registrar = Registrar(prefix=self.prefix)
        for plugin_name, plugin_config in _plugin_specs(getattr(opts, "plugins", ())):
            self.registrar.plug(plugin_name, **plugin_config)
        self.mounter = ModuleMounter(self.registrar, base=self.base)
        self.utils = Utils(self.registrar, self.mounter)

        self._register_builtins()
        if setup is not None:
            self.mounter.mount(setup(self.utils))

        self.handler = Starlette(
            routes=[Mount("", app=self.router)],
            middleware=[Middleware(CORSMiddleware, **cors)],
            exception_handlers={Exception: _handle_server_error},
        )
        self.app = Starlette(routes=self._host_routes(), lifespan=self._lifespan)
        logger.debug("Built %s with %d routes at %s", self.name, len(self.catalog), self.prefix)

    @property
    def router(self) -> Router:
        return self.registrar.router

    @property
    def catalog(self) -> RouteCatalog:
        return self.registrar.catalog

    @property
    def _mount_path(self) -> str:
        return "" if self.prefix == "/" else self.prefix

    # ------------------------------------------------------------------
    # Built-in endpoints
    # ------------------------------------------------------------------
    def _register_builtins(self) -> None:
        self.registrar.register(
            "GET",
            "/",
            TEST_PATH,
            self._liveness,
            module=BUILTIN_LABEL,
            description="Liveness check",
        )
        self.registrar.register(
            "GET",
            "/",
            DOCS_PATH,
            self._docs,
            module=BUILTIN_LABEL,
            description="Route documentation",
        )

    async def _liveness(self, request: Request, res: CommonResponse) -> None:
        res.success(
            {
                "status": "ok",
                "time": datetime.now(timezone.utc).isoformat(),
                "version": self.version,
                "message": LIVENESS_MESSAGE,
            }
        )

    async def _docs(self, request: Request, res: CommonResponse) -> Response:
        return HTMLResponse(render_docs_page(self.catalog.list(), title=self.title))

    # ------------------------------------------------------------------
    # Host integration
    # ------------------------------------------------------------------
    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        await self.app(scope, receive, send)

    @asynccontextmanager
    async def _lifespan(self, app: Starlette):
        yield
        await self.aclose()

    def _host_routes(self) -> List[BaseRoute]:
        """Routes exposing ``handler`` at the prefix, bare prefix included."""
        mount = Mount(self._mount_path, app=self.handler, name=self.name)
        if self.prefix == "/":
            return [mount]
        root = Route(
            self.prefix, endpoint=_PrefixRoot(self.handler, self.prefix), name=f"{self.name}-root"
        )
        return [root, mount]

    def configure_server(self, server: Starlette) -> Starlette:
        """Mount the composed handler on a host Starlette app at the prefix.

        The host owns the lifespan: call ``await api.aclose()`` on shutdown to
        release the HTTP client handed to setup functions.
        """
        server.router.routes.extend(self._host_routes())
        self._log_banner()
        return server

    def get_server_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "prefix": self.prefix,
            "base": self.base,
            "test_url": join_path(self.prefix, TEST_PATH),
            "docs_url": join_path(self.prefix, DOCS_PATH),
            "routes": len(self.catalog),
        }

    def _log_banner(self) -> None:
        info = self.get_server_info()
        emit_line(f"{self.name} mounted at {info['prefix']}", logger)
        emit_line(f"  test endpoint: {info['test_url']}", logger)
        emit_line(f"  docs: {info['docs_url']}", logger)
        if self.base != "/":
            emit_line(f"  global base: {self.base}", logger)
        if not self.has_setup:
            emit_line("  only built-in endpoints are enabled (no setup given)", logger)

    async def aclose(self) -> None:
        await self.utils.aclose()


def create_advance_api(options: Optional[Mapping] = None, **kwargs: Any) -> AdvanceApi:
    """Build an :class:`AdvanceApi` from ``options`` and keyword overrides."""
    return AdvanceApi(options, **kwargs)

"""Plugin contract used by the Registrar runtime.

Source of truth
---------------
Objects
~~~~~~~
``RouteBinding``
    Dataclass capturing one bound route at registration time. Fields:

    - ``name`` – ``"<METHOD> <full_path>"`` key (internal path, no prefix)
    - ``method`` / ``path`` – verb and internal router path
    - ``handler`` – user handler taking ``(request, res)``
    - ``registrar`` – Registrar that owns the binding
    - ``entry`` – the :class:`~advance_api.core.catalog.RouteEntry` recorded
    - ``plugins`` – names of plugins applied (order matters)
    - ``metadata`` – mutable dict plugins may annotate

``BasePlugin``
    Base class for every plugin.

    Class attributes ``plugin_code`` (registry key) and
    ``plugin_description`` are required.

    ``BasePlugin(registrar, **config)`` stores its configuration on the
    registrar's ``_plugin_info`` store (no per-plugin globals) and calls
    ``configure(**config)``.

    ``configure(**config)`` declares accepted options through its signature.
    ``__init_subclass__`` wraps it so that:

    - ``flags`` (``"enabled,before:off"``) is parsed into booleans;
    - ``_target`` selects the bucket: ``"--base--"`` (registrar level), one
      route name, or several comma-separated names;
    - kwargs are validated with pydantic ``validate_call`` before storage.

    ``configuration(route_name=None)`` reads the merged config back.

    Hooks: ``on_decore(registrar, binding)`` once per registration and
    ``wrap_handler(registrar, binding, call_next)`` which must return an
    async callable with the ``(request, res)`` signature.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import validate_call

__all__ = ["BasePlugin", "RouteBinding"]

BASE_TARGET = "--base--"


@dataclass
class RouteBinding:
    """Metadata for a route bound on the host router."""

    name: str
    method: str
    path: str
    handler: Callable
    registrar: Any
    entry: Any
    plugins: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() to handle flags, _target, validation and storage."""
    validated = validate_call(original_configure)

    def wrapper(
        self: "BasePlugin", *, _target: str = BASE_TARGET, flags: Optional[str] = None, **kwargs: Any
    ) -> None:
        if flags:
            kwargs.update(self._parse_flags(flags))

        if "," in _target:
            for target in [t.strip() for t in _target.split(",") if t.strip()]:
                wrapper(self, _target=target, **kwargs)
            return

        validated(self, **kwargs)
        self._write_config(_target, kwargs)

    return wrapper


class BasePlugin:
    """Hook interface + configuration helpers for registrar plugins."""

    __slots__ = ("name", "_registrar")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])

    def __init__(self, registrar: Any, **config: Any):
        self.name = self.plugin_code
        self._registrar = registrar
        self._init_store()
        self.configure(**config)

    def _init_store(self) -> None:
        store = self._get_store()
        store.setdefault(self.name, {}).setdefault(
            BASE_TARGET, {"config": {"enabled": True}, "locals": {}}
        )

    def configure(self, *, _target: str = BASE_TARGET, flags: Optional[str] = None) -> None:
        """Override in subclasses to declare accepted configuration parameters."""
        if flags:
            self._write_config(_target, self._parse_flags(flags))

    def _write_config(self, target: str, config: Dict[str, Any]) -> None:
        if not config:
            return
        plugin_bucket = self._get_store().setdefault(self.name, {})
        bucket = plugin_bucket.setdefault(target, {"config": {}, "locals": {}})
        bucket["config"].update(config)

    def configuration(self, route_name: Optional[str] = None) -> Dict[str, Any]:
        """Read merged configuration (base + optional per-route override)."""
        plugin_bucket = self._get_store().get(self.name)
        if not plugin_bucket:
            return {}
        merged = dict(plugin_bucket.get(BASE_TARGET, {}).get("config", {}))
        if route_name:
            merged.update(plugin_bucket.get(route_name, {}).get("config", {}))
        return merged

    def _parse_flags(self, flags: str) -> Dict[str, bool]:
        mapping: Dict[str, bool] = {}
        for chunk in flags.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            if ":" in chunk:
                name, value = chunk.split(":", 1)
                mapping[name.strip()] = value.strip().lower() != "off"
            else:
                mapping[chunk] = True
        return mapping

    def on_decore(self, registrar: Any, binding: RouteBinding) -> None:
        """Hook run when a route is bound."""

    def wrap_handler(self, registrar: Any, binding: RouteBinding, call_next: Callable) -> Callable:
        """Wrap the async call chain; default passthrough."""
        return call_next

    def entry_metadata(self, registrar: Any, binding: RouteBinding) -> Dict[str, Any]:
        """Extra data shown by ``members()``; default none."""
        return {}

    def _get_store(self) -> Dict[str, Any]:
        return getattr(self._registrar, "_plugin_info")

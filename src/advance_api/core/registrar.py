"""Registrar with plugin pipeline (source of truth).

``Registrar`` extends ``BaseRegistrar`` with a global plugin registry,
per-registrar plugin instances, middleware wrapping of the async call chain,
and plugin state stored on the registrar instance.

Internal state
--------------
- ``_plugins``: instantiated plugins in the order they were attached.
- ``_plugins_by_name``: name → plugin instance.
- ``_plugin_info``: per-plugin configuration store, one ``"--base--"``
  bucket for registrar-level config plus one bucket per route name, each with
  ``config`` and ``locals``.

Global registry
---------------
``Registrar.register_plugin(plugin_class, name=None)`` requires a
``BasePlugin`` subclass with ``plugin_code``. Registering a different class
under an existing code raises ``ValueError`` unless ``name`` is given
explicitly. ``available_plugins`` returns a shallow copy.

Attaching plugins
-----------------
``plug(name, **config)`` instantiates the registered class, applies
``on_decore`` to every existing binding, rebuilds handlers and returns
``self``. Attached plugins are reachable as attributes
(``registrar.logging``); unknown names raise ``AttributeError``.

Wrapping pipeline
-----------------
Layers are built in reverse attachment order, so the last attached plugin is
closest to the handler. Each layer is guarded by ``is_plugin_enabled`` which
reads the ``enabled`` local of the route bucket, then of the base bucket.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type

from advance_api.core.base_registrar import BaseRegistrar
from advance_api.plugins._base_plugin import BASE_TARGET, BasePlugin, RouteBinding

__all__ = ["Registrar"]

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}


class Registrar(BaseRegistrar):
    """Registrar with plugin registry/pipeline support."""

    __slots__ = BaseRegistrar.__slots__ + (
        "_plugins",
        "_plugins_by_name",
        "_plugin_info",
    )

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._plugins: List[BasePlugin] = []
        self._plugins_by_name: Dict[str, BasePlugin] = {}
        self._plugin_info: Dict[str, Dict[str, Any]] = {}
        super().__init__(*args, **kwargs)

    # ------------------------------------------------------------------
    # Plugin registration
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Register a plugin class globally.

        Args:
            plugin_class: A BasePlugin subclass with plugin_code defined.
            name: Optional override name. When given, replaces any existing
                registration under that name.
        """
        if not isinstance(plugin_class, type) or not issubclass(plugin_class, BasePlugin):
            raise TypeError("plugin_class must be a BasePlugin subclass")
        if not getattr(plugin_class, "plugin_code", None):
            raise ValueError(f"Plugin {plugin_class.__name__} is missing plugin_code")
        code = name or plugin_class.plugin_code
        if name is None:
            existing = _PLUGIN_REGISTRY.get(code)
            if existing is not None and existing is not plugin_class:
                raise ValueError(f"Plugin '{code}' already registered")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **config: Any) -> "Registrar":
        """Attach a plugin by its registered name."""
        if not isinstance(plugin, str):
            raise TypeError(
                f"Plugin must be referenced by name string, got {type(plugin).__name__}"
            )
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            available = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(f"Unknown plugin '{plugin}'. Available plugins: {available}")
        instance = plugin_class(self, **config)
        self._plugins.append(instance)
        self._plugins_by_name[instance.name] = instance
        for binding in self._bindings.values():
            self._apply_plugin(instance, binding)
        self._rebuild_handlers()
        return self

    def iter_plugins(self) -> List[BasePlugin]:  # type: ignore[override]
        """Return attached plugin instances in application order."""
        return list(self._plugins)

    def get_config(self, plugin_name: str, route_name: Optional[str] = None) -> Dict[str, Any]:
        """Return plugin config (base + per-route override) for an attached plugin."""
        plugin = self._plugins_by_name.get(plugin_name)
        if plugin is None:
            raise AttributeError(f"No plugin named '{plugin_name}' attached")
        return plugin.configuration(route_name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        plugin = self._plugins_by_name.get(name)
        if plugin is None:
            raise AttributeError(f"No plugin named '{name}' attached")
        return plugin

    # ------------------------------------------------------------------
    # Runtime switches (state stored on plugin_info)
    # ------------------------------------------------------------------
    def _get_plugin_bucket(self, plugin_name: str) -> Dict[str, Any]:
        bucket = self._plugin_info.get(plugin_name)
        if bucket is None:
            raise AttributeError(f"No plugin named '{plugin_name}' attached")
        bucket.setdefault(BASE_TARGET, {"config": {}, "locals": {}})
        return bucket

    def set_plugin_enabled(self, route_name: str, plugin_name: str, enabled: bool = True) -> None:
        bucket = self._get_plugin_bucket(plugin_name)
        entry = bucket.setdefault(route_name, {"config": {}, "locals": {}})
        entry.setdefault("locals", {})["enabled"] = bool(enabled)

    def is_plugin_enabled(self, route_name: str, plugin_name: str) -> bool:
        bucket = self._get_plugin_bucket(plugin_name)
        entry_locals = bucket.get(route_name, {}).get("locals", {})
        if "enabled" in entry_locals:
            return bool(entry_locals["enabled"])
        return bool(bucket[BASE_TARGET].get("locals", {}).get("enabled", True))

    # ------------------------------------------------------------------
    # Overrides/hooks
    # ------------------------------------------------------------------
    def _wrap_handler(self, binding: RouteBinding, call_next: Callable) -> Callable:  # type: ignore[override]
        wrapped = call_next
        for plugin in reversed(self._plugins):
            plugin_call = plugin.wrap_handler(self, binding, wrapped)
            wrapped = self._create_wrapper(plugin, binding, plugin_call, wrapped)
        return wrapped

    def _create_wrapper(
        self,
        plugin: BasePlugin,
        binding: RouteBinding,
        plugin_call: Callable,
        next_handler: Callable,
    ) -> Callable:
        @wraps(next_handler)
        async def wrapper(request: Any, res: Any) -> Any:
            if not self.is_plugin_enabled(binding.name, plugin.name):
                return await next_handler(request, res)
            return await plugin_call(request, res)

        return wrapper

    def _apply_plugin(self, plugin: BasePlugin, binding: RouteBinding) -> None:
        if plugin.name not in binding.plugins:
            binding.plugins.append(plugin.name)
        plugin.on_decore(self, binding)

    def _after_entry_registered(self, binding: RouteBinding) -> None:  # type: ignore[override]
        for plugin in self._plugins:
            self._apply_plugin(plugin, binding)

    def _describe_entry_extra(  # type: ignore[override]
        self, binding: RouteBinding, base_description: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Gather plugin config and metadata for a route."""
        plugins_info: Dict[str, Dict[str, Any]] = {}
        for plugin in self._plugins:
            plugin_data: Dict[str, Any] = {}
            config = plugin.configuration(binding.name)
            if config:
                plugin_data["config"] = config
            meta = plugin.entry_metadata(self, binding)
            if meta:
                plugin_data["metadata"] = meta
            if plugin_data:
                plugins_info[plugin.name] = plugin_data
        if plugins_info:
            return {"plugins": plugins_info}
        return {}

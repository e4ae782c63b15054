"""Module mounting (source of truth).

``ModuleMounter(registrar, base="/")`` walks the descriptors returned by a
setup function and drives the registrar once per endpoint.

``mount(descriptors)``

- ``None`` mounts nothing; a single descriptor is treated as a one-item
  sequence; falsy items are skipped silently.
- Descriptors are processed in the order supplied. Each goes through
  :func:`~advance_api.core.modules.parse_module`, so a malformed one raises
  ``ConfigurationError`` and aborts the whole startup.
- ``ObjectModule``: every endpoint in list order is registered with base
  ``join_path(base, module.base)`` and label ``"object"``.
- ``DirectModule``: one ``RouterDefiner`` (label ``"direct"``) is created and
  ``build`` is called synchronously with it exactly once. A coroutine
  function is rejected as a malformed descriptor, and an awaitable returned
  by ``build`` raises ``ConfigurationError``.
- A descriptor object already mounted through this mounter (for instance one
  returned by ``define_routes``) is not registered a second time.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Union

from advance_api.core.definer import RouterDefiner
from advance_api.core.modules import DirectModule, ObjectModule, parse_module
from advance_api.core.paths import join_path
from advance_api.errors import ConfigurationError

if TYPE_CHECKING:
    from advance_api.core.base_registrar import BaseRegistrar

__all__ = ["ModuleMounter", "OBJECT_LABEL", "DIRECT_LABEL"]

OBJECT_LABEL = "object"
DIRECT_LABEL = "direct"

logger = logging.getLogger("advance_api.registrar")


class ModuleMounter:
    """Registers module descriptors on a registrar."""

    __slots__ = ("registrar", "base", "_mounted")

    def __init__(self, registrar: "BaseRegistrar", base: str = "/") -> None:
        self.registrar = registrar
        self.base = join_path(base)
        self._mounted: List[Any] = []

    def mount(self, descriptors: Any) -> None:
        for descriptor in self._normalize(descriptors):
            if self._is_mounted(descriptor):
                continue
            self.mount_one(descriptor)

    def mount_one(
        self, descriptor: Any, label: Optional[str] = None
    ) -> Union[ObjectModule, DirectModule]:
        """Validate and register a single descriptor; return the model."""
        module = parse_module(descriptor)
        base = join_path(self.base, module.base)
        if isinstance(module, ObjectModule):
            logger.debug("Mounting object module %s (%d endpoints)", base, len(module.endpoints))
            for endpoint in module.endpoints:
                self.registrar.register(
                    endpoint.method,
                    base,
                    endpoint.path,
                    endpoint.handler,
                    module=label or OBJECT_LABEL,
                    description=endpoint.description,
                    doc=endpoint.doc(),
                )
        elif isinstance(module, DirectModule):
            logger.debug("Mounting direct module %s", base)
            result = module.build(RouterDefiner(self.registrar, base, label or DIRECT_LABEL))
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise ConfigurationError(f"Module {base}: build returned an awaitable")
        else:  # pragma: no cover - parse_module only yields the two variants
            raise TypeError(f"Unsupported module descriptor: {module!r}")
        self._mounted.append(module)
        if descriptor is not module:
            self._mounted.append(descriptor)
        return module

    @staticmethod
    def _normalize(descriptors: Any) -> List[Any]:
        if not descriptors:
            return []
        if isinstance(descriptors, (Mapping, ObjectModule, DirectModule)):
            return [descriptors]
        if isinstance(descriptors, Iterable) and not isinstance(descriptors, (str, bytes)):
            return [item for item in descriptors if item]
        return [descriptors]

    def _is_mounted(self, descriptor: Any) -> bool:
        return any(descriptor is seen for seen in self._mounted)

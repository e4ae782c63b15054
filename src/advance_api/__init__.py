"""advance-api public API surface (source of truth).

Recreate the module with these rules:
- Public exports: ``create_advance_api``, ``AdvanceApi``, ``Utils``, the
  registration engine (``Registrar``, ``RouterDefiner``, ``ModuleMounter``,
  ``RouteCatalog``, ``RouteEntry``, ``CommonResponse``, ``join_path``), the
  descriptor models and the error types.
- Plugin registration: import built-in plugins (``logging``) for their side
  effect of calling ``Registrar.register_plugin``. Imports are done via
  ``import_module`` to avoid cycles.

Constraints
-----------
- Import must stay lightweight: no app instantiation at import time.
- ``__version__`` lives here for packaging tools.
"""

from importlib import import_module

__version__ = "1.0.0"

from .api import AdvanceApi, Utils, create_advance_api
from .core import (
    CommonResponse,
    DirectModule,
    ModuleMounter,
    ObjectModule,
    Registrar,
    RouteCatalog,
    RouteDefinition,
    RouteEntry,
    RouterDefiner,
    join_path,
)
from .errors import AdvanceApiError, ConfigurationError, ResponseAlreadySent

for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "AdvanceApi",
    "AdvanceApiError",
    "CommonResponse",
    "ConfigurationError",
    "DirectModule",
    "ModuleMounter",
    "ObjectModule",
    "Registrar",
    "ResponseAlreadySent",
    "RouteCatalog",
    "RouteDefinition",
    "RouteEntry",
    "RouterDefiner",
    "Utils",
    "create_advance_api",
    "join_path",
]

"""Registration engine aggregator.

Exposes the building blocks from a single module; importing it performs only
imports:

* ``paths`` → ``join_path``
* ``catalog`` → ``RouteCatalog``, ``RouteEntry``
* ``response`` → ``CommonResponse``
* ``base_registrar`` → ``BaseRegistrar`` (plugin-free engine)
* ``registrar`` → ``Registrar`` (plugin-enabled)
* ``definer`` → ``RouterDefiner``
* ``modules`` → descriptor models
* ``mounter`` → ``ModuleMounter``
"""

from .base_registrar import BaseRegistrar
from .catalog import RouteCatalog, RouteEntry
from .definer import RouterDefiner
from .modules import DirectModule, ObjectModule, RouteDefinition
from .mounter import ModuleMounter
from .paths import join_path
from .registrar import Registrar
from .response import CommonResponse

__all__ = [
    "BaseRegistrar",
    "CommonResponse",
    "DirectModule",
    "ModuleMounter",
    "ObjectModule",
    "Registrar",
    "RouteCatalog",
    "RouteDefinition",
    "RouteEntry",
    "RouterDefiner",
    "join_path",
]

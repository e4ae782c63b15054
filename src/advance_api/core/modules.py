"""Module descriptors (source of truth).

A setup function returns module descriptors in one of two variants, a tagged
union on ``type``:

``ObjectModule`` (``type="object"``, declarative)
    ``base`` plus an ordered ``endpoints`` list (``apis`` accepted as alias)
    of :class:`RouteDefinition`.

``DirectModule`` (``type="direct"``, imperative)
    ``base`` plus a ``build`` callable (``setup`` accepted as alias) invoked
    once with a :class:`~advance_api.core.definer.RouterDefiner`.

Plain dicts are accepted. When a dict carries no ``type`` the tag is taken
from its keys at this boundary only; everything past :func:`parse_module`
works on the models. Validation failures raise
:class:`~advance_api.errors.ConfigurationError`.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from advance_api.errors import ConfigurationError

__all__ = [
    "RouteDefinition",
    "ObjectModule",
    "DirectModule",
    "ModuleConfig",
    "parse_module",
]


class RouteDefinition(BaseModel):
    """One declarative endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    method: str
    handler: Callable[..., Any]
    description: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    response: Optional[Any] = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.strip().upper()

    def doc(self) -> Dict[str, Any]:
        return {"params": self.params, "response": self.response}


class ObjectModule(BaseModel):
    """Declarative module: a base path and a list of endpoints."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    type: Literal["object"] = "object"
    base: str = "/"
    endpoints: List[RouteDefinition] = Field(
        default_factory=list, validation_alias=AliasChoices("endpoints", "apis")
    )


class DirectModule(BaseModel):
    """Imperative module: a base path and a builder callback."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    type: Literal["direct"] = "direct"
    base: str = "/"
    build: Callable[..., Any] = Field(validation_alias=AliasChoices("build", "setup"))

    @field_validator("build")
    @classmethod
    def _sync_build(cls, value: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(value):
            raise ValueError("build must be a synchronous callable")
        return value


def _module_tag(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        tag = value.get("type")
        if tag is not None:
            return tag
        if "build" in value or "setup" in value:
            return "direct"
        if "endpoints" in value or "apis" in value:
            return "object"
        return None
    return getattr(value, "type", None)


ModuleConfig = Annotated[
    Union[
        Annotated[ObjectModule, Tag("object")],
        Annotated[DirectModule, Tag("direct")],
    ],
    Discriminator(_module_tag),
]

_MODULE_ADAPTER: TypeAdapter = TypeAdapter(ModuleConfig)


def parse_module(value: Any) -> Union[ObjectModule, DirectModule]:
    """Validate one descriptor into its model variant."""
    if isinstance(value, (ObjectModule, DirectModule)):
        return value
    try:
        return _MODULE_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid module descriptor: {exc}") from exc

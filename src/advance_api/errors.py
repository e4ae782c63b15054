"""Exception hierarchy shared by the registrar, mounter and facade."""

from __future__ import annotations


class AdvanceApiError(Exception):
    """Base for all advance-api errors."""


class ConfigurationError(AdvanceApiError, ValueError):
    """Raised during the registration phase for malformed options or modules.

    Startup is all-or-nothing: when this propagates out of
    ``create_advance_api`` no instance exists to serve requests.
    """


class ResponseAlreadySent(AdvanceApiError, RuntimeError):  # noqa: N818
    """A handler terminated the same response twice."""

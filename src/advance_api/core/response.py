"""Response envelope adapter.

Every handler receives a :class:`CommonResponse` next to the request. It
formats the two fixed JSON envelopes and terminates the response once::

    {"code": 200, "data": <payload>, "message": "success"}
    {"code": <int>, "data": null, "message": <str>}

The adapter is one-shot: no buffering, no retries. Terminating twice raises
:class:`~advance_api.errors.ResponseAlreadySent`.
"""

from __future__ import annotations

from typing import Any, Optional

from starlette.responses import JSONResponse, Response

from advance_api.errors import ResponseAlreadySent

__all__ = ["CommonResponse", "SUCCESS_MESSAGE"]

SUCCESS_MESSAGE = "success"


class CommonResponse:
    """Per-request envelope formatter."""

    __slots__ = ("_response",)

    def __init__(self) -> None:
        self._response: Optional[Response] = None

    @property
    def response(self) -> Optional[Response]:
        """The terminated response, ``None`` until a handler sends one."""
        return self._response

    @property
    def sent(self) -> bool:
        return self._response is not None

    def success(self, data: Any = None) -> Response:
        return self._send({"code": 200, "data": data, "message": SUCCESS_MESSAGE}, 200)

    def error(self, message: str, code: int = 500) -> Response:
        return self._send({"code": code, "data": None, "message": message}, code)

    def _send(self, envelope: dict, status: int) -> Response:
        if self._response is not None:
            raise ResponseAlreadySent("Response already sent for this request")
        self._response = JSONResponse(envelope, status_code=status)
        return self._response

"""Logging plugin (source of truth).

Responsibilities
----------------
- Wrap each request to a bound route and emit configurable messages:
  * ``before`` (default True): ``"{binding.name} start"``
  * ``after`` (default True): ``"{binding.name} end (<ms> ms)"`` with elapsed
    time in milliseconds formatted ``{elapsed:.2f}``.
- Sinks:
  * ``print`` true → ``print(message)``;
  * else ``log`` true → ``logger.info(message)`` when the logger has
    handlers, otherwise ``print(message)`` so messages are not dropped;
  * else → no output.
- ``enabled`` gates the plugin entirely (default True).
- Logger defaults to ``logging.getLogger("advance_api")``.

Configuration
-------------
Keys ``enabled``, ``before``, ``after``, ``log``, ``print`` at registrar level
or per route (``registrar.logging.configure(_target="GET /users",
before=False)``), or as a ``flags`` string
(``"enabled:off,before:on,after:on,log:on,print:off"``).

Exceptions propagate; the end message is skipped when the handler raises.

Registration
------------
At import the plugin registers itself as ``"logging"``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from advance_api.core.registrar import Registrar
from advance_api.plugins._base_plugin import BasePlugin, RouteBinding


class LoggingPlugin(BasePlugin):
    """Logs request handling with timing."""

    plugin_code = "logging"
    plugin_description = "Logs route calls with timing"

    __slots__ = ("_logger",)

    def __init__(self, registrar: Any, *, logger: Optional[logging.Logger] = None, **cfg: Any):
        self._logger = logger or logging.getLogger("advance_api")
        super().__init__(registrar, **cfg)

    def configure(
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - shadowing builtin intentionally
    ):
        """Configure logging plugin options.

        The wrapper added by __init_subclass__ handles writing to store.
        """
        pass

    def _emit(self, message: str, *, cfg: Optional[dict] = None) -> None:
        if cfg is None:
            return
        if cfg.get("print"):
            print(message)
            return
        if cfg.get("log"):
            if self._logger.hasHandlers():
                self._logger.info(message)
            else:
                print(message)

    def wrap_handler(self, registrar: Any, binding: RouteBinding, call_next: Callable):
        """Wrap the call chain with start/end logging and timing."""

        async def logged(request: Any, res: Any) -> Any:
            cfg = self._effective_config(binding.name)
            if not cfg["enabled"]:
                return await call_next(request, res)
            if cfg["before"]:
                self._emit(f"{binding.name} start", cfg=cfg)
            t0 = time.perf_counter()
            result = await call_next(request, res)
            elapsed = (time.perf_counter() - t0) * 1000
            if cfg["after"]:
                self._emit(f"{binding.name} end ({elapsed:.2f} ms)", cfg=cfg)
            return result

        return logged

    def _effective_config(self, route_name: str) -> dict:
        defaults = {"enabled": True, "before": True, "after": True, "log": True, "print": False}
        cfg = defaults | self.configuration(route_name)
        return {key: defaults[key] if cfg.get(key) is None else bool(cfg[key]) for key in defaults}


Registrar.register_plugin(LoggingPlugin)

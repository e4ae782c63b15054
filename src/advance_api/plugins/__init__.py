"""Plugin package initialiser.

Keep this file side-effect free: concrete plugins (``logging``) register
themselves when imported (see ``advance_api.__init__``).
"""

__all__: list[str] = []

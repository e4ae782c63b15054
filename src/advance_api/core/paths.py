"""Path joining rules (source of truth).

``join_path(*segments)`` is the only place where URL paths are combined.
Module bases, route paths and the mount prefix all flow through it.

- Every segment is stripped of leading/trailing ``/``; ``None`` counts as
  empty.
- Empty segments, and empty pieces inside a segment (``"a//b"``), are
  dropped.
- Survivors are joined with a single ``/`` and the result always starts with
  exactly one ``/``; no input at all yields ``"/"``.
- The function is total and idempotent: joining an already joined path gives
  it back unchanged.
"""

from __future__ import annotations

from typing import Optional

__all__ = ["join_path", "SEPARATOR"]

SEPARATOR = "/"


def join_path(*segments: Optional[str]) -> str:
    """Join path segments into one canonical absolute path."""
    parts = []
    for segment in segments:
        if not segment:
            continue
        for piece in str(segment).split(SEPARATOR):
            if piece:
                parts.append(piece)
    return SEPARATOR + SEPARATOR.join(parts)

"""HTML documentation page for the route catalog.

Pure presentation: takes catalog entries, returns markup. Every entry becomes
one ``<tr class="route">`` row, in catalog order.
"""

from __future__ import annotations

import html
import json
from typing import Any, Iterable, Mapping

from advance_api.core.catalog import RouteEntry

__all__ = ["render_docs_page"]

_STYLE = """\
body { font-family: system-ui, sans-serif; margin: 2rem; color: #1f2330; }
h1 { font-size: 1.4rem; margin-bottom: 0.2rem; }
.meta { color: #6b7080; margin-bottom: 1.2rem; }
table { border-collapse: collapse; width: 100%; }
th, td { text-align: left; padding: 0.45rem 0.6rem; border-bottom: 1px solid #e3e5ec; vertical-align: top; }
th { background: #f4f5f8; font-weight: 600; }
.method { font-family: ui-monospace, monospace; font-weight: 700; }
.method-GET { color: #1a7f37; }
.method-POST { color: #0969da; }
.method-PUT { color: #9a6700; }
.method-DELETE { color: #cf222e; }
.path { font-family: ui-monospace, monospace; }
.module { color: #6b7080; }
pre { margin: 0.3rem 0 0; font-size: 0.8rem; background: #f6f8fa; padding: 0.4rem; }
"""


def _esc(text: Any) -> str:
    """HTML-escape a value."""
    return html.escape(str(text), quote=True)


def _render_doc(doc: Mapping[str, Any]) -> str:
    parts = []
    params = doc.get("params")
    if params:
        items = "".join(
            f"<li><code>{_esc(name)}</code>: {_esc(info)}</li>" for name, info in params.items()
        )
        parts.append(f"<div class=\"params\">Params<ul>{items}</ul></div>")
    if doc.get("response") is not None:
        example = json.dumps(doc["response"], indent=2, ensure_ascii=False, default=str)
        parts.append(f"<div class=\"response\">Response<pre>{_esc(example)}</pre></div>")
    return "".join(parts)


def _render_row(entry: RouteEntry) -> str:
    return (
        "<tr class=\"route\">"
        f"<td class=\"method method-{_esc(entry.method)}\">{_esc(entry.method)}</td>"
        f"<td class=\"path\">{_esc(entry.path)}</td>"
        f"<td class=\"module\">{_esc(entry.module or '')}</td>"
        f"<td class=\"description\">{_esc(entry.description or '')}{_render_doc(entry.doc)}</td>"
        "</tr>"
    )


def render_docs_page(entries: Iterable[RouteEntry], *, title: str = "Advance API") -> str:
    """Render a standalone HTML page listing ``entries``."""
    entries = list(entries)
    rows = "\n".join(_render_row(entry) for entry in entries)
    return (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{_esc(title)}</title>\n<style>\n{_STYLE}</style>\n</head>\n<body>\n"
        f"<h1>{_esc(title)}</h1>\n"
        f"<p class=\"meta\">{len(entries)} routes</p>\n"
        "<table>\n<thead><tr><th>Method</th><th>Path</th><th>Module</th>"
        "<th>Description</th></tr></thead>\n"
        f"<tbody>\n{rows}\n</tbody>\n</table>\n</body>\n</html>\n"
    )

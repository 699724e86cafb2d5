"""
Table and section helpers for dashboard listings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from .base import Component

# (header, cell renderer). Renderers return trusted HTML; escape inside them.
Column = Tuple[str, Callable[[dict], str]]


def format_timestamp(value: Any) -> str:
    """Render ISO timestamps from the API as ``YYYY-MM-DD HH:MM`` (UTC)."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    return parsed.strftime("%Y-%m-%d %H:%M")


class DataTable(Component):
    def __init__(
        self,
        columns: Sequence[Column],
        rows: Iterable[dict],
        *,
        empty_text: str = "Nothing here yet.",
        table_id: Optional[str] = None,
    ) -> None:
        self.columns = list(columns)
        self.rows: List[dict] = list(rows)
        self.empty_text = empty_text
        self.table_id = table_id

    def render(self) -> str:
        if not self.rows:
            return f'<p class="text-muted empty">{self.escape(self.empty_text)}</p>'
        head = "".join(f'<th scope="col">{self.escape(h)}</th>' for h, _ in self.columns)
        body = "".join(
            f'<tr data-id="{self.escape(row.get("id"))}">'
            + "".join(f"<td>{cell(row)}</td>" for _, cell in self.columns)
            + "</tr>"
            for row in self.rows
        )
        attrs = self.attributes(id=self.table_id, class_="data-table")
        return f"<table {attrs}><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


class Section(Component):
    """Titled card wrapping a block of content."""

    def __init__(self, title: str, body: str, *, section_id: Optional[str] = None) -> None:
        self.title = title
        self.body = body
        self.section_id = section_id

    def render(self) -> str:
        attrs = self.attributes(id=self.section_id, class_="card")
        return f"<section {attrs}><h2>{self.escape(self.title)}</h2>{self.body}</section>"

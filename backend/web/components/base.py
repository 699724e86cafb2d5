"""
Base component for server-rendered LMS pages.

Pages are assembled from small Python classes that return HTML strings, so
markup stays testable without a template engine. Anything user-supplied must
pass through ``escape`` or ``attributes``.
"""

from __future__ import annotations

import html
from typing import Any, Optional


class Component:
    """Base class for all UI components."""

    def render(self) -> str:
        raise NotImplementedError("Subclasses must implement render()")

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """HTML-escape ``text``; None renders as an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*names: str, **conditionals: bool) -> str:
        """Join CSS classes, adding each keyword class whose flag is true.

        >>> Component.classes("btn", danger=True, small=False)
        'btn danger'
        """
        out = [n for n in names if n]
        out.extend(name.replace("_", "-") for name, on in conditionals.items() if on)
        return " ".join(out)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Render keyword arguments as HTML attributes.

        A trailing underscore is dropped (``class_`` -> ``class``), inner
        underscores become hyphens (``data_id`` -> ``data-id``). ``True``
        renders a bare boolean attribute; ``False`` and ``None`` are omitted.

        >>> Component.attributes(id="x", data_id=3, required=True, hidden=None)
        'id="x" data-id="3" required'
        """
        parts = []
        for key, value in attrs.items():
            name = key[:-1] if key.endswith("_") else key.replace("_", "-")
            if value is True:
                parts.append(name)
            elif value is not False and value is not None:
                parts.append(f'{name}="{html.escape(str(value))}"')
        return " ".join(parts)

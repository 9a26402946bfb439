"""Widget list serialization — JSON conversion for the persisted blob."""

from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from .models import (
    Position, SerializationError, SizeClass, Widget, WidgetKind, WidgetTheme,
    is_supported,
)


FORMAT_VERSION = 1


def widget_to_dict(w: Widget) -> dict:
    """Serialize one widget to a JSON-safe record."""
    return {
        "id": str(w.id),
        "kind": w.kind.value,
        "size": w.size.value,
        "row": w.position.row,
        "column": w.position.column,
        "page": w.position.page,
        **({"theme": w.theme.value} if w.theme is not None else {}),
    }


def widgets_to_dict(widgets: list[Widget]) -> dict:
    """Serialize the widget list, in insertion order."""
    return {
        "version": FORMAT_VERSION,
        "widgets": [widget_to_dict(w) for w in widgets],
    }


def _parse_int(record: dict, key: str) -> int:
    value = record[key]
    # bool is an int subclass; a persisted True is corrupt, not 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise SerializationError(f"Field '{key}' must be an integer, got {value!r}")
    if value < 0:
        raise SerializationError(f"Field '{key}' must be >= 0, got {value}")
    return value


def parse_widget(record: dict) -> Widget:
    """Parse one record back into a Widget.

    Raises SerializationError on missing fields, unknown tags, or a size
    the widget's kind does not support.
    """
    if not isinstance(record, dict):
        raise SerializationError(f"Widget record must be an object, got {record!r}")
    try:
        kind = WidgetKind(record["kind"])
        size = SizeClass(record["size"])
        theme_tag = record.get("theme")
        theme = WidgetTheme(theme_tag) if theme_tag is not None else None
        widget = Widget(
            id=UUID(str(record["id"])),
            kind=kind,
            size=size,
            position=Position(
                row=_parse_int(record, "row"),
                column=_parse_int(record, "column"),
                page=_parse_int(record, "page"),
            ),
            theme=theme,
        )
    except KeyError as e:
        raise SerializationError(f"Widget record missing field {e}") from e
    except ValueError as e:
        if isinstance(e, SerializationError):
            raise
        raise SerializationError(f"Invalid widget record: {e}") from e

    if not is_supported(kind, size):
        raise SerializationError(
            f"Widget {widget.id}: '{kind.value}' does not support "
            f"size '{size.value}'")
    return widget


def parse_widgets(data: Any) -> list[Widget]:
    """Parse a widgets dict (or a bare list of records) into Widgets."""
    if isinstance(data, dict):
        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise SerializationError(f"Unsupported widget format version {version!r}")
        records = data.get("widgets")
    else:
        records = data
    if not isinstance(records, list):
        raise SerializationError("Widget data must contain a list of records")

    widgets = [parse_widget(r) for r in records]

    seen: set[UUID] = set()
    for w in widgets:
        if w.id in seen:
            raise SerializationError(f"Duplicate widget id {w.id}")
        seen.add(w.id)
    return widgets


def dumps_widgets(widgets: list[Widget]) -> bytes:
    return json.dumps(widgets_to_dict(widgets), indent=2).encode("utf-8")


def loads_widgets(blob: bytes | str) -> list[Widget]:
    """Decode a persisted blob.  Raises SerializationError if corrupt."""
    try:
        text = blob.decode("utf-8") if isinstance(blob, bytes) else blob
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationError(f"Widget blob is not valid JSON: {e}") from e
    return parse_widgets(data)

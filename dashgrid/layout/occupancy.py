"""Occupancy oracle — bounds and overlap checks for candidate rectangles.

Pages are independent occupancy planes: widgets on other pages are
never consulted.  All functions are pure.
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from shapely.ops import unary_union

from .geometry import cell_rect, rects_overlap, widget_rect
from .models import GridGeometry, Position, SizeClass, Widget, grid_size


def is_free(
    size: SizeClass,
    position: Position,
    geometry: GridGeometry,
    max_pages: int,
    against: Iterable[Widget],
    excluding: UUID | None = None,
) -> bool:
    """True if *size* at *position* is in bounds and overlaps nothing.

    Parameters
    ----------
    size, position
        The candidate rectangle and its page.
    geometry, max_pages
        The grid the candidate must fit.
    against
        Widgets to test against — the committed collection or a
        hypothetical working set.
    excluding
        Id of a widget to ignore (the one being moved or resized).
    """
    width, height = grid_size(size)
    if (
        position.row < 0 or position.column < 0 or position.page < 0
        or position.row + height > geometry.rows
        or position.column + width > geometry.columns
        or position.page >= max_pages
    ):
        return False

    candidate = cell_rect(size, position)
    for other in against:
        if other.position.page != position.page:
            continue
        if excluding is not None and other.id == excluding:
            continue
        if rects_overlap(candidate, widget_rect(other)):
            return False
    return True


def occupied_area(widgets: Iterable[Widget], page: int | None = None) -> float:
    """Total cell area covered by *widgets* (optionally on one page).

    Per-page unions are summed, so overlapping widgets on the same page
    are counted once.
    """
    by_page: dict[int, list] = {}
    for w in widgets:
        if page is not None and w.position.page != page:
            continue
        by_page.setdefault(w.position.page, []).append(widget_rect(w))
    return sum(unary_union(rects).area for rects in by_page.values())


def total_capacity(geometry: GridGeometry, max_pages: int) -> int:
    """Cells available across every page."""
    return geometry.capacity * max_pages

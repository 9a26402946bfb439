"""Placement search — free-slot scan and nearest-slot ring search."""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from .models import GridGeometry, Position, SizeClass, Widget, grid_size
from .occupancy import is_free


def page_scan_order(preferred_page: int | None, max_pages: int) -> list[int]:
    """Pages in the order they are searched.

    The preferred page (clamped into range) comes first, then the rest
    ascending.
    """
    pages = list(range(max_pages))
    if preferred_page is None:
        return pages
    first = max(0, min(preferred_page, max_pages - 1))
    return [first] + [p for p in pages if p != first]


def find_free_position(
    size: SizeClass,
    geometry: GridGeometry,
    max_pages: int,
    against: Sequence[Widget],
    preferred_page: int | None = None,
    excluding: UUID | None = None,
) -> Position | None:
    """Return the first free top-left-biased slot, or None.

    Each page is scanned row-major: all columns of row 0, then row 1, …
    """
    width, height = grid_size(size)
    for page in page_scan_order(preferred_page, max_pages):
        for row in range(geometry.rows - height + 1):
            for column in range(geometry.columns - width + 1):
                position = Position(row=row, column=column, page=page)
                if is_free(size, position, geometry, max_pages,
                           against, excluding):
                    return position
    return None


def find_nearest_position(
    size: SizeClass,
    target: Position,
    geometry: GridGeometry,
    max_pages: int,
    against: Sequence[Widget],
    excluding: UUID | None = None,
) -> Position | None:
    """Return the free slot closest to *target*, falling back to any slot.

    The search grows a square around the target cell one ring at a
    time (Chebyshev distance) on the target's page; every cell of the
    square is tried before the square grows.  If nothing within the
    maximum radius is free, the row-major scan runs with the target
    page preferred, so a slot on another page may be returned.
    """
    width, height = grid_size(size)
    page = max(0, min(target.page, max_pages - 1))
    max_distance = max(geometry.rows, geometry.columns) // 2

    for distance in range(max_distance + 1):
        row_lo = max(0, target.row - distance)
        row_hi = min(geometry.rows - height, target.row + distance)
        col_lo = max(0, target.column - distance)
        col_hi = min(geometry.columns - width, target.column + distance)
        for row in range(row_lo, row_hi + 1):
            for column in range(col_lo, col_hi + 1):
                position = Position(row=row, column=column, page=page)
                if is_free(size, position, geometry, max_pages,
                           against, excluding):
                    return position

    return find_free_position(
        size, geometry, max_pages, against,
        preferred_page=page, excluding=excluding,
    )

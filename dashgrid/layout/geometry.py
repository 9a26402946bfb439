"""Low-level geometry helpers for the layout engine.

Everything here works in grid cells except the device policy and the
drop-point helpers, which convert between screen points and cells.
"""

from __future__ import annotations

import math
from enum import Enum

from shapely.geometry import Polygon, box as shapely_box

from dashgrid.config import DEVICE_GRID_POLICY, GRID_RULES

from .models import GridGeometry, Position, SizeClass, Widget, grid_size


class DeviceClass(Enum):
    PHONE = "phone"
    TABLET = "tablet"


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


# ── Device grid policy ─────────────────────────────────────────────


def orientation_for(width: float, height: float) -> Orientation:
    return Orientation.LANDSCAPE if width > height else Orientation.PORTRAIT


def grid_geometry_for(
    width: float,
    height: float,
    device: DeviceClass = DeviceClass.PHONE,
    *,
    padding: float = GRID_RULES.grid_padding,
) -> GridGeometry:
    """Derive a page grid from the available screen size.

    Columns and rows come from the device policy table; the cell size
    is the largest square that fits both axes.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Available size must be positive, got {width}x{height}")

    orientation = orientation_for(width, height)
    columns, rows = DEVICE_GRID_POLICY[(device.value, orientation.value)]

    available_w = width - padding * (columns + 1)
    available_h = height - padding * (rows + 1)
    cell_size = min(available_w / columns, available_h / rows)
    return GridGeometry(columns=columns, rows=rows, cell_size=cell_size)


# ── Cell rectangles ────────────────────────────────────────────────


def cell_rect(size: SizeClass, position: Position) -> Polygon:
    """Axis-aligned rectangle of *size* at *position*, in cell units.

    x runs along columns, y along rows.
    """
    width, height = grid_size(size)
    return shapely_box(
        position.column, position.row,
        position.column + width, position.row + height,
    )


def widget_rect(widget: Widget) -> Polygon:
    return cell_rect(widget.size, widget.position)


def rects_overlap(a: Polygon, b: Polygon) -> bool:
    """True if two cell rectangles share interior area.

    Shared edges and corners are not an overlap.
    """
    a_left, a_top, a_right, a_bottom = a.bounds
    b_left, b_top, b_right, b_bottom = b.bounds
    return (
        a_left < b_right and a_right > b_left
        and a_top < b_bottom and a_bottom > b_top
    )


def fits_page(size: SizeClass, position: Position, geometry: GridGeometry) -> bool:
    """True if the rectangle lies inside [0, columns) x [0, rows)."""
    width, height = grid_size(size)
    return (
        position.row >= 0 and position.column >= 0
        and position.row + height <= geometry.rows
        and position.column + width <= geometry.columns
    )


def clamp_position(
    size: SizeClass,
    position: Position,
    geometry: GridGeometry,
    max_pages: int,
) -> Position:
    """Pull *position* into the legal range for *size*."""
    width, height = grid_size(size)
    return Position(
        row=max(0, min(position.row, geometry.rows - height)),
        column=max(0, min(position.column, geometry.columns - width)),
        page=max(0, min(position.page, max_pages - 1)),
    )


# ── Proportional re-layout ─────────────────────────────────────────


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def relative_center(
    size: SizeClass, position: Position, geometry: GridGeometry,
) -> tuple[float, float]:
    """Return the widget centre as (column, row) fractions of the grid."""
    width, height = grid_size(size)
    rel_col = (position.column + width / 2) / geometry.columns
    rel_row = (position.row + height / 2) / geometry.rows
    return (rel_col, rel_row)


def proportional_position(
    size: SizeClass,
    position: Position,
    old: GridGeometry,
    new: GridGeometry,
) -> Position:
    """Map a position on *old* to the same relative spot on *new*.

    The centre keeps its fractional location; the top-left corner is
    rounded half-up and clamped into the new bounds.  The page is kept.
    """
    width, height = grid_size(size)
    rel_col, rel_row = relative_center(size, position, old)

    desired_col = round_half_up(rel_col * new.columns - width / 2)
    desired_row = round_half_up(rel_row * new.rows - height / 2)

    return Position(
        row=max(0, min(desired_row, new.rows - height)),
        column=max(0, min(desired_col, new.columns - width)),
        page=position.page,
    )


# ── Drop-point arithmetic ──────────────────────────────────────────


def widget_center_points(
    widget: Widget,
    cell_size: float,
    padding: float = GRID_RULES.drop_padding,
) -> tuple[float, float]:
    """Centre of a placed widget in grid-local screen points."""
    cx = (widget.position.column + widget.width / 2) * cell_size + padding
    cy = (widget.position.row + widget.height / 2) * cell_size + padding
    return (cx, cy)


def drop_location_to_position(
    widget: Widget,
    drop_x: float,
    drop_y: float,
    cell_size: float,
    *,
    origin_x: float = 0.0,
    origin_y: float = 0.0,
    padding: float = GRID_RULES.drop_padding,
) -> Position:
    """Convert a drop point (screen points) into a requested cell.

    *origin_x*/*origin_y* is the grid's top-left corner in the same
    coordinate space as the drop point.  The page is the dragged
    widget's page.  The result is not clamped; move_widget does that.
    """
    if cell_size <= 0:
        raise ValueError(f"Cell size must be > 0, got {cell_size}")
    center_x = drop_x - origin_x
    center_y = drop_y - origin_y
    # int() truncates toward zero, matching the drop delegate
    column = int((center_x - padding - cell_size / 2) / cell_size)
    row = int((center_y - padding - cell_size / 2) / cell_size)
    return Position(row=row, column=column, page=widget.position.page)

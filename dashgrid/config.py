"""Shared constants for the widget grid.

Both the **layout engine** (page limits, geometry comparison) and the
**geometry provider** (device grid policy, cell padding) read their
parameters from this single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GridRules:
    """Layout rules for the paginated widget grid.

    Distances are in screen points, sizes in grid cells.
    """

    max_pages: int = 5
    """Number of grid pages a widget may be placed on."""

    cell_size_epsilon: float = 0.01
    """Two geometries whose cell sizes differ by less than this are equal."""

    grid_padding: float = 0.0
    """Padding between cells when deriving the cell size from screen size."""

    drop_padding: float = 16.0
    """Screen padding around the grid used when mapping a drop point to a cell."""

    toast_duration_s: float = 2.0
    """How long a "no space" message stays on screen."""

    store_suite: str = "studio.itch.speedometer"
    """Namespace of the persisted widget blob."""

    store_key: str = "widgets"
    """Key of the persisted widget blob."""


# Shared default rules.
GRID_RULES = GridRules()


# ── Device grid policy ─────────────────────────────────────────────
# (device_class, orientation) -> (columns, rows)

DEVICE_GRID_POLICY: dict[tuple[str, str], tuple[int, int]] = {
    ("phone", "portrait"): (4, 8),
    ("phone", "landscape"): (8, 4),
    ("tablet", "portrait"): (6, 12),
    ("tablet", "landscape"): (12, 6),
}

"""Layout dataclasses, enum tags and the static size tables."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from uuid import UUID

from dashgrid.config import GRID_RULES


# ── Enum tags ──────────────────────────────────────────────────────
# Values are the persisted tags, so they must never change.


class SizeClass(Enum):
    SMALL = "small"
    MEDIUM_HORIZONTAL = "mediumHorizontal"
    MEDIUM_VERTICAL = "mediumVertical"
    LARGE = "large"
    EXTRA_LARGE = "extraLarge"


class WidgetKind(Enum):
    GFORCE_DOT = "gForceDot"
    SPEEDOMETER = "speedometer"
    SPEED_GAUGE = "speedGauge"
    SEISMOGRAPH = "seismograph"
    UNIT_TOGGLE = "unitToggle"


class WidgetTheme(Enum):
    """Optional per-widget theme override."""

    BMW_LEATHER = "bmwLeather"
    RACING_FLAT = "racingFlat"
    HIGH_CONTRAST = "highContrast"


# ── Static tables ──────────────────────────────────────────────────

SIZE_CELLS: dict[SizeClass, tuple[int, int]] = {
    SizeClass.SMALL: (1, 1),
    SizeClass.MEDIUM_HORIZONTAL: (2, 1),
    SizeClass.MEDIUM_VERTICAL: (1, 2),
    SizeClass.LARGE: (2, 2),
    SizeClass.EXTRA_LARGE: (3, 2),
}
"""Size class -> (width, height) in grid cells."""

SUPPORTED_SIZES: dict[WidgetKind, tuple[SizeClass, ...]] = {
    WidgetKind.GFORCE_DOT: (SizeClass.MEDIUM_HORIZONTAL, SizeClass.LARGE),
    WidgetKind.SPEEDOMETER: (SizeClass.LARGE, SizeClass.EXTRA_LARGE),
    WidgetKind.SPEED_GAUGE: (SizeClass.SMALL, SizeClass.MEDIUM_HORIZONTAL),
    WidgetKind.SEISMOGRAPH: (
        SizeClass.MEDIUM_VERTICAL, SizeClass.LARGE, SizeClass.EXTRA_LARGE,
    ),
    WidgetKind.UNIT_TOGGLE: (SizeClass.MEDIUM_HORIZONTAL,),
}
"""Widget kind -> ordered supported sizes.  The first entry is the default."""


def grid_size(size: SizeClass) -> tuple[int, int]:
    """Return (width, height) of a size class in cells."""
    return SIZE_CELLS[size]


def supported_sizes(kind: WidgetKind) -> tuple[SizeClass, ...]:
    return SUPPORTED_SIZES[kind]


def is_supported(kind: WidgetKind, size: SizeClass) -> bool:
    return size in SUPPORTED_SIZES[kind]


def default_size(kind: WidgetKind) -> SizeClass:
    return SUPPORTED_SIZES[kind][0]


def coerce_size(kind: WidgetKind, size: SizeClass | None) -> SizeClass:
    """Keep *size* if the kind supports it, else fall back to the default.

    This is what the add-widget picker does when the user switches kind
    while a size that the new kind lacks is still selected.
    """
    if size is not None and is_supported(kind, size):
        return size
    return default_size(kind)


def require_supported(kind: WidgetKind, size: SizeClass) -> None:
    """Raise InvalidSizeError unless *kind* supports *size*."""
    if not is_supported(kind, size):
        raise InvalidSizeError(kind, size)


# ── Value types ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Position:
    """Top-left cell of a widget on a page."""

    row: int
    column: int
    page: int


@dataclass(frozen=True, eq=False)
class GridGeometry:
    """One page's grid.  A geometry change produces a new value.

    Equality is exact on columns/rows and approximate on cell_size.
    """

    columns: int
    rows: int
    cell_size: float

    def __post_init__(self) -> None:
        if self.columns <= 0 or self.rows <= 0:
            raise ValueError(
                f"Grid must have at least one column and row, "
                f"got {self.columns}x{self.rows}")
        if not (self.cell_size > 0 and math.isfinite(self.cell_size)):
            raise ValueError(f"Cell size must be > 0, got {self.cell_size}")

    def same_as(
        self, other: GridGeometry,
        epsilon: float = GRID_RULES.cell_size_epsilon,
    ) -> bool:
        return (
            self.columns == other.columns
            and self.rows == other.rows
            and abs(self.cell_size - other.cell_size) < epsilon
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GridGeometry):
            return NotImplemented
        return self.same_as(other)

    def __hash__(self) -> int:
        return hash((self.columns, self.rows))

    @property
    def capacity(self) -> int:
        """Cells on one page."""
        return self.columns * self.rows


@dataclass
class Widget:
    """A placed widget.  Only the engine mutates size and position."""

    id: UUID
    kind: WidgetKind
    size: SizeClass
    position: Position
    theme: WidgetTheme | None = None

    @property
    def width(self) -> int:
        return SIZE_CELLS[self.size][0]

    @property
    def height(self) -> int:
        return SIZE_CELLS[self.size][1]

    @property
    def area(self) -> int:
        return self.width * self.height

    def with_position(self, position: Position) -> Widget:
        return replace(self, position=position)

    def snapshot(self) -> Widget:
        """Detached copy handed to readers outside the engine."""
        return replace(self)


# ── Operation results ──────────────────────────────────────────────


class PlacementStatus(Enum):
    OK = "ok"
    NO_SPACE = "no_space"
    INVALID_SIZE = "invalid_size"
    UNKNOWN_WIDGET = "unknown_widget"


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of add / resize / move."""

    status: PlacementStatus
    widget_id: UUID | None = None
    position: Position | None = None

    @property
    def ok(self) -> bool:
        return self.status is PlacementStatus.OK

    def __bool__(self) -> bool:
        return self.ok


# ── Errors ─────────────────────────────────────────────────────────


class InvalidSizeError(ValueError):
    """Raised when a widget kind does not support a size class."""

    def __init__(self, kind: WidgetKind, size: SizeClass) -> None:
        self.kind = kind
        self.size = size
        allowed = ", ".join(s.value for s in SUPPORTED_SIZES[kind])
        super().__init__(
            f"'{kind.value}' does not support size '{size.value}' "
            f"(supported: {allowed})")


class SerializationError(ValueError):
    """Raised when a persisted widget blob cannot be decoded."""

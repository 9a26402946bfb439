"""Layout — places widgets on the paginated dashboard grid.

Submodules:
  models         Enum tags, static size tables, value types, results, errors.
  geometry       Device grid policy, cell rectangles, proportional mapping,
                 drop-point arithmetic.
  occupancy      Collision / bounds oracle.
  search         Row-major free-slot scan and nearest-slot ring search.
  notifications  NoSpace notices, toasts, observer channel.
  engine         LayoutEngine (add / remove / resize / move / re-layout).
  serialization  JSON conversion (widgets_to_dict, parse_widgets).
"""

from .models import (
    SizeClass, WidgetKind, WidgetTheme, Position, GridGeometry, Widget,
    PlacementStatus, PlacementResult, InvalidSizeError, SerializationError,
    SIZE_CELLS, SUPPORTED_SIZES,
    grid_size, supported_sizes, is_supported, default_size, coerce_size,
    require_supported,
)
from .geometry import (
    DeviceClass, Orientation, grid_geometry_for, clamp_position,
    proportional_position, drop_location_to_position, widget_center_points,
)
from .occupancy import is_free
from .search import find_free_position, find_nearest_position
from .notifications import NoSpaceNotice, Toast
from .engine import LayoutEngine
from .serialization import (
    widgets_to_dict, parse_widgets, dumps_widgets, loads_widgets,
)

__all__ = [
    # Models
    "SizeClass", "WidgetKind", "WidgetTheme", "Position", "GridGeometry",
    "Widget", "PlacementStatus", "PlacementResult", "InvalidSizeError",
    "SerializationError", "SIZE_CELLS", "SUPPORTED_SIZES",
    "grid_size", "supported_sizes", "is_supported", "default_size",
    "coerce_size", "require_supported",
    # Geometry
    "DeviceClass", "Orientation", "grid_geometry_for", "clamp_position",
    "proportional_position", "drop_location_to_position",
    "widget_center_points",
    # Oracle / search
    "is_free", "find_free_position", "find_nearest_position",
    # Notifications
    "NoSpaceNotice", "Toast",
    # Engine
    "LayoutEngine",
    # Serialization
    "widgets_to_dict", "parse_widgets", "dumps_widgets", "loads_widgets",
]

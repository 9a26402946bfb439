"""Layout engine — owns the widget collection and every layout mutation.

Each mutating operation either commits a state that satisfies the
layout invariant (no overlaps on any page, every widget inside the
grid and below max_pages) or leaves the state untouched.  After a
commit the widget list is persisted (best effort) and listeners on
``changes`` receive a fresh snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable
from uuid import UUID, uuid4

from dashgrid.config import GRID_RULES, GridRules
from dashgrid.store import BlobStore

from .geometry import clamp_position, proportional_position
from .models import (
    GridGeometry, PlacementResult, PlacementStatus, Position, SizeClass,
    Widget, WidgetKind, WidgetTheme, default_size, is_supported,
)
from .notifications import (
    Channel, NoSpaceNotice, Toast,
    MSG_NO_SPACE, MSG_NO_SPACE_FOR_SIZE, MSG_NO_DROP_SPACE,
)
from .occupancy import is_free, occupied_area, total_capacity
from .search import find_free_position, find_nearest_position
from .serialization import dumps_widgets, loads_widgets


log = logging.getLogger(__name__)


def _position_key(w: Widget) -> tuple[int, int, int]:
    return (w.position.page, w.position.row, w.position.column)


class LayoutEngine:
    """Paginated widget grid.

    Parameters
    ----------
    geometry : GridGeometry
        Grid of a single page; all pages share it.
    store : BlobStore, optional
        Where the widget list is loaded from at construction and
        written to after every commit.
    rules : GridRules
        Page limit, store key and toast duration.
    max_pages : int, optional
        Overrides ``rules.max_pages``.
    id_factory : callable
        Produces ids for new widgets (``uuid4`` by default).

    All public methods take the same re-entrant lock, so the engine may
    be shared between threads; listeners run while the lock is held.
    """

    def __init__(
        self,
        geometry: GridGeometry,
        *,
        store: BlobStore | None = None,
        rules: GridRules = GRID_RULES,
        max_pages: int | None = None,
        id_factory: Callable[[], UUID] = uuid4,
    ) -> None:
        self._geometry = geometry
        self._rules = rules
        self._max_pages = rules.max_pages if max_pages is None else max_pages
        if self._max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self._max_pages}")
        self._store = store
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._toast: Toast | None = None

        self.changes: Channel[list[Widget]] = Channel("changes")
        self.no_space: Channel[NoSpaceNotice] = Channel("no_space")

        self._widgets: list[Widget] = self._load() if store is not None else []

    # ── Read accessors ─────────────────────────────────────────────

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def max_pages(self) -> int:
        return self._max_pages

    def widgets(self) -> list[Widget]:
        """Snapshot of all widgets in insertion order."""
        with self._lock:
            return [w.snapshot() for w in self._widgets]

    def widget(self, widget_id: UUID) -> Widget | None:
        with self._lock:
            w = self._find(widget_id)
            return w.snapshot() if w is not None else None

    def widgets_on_page(self, page: int) -> list[Widget]:
        with self._lock:
            return [w.snapshot() for w in self._widgets if w.position.page == page]

    def page_count(self) -> int:
        """Pages to show: the highest used page, plus one blank page after it."""
        with self._lock:
            if not self._widgets:
                return 1
            highest = max(w.position.page for w in self._widgets)
            return highest + 2

    def is_position_free(
        self,
        size: SizeClass,
        position: Position,
        excluding: UUID | None = None,
    ) -> bool:
        """Oracle query against the committed widgets."""
        with self._lock:
            return is_free(size, position, self._geometry, self._max_pages,
                           self._widgets, excluding)

    def preview_drop(
        self, widget_id: UUID, position: Position,
    ) -> tuple[Position, bool] | None:
        """Clamp a drag position for *widget_id* and report if it is free.

        Used for drag-preview highlighting; nothing is mutated.  Returns
        None for an unknown widget.
        """
        with self._lock:
            w = self._find(widget_id)
            if w is None:
                return None
            clamped = clamp_position(w.size, position, self._geometry, self._max_pages)
            free = is_free(w.size, clamped, self._geometry, self._max_pages,
                           self._widgets, widget_id)
            return (clamped, free)

    @property
    def last_toast(self) -> Toast | None:
        with self._lock:
            return self._toast

    def dismiss_toast(self) -> None:
        with self._lock:
            self._toast = None

    def subscribe(self, listener: Callable[[list[Widget]], None]) -> Callable[[], None]:
        return self.changes.subscribe(listener)

    def on_no_space(self, listener: Callable[[NoSpaceNotice], None]) -> Callable[[], None]:
        return self.no_space.subscribe(listener)

    # ── Mutations ──────────────────────────────────────────────────

    def add_widget(
        self,
        kind: WidgetKind,
        size: SizeClass | None = None,
        theme: WidgetTheme | None = None,
        current_page: int | None = None,
    ) -> PlacementResult:
        """Place a new widget in the first free slot.

        *current_page* is searched first, then every other page.  Raises
        ValueError if the id factory repeats an id already in use.
        """
        with self._lock:
            target = size if size is not None else default_size(kind)
            if not is_supported(kind, target):
                log.debug("Rejected add: %s does not support %s",
                          kind.value, target.value)
                return PlacementResult(PlacementStatus.INVALID_SIZE)

            position = find_free_position(
                target, self._geometry, self._max_pages, self._widgets,
                preferred_page=current_page,
            )
            if position is None:
                self._signal_no_space("add", MSG_NO_SPACE, {
                    "kind": kind.value, "size": target.value,
                    "current_page": current_page,
                })
                return PlacementResult(PlacementStatus.NO_SPACE)

            widget_id = self._id_factory()
            if self._find(widget_id) is not None:
                raise ValueError(f"id_factory returned an id already in use: {widget_id}")
            widget = Widget(
                id=widget_id,
                kind=kind,
                size=target,
                position=position,
                theme=theme,
            )
            self._widgets.append(widget)
            log.info("Added %s %s (%s) at row=%d col=%d page=%d",
                     kind.value, widget.id, target.value,
                     position.row, position.column, position.page)
            self._commit()
            return PlacementResult(PlacementStatus.OK, widget.id, position)

    def remove_widget(self, widget_id: UUID) -> bool:
        """Delete a widget.  Returns False (and changes nothing) if unknown."""
        with self._lock:
            w = self._find(widget_id)
            if w is None:
                return False
            self._widgets.remove(w)
            log.info("Removed %s %s", w.kind.value, widget_id)
            self._commit()
            return True

    def resize_widget(self, widget_id: UUID, new_size: SizeClass) -> PlacementResult:
        """Resize in place if possible, else move to the first free slot."""
        with self._lock:
            w = self._find(widget_id)
            if w is None:
                return PlacementResult(PlacementStatus.UNKNOWN_WIDGET)
            if not is_supported(w.kind, new_size):
                log.debug("Rejected resize: %s does not support %s",
                          w.kind.value, new_size.value)
                return PlacementResult(PlacementStatus.INVALID_SIZE, widget_id)

            if is_free(new_size, w.position, self._geometry, self._max_pages,
                       self._widgets, widget_id):
                position = w.position
            else:
                position = find_free_position(
                    new_size, self._geometry, self._max_pages, self._widgets,
                    preferred_page=w.position.page, excluding=widget_id,
                )
            if position is None:
                self._signal_no_space("resize", MSG_NO_SPACE_FOR_SIZE, {
                    "widget_id": str(widget_id), "size": new_size.value,
                })
                return PlacementResult(PlacementStatus.NO_SPACE, widget_id)

            w.size = new_size
            w.position = position
            log.info("Resized %s to %s at row=%d col=%d page=%d",
                     widget_id, new_size.value,
                     position.row, position.column, position.page)
            self._commit()
            return PlacementResult(PlacementStatus.OK, widget_id, position)

    def move_widget(self, widget_id: UUID, requested: Position) -> PlacementResult:
        """Move a widget to *requested*, or the nearest free slot to it.

        The request is clamped into the grid first, using the widget's
        current size.
        """
        with self._lock:
            w = self._find(widget_id)
            if w is None:
                return PlacementResult(PlacementStatus.UNKNOWN_WIDGET)

            target = clamp_position(w.size, requested, self._geometry, self._max_pages)
            if is_free(w.size, target, self._geometry, self._max_pages,
                       self._widgets, widget_id):
                position = target
            else:
                position = find_nearest_position(
                    w.size, target, self._geometry, self._max_pages,
                    self._widgets, excluding=widget_id,
                )
            if position is None:
                self._signal_no_space("move", MSG_NO_DROP_SPACE, {
                    "widget_id": str(widget_id),
                    "requested": (requested.row, requested.column, requested.page),
                })
                return PlacementResult(PlacementStatus.NO_SPACE, widget_id)

            w.position = position
            log.info("Moved %s to row=%d col=%d page=%d",
                     widget_id, position.row, position.column, position.page)
            self._commit()
            return PlacementResult(PlacementStatus.OK, widget_id, position)

    def on_geometry_changed(self, new_geometry: GridGeometry) -> bool:
        """Adopt a new grid and re-flow every widget proportionally.

        Returns False when the geometry is unchanged (nothing happens).
        """
        with self._lock:
            if new_geometry.same_as(self._geometry, self._rules.cell_size_epsilon):
                log.debug("No grid change needed")
                return False

            old = self._geometry
            log.debug("Grid changed from %dx%d to %dx%d",
                      old.columns, old.rows,
                      new_geometry.columns, new_geometry.rows)
            widgets = self._relayout(old, new_geometry)
            self._geometry = new_geometry
            self._widgets = widgets
            self._commit()
            return True

    # ── Internals ──────────────────────────────────────────────────

    def _find(self, widget_id: UUID) -> Widget | None:
        return next((w for w in self._widgets if w.id == widget_id), None)

    def _relayout(self, old: GridGeometry, new: GridGeometry) -> list[Widget]:
        """Rebuild the widget list for *new* against a fresh working set.

        Widgets claim cells in (page, row, column) order, so top-left
        widgets on earlier pages win contested cells.  A widget that
        fits nowhere is dropped.  Survivors keep their insertion order.
        """
        order = sorted(range(len(self._widgets)),
                       key=lambda i: _position_key(self._widgets[i]))

        needed = occupied_area(self._widgets)
        capacity = total_capacity(new, self._max_pages)
        if needed > capacity:
            log.warning("Grid %dx%d holds %d cells but widgets cover %d; "
                        "some widgets will be dropped",
                        new.columns, new.rows, capacity, int(needed))

        placed: list[Widget] = []
        placed_at: dict[int, Widget] = {}
        for i in order:
            w = self._widgets[i]
            desired = proportional_position(w.size, w.position, old, new)
            if is_free(w.size, desired, new, self._max_pages, placed):
                position = desired
            else:
                # Nearest on the same page first; falls back to scanning
                # every page with the widget's own page preferred.
                position = find_nearest_position(
                    w.size, desired, new, self._max_pages, placed,
                )
            if position is None:
                log.warning("No position for %s %s (%s) on %dx%d grid; dropped",
                            w.kind.value, w.id, w.size.value,
                            new.columns, new.rows)
                continue
            log.debug("Widget %s: old (%d,%d,p%d) desired (%d,%d) placed (%d,%d,p%d)",
                      w.id, w.position.row, w.position.column, w.position.page,
                      desired.row, desired.column,
                      position.row, position.column, position.page)
            moved = w.with_position(position)
            placed.append(moved)
            placed_at[i] = moved

        return [placed_at[i] for i in sorted(placed_at)]

    def _legalize(self, widgets: list[Widget]) -> list[Widget]:
        """Fit loaded widgets onto the current grid.

        Widgets keep their stored position when it is legal, else take
        the first free slot (stored page first), else are dropped.
        """
        accepted: list[Widget] = []
        for w in widgets:
            if is_free(w.size, w.position, self._geometry, self._max_pages, accepted):
                accepted.append(w)
                continue
            position = find_free_position(
                w.size, self._geometry, self._max_pages, accepted,
                preferred_page=w.position.page,
            )
            if position is None:
                log.warning("Stored widget %s does not fit the grid; dropped", w.id)
                continue
            log.info("Stored widget %s relocated to row=%d col=%d page=%d",
                     w.id, position.row, position.column, position.page)
            accepted.append(w.with_position(position))
        return accepted

    def _load(self) -> list[Widget]:
        """Read the stored widget list.  Missing or corrupt data gives []."""
        try:
            blob = self._store.read(self._rules.store_key)
            if blob is None:
                return []
            widgets = loads_widgets(blob)
        except Exception as e:
            log.warning("Could not load stored widgets, starting empty: %s", e)
            return []
        log.info("Loaded %d widgets", len(widgets))
        return self._legalize(widgets)

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.write(self._rules.store_key, dumps_widgets(self._widgets))
        except Exception as e:
            log.warning("Could not persist widgets (continuing in memory): %s", e)

    def _commit(self) -> None:
        self._persist()
        self.changes.emit(self.widgets())

    def _signal_no_space(self, context: str, message: str, details: dict[str, Any]) -> None:
        notice = NoSpaceNotice(context=context, message=message, details=details)
        self._toast = Toast(message=message, duration=self._rules.toast_duration_s)
        log.info("No space (%s): %s", context, details)
        self.no_space.emit(notice)

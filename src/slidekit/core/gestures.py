"""Drag and resize gestures as explicit state machines.

The host feeds pointer events into ``begin`` / ``update`` / ``end``; the
controllers never subscribe to anything themselves. Gesture records belong to
the controller, so discarding a controller (or calling ``cancel``) can never
leave an element half-dragged.

Both controllers share a :class:`GestureSlot`, which lets only one gesture,
drag or resize, run at a time.
"""

import logging
import math
from dataclasses import dataclass
from typing import Literal, Optional

from .canvas import CoordinateMapper, GridSnapPolicy, PointerEvent, Rect, round_half_up
from .config import MIN_ELEMENT_SIZE
from .elements import ElementRepository
from .errors import DegenerateLayout, InvalidTarget
from .locks import LockRegistry
from .slides import Slide

logger = logging.getLogger("SlideKit.core.gestures")

Handle = Literal["nw", "ne", "sw", "se", "n", "s", "e", "w"]
HANDLES: tuple[str, ...] = ("nw", "ne", "sw", "se", "n", "s", "e", "w")

_EAST = frozenset({"ne", "se", "e"})
_WEST = frozenset({"nw", "sw", "w"})
_NORTH = frozenset({"nw", "ne", "n"})
_SOUTH = frozenset({"sw", "se", "s"})


@dataclass(frozen=True)
class DragState:
    element_id: str
    origin: PointerEvent
    start_x: float
    start_y: float
    preview: Rect


@dataclass(frozen=True)
class ResizeState:
    element_id: str
    handle: Handle
    origin: PointerEvent
    start: Rect
    preview: Optional[Rect] = None


class GestureSlot:
    """Latch held by whichever controller currently runs a gesture."""

    def __init__(self):
        self.owner: Optional[object] = None

    @property
    def busy(self) -> bool:
        return self.owner is not None

    def acquire(self, owner: object) -> bool:
        if self.owner is not None:
            return False
        self.owner = owner
        return True

    def release(self, owner: object) -> None:
        if self.owner is owner:
            self.owner = None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def resize_rect(start: Rect, handle: str, dx: float, dy: float,
                canvas_width: float, canvas_height: float,
                min_size: float = MIN_ELEMENT_SIZE,
                clamp_anchored_edges: bool = True) -> Rect:
    """Geometry after dragging ``handle`` by (dx, dy) logical units.

    East/south edges grow up to the canvas edge. West/north edges move the
    origin so the opposite edge stays anchored; with ``clamp_anchored_edges``
    they also stop growing once the origin reaches 0, otherwise the size keeps
    growing while the origin is floored at 0.
    """
    if handle not in HANDLES:
        raise ValueError(f"Unknown resize handle {handle!r}")
    x, y, width, height = start.x, start.y, start.width, start.height

    if handle in _EAST:
        width = max(min_size, min(canvas_width - start.x, start.width + dx))
    elif handle in _WEST:
        width = max(min_size, start.width - dx)
        if clamp_anchored_edges:
            width = min(width, start.right)
        x = max(0.0, start.x + (start.width - width))

    if handle in _SOUTH:
        height = max(min_size, min(canvas_height - start.y, start.height + dy))
    elif handle in _NORTH:
        height = max(min_size, start.height - dy)
        if clamp_anchored_edges:
            height = min(height, start.bottom)
        y = max(0.0, start.y + (start.height - height))

    return Rect(x, y, width, height)


class _GestureController:
    kind = "gesture"

    def __init__(self, repository: ElementRepository, locks: LockRegistry,
                 grid: GridSnapPolicy, mapper: Optional[CoordinateMapper] = None,
                 slot: Optional[GestureSlot] = None):
        self.repository = repository
        self.locks = locks
        self.grid = grid
        self.mapper = mapper or repository.mapper
        self.slot = slot or GestureSlot()
        self.state = None

    @property
    def active(self) -> bool:
        return self.state is not None

    def _claim(self, slide: Slide, element_id: str):
        """Resolve the target and take the slot, or return None."""
        if self.state is not None or self.slot.busy:
            logger.warning(f"Rejected {self.kind} on {element_id}: another gesture is active")
            return None
        try:
            element = self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"Rejected {self.kind}: {e}")
            return None
        self.slot.acquire(self)
        return element

    def _target(self, slide: Slide):
        """The element under the active gesture, or None if this tick must be dropped."""
        if self.state is None:
            return None
        element = slide.element(self.state.element_id)
        if element is None or self.locks.is_locked(element.id):
            logger.debug(f"Dropping {self.kind} tick: {self.state.element_id} unavailable")
            return None
        return element

    def end(self) -> None:
        """Finish the gesture; the last update stands."""
        self.state = None
        self.slot.release(self)

    def cancel(self) -> None:
        """Discard the gesture record without further mutation."""
        if self.state is not None:
            logger.debug(f"Cancelled {self.kind} on {self.state.element_id}")
        self.end()


class DragController(_GestureController):
    """Idle -> Dragging -> Idle."""
    kind = "drag"

    def begin(self, slide: Slide, event: PointerEvent, element_id: str,
              preview: Rect) -> bool:
        if preview.is_degenerate:
            logger.debug(f"Rejected drag on {element_id}: preview not laid out")
            return False
        element = self._claim(slide, element_id)
        if element is None:
            return False
        self.state = DragState(
            element_id=element_id,
            origin=event,
            start_x=element.x,
            start_y=element.y,
            preview=preview,
        )
        return True

    def update(self, slide: Slide, event: PointerEvent) -> Slide:
        element = self._target(slide)
        if element is None:
            return slide
        state: DragState = self.state
        try:
            dx, dy = self.mapper.delta_to_logical(*event.delta_from(state.origin), state.preview)
        except DegenerateLayout as e:
            logger.debug(f"Dropping drag tick: {e}")
            return slide

        # Bounds use the element's current size, not the size at pointer-down.
        max_x = self.mapper.width - element.width
        max_y = self.mapper.height - element.height
        x = self.grid.snap_within(_clamp(state.start_x + dx, 0, max_x), max_x)
        y = self.grid.snap_within(_clamp(state.start_y + dy, 0, max_y), max_y)
        if (x, y) == (element.x, element.y):
            return slide
        return self.repository.update(slide, element.id, x=x, y=y)


class ResizeController(_GestureController):
    """Idle -> Resizing -> Idle, driven by one of eight handles.

    When ``scale_deltas`` is on and a preview rect was given at ``begin``,
    pointer deltas are converted to logical units like drag deltas are;
    otherwise they are applied as raw device pixels. Like a drag, a resize
    given a preview that has not been laid out is rejected at ``begin``.
    """
    kind = "resize"

    def __init__(self, repository: ElementRepository, locks: LockRegistry,
                 grid: GridSnapPolicy, mapper: Optional[CoordinateMapper] = None,
                 slot: Optional[GestureSlot] = None, min_size: int = MIN_ELEMENT_SIZE,
                 scale_deltas: bool = True, clamp_anchored_edges: bool = True):
        super().__init__(repository, locks, grid, mapper, slot)
        self.min_size = min_size
        self.scale_deltas = scale_deltas
        self.clamp_anchored_edges = clamp_anchored_edges

    def begin(self, slide: Slide, event: PointerEvent, element_id: str,
              handle: Handle, preview: Optional[Rect] = None) -> bool:
        if handle not in HANDLES:
            logger.warning(f"Rejected resize on {element_id}: unknown handle {handle!r}")
            return False
        if preview is not None and preview.is_degenerate:
            logger.debug(f"Rejected resize on {element_id}: preview not laid out")
            return False
        element = self._claim(slide, element_id)
        if element is None:
            return False
        self.state = ResizeState(
            element_id=element_id,
            handle=handle,
            origin=event,
            start=element.rect,
            preview=preview,
        )
        return True

    def update(self, slide: Slide, event: PointerEvent) -> Slide:
        element = self._target(slide)
        if element is None:
            return slide
        state: ResizeState = self.state
        dx, dy = event.delta_from(state.origin)
        if self.scale_deltas and state.preview is not None:
            try:
                dx, dy = self.mapper.delta_to_logical(dx, dy, state.preview)
            except DegenerateLayout as e:
                logger.debug(f"Dropping resize tick: {e}")
                return slide

        rect = resize_rect(
            state.start, state.handle, dx, dy,
            self.mapper.width, self.mapper.height,
            min_size=self.min_size,
            clamp_anchored_edges=self.clamp_anchored_edges,
        )
        width = min(round_half_up(rect.width), self.mapper.width)
        height = min(round_half_up(rect.height), self.mapper.height)
        x = self.grid.snap_within(rect.x, self.mapper.width - width)
        y = self.grid.snap_within(rect.y, self.mapper.height - height)
        if math.isclose(x, element.x) and math.isclose(y, element.y) \
                and width == element.width and height == element.height:
            return slide
        return self.repository.update(slide, element.id, x=x, y=y, width=width, height=height)

"""Logical canvas geometry: coordinate mapping and grid snapping.

Three coordinate spaces meet here:

- device pixels, as reported by pointer events;
- the rendered preview, a device-pixel rectangle of arbitrary size;
- the logical canvas, fixed at 1200x675 units, where element geometry lives.
"""

import math
from dataclasses import dataclass

from .config import CANVAS_HEIGHT, CANVAS_WIDTH, DEFAULT_GRID_PITCH
from .errors import DegenerateLayout


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle anchored at its top-left corner."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class PointerEvent:
    """A pointer position in device pixels."""
    x: float
    y: float

    def delta_from(self, origin: "PointerEvent") -> tuple[float, float]:
        return self.x - origin.x, self.y - origin.y


class CoordinateMapper:
    """Pure conversions between preview device pixels and logical units."""

    def __init__(self, width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT):
        self.width = width
        self.height = height

    def scale(self, preview: Rect) -> tuple[float, float]:
        """Logical units per device pixel along each axis."""
        if preview.is_degenerate:
            raise DegenerateLayout(
                f"Preview {preview.width}x{preview.height} has not been laid out"
            )
        return self.width / preview.width, self.height / preview.height

    def to_logical(self, point: Point, preview: Rect) -> Point:
        sx, sy = self.scale(preview)
        return Point((point.x - preview.x) * sx, (point.y - preview.y) * sy)

    def delta_to_logical(self, dx: float, dy: float, preview: Rect) -> tuple[float, float]:
        sx, sy = self.scale(preview)
        return dx * sx, dy * sy

    def to_display(self, rect: Rect, preview: Rect) -> Rect:
        """Inverse of to_logical, for drawing a logical rect inside the preview."""
        sx, sy = self.scale(preview)
        return Rect(
            x=preview.x + rect.x / sx,
            y=preview.y + rect.y / sy,
            width=rect.width / sx,
            height=rect.height / sy,
        )

    def contains(self, rect: Rect) -> bool:
        """True if rect lies fully inside the logical canvas."""
        return (rect.x >= 0 and rect.y >= 0
                and rect.right <= self.width and rect.bottom <= self.height)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class GridSnapPolicy:
    """Quantizes logical coordinates to multiples of a pitch when enabled."""

    def __init__(self, pitch: int = DEFAULT_GRID_PITCH, enabled: bool = True):
        self.configure(pitch, enabled)

    def configure(self, pitch: int, enabled: bool) -> None:
        if pitch <= 0:
            raise ValueError(f"Grid pitch must be positive, got {pitch}")
        self.pitch = pitch
        self.enabled = enabled

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def snap(self, value: float) -> float:
        if not self.enabled:
            return value
        return round_half_up(value / self.pitch) * self.pitch

    def snap_within(self, value: float, upper: float) -> float:
        """Snap, then keep the result inside [0, upper].

        When snapping pushes past a bound the result steps back to the
        nearest multiple of the pitch that is still in range.
        """
        upper = max(0.0, upper)
        snapped = self.snap(value)
        if snapped > upper:
            snapped = math.floor(upper / self.pitch) * self.pitch if self.enabled else upper
        if snapped < 0:
            snapped = 0
        return snapped

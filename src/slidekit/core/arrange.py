"""Layering, alignment and keyboard-style step transforms."""

import logging
from typing import Literal, Optional

from .canvas import CoordinateMapper, GridSnapPolicy
from .config import MIN_ELEMENT_SIZE
from .elements import ElementRepository
from .errors import InvalidTarget
from .locks import LockRegistry
from .slides import Slide

logger = logging.getLogger("SlideKit.core.arrange")

AlignDirective = Literal["left", "center", "right", "top", "middle", "bottom"]
ALIGN_DIRECTIVES: tuple[str, ...] = ("left", "center", "right", "top", "middle", "bottom")

Direction = Literal["up", "down", "left", "right"]
Dimension = Literal["width", "height"]
DIRECTIONS: tuple[str, ...] = ("up", "down", "left", "right")
DIMENSIONS: tuple[str, ...] = ("width", "height")


class ZOrderManager:
    """Bring-to-front / send-to-back without renumbering other elements."""

    def __init__(self, repository: ElementRepository, locks: LockRegistry):
        self.repository = repository
        self.locks = locks

    def bring_to_front(self, slide: Slide, element_id: str) -> Slide:
        try:
            self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"bring_to_front skipped: {e}")
            return slide
        return self.repository.update(slide, element_id, z_index=slide.max_z + 1)

    def send_to_back(self, slide: Slide, element_id: str) -> Slide:
        try:
            self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"send_to_back skipped: {e}")
            return slide
        return self.repository.update(slide, element_id, z_index=max(1, slide.min_z - 1))


class AlignmentEngine:
    """Moves an element to an edge or the centre line of the canvas."""

    def __init__(self, repository: ElementRepository, locks: LockRegistry,
                 grid: GridSnapPolicy, mapper: Optional[CoordinateMapper] = None):
        self.repository = repository
        self.locks = locks
        self.grid = grid
        self.mapper = mapper or repository.mapper

    def align(self, slide: Slide, element_id: str, directive: AlignDirective) -> Slide:
        if directive not in ALIGN_DIRECTIVES:
            logger.warning(f"Ignoring unknown alignment {directive!r}; expected one of {ALIGN_DIRECTIVES}")
            return slide
        try:
            element = self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"align skipped: {e}")
            return slide

        free_x = self.mapper.width - element.width
        free_y = self.mapper.height - element.height
        if directive == "left":
            return self.repository.update(slide, element_id, x=0)
        if directive == "center":
            return self.repository.update(slide, element_id, x=self.grid.snap(free_x / 2))
        if directive == "right":
            return self.repository.update(slide, element_id, x=free_x)
        if directive == "top":
            return self.repository.update(slide, element_id, y=0)
        if directive == "middle":
            return self.repository.update(slide, element_id, y=self.grid.snap(free_y / 2))
        return self.repository.update(slide, element_id, y=free_y)


class StepTransformer:
    """Arrow-key moves and button-driven size steps."""

    def __init__(self, repository: ElementRepository, locks: LockRegistry,
                 grid: GridSnapPolicy, min_size: int = MIN_ELEMENT_SIZE):
        self.repository = repository
        self.locks = locks
        self.grid = grid
        self.min_size = min_size

    def nudge(self, slide: Slide, element_id: str, direction: Direction,
              amount: Optional[float] = None) -> Slide:
        """Move by ``amount`` logical units (one grid pitch by default)."""
        if direction not in DIRECTIONS:
            logger.warning(f"Ignoring unknown direction {direction!r}")
            return slide
        try:
            element = self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"nudge skipped: {e}")
            return slide
        step = self.grid.pitch if amount is None else amount
        if direction == "up":
            return self.repository.update(slide, element_id, y=max(0, element.y - step))
        if direction == "down":
            return self.repository.update(slide, element_id, y=element.y + step)
        if direction == "left":
            return self.repository.update(slide, element_id, x=max(0, element.x - step))
        return self.repository.update(slide, element_id, x=element.x + step)

    def step_resize(self, slide: Slide, element_id: str, dimension: Dimension,
                    delta: float) -> Slide:
        """Grow or shrink one dimension, keeping the top-left corner fixed."""
        if dimension not in DIMENSIONS:
            logger.warning(f"Ignoring unknown dimension {dimension!r}")
            return slide
        try:
            element = self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"step_resize skipped: {e}")
            return slide
        mapper = self.repository.mapper
        if dimension == "width":
            limit = mapper.width - element.x
            width = max(self.min_size, min(limit, element.width + delta))
            return self.repository.update(slide, element_id, width=width)
        limit = mapper.height - element.y
        height = max(self.min_size, min(limit, element.height + delta))
        return self.repository.update(slide, element_id, height=height)

    def rotate(self, slide: Slide, element_id: str, degrees: float) -> Slide:
        """Set the rotation, wrapping any angle into [-180, 180)."""
        try:
            self.repository.require(slide, element_id, self.locks)
        except InvalidTarget as e:
            logger.debug(f"rotate skipped: {e}")
            return slide
        return self.repository.update(slide, element_id, rotation=normalize_angle(degrees))


def normalize_angle(degrees: float) -> float:
    return (degrees + 180.0) % 360.0 - 180.0

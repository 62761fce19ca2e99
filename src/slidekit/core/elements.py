"""Immutable element CRUD over a slide."""

import logging
from typing import Optional

from pydantic import ValidationError

from .canvas import CoordinateMapper, GridSnapPolicy
from .errors import InvalidTarget
from .locks import LockRegistry
from .slides import MediaElement, MediaType, Slide, new_element_id

logger = logging.getLogger("SlideKit.core.elements")

DUPLICATE_OFFSET = 20
DEFAULT_INSERT_POSITION = 100
DEFAULT_SIZES: dict[str, tuple[int, int]] = {
    "image": (300, 200),
    "video": (400, 225),
}


class ElementRepository:
    """Add, update, remove and duplicate the media elements of a slide.

    Every method takes the latest slide and returns a new one; a slide that
    was handed out is never modified. Unknown ids leave the slide unchanged.
    """

    def __init__(self, grid: GridSnapPolicy, mapper: Optional[CoordinateMapper] = None):
        self.grid = grid
        self.mapper = mapper or CoordinateMapper()

    # ── Lookup ─────────────────────────────────────────────────────────

    @staticmethod
    def find(slide: Slide, element_id: str) -> Optional[MediaElement]:
        return slide.element(element_id)

    @staticmethod
    def require(slide: Slide, element_id: str,
                locks: Optional[LockRegistry] = None) -> MediaElement:
        """Return the element or raise InvalidTarget if it is missing or locked."""
        element = slide.element(element_id)
        if element is None:
            raise InvalidTarget(element_id)
        if locks is not None and locks.is_locked(element_id):
            raise InvalidTarget(element_id, "locked")
        return element

    # ── Mutations ──────────────────────────────────────────────────────

    def add(self, slide: Slide, element: MediaElement) -> Slide:
        if slide.element(element.id) is not None:
            logger.warning(f"Element {element.id} already on slide {slide.id}, not added")
            return slide
        element = self._fit(element)
        return slide.with_elements((*slide.media_elements, element))

    def insert_media(self, slide: Slide, url: str, media_type: MediaType,
                     name: str = "", **options) -> Slide:
        """Place a new image or video at the default insertion point."""
        width, height = DEFAULT_SIZES[media_type]
        fields = {
            "type": media_type,
            "url": url,
            "alt": name,
            "width": width,
            "height": height,
            "x": self.grid.snap(DEFAULT_INSERT_POSITION),
            "y": self.grid.snap(DEFAULT_INSERT_POSITION),
            "z_index": len(slide.media_elements) + 1,
            "autoplay": media_type == "video",
        }
        fields.update(options)
        try:
            element = MediaElement(**fields)
        except ValidationError as e:
            logger.warning(f"Rejected new {media_type} element: {e}")
            return slide
        return self.add(slide, element)

    def update(self, slide: Slide, element_id: str, **changes) -> Slide:
        """Shallow-merge ``changes`` into the element.

        ``x``/``y`` pass through the snap policy. The merged element is
        validated and then clamped into the canvas; invalid changes are
        dropped.
        """
        element = slide.element(element_id)
        if element is None:
            logger.debug(f"update: no element {element_id} on slide {slide.id}")
            return slide
        changes.pop("id", None)
        try:
            merged = MediaElement.model_validate({**element.model_dump(), **changes})
        except ValidationError as e:
            logger.warning(f"Ignoring invalid update for {element_id}: {e}")
            return slide
        merged = self._fit(merged, snap_x="x" in changes, snap_y="y" in changes)
        return self._replace(slide, merged)

    def remove(self, slide: Slide, element_id: str) -> Slide:
        if slide.element(element_id) is None:
            return slide
        return slide.with_elements(el for el in slide.media_elements if el.id != element_id)

    def duplicate(self, slide: Slide, element_id: str) -> Slide:
        """Append a copy of the element, offset down-right; it becomes the last element."""
        element = slide.element(element_id)
        if element is None:
            return slide
        copy = element.model_copy(update={
            "id": new_element_id(),
            "x": self.grid.snap_within(element.x + DUPLICATE_OFFSET,
                                       self.mapper.width - element.width),
            "y": self.grid.snap_within(element.y + DUPLICATE_OFFSET,
                                       self.mapper.height - element.height),
            "z_index": len(slide.media_elements) + 1,
        })
        return slide.with_elements((*slide.media_elements, copy))

    def toggle_fullscreen(self, slide: Slide, element_id: str) -> Slide:
        element = slide.element(element_id)
        if element is None:
            return slide
        return self._replace(slide, element.model_copy(update={"is_fullscreen": not element.is_fullscreen}))

    # ── Helpers ────────────────────────────────────────────────────────

    def _fit(self, element: MediaElement, snap_x: bool = False,
             snap_y: bool = False) -> MediaElement:
        """Shrink and move the element so it lies inside the canvas.

        A coordinate that has to move lands on the grid, like a snapped one.
        """
        width = min(element.width, self.mapper.width)
        height = min(element.height, self.mapper.height)
        max_x = self.mapper.width - width
        max_y = self.mapper.height - height
        x = self.grid.snap_within(element.x, max_x) if snap_x or element.x > max_x else element.x
        y = self.grid.snap_within(element.y, max_y) if snap_y or element.y > max_y else element.y
        if (x, y, width, height) == (element.x, element.y, element.width, element.height):
            return element
        return element.model_copy(update={"x": x, "y": y, "width": width, "height": height})

    @staticmethod
    def _replace(slide: Slide, element: MediaElement) -> Slide:
        return slide.with_elements(
            element if el.id == element.id else el for el in slide.media_elements
        )

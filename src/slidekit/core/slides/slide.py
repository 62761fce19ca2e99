"""Slide data model."""

import uuid
from datetime import datetime, timezone
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .element import MediaElement

SlideType = Literal["text", "mixed", "fullscreen-background"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Slide(BaseModel):
    """A single slide and its ordered media elements.

    The slide is a value: every engine operation returns a new instance.
    ``type`` is ``"text"`` exactly when there are no media elements; the
    validator normalizes it on construction so the two never disagree.
    """
    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: f"slide-{uuid.uuid4().hex[:12]}")
    title: str = "New slide"
    content: str = ""
    hide_title: bool = False
    hide_content: bool = False

    background_color: str = "#1e40af"
    text_color: str = "#ffffff"
    background_image: Optional[str] = None
    background_opacity: float = Field(default=1.0, ge=0.0, le=1.0)

    type: SlideType = "text"
    media_elements: tuple[MediaElement, ...] = ()

    order: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @model_validator(mode="before")
    @classmethod
    def _normalize_type(cls, data):
        if not isinstance(data, dict):
            return data
        has_elements = bool(data.get("media_elements"))
        kind = data.get("type", "text")
        if not has_elements and kind != "text":
            data = {**data, "type": "text"}
        elif has_elements and kind == "text":
            data = {**data, "type": "mixed"}
        return data

    def element(self, element_id: str) -> Optional[MediaElement]:
        for el in self.media_elements:
            if el.id == element_id:
                return el
        return None

    def with_elements(self, elements: Iterable[MediaElement]) -> "Slide":
        """Return a copy holding ``elements``, with the variant kept consistent."""
        elements = tuple(elements)
        if not elements:
            kind = "text"
        elif self.type == "text":
            kind = "mixed"
        else:
            kind = self.type
        return self.model_copy(update={"media_elements": elements, "type": kind})

    def touch(self) -> "Slide":
        return self.model_copy(update={"updated_at": _now()})

    @property
    def max_z(self) -> int:
        return max((el.z_index for el in self.media_elements), default=1)

    @property
    def min_z(self) -> int:
        return min((el.z_index for el in self.media_elements), default=1)

    def to_summary(self) -> list[dict]:
        """Elements sorted front-most first, for listings."""
        return [
            {
                "id": el.id,
                "type": el.type,
                "name": el.alt or el.file_name or "(unnamed)",
                "geometry": [el.x, el.y, el.width, el.height],
                "z_index": el.z_index,
            }
            for el in sorted(self.media_elements, key=lambda e: e.z_index, reverse=True)
        ]

"""Media element data model."""

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..canvas import Rect
from ..config import MIN_ELEMENT_SIZE

MediaType = Literal["image", "video"]


def new_element_id() -> str:
    return f"media-{uuid.uuid4().hex[:12]}"


class MediaElement(BaseModel):
    """An image or video placed on a slide.

    Geometry is in logical canvas units. Instances are frozen; the engine
    replaces them instead of mutating them.
    """
    model_config = {"frozen": True}

    id: str = Field(default_factory=new_element_id)
    type: MediaType = "image"
    url: str
    alt: str = ""

    x: float = Field(default=0.0, ge=0)
    y: float = Field(default=0.0, ge=0)
    width: float = Field(default=300.0, ge=MIN_ELEMENT_SIZE)
    height: float = Field(default=200.0, ge=MIN_ELEMENT_SIZE)

    z_index: int = Field(default=1, ge=1)
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    rotation: float = Field(default=0.0, ge=-180.0, le=180.0)
    border_radius: float = Field(default=8.0, ge=0.0)
    is_fullscreen: bool = False

    # Video playback
    autoplay: bool = False
    muted: bool = True
    loop: bool = True
    controls: bool = False

    # File metadata
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    duration: Optional[float] = None
    is_local_file: bool = False

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

"""Slides package — public API re-exports."""

from .element import MediaElement, MediaType, new_element_id
from .slide import Slide, SlideType

__all__ = [
    "MediaElement",
    "MediaType",
    "Slide",
    "SlideType",
    "new_element_id",
]

"""Editor configuration."""

import logging
import os
from typing import Optional

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger("SlideKit.core.config")

MB = 1024 * 1024

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 675  # 16:9
MIN_ELEMENT_SIZE = 50
DEFAULT_GRID_PITCH = 20


class EditorConfig(BaseModel):
    """Settings for one editing session.

    Canvas dimensions are logical units; every element geometry is expressed
    in them regardless of how large the preview is drawn on screen.
    """
    canvas_width: int = Field(default=CANVAS_WIDTH, gt=0)
    canvas_height: int = Field(default=CANVAS_HEIGHT, gt=0)
    min_element_size: int = Field(default=MIN_ELEMENT_SIZE, gt=0)

    # Grid
    grid_pitch: int = Field(default=DEFAULT_GRID_PITCH, gt=0)
    snap_enabled: bool = True
    show_grid: bool = False
    locked_ids: set[str] = Field(default_factory=set)

    # Resize behaviour
    scale_resize_deltas: bool = True
    clamp_anchored_edges: bool = True

    # Upload pipeline
    max_image_bytes: int = Field(default=10 * MB, gt=0)
    max_video_bytes: int = Field(default=50 * MB, gt=0)
    image_max_width: int = Field(default=1920, gt=0)
    image_quality: int = Field(default=90, ge=10, le=95)

    @model_validator(mode="after")
    def _check_min_size_fits(self) -> "EditorConfig":
        # MediaElement rejects anything smaller, so a lower floor is unreachable.
        if self.min_element_size < MIN_ELEMENT_SIZE:
            raise ValueError(f"min_element_size must be at least {MIN_ELEMENT_SIZE}")
        if self.min_element_size > min(self.canvas_width, self.canvas_height):
            raise ValueError("min_element_size must fit inside the canvas")
        return self

    @classmethod
    def from_env(cls, **overrides) -> "EditorConfig":
        """Build a config from SLIDEKIT_* environment variables plus overrides."""
        values: dict = {}
        pitch = os.environ.get("SLIDEKIT_GRID_PITCH")
        if pitch:
            values["grid_pitch"] = int(pitch)
        snap = os.environ.get("SLIDEKIT_SNAP_ENABLED")
        if snap is not None:
            values["snap_enabled"] = snap.strip().lower() not in ("0", "false", "no", "off")
        max_video = _env_float("SLIDEKIT_MAX_VIDEO_MB")
        if max_video is not None:
            values["max_video_bytes"] = int(max_video * MB)
        values.update(overrides)
        return cls(**values)


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}")
        return None

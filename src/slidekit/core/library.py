"""Media library and upload pipeline.

Images are re-encoded as JPEG and kept as base64 data URLs, which the host
may persist. Videos are too large for that; they are held as ephemeral
handles in the session's :class:`MediaResourceManager` and flagged
``ephemeral`` so persistence can filter them out.
"""

import base64
import io
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from .config import MB, EditorConfig
from .errors import MediaTooLarge, UnsupportedMedia
from .resources import MediaResourceManager
from .slides import MediaType

logger = logging.getLogger("SlideKit.core.library")

DEDUP_SIZE_TOLERANCE = 1000


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MediaLibraryItem(BaseModel):
    """An uploaded asset available for reuse across slides."""
    id: str = Field(default_factory=lambda: f"lib-{uuid.uuid4().hex[:12]}")
    name: str
    type: MediaType
    url: str
    size: int = Field(ge=0)
    mimetype: str = ""
    uploaded_at: datetime = Field(default_factory=_now)
    last_used: datetime = Field(default_factory=_now)
    usage_count: int = 0
    compressed: bool = False
    ephemeral: bool = False


def media_type_for(mimetype: str) -> MediaType:
    if mimetype.startswith("image/"):
        return "image"
    if mimetype.startswith("video/"):
        return "video"
    raise UnsupportedMedia(f"Unsupported file type {mimetype!r}. Use images or videos only.")


def compress_image(data: bytes, max_width: int = 1920, quality: int = 90,
                   max_bytes: Optional[int] = None) -> bytes:
    """Re-encode an image as JPEG on a white background.

    Images wider than ``max_width`` are scaled down, keeping the aspect
    ratio. With ``max_bytes`` the quality is lowered in steps of 10 until the
    result fits; if it still does not fit at quality 10, the image is shrunk
    to 80% once before giving up with MediaTooLarge.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode in ("RGBA", "LA", "P"):
                rgba = img.convert("RGBA")
                canvas = Image.new("RGB", rgba.size, (255, 255, 255))
                canvas.paste(rgba, mask=rgba.getchannel("A"))
            else:
                canvas = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise UnsupportedMedia(f"Could not decode image: {e}") from e

    if canvas.width > max_width:
        height = max(1, round(canvas.height * max_width / canvas.width))
        canvas = canvas.resize((max_width, height), Image.Resampling.LANCZOS)

    encoded = _encode_jpeg(canvas, quality)
    while max_bytes is not None and len(encoded) > max_bytes and quality > 10:
        quality = max(10, quality - 10)
        encoded = _encode_jpeg(canvas, quality)

    if max_bytes is not None and len(encoded) > max_bytes:
        smaller = canvas.resize(
            (max(1, math.floor(canvas.width * 0.8)), max(1, math.floor(canvas.height * 0.8))),
            Image.Resampling.LANCZOS,
        )
        encoded = _encode_jpeg(smaller, 70)
        if len(encoded) > max_bytes:
            raise MediaTooLarge(
                f"Image still too large after compression ({len(encoded) / MB:.1f}MB)"
            )
    return encoded


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue()


class MediaLibrary:
    """Uploaded assets of one editing session."""

    def __init__(self, resources: MediaResourceManager, config: Optional[EditorConfig] = None):
        self.resources = resources
        self.config = config or EditorConfig()
        self._items: dict[str, MediaLibraryItem] = {}

    # ── Upload ─────────────────────────────────────────────────────────

    def add_upload(self, name: str, data: bytes, mimetype: str) -> MediaLibraryItem:
        """Process an uploaded file and register it.

        Raises UnsupportedMedia or MediaTooLarge when the asset is refused.
        """
        kind = media_type_for(mimetype)
        if kind == "image":
            return self._add_image(name, data)
        return self._add_video(name, data, mimetype)

    def _add_image(self, name: str, data: bytes) -> MediaLibraryItem:
        jpeg = compress_image(
            data,
            max_width=self.config.image_max_width,
            quality=self.config.image_quality,
            max_bytes=self.config.max_image_bytes,
        )
        url = "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")
        size = len(url)

        existing = self._find_duplicate(name, size)
        if existing is not None:
            logger.info(f"Reusing library item {existing.id} for {name}")
            return existing

        item = MediaLibraryItem(
            name=name, type="image", url=url, size=size,
            mimetype="image/jpeg", compressed=True,
        )
        self._items[item.id] = item
        logger.info(f"Added image {name} ({len(data)} -> {len(jpeg)} bytes)")
        return item

    def _add_video(self, name: str, data: bytes, mimetype: str) -> MediaLibraryItem:
        limit = self.config.max_video_bytes
        if len(data) > limit:
            raise MediaTooLarge(
                f"Video too large. Maximum {limit / MB:.0f}MB, got {len(data) / MB:.1f}MB"
            )
        item_id = f"lib-{uuid.uuid4().hex[:12]}"
        url = self.resources.create_handle(data, item_id)
        item = MediaLibraryItem(
            id=item_id, name=name, type="video", url=url, size=len(data),
            mimetype=mimetype, ephemeral=True,
        )
        self._items[item.id] = item
        logger.info(f"Added video {name} as ephemeral handle ({len(data)} bytes)")
        return item

    def _find_duplicate(self, name: str, size: int) -> Optional[MediaLibraryItem]:
        for item in self._items.values():
            if (not item.ephemeral and item.name == name
                    and abs(item.size - size) < DEDUP_SIZE_TOLERANCE):
                return item
        return None

    # ── Queries ────────────────────────────────────────────────────────

    def get(self, item_id: str) -> Optional[MediaLibraryItem]:
        return self._items.get(item_id)

    @property
    def items(self) -> list[MediaLibraryItem]:
        return list(self._items.values())

    def persistable(self) -> list[MediaLibraryItem]:
        """Items that survive a reload: everything not backed by a handle."""
        return [item for item in self._items.values() if not item.ephemeral]

    def storage_used(self) -> int:
        return sum(item.size for item in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    # ── Lifecycle ──────────────────────────────────────────────────────

    def restore(self, items: Iterable[MediaLibraryItem]) -> int:
        """Re-register persisted items; ephemeral ones cannot be restored."""
        restored = 0
        for item in items:
            if item.ephemeral:
                logger.warning(f"Skipping ephemeral item {item.id}: its handle did not survive")
                continue
            self._items[item.id] = item
            restored += 1
        return restored

    def record_usage(self, item_id: str) -> Optional[MediaLibraryItem]:
        item = self._items.get(item_id)
        if item is None:
            return None
        item.usage_count += 1
        item.last_used = _now()
        return item

    def remove(self, item_id: str) -> bool:
        item = self._items.pop(item_id, None)
        if item is None:
            return False
        if item.ephemeral:
            self.resources.revoke_handle(item_id)
        logger.info(f"Removed library item {item_id}")
        return True

    def cleanup_least_used(self, fraction: float = 0.2) -> int:
        """Drop the least recently used ``fraction`` of items."""
        ordered = sorted(self._items.values(), key=lambda i: i.last_used)
        victims = ordered[:math.floor(len(ordered) * fraction)]
        for item in victims:
            self.remove(item.id)
        if victims:
            logger.info(f"Removed {len(victims)} least-used item(s) to free space")
        return len(victims)

    def close(self) -> int:
        """Forget ephemeral items and revoke their handles."""
        ephemeral = [item.id for item in self._items.values() if item.ephemeral]
        for item_id in ephemeral:
            self.remove(item_id)
        return len(ephemeral)

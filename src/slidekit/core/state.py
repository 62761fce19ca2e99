"""Editing session: the host-facing façade over the element engine."""

import logging
from typing import Optional

from .arrange import AlignDirective, AlignmentEngine, Dimension, Direction, StepTransformer, ZOrderManager
from .canvas import CoordinateMapper, GridSnapPolicy, PointerEvent, Rect
from .config import EditorConfig
from .elements import ElementRepository
from .gestures import DragController, GestureSlot, Handle, ResizeController
from .library import MediaLibrary, MediaLibraryItem
from .locks import LockRegistry
from .resources import MediaResourceManager
from .slides import MediaType, Slide

logger = logging.getLogger("SlideKit.core.state")


class EditorSession:
    """One slide being edited, with everything the editor needs around it.

    The session always holds the latest ``slide``; every operation reads it,
    commits the new snapshot back and returns it. Call :meth:`close` (or use
    the session as a context manager) when editing ends so ephemeral media
    handles are released.
    """

    def __init__(self, slide: Optional[Slide] = None, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        self.slide = slide or Slide()
        self.selected_id: Optional[str] = None
        self.closed = False

        cfg = self.config
        self.mapper = CoordinateMapper(cfg.canvas_width, cfg.canvas_height)
        self.grid = GridSnapPolicy(cfg.grid_pitch, cfg.snap_enabled)
        self.locks = LockRegistry(cfg.locked_ids)
        self.resources = MediaResourceManager()
        self.library = MediaLibrary(self.resources, cfg)

        self.repository = ElementRepository(self.grid, self.mapper)
        self.z_order = ZOrderManager(self.repository, self.locks)
        self.aligner = AlignmentEngine(self.repository, self.locks, self.grid, self.mapper)
        self.steps = StepTransformer(self.repository, self.locks, self.grid, cfg.min_element_size)

        slot = GestureSlot()
        self.drag = DragController(self.repository, self.locks, self.grid, self.mapper, slot)
        self.resize = ResizeController(
            self.repository, self.locks, self.grid, self.mapper, slot,
            min_size=cfg.min_element_size,
            scale_deltas=cfg.scale_resize_deltas,
            clamp_anchored_edges=cfg.clamp_anchored_edges,
        )

    def _commit(self, slide: Slide) -> Slide:
        self.slide = slide
        return slide

    def load(self, slide: Slide) -> Slide:
        """Switch to another slide, dropping any gesture and stale locks."""
        self.cancel_gesture()
        self.selected_id = None
        self.locks.discard_missing(slide)
        return self._commit(slide)

    def save(self) -> Slide:
        """Stamp ``updated_at`` and return the slide for the host to persist."""
        return self._commit(self.slide.touch())

    # ── Pointer input ──────────────────────────────────────────────────

    @property
    def active_gesture(self) -> Optional[str]:
        if self.drag.active:
            return "drag"
        if self.resize.active:
            return "resize"
        return None

    def pointer_down(self, event: PointerEvent, element_id: str,
                     preview: Optional[Rect] = None, handle: Optional[Handle] = None) -> bool:
        """Start a resize when ``handle`` is given, a drag otherwise."""
        if handle is not None:
            started = self.resize.begin(self.slide, event, element_id, handle, preview)
        elif preview is None:
            logger.warning(f"Drag on {element_id} needs the preview rect")
            started = False
        else:
            started = self.drag.begin(self.slide, event, element_id, preview)
        if started:
            self.selected_id = element_id
        return started

    def pointer_move(self, event: PointerEvent) -> Slide:
        if self.drag.active:
            return self._commit(self.drag.update(self.slide, event))
        if self.resize.active:
            return self._commit(self.resize.update(self.slide, event))
        return self.slide

    def pointer_up(self) -> None:
        self.drag.end()
        self.resize.end()

    def cancel_gesture(self) -> None:
        """Discard whatever gesture is running, e.g. when the pointer leaves the surface."""
        self.drag.cancel()
        self.resize.cancel()

    # ── Elements ───────────────────────────────────────────────────────

    def insert_media(self, url: str, media_type: MediaType, name: str = "", **options) -> Slide:
        before = len(self.slide.media_elements)
        slide = self._commit(self.repository.insert_media(self.slide, url, media_type, name, **options))
        if len(slide.media_elements) > before:
            self.selected_id = slide.media_elements[-1].id
        return slide

    def update_element(self, element_id: str, **changes) -> Slide:
        return self._commit(self.repository.update(self.slide, element_id, **changes))

    def remove_element(self, element_id: str) -> Slide:
        if self.active_gesture and self._gesture_target() == element_id:
            self.cancel_gesture()
        slide = self._commit(self.repository.remove(self.slide, element_id))
        self.locks.unlock(element_id)
        if self.selected_id == element_id:
            self.selected_id = None
        return slide

    def duplicate_element(self, element_id: str) -> Slide:
        before = len(self.slide.media_elements)
        slide = self._commit(self.repository.duplicate(self.slide, element_id))
        if len(slide.media_elements) > before:
            self.selected_id = slide.media_elements[-1].id
        return slide

    def toggle_fullscreen(self, element_id: str) -> Slide:
        return self._commit(self.repository.toggle_fullscreen(self.slide, element_id))

    def bring_to_front(self, element_id: str) -> Slide:
        return self._commit(self.z_order.bring_to_front(self.slide, element_id))

    def send_to_back(self, element_id: str) -> Slide:
        return self._commit(self.z_order.send_to_back(self.slide, element_id))

    def align(self, element_id: str, directive: AlignDirective) -> Slide:
        return self._commit(self.aligner.align(self.slide, element_id, directive))

    def nudge(self, element_id: str, direction: Direction, amount: Optional[float] = None) -> Slide:
        return self._commit(self.steps.nudge(self.slide, element_id, direction, amount))

    def step_resize(self, element_id: str, dimension: Dimension, delta: float) -> Slide:
        return self._commit(self.steps.step_resize(self.slide, element_id, dimension, delta))

    def rotate(self, element_id: str, degrees: float) -> Slide:
        return self._commit(self.steps.rotate(self.slide, element_id, degrees))

    def toggle_lock(self, element_id: str) -> bool:
        if self.slide.element(element_id) is None:
            return False
        return self.locks.toggle(element_id)

    def _gesture_target(self) -> Optional[str]:
        state = self.drag.state or self.resize.state
        return state.element_id if state else None

    # ── Grid ───────────────────────────────────────────────────────────

    def set_grid(self, pitch: Optional[int] = None, enabled: Optional[bool] = None,
                 visible: Optional[bool] = None) -> None:
        self.grid.configure(
            self.grid.pitch if pitch is None else pitch,
            self.grid.enabled if enabled is None else enabled,
        )
        if visible is not None:
            self.config.show_grid = visible

    # ── Media library ──────────────────────────────────────────────────

    def upload(self, name: str, data: bytes, mimetype: str) -> MediaLibraryItem:
        """Run an upload through the library and place it on the slide."""
        if self.closed:
            raise RuntimeError("Editing session is closed")
        item = self.library.add_upload(name, data, mimetype)
        self._place(item)
        return item

    def add_from_library(self, item_id: str) -> Slide:
        item = self.library.get(item_id)
        if item is None:
            logger.debug(f"add_from_library: unknown item {item_id}")
            return self.slide
        return self._place(item)

    def remove_library_item(self, item_id: str) -> bool:
        return self.library.remove(item_id)

    def _place(self, item: MediaLibraryItem) -> Slide:
        self.library.record_usage(item.id)
        return self.insert_media(
            item.url, item.type, item.name,
            file_name=item.name,
            file_size=item.size,
            is_local_file=True,
            muted=True,
            loop=True,
            controls=False,
        )

    # ── Teardown ───────────────────────────────────────────────────────

    def close(self) -> None:
        if self.closed:
            return
        self.cancel_gesture()
        self.library.close()
        released = self.resources.revoke_all()
        self.closed = True
        logger.info(f"Editing session for slide {self.slide.id} closed ({released} stray handle(s))")

    def __enter__(self) -> "EditorSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

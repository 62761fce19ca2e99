"""Element locks."""

import logging
from typing import Iterable

from .slides import Slide

logger = logging.getLogger("SlideKit.core.locks")


class LockRegistry:
    """Ids of elements that gestures, alignment and layering must not touch."""

    def __init__(self, ids: Iterable[str] = ()):
        self._ids: set[str] = set(ids)

    def lock(self, element_id: str) -> None:
        self._ids.add(element_id)

    def unlock(self, element_id: str) -> None:
        self._ids.discard(element_id)

    def toggle(self, element_id: str) -> bool:
        """Flip the lock and return the new state."""
        if element_id in self._ids:
            self._ids.discard(element_id)
            return False
        self._ids.add(element_id)
        return True

    def is_locked(self, element_id: str) -> bool:
        return element_id in self._ids

    def discard_missing(self, slide: Slide) -> int:
        """Forget locks on elements that no longer exist on ``slide``."""
        present = {el.id for el in slide.media_elements}
        stale = self._ids - present
        self._ids -= stale
        if stale:
            logger.debug(f"Dropped {len(stale)} stale lock(s)")
        return len(stale)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

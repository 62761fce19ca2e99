"""Lifetime management for ephemeral media handles.

A handle is a session-scoped URL (``blob:slidekit/<uuid>``) standing in for
binary data held in memory. Large assets such as videos live only as handles
so they never end up inside persisted slide state; the price is that they do
not survive the session. Every handle must be revoked, either one by one or
through :meth:`MediaResourceManager.revoke_all` when the session ends.
"""

import logging
import uuid
from typing import Optional

from .errors import ResourceLeakDetected

logger = logging.getLogger("SlideKit.core.resources")

HANDLE_SCHEME = "blob:slidekit/"


class MediaResourceManager:
    """Owns the ephemeral handles of one editing session.

    At most one live handle exists per owner id.
    """

    def __init__(self):
        self._by_owner: dict[str, str] = {}
        self._by_url: dict[str, str] = {}
        self._data: dict[str, bytes] = {}

    def create_handle(self, data: bytes, owner_id: str) -> str:
        """Register ``data`` under ``owner_id`` and return its handle URL.

        An existing handle for the same owner is revoked first.
        """
        self.revoke_handle(owner_id)
        url = f"{HANDLE_SCHEME}{uuid.uuid4()}"
        self._by_owner[owner_id] = url
        self._by_url[url] = owner_id
        self._data[url] = bytes(data)
        logger.debug(f"Created handle for {owner_id} ({len(data)} bytes)")
        return url

    def revoke_handle(self, owner_id: str) -> bool:
        """Release the handle owned by ``owner_id``. Returns False if there was none."""
        url = self._by_owner.pop(owner_id, None)
        if url is None:
            return False
        self._by_url.pop(url, None)
        self._data.pop(url, None)
        logger.debug(f"Revoked handle for {owner_id}")
        return True

    def revoke_all(self) -> int:
        """Release every live handle. Returns how many were released."""
        count = len(self._by_owner)
        self._by_owner.clear()
        self._by_url.clear()
        self._data.clear()
        if count:
            logger.info(f"Revoked {count} ephemeral handle(s)")
        return count

    def is_managed(self, url: str) -> bool:
        return url in self._by_url

    def owner_of(self, url: str) -> Optional[str]:
        return self._by_url.get(url)

    def handle_for(self, owner_id: str) -> Optional[str]:
        return self._by_owner.get(owner_id)

    def resolve(self, url: str) -> Optional[bytes]:
        """The bytes behind a live handle, or None if it is not managed."""
        return self._data.get(url)

    @property
    def live_count(self) -> int:
        return len(self._by_owner)

    @property
    def live_bytes(self) -> int:
        return sum(len(d) for d in self._data.values())

    def assert_no_leaks(self) -> None:
        if self._by_owner:
            raise ResourceLeakDetected(sorted(self._by_owner))

    def __len__(self) -> int:
        return len(self._by_owner)

    def __contains__(self, owner_id: object) -> bool:
        return owner_id in self._by_owner

    def __enter__(self) -> "MediaResourceManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.revoke_all()

"""Client for the standalone media server (upload, library, storage stats)."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import requests

from ..core.errors import MediaServerError

logger = logging.getLogger("SlideKit.remote.media_server")

DEFAULT_BASE_URL = "http://localhost:3001"
DEFAULT_CAPACITY = 10 * 1024 * 1024 * 1024  # 10GB


@dataclass
class RemoteMediaFile:
    """A file stored on the media server."""
    id: str
    name: str
    type: str  # "image" or "video"
    url: str
    size: int
    filename: str = ""
    mimetype: str = ""
    upload_date: str = ""
    last_used: str = ""
    usage_count: int = 0

    @classmethod
    def from_dict(cls, data: dict, base_url: str) -> "RemoteMediaFile":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            type=data.get("type", ""),
            url=_absolute(base_url, data.get("url", "")),
            size=int(data.get("size", 0)),
            filename=data.get("filename", ""),
            mimetype=data.get("mimetype", ""),
            upload_date=data.get("uploadDate", ""),
            last_used=data.get("lastUsed", ""),
            usage_count=int(data.get("usageCount", 0)),
        )


@dataclass
class StorageStats:
    used: int = 0
    available: int = DEFAULT_CAPACITY
    total: int = DEFAULT_CAPACITY
    percentage: float = 0.0
    file_count: int = 0
    extra: dict = field(default_factory=dict)


def _absolute(base_url: str, url: str) -> str:
    if url.startswith("http"):
        return url
    return f"{base_url}{url}"


class MediaServerClient:
    """Thin wrapper over the media server's REST API.

    Upload and removal raise MediaServerError. Listing, stats and cleanup are
    advisory and fall back to empty/default values when the server is down.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 15):
        base = base_url or os.environ.get("SLIDEKIT_MEDIA_SERVER", DEFAULT_BASE_URL)
        self.base_url = base.rstrip("/")
        self.api_url = f"{self.base_url}/api"
        self.timeout = timeout

    def file_url(self, path: str) -> str:
        return _absolute(self.base_url, path)

    def upload(self, name: str, data: bytes, mimetype: str) -> RemoteMediaFile:
        try:
            resp = requests.post(
                f"{self.api_url}/upload",
                files={"file": (name, data, mimetype)},
                timeout=max(self.timeout, 120),
            )
        except requests.RequestException as e:
            raise MediaServerError(f"Upload of {name} failed: {e}") from e
        payload = self._json(resp)
        if not resp.ok:
            raise MediaServerError(payload.get("error") or f"Upload failed ({resp.status_code})")
        if not payload.get("success"):
            raise MediaServerError("Upload rejected by media server")
        logger.info(f"Uploaded {name} to media server")
        return RemoteMediaFile.from_dict(payload["file"], self.base_url)

    def list_media(self) -> list[RemoteMediaFile]:
        try:
            resp = requests.get(f"{self.api_url}/media", timeout=self.timeout)
            resp.raise_for_status()
            files = resp.json().get("files", [])
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error loading media library: {e}")
            return []
        return [RemoteMediaFile.from_dict(f, self.base_url) for f in files]

    def remove_media(self, media_id: str) -> None:
        try:
            resp = requests.delete(f"{self.api_url}/media/{media_id}", timeout=self.timeout)
        except requests.RequestException as e:
            raise MediaServerError(f"Removing {media_id} failed: {e}") from e
        if not resp.ok:
            payload = self._json(resp)
            raise MediaServerError(payload.get("error") or f"Removing {media_id} failed ({resp.status_code})")

    def touch(self, media_id: str) -> bool:
        """Tell the server the file was used again (bumps its usage counter)."""
        try:
            resp = requests.get(f"{self.api_url}/media/{media_id}", timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Error updating usage for {media_id}: {e}")
            return False
        if not resp.ok:
            logger.warning(f"Error updating usage for {media_id} ({resp.status_code})")
        return resp.ok

    def storage_stats(self) -> StorageStats:
        try:
            resp = requests.get(f"{self.api_url}/storage/stats", timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching storage stats: {e}")
            return StorageStats()
        known = {"used", "available", "total", "percentage", "fileCount"}
        return StorageStats(
            used=int(data.get("used", 0)),
            available=int(data.get("available", DEFAULT_CAPACITY)),
            total=int(data.get("total", DEFAULT_CAPACITY)),
            percentage=float(data.get("percentage", 0.0)),
            file_count=int(data.get("fileCount", 0)),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def cleanup(self) -> int:
        """Ask the server to purge old files; returns how many were removed."""
        try:
            resp = requests.post(f"{self.api_url}/storage/cleanup", timeout=self.timeout)
            resp.raise_for_status()
            return int(resp.json().get("removed", 0))
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error during storage cleanup: {e}")
            return 0

    def is_available(self) -> bool:
        try:
            return requests.get(f"{self.api_url}/storage/stats", timeout=5).ok
        except requests.RequestException:
            return False

    @staticmethod
    def _json(resp) -> dict:
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

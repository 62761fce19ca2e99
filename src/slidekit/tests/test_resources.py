"""Tests for slidekit.core.resources — MediaResourceManager."""

import pytest

from slidekit.core.errors import ResourceLeakDetected
from slidekit.core.resources import HANDLE_SCHEME, MediaResourceManager


class TestHandles:
    def test_create_handle(self):
        rm = MediaResourceManager()
        url = rm.create_handle(b"video-bytes", "lib-1")
        assert url.startswith(HANDLE_SCHEME)
        assert rm.is_managed(url)
        assert rm.owner_of(url) == "lib-1"
        assert rm.handle_for("lib-1") == url
        assert rm.resolve(url) == b"video-bytes"
        assert "lib-1" in rm
        assert rm.live_count == 1
        assert rm.live_bytes == len(b"video-bytes")

    def test_one_handle_per_owner(self):
        rm = MediaResourceManager()
        first = rm.create_handle(b"a", "lib-1")
        second = rm.create_handle(b"bb", "lib-1")
        assert first != second
        assert not rm.is_managed(first)
        assert rm.resolve(first) is None
        assert len(rm) == 1
        assert rm.live_bytes == 2

    def test_revoke_handle(self):
        rm = MediaResourceManager()
        url = rm.create_handle(b"a", "lib-1")
        assert rm.revoke_handle("lib-1") is True
        assert not rm.is_managed(url)
        assert rm.revoke_handle("lib-1") is False

    def test_unmanaged_urls(self):
        rm = MediaResourceManager()
        assert not rm.is_managed("https://example.com/a.mp4")
        assert rm.owner_of("blob:slidekit/unknown") is None
        assert rm.resolve("blob:slidekit/unknown") is None


class TestTeardown:
    def test_revoke_all_leaves_nothing(self):
        rm = MediaResourceManager()
        urls = [rm.create_handle(b"x" * i, f"lib-{i}") for i in range(1, 6)]
        assert rm.revoke_all() == 5
        assert rm.live_count == 0
        assert rm.live_bytes == 0
        assert not any(rm.is_managed(u) for u in urls)
        rm.assert_no_leaks()

    def test_revoke_all_on_empty(self):
        assert MediaResourceManager().revoke_all() == 0

    def test_assert_no_leaks_reports_owners(self):
        rm = MediaResourceManager()
        rm.create_handle(b"a", "lib-b")
        rm.create_handle(b"a", "lib-a")
        with pytest.raises(ResourceLeakDetected) as exc:
            rm.assert_no_leaks()
        assert exc.value.owners == ["lib-a", "lib-b"]

    def test_context_manager_revokes(self):
        with MediaResourceManager() as rm:
            rm.create_handle(b"a", "lib-1")
        assert rm.live_count == 0

    def test_context_manager_revokes_on_error(self):
        rm = MediaResourceManager()
        with pytest.raises(RuntimeError):
            with rm:
                rm.create_handle(b"a", "lib-1")
                raise RuntimeError("boom")
        assert rm.live_count == 0

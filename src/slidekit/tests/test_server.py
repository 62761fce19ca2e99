"""Tests for slidekit_mcp.server — MCP tools over an editing session."""

import io
import json

import pytest
from PIL import Image
from unittest.mock import patch

import slidekit_mcp.server as server
from slidekit.core.slides import MediaElement, Slide
from slidekit.core.state import EditorSession


@pytest.fixture(autouse=True)
def session(monkeypatch):
    slide = Slide(media_elements=[
        MediaElement(id="photo", url="https://example.com/a.jpg",
                     x=100, y=100, width=300, height=200),
    ])
    s = EditorSession(slide)
    monkeypatch.setattr(server, "_session", s)
    yield s
    server._session.close()


# ── Slide tools ─────────────────────────────────────────────────────────

class TestSlideTools:
    def test_get_slide(self):
        data = json.loads(server.get_slide(None))
        assert data["type"] == "mixed"
        assert data["media_elements"][0]["id"] == "photo"

    def test_load_slide(self, session):
        slide = Slide(title="Yields").model_dump_json()
        data = json.loads(server.load_slide(None, slide))
        assert data["status"] == "loaded"
        assert data["slide_type"] == "text"
        assert session.slide.title == "Yields"

    def test_load_slide_invalid(self):
        assert server.load_slide(None, '{"order": -1}').startswith("Error")


# ── Element tools ───────────────────────────────────────────────────────

class TestElementTools:
    def test_unknown_element(self):
        assert server.bring_to_front(None, "ghost").startswith("Error")

    def test_align_center(self, session):
        server.align_element(None, "photo", "center")
        assert session.slide.element("photo").x == 460

    def test_align_rejects_unknown(self):
        assert server.align_element(None, "photo", "diagonal").startswith("Error")

    def test_update_only_given_fields(self, session):
        data = json.loads(server.update_element(None, "photo", x=147, opacity=0.5))
        assert data["status"] == "updated"
        el = session.slide.element("photo")
        assert (el.x, el.y, el.opacity) == (140, 100, 0.5)

    def test_update_nothing(self):
        assert server.update_element(None, "photo") == "No changes specified."

    def test_duplicate_and_remove(self, session):
        server.duplicate_element(None, "photo")
        assert len(session.slide.media_elements) == 2
        server.remove_element(None, "photo")
        assert session.slide.element("photo") is None

    def test_nudge_and_step_resize(self, session):
        server.nudge_element(None, "photo", "right")
        server.resize_element_step(None, "photo", "height", -50)
        el = session.slide.element("photo")
        assert (el.x, el.height) == (120, 150)


# ── Gesture tools ───────────────────────────────────────────────────────

class TestGestureTools:
    def test_drag_scaled_by_preview(self, session):
        server.drag_element(None, "photo", 20, 10, preview_width=600, preview_height=337.5)
        el = session.slide.element("photo")
        assert (el.x, el.y) == (140, 120)
        assert session.active_gesture is None

    def test_resize(self, session):
        server.resize_element(None, "photo", "se", -280, 10)
        el = session.slide.element("photo")
        assert (el.width, el.height) == (50, 210)

    def test_resize_bad_handle(self):
        assert server.resize_element(None, "photo", "middle", 1, 1).startswith("Error")

    def test_drag_locked(self, session):
        assert json.loads(server.toggle_lock(None, "photo"))["locked"] is True
        assert server.drag_element(None, "photo", 40, 0).startswith("Error")
        assert session.active_gesture is None


# ── Media tools ─────────────────────────────────────────────────────────

class TestMediaTools:
    def test_upload_image(self, session, tmp_path):
        path = tmp_path / "field.png"
        Image.new("RGB", (32, 32), (0, 128, 0)).save(path, format="PNG")
        data = json.loads(server.upload_media(None, str(path)))
        assert data["status"] == "uploaded"
        assert data["type"] == "image"
        assert len(session.slide.media_elements) == 2

    def test_upload_video_listed_as_ephemeral(self, session, tmp_path):
        path = tmp_path / "tour.mp4"
        path.write_bytes(b"\x00" * 128)
        server.upload_media(None, str(path))
        library = json.loads(server.list_library(None))
        assert library["live_handles"] == 1
        assert library["items"][0]["ephemeral"] is True

    def test_upload_unsupported(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        assert server.upload_media(None, str(path)).startswith("Error")

    def test_upload_missing_file(self, tmp_path):
        assert server.upload_media(None, str(tmp_path / "nope.png")).startswith("Error")

    def test_remove_library_item(self, session, tmp_path):
        path = tmp_path / "tour.mp4"
        path.write_bytes(b"\x00" * 128)
        item_id = json.loads(server.upload_media(None, str(path)))["library_item"]
        server.remove_library_item(None, item_id)
        assert session.resources.live_count == 0
        assert server.remove_library_item(None, item_id).startswith("Error")

    @patch("slidekit_mcp.server.get_media_server")
    def test_media_server_down(self, mock_get_server):
        mock_get_server.return_value.is_available.return_value = False
        mock_get_server.return_value.base_url = "http://localhost:3001"
        assert json.loads(server.media_server_status(None))["available"] is False


# ── Settings ────────────────────────────────────────────────────────────

class TestSettings:
    def test_set_grid(self, session):
        data = json.loads(server.set_grid(None, pitch=40, snap=True, visible=True))
        assert data == {"pitch": 40, "snap": True, "visible": True}

    def test_set_grid_invalid(self):
        assert server.set_grid(None, pitch=0).startswith("Error")

    def test_close_session_releases_handles(self, session, tmp_path):
        path = tmp_path / "tour.mp4"
        path.write_bytes(b"\x00" * 128)
        server.upload_media(None, str(path))
        server.close_session(None)
        assert session.closed
        session.resources.assert_no_leaks()
        assert server._session is not session

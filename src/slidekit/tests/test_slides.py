"""Tests for slidekit.core.slides — MediaElement and Slide models."""

import pytest
from pydantic import ValidationError

from slidekit.core.canvas import Rect
from slidekit.core.slides import MediaElement, Slide, new_element_id


def _el(**kw):
    kw.setdefault("url", "https://example.com/a.jpg")
    return MediaElement(**kw)


# ── MediaElement ────────────────────────────────────────────────────────

class TestMediaElement:
    def test_defaults(self):
        el = _el()
        assert el.id.startswith("media-")
        assert el.type == "image"
        assert (el.width, el.height) == (300, 200)
        assert el.z_index == 1
        assert el.opacity == 1.0
        assert el.border_radius == 8
        assert el.muted and el.loop
        assert not el.autoplay and not el.controls

    def test_ids_are_unique(self):
        assert new_element_id() != new_element_id()

    def test_rect(self):
        assert _el(x=10, y=20, width=100, height=60).rect == Rect(10, 20, 100, 60)

    def test_below_min_size_rejected(self):
        with pytest.raises(ValidationError):
            _el(width=49)
        with pytest.raises(ValidationError):
            _el(height=10)

    def test_negative_position_rejected(self):
        with pytest.raises(ValidationError):
            _el(x=-1)

    def test_opacity_range(self):
        with pytest.raises(ValidationError):
            _el(opacity=1.5)

    def test_z_index_starts_at_one(self):
        with pytest.raises(ValidationError):
            _el(z_index=0)

    def test_frozen(self):
        el = _el()
        with pytest.raises(ValidationError):
            el.x = 40


# ── Slide ───────────────────────────────────────────────────────────────

class TestSlide:
    def test_defaults(self):
        s = Slide()
        assert s.id.startswith("slide-")
        assert s.type == "text"
        assert s.media_elements == ()
        assert s.background_color == "#1e40af"

    def test_type_normalized_when_empty(self):
        assert Slide(type="mixed").type == "text"
        assert Slide(type="fullscreen-background").type == "text"

    def test_type_normalized_when_elements_present(self):
        s = Slide(type="text", media_elements=[_el()])
        assert s.type == "mixed"

    def test_fullscreen_background_kept_with_elements(self):
        s = Slide(type="fullscreen-background", media_elements=[_el()])
        assert s.type == "fullscreen-background"

    def test_with_elements_keeps_variant_consistent(self):
        s = Slide()
        filled = s.with_elements([_el()])
        assert filled.type == "mixed"
        emptied = filled.with_elements([])
        assert emptied.type == "text"
        assert s.media_elements == ()

    def test_element_lookup(self):
        el = _el()
        s = Slide(media_elements=[el])
        assert s.element(el.id) == el
        assert s.element("nope") is None

    def test_z_bounds(self):
        s = Slide(media_elements=[_el(z_index=3), _el(z_index=7)])
        assert s.max_z == 7
        assert s.min_z == 3
        assert Slide().max_z == 1

    def test_touch_updates_timestamp(self):
        s = Slide()
        touched = s.touch()
        assert touched.updated_at >= s.updated_at
        assert touched.created_at == s.created_at

    def test_summary_front_most_first(self):
        back = _el(z_index=1, alt="back")
        front = _el(z_index=5, alt="front")
        summary = Slide(media_elements=[back, front]).to_summary()
        assert [e["name"] for e in summary] == ["front", "back"]
        assert summary[0]["geometry"] == [0.0, 0.0, 300.0, 200.0]

    def test_json_round_trip(self):
        s = Slide(title="Harvest", media_elements=[_el(x=100, y=100)])
        again = Slide.model_validate_json(s.model_dump_json())
        assert again == s

    def test_frozen(self):
        s = Slide()
        with pytest.raises(ValidationError):
            s.title = "changed"

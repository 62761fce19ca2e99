"""Tests for slidekit.core.arrange — z-order, alignment, step transforms."""

import pytest

from slidekit.core.arrange import AlignmentEngine, StepTransformer, ZOrderManager, normalize_angle
from slidekit.core.canvas import CoordinateMapper, GridSnapPolicy
from slidekit.core.elements import ElementRepository
from slidekit.core.locks import LockRegistry
from slidekit.core.slides import MediaElement, Slide


def _el(id, **kw):
    kw.setdefault("url", f"https://example.com/{id}.jpg")
    return MediaElement(id=id, **kw)


@pytest.fixture
def grid():
    return GridSnapPolicy(20)


@pytest.fixture
def locks():
    return LockRegistry()


@pytest.fixture
def repo(grid):
    return ElementRepository(grid, CoordinateMapper())


@pytest.fixture
def slide():
    return Slide(media_elements=[
        _el("a", x=100, y=100, width=300, height=200, z_index=1),
        _el("b", x=200, y=200, width=300, height=200, z_index=2),
        _el("c", x=300, y=300, width=300, height=200, z_index=3),
    ])


# ── ZOrderManager ───────────────────────────────────────────────────────

class TestZOrder:
    def test_bring_to_front(self, repo, locks, slide):
        s = ZOrderManager(repo, locks).bring_to_front(slide, "a")
        assert s.element("a").z_index == 4
        assert s.element("b").z_index == 2
        assert s.element("c").z_index == 3

    def test_send_to_back_floors_at_one(self, repo, locks, slide):
        s = ZOrderManager(repo, locks).send_to_back(slide, "c")
        assert s.element("c").z_index == 1
        assert s.element("a").z_index == 1

    def test_send_to_back_below_minimum(self, repo, locks, slide):
        z = ZOrderManager(repo, locks)
        s = z.bring_to_front(slide, "a")  # a=4, b=2, c=3
        s = z.send_to_back(s, "c")
        assert s.element("c").z_index == 1
        assert s.element("c").z_index < s.element("b").z_index

    def test_single_element_round_trip(self, repo, locks):
        s = Slide(media_elements=[_el("only", z_index=1)])
        z = ZOrderManager(repo, locks)
        s = z.bring_to_front(s, "only")
        assert s.element("only").z_index == 2
        s = z.send_to_back(s, "only")
        assert s.element("only").z_index == 1

    def test_locked_is_noop(self, repo, slide):
        z = ZOrderManager(repo, LockRegistry(["a"]))
        assert z.bring_to_front(slide, "a") is slide
        assert z.send_to_back(slide, "a") is slide

    def test_missing_is_noop(self, repo, locks, slide):
        assert ZOrderManager(repo, locks).bring_to_front(slide, "ghost") is slide


# ── AlignmentEngine ─────────────────────────────────────────────────────

class TestAlignment:
    @pytest.fixture
    def engine(self, repo, locks, grid):
        return AlignmentEngine(repo, locks, grid)

    def test_left_and_top(self, engine, slide):
        s = engine.align(slide, "b", "left")
        s = engine.align(s, "b", "top")
        el = s.element("b")
        assert (el.x, el.y) == (0, 0)

    def test_center_snaps_half_up(self, engine, slide):
        assert engine.align(slide, "a", "center").element("a").x == 460

    def test_middle(self, engine, slide):
        # (675 - 200) / 2 = 237.5 -> 240
        assert engine.align(slide, "a", "middle").element("a").y == 240

    def test_right_stays_inside(self, engine, slide):
        el = engine.align(slide, "a", "right").element("a")
        assert el.x == 900
        assert el.x + el.width <= 1200

    def test_bottom_stays_inside_and_on_grid(self, engine, slide):
        el = engine.align(slide, "a", "bottom").element("a")
        assert el.y == 460
        assert el.y + el.height <= 675

    def test_right_without_snap_is_flush(self, repo, locks):
        grid = GridSnapPolicy(20, enabled=False)
        engine = AlignmentEngine(ElementRepository(grid), locks, grid)
        s = Slide(media_elements=[_el("a", x=100, y=100, width=300, height=200)])
        el = engine.align(s, "a", "bottom").element("a")
        assert el.y == 475

    def test_unknown_directive_is_noop(self, engine, slide):
        assert engine.align(slide, "a", "diagonal") is slide

    def test_locked_is_noop(self, repo, grid, slide):
        engine = AlignmentEngine(repo, LockRegistry(["a"]), grid)
        assert engine.align(slide, "a", "left") is slide


# ── StepTransformer ─────────────────────────────────────────────────────

class TestSteps:
    @pytest.fixture
    def steps(self, repo, locks, grid):
        return StepTransformer(repo, locks, grid)

    def test_nudge_defaults_to_pitch(self, steps, slide):
        s = steps.nudge(slide, "a", "right")
        s = steps.nudge(s, "a", "down")
        el = s.element("a")
        assert (el.x, el.y) == (120, 120)

    def test_nudge_stops_at_edges(self, steps, slide):
        s = steps.nudge(slide, "a", "left", 500)
        assert s.element("a").x == 0
        s = steps.nudge(s, "a", "down", 5000)
        assert s.element("a").y == 460

    def test_nudge_unknown_direction_is_noop(self, steps, slide):
        assert steps.nudge(slide, "a", "sideways") is slide

    def test_step_resize_clamps(self, steps, slide):
        s = steps.step_resize(slide, "a", "width", 10000)
        assert s.element("a").width == 1100
        s = steps.step_resize(s, "a", "height", -10000)
        assert s.element("a").height == 50

    def test_step_resize_unknown_dimension_is_noop(self, steps, slide):
        assert steps.step_resize(slide, "a", "depth", 10) is slide

    def test_rotate_wraps(self, steps, slide):
        assert steps.rotate(slide, "a", 270).element("a").rotation == -90
        assert steps.rotate(slide, "a", 45).element("a").rotation == 45

    def test_locked_is_noop(self, repo, grid, slide):
        steps = StepTransformer(repo, LockRegistry(["a"]), grid)
        assert steps.nudge(slide, "a", "up") is slide
        assert steps.step_resize(slide, "a", "width", 20) is slide
        assert steps.rotate(slide, "a", 90) is slide


class TestNormalizeAngle:
    def test_values(self):
        assert normalize_angle(0) == 0
        assert normalize_angle(180) == -180
        assert normalize_angle(-190) == 170
        assert normalize_angle(720) == 0

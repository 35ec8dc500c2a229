"""Tests for the viewport transform."""

import pytest

from issuetree import Point, ViewportTransform
from issuetree.config import ViewportConfig


def _approx(point: Point):
    return (pytest.approx(point.x), pytest.approx(point.y))


class TestCoordinateMapping:

    def test_identity_by_default(self, viewport):
        assert viewport.screen_to_graph(Point(120, 80)) == Point(120, 80)

    def test_pan_and_zoom(self, viewport):
        viewport.pan_by(Point(100, 50))
        viewport.zoom_to(2.0, Point(100, 50))
        # Anchor at the pan origin keeps pan unchanged
        assert viewport.pan == Point(100, 50)
        assert viewport.screen_to_graph(Point(300, 250)) == Point(100, 100)
        assert viewport.graph_to_screen(Point(100, 100)) == Point(300, 250)

    def test_round_trip(self, viewport):
        viewport.pan_by(Point(-37.5, 12.25))
        viewport.zoom_by(0.3, Point(400, 300))
        screen = Point(123.4, 567.8)
        back = viewport.graph_to_screen(viewport.screen_to_graph(screen))
        assert (back.x, back.y) == _approx(screen)


class TestZoom:

    @pytest.mark.parametrize("delta", [0.5, -0.25, 0.9])
    def test_anchor_stays_fixed(self, viewport, delta):
        viewport.pan_by(Point(40, -20))
        anchor = Point(250, 180)
        before = viewport.screen_to_graph(anchor)
        viewport.zoom_by(delta, anchor)
        after = viewport.screen_to_graph(anchor)
        assert (after.x, after.y) == _approx(before)

    def test_zoom_is_additive(self, viewport):
        viewport.zoom_by(0.25, Point(0, 0))
        viewport.zoom_by(0.25, Point(0, 0))
        assert viewport.zoom == pytest.approx(1.5)

    def test_clamped_to_max(self, viewport):
        state = viewport.zoom_to(10, Point(0, 0))
        assert state.zoom == 2.0

    def test_clamped_to_min(self, viewport):
        viewport.zoom_by(-5, Point(0, 0))
        assert viewport.zoom == 0.5

    def test_zoom_past_bound_is_noop(self, viewport):
        viewport.zoom_to(2.0, Point(10, 10))
        before = viewport.state
        after = viewport.zoom_by(0.5, Point(300, 300))
        assert after == before

    def test_custom_bounds(self):
        viewport = ViewportTransform(ViewportConfig(zoom_min=0.1, zoom_max=4.0))
        viewport.zoom_to(3.5, Point(0, 0))
        assert viewport.zoom == 3.5

    def test_min_above_max_rejected(self):
        with pytest.raises(ValueError):
            ViewportConfig(zoom_min=3, zoom_max=2)


class TestPanFitReset:

    def test_pan_accumulates(self, viewport):
        viewport.pan_by(Point(10, 5))
        viewport.pan_by(Point(-4, 5))
        assert viewport.state.model_dump() == {"zoom": 1.0, "pan_x": 6, "pan_y": 10}

    def test_fit_bounds(self, viewport):
        state = viewport.fit_bounds((0, 0, 1000, 500), 1080, 580, padding=40)
        assert state.zoom == pytest.approx(1.0)
        assert (state.pan_x, state.pan_y) == (pytest.approx(40), pytest.approx(40))

    def test_fit_bounds_clamps(self, viewport):
        state = viewport.fit_bounds((0, 0, 10, 10), 1000, 1000)
        assert state.zoom == 2.0
        # Bounds center lands on screen center
        center = viewport.graph_to_screen(Point(5, 5))
        assert (center.x, center.y) == _approx(Point(500, 500))

    def test_reset(self, viewport):
        viewport.pan_by(Point(10, 10))
        viewport.zoom_by(0.5, Point(3, 3))
        state = viewport.reset()
        assert (state.zoom, state.pan_x, state.pan_y) == (1.0, 0, 0)

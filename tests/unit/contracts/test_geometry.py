"""Contract tests for the geometry kernel."""

import math

import pytest

from mindcanvas.geometry import (
    Bounds,
    Point,
    Rect,
    angle,
    bounds_center,
    bounds_of,
    bounds_rect,
    clamp,
    distance,
    ease_in_out_cubic,
    expand_bounds,
    lerp,
    merge_bounds,
    point_in_rect,
    rect_bounds,
    rect_center,
    rects_intersect,
)


class TestPointFunctions:
    def test_distance(self):
        assert distance(Point(0, 0), Point(3, 4)) == 5

    def test_angle(self):
        assert angle(Point(0, 0), Point(1, 0)) == 0
        assert angle(Point(0, 0), Point(0, 1)) == pytest.approx(math.pi / 2)


class TestRects:
    def test_point_in_rect_edges_inclusive(self):
        r = Rect(0, 0, 10, 10)
        assert point_in_rect(Point(5, 5), r)
        assert point_in_rect(Point(10, 10), r)
        assert not point_in_rect(Point(10.1, 5), r)

    def test_intersect(self):
        assert rects_intersect(Rect(0, 0, 10, 10), Rect(5, 5, 10, 10))
        assert rects_intersect(Rect(0, 0, 10, 10), Rect(10, 0, 5, 5))  # touching
        assert not rects_intersect(Rect(0, 0, 10, 10), Rect(11, 0, 5, 5))
        assert not rects_intersect(Rect(0, 0, 10, 10), Rect(0, 20, 5, 5))

    def test_rect_center(self):
        assert rect_center(Rect(10, 20, 30, 40)) == Point(25, 40)

    def test_rect_bounds_round_trip(self):
        r = Rect(1, 2, 3, 4)
        assert rect_bounds(r) == Bounds(1, 2, 4, 6)
        assert bounds_rect(rect_bounds(r)) == r


class TestBounds:
    def test_size(self):
        b = Bounds(0, 0, 1000, 500)
        assert (b.width, b.height) == (1000, 500)

    def test_merge(self):
        assert merge_bounds(Bounds(0, 0, 1, 1), Bounds(-1, 2, 3, 4)) == Bounds(-1, 0, 3, 4)

    def test_expand(self):
        assert expand_bounds(Bounds(0, 0, 10, 10), 5) == Bounds(-5, -5, 15, 15)

    def test_center(self):
        assert bounds_center(Bounds(0, 0, 1000, 500)) == Point(500, 250)

    def test_bounds_of(self):
        assert bounds_of([]) is None
        assert bounds_of([Rect(0, 0, 1, 1), Rect(5, 5, 1, 1)]) == Bounds(0, 0, 6, 6)


class TestScalars:
    def test_clamp(self):
        assert clamp(5, 0, 1) == 1
        assert clamp(-5, 0, 1) == 0
        assert clamp(0.5, 0, 1) == 0.5

    def test_lerp(self):
        assert lerp(10, 20, 0.25) == 12.5

    def test_ease_in_out_cubic(self):
        assert ease_in_out_cubic(0) == 0
        assert ease_in_out_cubic(0.5) == pytest.approx(0.5)
        assert ease_in_out_cubic(1) == 1
        samples = [ease_in_out_cubic(i / 20) for i in range(21)]
        assert samples == sorted(samples)

"""
Geometry kernel for mindcanvas.

Pure value types and functions shared by the node tree, the viewport and the
render pass. No state lives here.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounds in document space."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def angle(p1: Point, p2: Point) -> float:
    """Angle of the vector p1 -> p2 in radians."""
    return math.atan2(p2.y - p1.y, p2.x - p1.x)


def point_in_rect(point: Point, rect: Rect) -> bool:
    """Edges count as inside."""
    return rect.x <= point.x <= rect.right and rect.y <= point.y <= rect.bottom


def rects_intersect(a: Rect, b: Rect) -> bool:
    """True if the rects overlap or touch."""
    return not (
        a.right < b.x
        or b.right < a.x
        or a.bottom < b.y
        or b.bottom < a.y
    )


def rect_bounds(rect: Rect) -> Bounds:
    return Bounds(rect.x, rect.y, rect.right, rect.bottom)


def bounds_rect(bounds: Bounds) -> Rect:
    return Rect(bounds.min_x, bounds.min_y, bounds.width, bounds.height)


def merge_bounds(a: Bounds, b: Bounds) -> Bounds:
    return Bounds(
        min(a.min_x, b.min_x),
        min(a.min_y, b.min_y),
        max(a.max_x, b.max_x),
        max(a.max_y, b.max_y),
    )


def expand_bounds(bounds: Bounds, padding: float) -> Bounds:
    return Bounds(
        bounds.min_x - padding,
        bounds.min_y - padding,
        bounds.max_x + padding,
        bounds.max_y + padding,
    )


def bounds_center(bounds: Bounds) -> Point:
    return Point((bounds.min_x + bounds.max_x) / 2, (bounds.min_y + bounds.max_y) / 2)


def rect_center(rect: Rect) -> Point:
    return Point(rect.x + rect.width / 2, rect.y + rect.height / 2)


def bounds_of(rects: Iterable[Rect]) -> Bounds | None:
    """Union of all rects, or None when there are none."""
    result: Bounds | None = None
    for rect in rects:
        b = rect_bounds(rect)
        result = b if result is None else merge_bounds(result, b)
    return result


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2

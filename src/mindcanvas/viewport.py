"""
Viewport: the camera between document space and surface space.

    surface = document * scale + (x, y)
    document = (surface - (x, y)) / scale

scale is always kept inside [min_scale, max_scale]. Animated transitions are
chains of steps on a Scheduler; starting a new transition (or any direct
interaction) cancels the one in flight.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from .config import ViewportConfig, get_config
from .events import EventBus, Events
from .geometry import Bounds, Point, bounds_center, clamp, ease_in_out_cubic, lerp
from .scheduling import Scheduler

if TYPE_CHECKING:
    from .dom import MindNode

logger = logging.getLogger(__name__)


class Surface(Protocol):
    """Anything with a drawable size, in surface units."""
    width: float
    height: float


@dataclass
class ViewportTransform:
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0


def _point_pair(value: Point | Mapping[str, float] | tuple[float, float]) -> tuple[float, float]:
    """Accept a Point, an {"x", "y"} record or an (x, y) pair."""
    if isinstance(value, Point):
        return value.x, value.y
    if isinstance(value, Mapping):
        return value.get("x", 0), value.get("y", 0)
    x, y = value
    return x, y


def _resolve_options(options: ViewportConfig | Mapping[str, Any] | None) -> ViewportConfig:
    config = dataclasses.replace(get_config().viewport)
    if options is None:
        return config
    if isinstance(options, ViewportConfig):
        return dataclasses.replace(options)
    for key, value in options.items():
        if key == "initial_position":
            config.initial_x, config.initial_y = _point_pair(value)
        elif hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown viewport option: {key!r}")
    return config


class Viewport:
    def __init__(
        self,
        surface: Surface,
        events: EventBus,
        options: ViewportConfig | Mapping[str, Any] | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        animation_duration: float | None = None,
        pan_duration: float | None = None,
    ):
        opts = _resolve_options(options)
        if opts.min_scale <= 0:
            raise ValueError(f"min_scale must be > 0, got {opts.min_scale}")
        if opts.max_scale < opts.min_scale:
            raise ValueError(f"max_scale ({opts.max_scale}) must be >= min_scale ({opts.min_scale})")

        self.surface = surface
        self.events = events
        self.min_scale = opts.min_scale
        self.max_scale = opts.max_scale
        self.zoom_speed = opts.zoom_speed
        self.scheduler = scheduler
        self.clock = clock
        self.animation_duration = (
            get_config().animation.zoom_duration if animation_duration is None else animation_duration
        )
        self.pan_duration = get_config().animation.pan_duration if pan_duration is None else pan_duration

        self._transform = ViewportTransform(
            x=opts.initial_x,
            y=opts.initial_y,
            scale=clamp(opts.initial_scale, self.min_scale, self.max_scale),
        )

        self._dragging = False
        self._drag_start = Point(0, 0)
        self._drag_origin = Point(0, 0)

        self._animation_handle: Any = None
        self._animation_token: object | None = None

    # -- transform ---------------------------------------------------------

    def get_transform(self) -> ViewportTransform:
        return dataclasses.replace(self._transform)

    @property
    def scale(self) -> float:
        return self._transform.scale

    def set_transform(
        self,
        x: float | None = None,
        y: float | None = None,
        scale: float | None = None,
        animate: bool = False,
        duration: float | None = None,
    ) -> None:
        """
        Update the given fields; scale is clamped. An animated change takes
        duration seconds (animation_duration when None).
        """
        target = ViewportTransform(
            x=self._transform.x if x is None else x,
            y=self._transform.y if y is None else y,
            scale=self._transform.scale if scale is None else clamp(scale, self.min_scale, self.max_scale),
        )
        if animate and self.scheduler is not None:
            self._animate_to(target, self.scheduler, self.animation_duration if duration is None else duration)
        else:
            self.cancel_animation()
            self._apply(target)

    def _apply(self, transform: ViewportTransform) -> None:
        self._transform = transform
        self.events.emit(Events.ZOOM_CHANGE, transform.scale)
        self.events.emit(Events.PAN_CHANGE, Point(transform.x, transform.y))

    def _emit_pan(self) -> None:
        self.events.emit(Events.PAN_CHANGE, Point(self._transform.x, self._transform.y))

    # -- animation ---------------------------------------------------------

    @property
    def animating(self) -> bool:
        return self._animation_token is not None

    def cancel_animation(self) -> None:
        """Stop the in-flight transition; none of its steps run afterwards."""
        if self._animation_handle is not None and self.scheduler is not None:
            self.scheduler.cancel(self._animation_handle)
        self._animation_handle = None
        self._animation_token = None

    def _animate_to(self, target: ViewportTransform, scheduler: Scheduler, duration: float) -> None:
        self.cancel_animation()

        start = dataclasses.replace(self._transform)
        start_time = self.clock()
        token = object()
        self._animation_token = token

        def step() -> None:
            # a step that was already dispatched when its transition got canceled
            if self._animation_token is not token:
                return
            self._animation_handle = None
            elapsed = self.clock() - start_time
            progress = clamp(elapsed / duration, 0.0, 1.0) if duration > 0 else 1.0
            t = ease_in_out_cubic(progress)
            self._apply(ViewportTransform(
                x=lerp(start.x, target.x, t),
                y=lerp(start.y, target.y, t),
                scale=lerp(start.scale, target.scale, t),
            ))
            if progress < 1:
                self._animation_handle = scheduler.schedule(step)
            else:
                self._animation_token = None

        step()

    # -- zoom and pan ------------------------------------------------------

    def zoom(self, delta: float, center: Point | None = None) -> None:
        """
        Multiply scale by (1 + delta * zoom_speed). With a surface-space
        center, the document point under it stays under it.
        """
        old_scale = self._transform.scale
        new_scale = clamp(old_scale * (1 + delta * self.zoom_speed), self.min_scale, self.max_scale)
        if new_scale == old_scale:
            logger.debug("Zoom ignored, scale already at limit %s", old_scale)
            return

        self.cancel_animation()
        if center is not None:
            ratio = new_scale / old_scale
            self._transform.x = center.x - (center.x - self._transform.x) * ratio
            self._transform.y = center.y - (center.y - self._transform.y) * ratio
        self._transform.scale = new_scale

        self.events.emit(Events.ZOOM_CHANGE, new_scale)
        if center is not None:
            self._emit_pan()

    def zoom_in(self, center: Point | None = None) -> None:
        self.zoom(1, center)

    def zoom_out(self, center: Point | None = None) -> None:
        self.zoom(-1, center)

    def reset_zoom(self, animate: bool = True) -> None:
        self.set_transform(scale=1, animate=animate)

    def pan(self, dx: float, dy: float) -> None:
        self.cancel_animation()
        self._transform.x += dx
        self._transform.y += dy
        self._emit_pan()

    def center_to(self, point: Point, animate: bool = True) -> None:
        """Put a document point at the middle of the surface (a pan, timed by pan_duration)."""
        scale = self._transform.scale
        self.set_transform(
            x=self.surface.width / 2 - point.x * scale,
            y=self.surface.height / 2 - point.y * scale,
            animate=animate,
            duration=self.pan_duration,
        )

    def fit_bounds(self, bounds: Bounds, padding: float = 50, animate: bool = True) -> None:
        """
        Largest clamped scale at which bounds plus padding fit the surface,
        centered on the bounds' center. A zero-size axis does not constrain
        the scale.
        """
        available_w = self.surface.width - padding * 2
        available_h = self.surface.height - padding * 2
        scale_x = available_w / bounds.width if bounds.width > 0 else float("inf")
        scale_y = available_h / bounds.height if bounds.height > 0 else float("inf")
        scale = clamp(min(scale_x, scale_y), self.min_scale, self.max_scale)

        center = bounds_center(bounds)
        self.set_transform(
            x=self.surface.width / 2 - center.x * scale,
            y=self.surface.height / 2 - center.y * scale,
            scale=scale,
            animate=animate,
        )

    def fit_tree(self, root: MindNode, padding: float = 50, animate: bool = True) -> bool:
        """Fit the visible part of a tree. False if it has no geometry yet."""
        bounds = root.tree_bounds()
        if bounds is None or (bounds.width <= 0 and bounds.height <= 0):
            return False
        self.fit_bounds(bounds, padding, animate)
        return True

    # -- mapping -----------------------------------------------------------

    def get_visible_bounds(self) -> Bounds:
        """The surface rectangle mapped back into document space."""
        top_left = self.screen_to_world(Point(0, 0))
        bottom_right = self.screen_to_world(Point(self.surface.width, self.surface.height))
        return Bounds(top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    def screen_to_world(self, point: Point) -> Point:
        t = self._transform
        return Point((point.x - t.x) / t.scale, (point.y - t.y) / t.scale)

    def world_to_screen(self, point: Point) -> Point:
        t = self._transform
        return Point(point.x * t.scale + t.x, point.y * t.scale + t.y)

    # -- drag --------------------------------------------------------------

    def start_drag(self, point: Point) -> None:
        self.cancel_animation()
        self._dragging = True
        self._drag_start = point
        self._drag_origin = Point(self._transform.x, self._transform.y)

    def drag(self, point: Point) -> None:
        """Translation = translation at drag start + total pointer offset."""
        if not self._dragging:
            return
        self._transform.x = self._drag_origin.x + (point.x - self._drag_start.x)
        self._transform.y = self._drag_origin.y + (point.y - self._drag_start.y)
        self._emit_pan()

    def end_drag(self) -> None:
        self._dragging = False

    @property
    def dragging(self) -> bool:
        return self._dragging

    def destroy(self) -> None:
        self.cancel_animation()
        self._dragging = False

"""
Render pass.

The core never paints by itself. A Canvas exposes drawing primitives ("draw a
shape at rect R with style S"); the Renderer walks the visible part of a node
tree, culls against the viewport's visible bounds and feeds the canvas.
SvgCanvas is a canvas that writes an SVG document.
"""

from __future__ import annotations

import html
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .config import get_config
from .events import EventBus, Events
from .geometry import Point, Rect, bounds_rect, rect_center, rects_intersect
from .styles import DEFAULT_CONNECTION_STYLE, font_string, normalize_padding

if TYPE_CHECKING:
    from .dom import MindNode
    from .viewport import Viewport, ViewportTransform

logger = logging.getLogger(__name__)


class SurfaceUnavailableError(RuntimeError):
    """No drawing target to render onto."""


class Canvas(ABC):
    """Drawing primitives, in document space once begin() has run."""

    @property
    @abstractmethod
    def width(self) -> float: ...

    @property
    @abstractmethod
    def height(self) -> float: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def begin(self, transform: ViewportTransform) -> None:
        """Start a frame under the given camera transform."""
        ...

    @abstractmethod
    def end(self) -> None: ...

    @abstractmethod
    def draw_shape(self, rect: Rect, style: Mapping[str, Any]) -> None: ...

    @abstractmethod
    def draw_text(self, rect: Rect, text: str, style: Mapping[str, Any]) -> None: ...

    @abstractmethod
    def draw_connector(self, start: Point, end: Point, style: Mapping[str, Any]) -> None: ...

    @abstractmethod
    def draw_selection(self, rect: Rect) -> None: ...


class Renderer:
    def __init__(self, canvas: Canvas | None, events: EventBus | None = None):
        if canvas is None:
            raise SurfaceUnavailableError("Renderer needs a canvas to draw on")
        self.canvas = canvas
        self.events = events

    def render(self, root: MindNode, viewport: Viewport) -> int:
        """Draw one frame. Returns the number of nodes drawn."""
        if self.events is not None:
            self.events.emit(Events.RENDER_BEFORE, root)

        visible = bounds_rect(viewport.get_visible_bounds())
        self.canvas.clear()
        self.canvas.begin(viewport.get_transform())
        self._render_connections(root, visible)
        drawn = self._render_nodes(root, visible)
        self.canvas.end()

        logger.debug("Rendered %d nodes", drawn)
        if self.events is not None:
            self.events.emit(Events.RENDER_AFTER, drawn)
        return drawn

    def _render_connections(self, root: MindNode, visible: Rect) -> None:
        for node in root.walk_visible():
            for child in node.visible_children:
                if not (rects_intersect(node.rect, visible) or rects_intersect(child.rect, visible)):
                    continue
                start = Point(node.rect.right, node.center_point.y)
                end = Point(child.x, child.center_point.y)
                self.canvas.draw_connector(start, end, DEFAULT_CONNECTION_STYLE)

    def _render_nodes(self, root: MindNode, visible: Rect) -> int:
        padding = get_config().render.selection_padding
        drawn = 0
        for node in root.walk_visible():
            # culled nodes may still have children on screen
            if not rects_intersect(node.rect, visible):
                continue
            self.canvas.draw_shape(node.rect, node.style)
            self.canvas.draw_text(node.rect, node.plain_text(), node.style)
            if node.selected:
                r = node.rect
                self.canvas.draw_selection(
                    Rect(r.x - padding, r.y - padding, r.width + padding * 2, r.height + padding * 2)
                )
            drawn += 1
        return drawn


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _attr(value: Any) -> str:
    """Text safe to place inside a double-quoted attribute."""
    return html.escape(str(value), quote=True)


def _number(style: Mapping[str, Any], key: str, default: float) -> float:
    value = style.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric style %s=%r", key, value)
        return float(default)


def _content_box(rect: Rect, style: Mapping[str, Any]) -> Rect:
    """rect minus the style's padding."""
    try:
        top, right, bottom, left = (float(v) for v in normalize_padding(style.get("padding", 0)))
    except (TypeError, ValueError):
        logger.debug("Ignoring malformed padding %r", style.get("padding"))
        return rect
    return Rect(rect.x + left, rect.y + top, rect.width - left - right, rect.height - top - bottom)


_DASHES = {"dashed": "6 4", "dotted": "2 3"}


class SvgCanvas(Canvas):
    """Accumulates SVG elements; to_svg() returns the document."""

    def __init__(self, width: float, height: float, background: str | None = None):
        self._width = width
        self._height = height
        self.background = background
        self.elements: list[str] = []
        self._open_groups = 0

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    def clear(self) -> None:
        self.elements = []
        self._open_groups = 0

    def begin(self, transform: ViewportTransform) -> None:
        self.elements.append(
            f'<g transform="translate({_fmt(transform.x)} {_fmt(transform.y)}) scale({_fmt(transform.scale)})">'
        )
        self._open_groups += 1

    def end(self) -> None:
        if self._open_groups:
            self.elements.append("</g>")
            self._open_groups -= 1

    def _stroke_attrs(self, color: Any, width: float, line_style: Any) -> str:
        attrs = f'stroke="{_attr(color)}" stroke-width="{_fmt(width)}"'
        if isinstance(line_style, str) and line_style in _DASHES:
            attrs += f' stroke-dasharray="{_DASHES[line_style]}"'
        return attrs

    def draw_shape(self, rect: Rect, style: Mapping[str, Any]) -> None:
        paint = (
            f'fill="{_attr(style.get("backgroundColor", "#ffffff"))}" '
            + self._stroke_attrs(style.get("borderColor", "#000"), _number(style, "borderWidth", 0),
                                 style.get("borderStyle", "solid"))
            + f' opacity="{_fmt(_number(style, "opacity", 1))}"'
        )
        shape = style.get("shape", "rectangle")
        x, y, w, h = rect.x, rect.y, rect.width, rect.height
        c = rect_center(rect)

        if shape in ("circle", "ellipse"):
            rx, ry = (min(w, h) / 2,) * 2 if shape == "circle" else (w / 2, h / 2)
            element = f'<ellipse cx="{_fmt(c.x)}" cy="{_fmt(c.y)}" rx="{_fmt(rx)}" ry="{_fmt(ry)}" {paint}/>'
        elif shape == "diamond":
            points = [(c.x, y), (x + w, c.y), (c.x, y + h), (x, c.y)]
            element = f'<polygon points="{self._points(points)}" {paint}/>'
        elif shape == "hexagon":
            points = [
                (c.x + w / 2 * math.cos(math.pi / 3 * i), c.y + h / 2 * math.sin(math.pi / 3 * i))
                for i in range(6)
            ]
            element = f'<polygon points="{self._points(points)}" {paint}/>'
        else:
            radius = _number(style, "borderRadius", 0) if shape == "rounded" else 0
            element = (
                f'<rect x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(w)}" height="{_fmt(h)}" '
                f'rx="{_fmt(radius)}" {paint}/>'
            )
        self.elements.append(element)

    @staticmethod
    def _points(points: list[tuple[float, float]]) -> str:
        return " ".join(f"{_fmt(px)},{_fmt(py)}" for px, py in points)

    def draw_text(self, rect: Rect, text: str, style: Mapping[str, Any]) -> None:
        box = _content_box(rect, style)
        align = style.get("textAlign", "center")
        if align == "left":
            anchor, x = "start", box.x
        elif align == "right":
            anchor, x = "end", box.right
        else:
            anchor, x = "middle", box.x + box.width / 2
        y = box.y + box.height / 2
        self.elements.append(
            f'<text x="{_fmt(x)}" y="{_fmt(y)}" text-anchor="{anchor}" dominant-baseline="middle" '
            f'fill="{_attr(style.get("textColor", "#000"))}" style="font: {_attr(font_string(style))}">'
            f"{html.escape(text)}</text>"
        )

    def draw_connector(self, start: Point, end: Point, style: Mapping[str, Any]) -> None:
        stroke = self._stroke_attrs(style.get("strokeColor", "#94a3b8"), _number(style, "strokeWidth", 2),
                                    style.get("strokeStyle", "solid"))
        if style.get("type", "bezier") == "bezier":
            offset = min(get_config().render.connection_bezier_offset, abs(end.x - start.x) / 2)
            d = (
                f"M {_fmt(start.x)} {_fmt(start.y)} "
                f"C {_fmt(start.x + offset)} {_fmt(start.y)} {_fmt(end.x - offset)} {_fmt(end.y)} "
                f"{_fmt(end.x)} {_fmt(end.y)}"
            )
        else:
            d = f"M {_fmt(start.x)} {_fmt(start.y)} L {_fmt(end.x)} {_fmt(end.y)}"
        self.elements.append(f'<path d="{d}" fill="none" {stroke}/>')

    def draw_selection(self, rect: Rect) -> None:
        self.elements.append(
            f'<rect x="{_fmt(rect.x)}" y="{_fmt(rect.y)}" width="{_fmt(rect.width)}" '
            f'height="{_fmt(rect.height)}" fill="none" stroke="#3b82f6" stroke-width="2" '
            f'stroke-dasharray="6 4"/>'
        )

    def to_svg(self) -> str:
        head = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{_fmt(self._width)}" '
            f'height="{_fmt(self._height)}" viewBox="0 0 {_fmt(self._width)} {_fmt(self._height)}">'
        )
        body = list(self.elements)
        if self.background:
            body.insert(0, f'<rect width="100%" height="100%" fill="{_attr(self.background)}"/>')
        return "\n".join([head, *body, "</svg>"]) + "\n"

"""
Node styles.

A style is a plain dict keyed by the field names of the serialized node
record (backgroundColor, borderWidth, ...). Nodes always hold a fully
resolved style: defaults merged with whatever partial was supplied.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

Style = dict[str, Any]

DEFAULT_FONT_FAMILY = '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif'

DEFAULT_NODE_STYLE: Style = {
    "backgroundColor": "#ffffff",
    "borderColor": "#3b82f6",
    "textColor": "#1f2937",
    "borderWidth": 2,
    "borderStyle": "solid",
    "borderRadius": 4,
    "shape": "rounded",
    "width": "auto",
    "height": "auto",
    "padding": [12, 20, 12, 20],
    "fontSize": 14,
    "fontFamily": DEFAULT_FONT_FAMILY,
    "fontWeight": "400",
    "fontStyle": "normal",
    "textAlign": "center",
    "textDecoration": "none",
    "opacity": 1,
}

DEFAULT_ROOT_NODE_STYLE: Style = {
    **DEFAULT_NODE_STYLE,
    "backgroundColor": "#3b82f6",
    "textColor": "#ffffff",
    "borderColor": "#2563eb",
    "fontSize": 18,
    "fontWeight": "600",
    "padding": [16, 32, 16, 32],
}

DEFAULT_CONNECTION_STYLE: Style = {
    "strokeColor": "#94a3b8",
    "strokeWidth": 2,
    "strokeStyle": "solid",
    "type": "bezier",
    "animated": False,
    "arrow": False,
    "arrowSize": 8,
}

SHAPES = ("rectangle", "rounded", "circle", "diamond", "hexagon", "ellipse")
BORDER_STYLES = ("solid", "dashed", "dotted", "double")


def merge_style(*partials: Mapping[str, Any] | None) -> Style:
    """
    Resolve a style: default node style, then each partial in order.

    Keys whose value is None are skipped, so a partial can never unset a
    resolved field. The result shares no mutable values with the inputs.
    """
    result = copy.deepcopy(DEFAULT_NODE_STYLE)
    for partial in partials:
        if not partial:
            continue
        for key, value in partial.items():
            if value is not None:
                result[key] = copy.deepcopy(value)
    return result


def default_style(is_root: bool) -> Style:
    return copy.deepcopy(DEFAULT_ROOT_NODE_STYLE if is_root else DEFAULT_NODE_STYLE)


def normalize_padding(padding: Any) -> tuple[float, float, float, float]:
    """Expand a padding value to (top, right, bottom, left)."""
    if isinstance(padding, (int, float)):
        return (padding, padding, padding, padding)
    values = tuple(padding)
    if len(values) == 2:
        return (values[0], values[1], values[0], values[1])
    if len(values) == 4:
        return values  # type: ignore[return-value]
    raise ValueError(f"Padding must be a number, 2 values or 4 values, got {padding!r}")


def font_string(style: Mapping[str, Any]) -> str:
    """CSS-like font shorthand: style weight size family."""
    return (
        f"{style.get('fontStyle', 'normal')} {style.get('fontWeight', '400')} "
        f"{style.get('fontSize', 14)}px {style.get('fontFamily', DEFAULT_FONT_FAMILY)}"
    )

"""
CLI interface for mindcanvas.

Inspects and renders mind map snapshots: a JSON file holding one node record
(with nested children) as produced by MindNode.to_json().
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

from .dom import MindNode
from .events import EventBus
from .render import Renderer, SvgCanvas
from .viewport import Viewport


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mindcanvas",
        description="Inspect and render mind map snapshots",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    outline = sub.add_parser("outline", help="Print the tree as an indented outline")
    outline.add_argument("file", help="JSON snapshot file")
    outline.add_argument(
        "--all",
        "-a",
        action="store_true",
        dest="show_all",
        help="Include collapsed and hidden nodes",
    )

    stats = sub.add_parser("stats", help="Print node count, depth, leaves and tags")
    stats.add_argument("file", help="JSON snapshot file")

    for name, help_text in (
        ("fit", "Print the camera transform that fits the tree on a surface"),
        ("render", "Render the tree to SVG"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("file", help="JSON snapshot file")
        cmd.add_argument(
            "--surface",
            "-s",
            type=str,
            default="800:600",
            help="Surface size as WIDTH:HEIGHT (default: 800:600)",
        )
        cmd.add_argument(
            "--padding",
            "-p",
            type=float,
            default=50,
            help="Padding around the tree when fitting (default: 50)",
        )

    render = sub.choices["render"]
    render.add_argument(
        "--fit",
        action="store_true",
        help="Fit the tree to the surface before rendering",
    )
    render.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write SVG to this file instead of stdout",
    )
    render.add_argument(
        "--background",
        type=str,
        default="#ffffff",
        help="Background color (default: #ffffff)",
    )

    return parser.parse_args(args)


def parse_shape(shape_str: str) -> tuple[float, float]:
    """
    Parse a surface size like '800:600' into (width, height).
    """
    parts = shape_str.split(":")
    if len(parts) != 2:
        raise ValueError(
            f"Invalid surface format: {shape_str}. Use WIDTH:HEIGHT (e.g., 800:600)"
        )

    try:
        width = float(parts[0])
        height = float(parts[1])
    except ValueError as e:
        raise ValueError(
            f"Invalid surface format: {shape_str}. Both WIDTH and HEIGHT must be numbers"
        ) from e

    if width <= 0:
        raise ValueError(f"Width must be > 0, got {parts[0]}")
    if height <= 0:
        raise ValueError(f"Height must be > 0, got {parts[1]}")

    return width, height


def load_tree(filepath: str) -> MindNode:
    """Read a JSON snapshot into a node tree."""
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("snapshot must be a JSON object holding the root node")
    check_record(data)
    return MindNode.from_json(data)


def check_record(record: object, path: str = "root") -> None:
    """Raise ValueError if a node record (or any nested child) is malformed."""
    if not isinstance(record, dict):
        raise ValueError(f"{path}: node record must be an object, got {type(record).__name__}")

    text = record.get("text")
    if text is not None and not isinstance(text, str):
        if not (isinstance(text, list) and all(_is_run(run) for run in text)):
            raise ValueError(f"{path}.text: must be a string or a list of text runs")
    tags = record.get("tags")
    if tags is not None and not (isinstance(tags, list) and all(isinstance(t, str) for t in tags)):
        raise ValueError(f"{path}.tags: must be a list of strings")
    for key in ("style", "data"):
        if record.get(key) is not None and not isinstance(record[key], dict):
            raise ValueError(f"{path}.{key}: must be an object")
    for key in ("x", "y", "width", "height"):
        value = record.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise ValueError(f"{path}.{key}: must be a number")

    children = record.get("children")
    if children is None:
        return
    if not isinstance(children, list):
        raise ValueError(f"{path}.children: must be a list")
    for i, child in enumerate(children):
        check_record(child, f"{path}.children[{i}]")


def _is_run(run: object) -> bool:
    return isinstance(run, dict) and isinstance(run.get("text", ""), str)


def format_outline(root: MindNode, show_all: bool = False) -> str:
    """Indented outline, two spaces per level. Collapsed nodes get a '+' marker."""
    lines = []

    def visit(node: MindNode, depth: int) -> None:
        if node.hidden and not show_all:
            return
        marker = "+" if node.children and not node.expanded else "-"
        tags = f"  [{', '.join(node.tags)}]" if node.tags else ""
        lines.append(f"{'  ' * depth}{marker} {node.plain_text()}{tags}")
        children = node.children if show_all else node.visible_children
        for child in children:
            visit(child, depth + 1)

    visit(root, 0)
    return "\n".join(lines)


def format_stats(root: MindNode) -> str:
    nodes = list(root.walk())
    tags = Counter(tag for node in nodes for tag in node.tags)
    lines = [
        f"nodes: {root.count()}",
        f"depth: {root.max_depth()}",
        f"leaves: {sum(1 for node in nodes if node.is_leaf)}",
        f"collapsed: {sum(1 for node in nodes if node.children and not node.expanded)}",
        f"hidden: {sum(1 for node in nodes if node.hidden)}",
    ]
    if tags:
        lines.append("tags: " + ", ".join(f"{tag} ({n})" for tag, n in sorted(tags.items())))
    return "\n".join(lines)


def fit_viewport(root: MindNode, width: float, height: float, padding: float) -> Viewport | None:
    """Viewport fitted to the tree's layout bounds, or None without geometry."""
    viewport = Viewport(SvgCanvas(width, height), EventBus())
    if not viewport.fit_tree(root, padding, animate=False):
        return None
    return viewport


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        root = load_tree(parsed.file)
    except FileNotFoundError:
        print(f"Error: File not found: {parsed.file}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error reading snapshot: {e}", file=sys.stderr)
        return 1

    if parsed.command == "outline":
        print(format_outline(root, parsed.show_all))
        return 0

    if parsed.command == "stats":
        print(format_stats(root))
        return 0

    try:
        width, height = parse_shape(parsed.surface)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed.command == "fit":
        viewport = fit_viewport(root, width, height, parsed.padding)
        if viewport is None:
            print("Error: tree has no layout geometry to fit", file=sys.stderr)
            return 1
        t = viewport.get_transform()
        print(f"x: {t.x:g}\ny: {t.y:g}\nscale: {t.scale:g}")
        return 0

    # render
    canvas = SvgCanvas(width, height, background=parsed.background)
    viewport = Viewport(canvas, EventBus())
    if parsed.fit and not viewport.fit_tree(root, parsed.padding, animate=False):
        print("Error: tree has no layout geometry to fit", file=sys.stderr)
        return 1
    Renderer(canvas).render(root, viewport)
    svg = canvas.to_svg()

    if parsed.output:
        Path(parsed.output).write_text(svg, encoding="utf-8")
    else:
        sys.stdout.write(svg)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Configuration for mindcanvas.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/mindcanvas/config.toml) if exists
3. Environment variables (MINDCANVAS_*) override file
4. Explicit constructor options override everything
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ViewportConfig:
    """Camera limits and starting transform."""
    min_scale: float = 0.1
    max_scale: float = 5.0
    zoom_speed: float = 0.1  # scale factor per unit of zoom delta
    initial_scale: float = 1.0
    initial_x: float = 0.0
    initial_y: float = 0.0


@dataclass
class AnimationConfig:
    """Durations are in seconds."""
    zoom_duration: float = 0.15
    pan_duration: float = 0.2
    frame_interval_ms: int = 16


@dataclass
class HistoryConfig:
    max_stack_size: int = 100
    merge_window: float = 1.0  # seconds within which text edits coalesce


@dataclass
class RenderConfig:
    selection_padding: float = 4.0
    connection_bezier_offset: float = 50.0


@dataclass
class Config:
    """Root config with all settings."""
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    render: RenderConfig = field(default_factory=RenderConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "mindcanvas" / "config.toml"
    return Path.home() / ".config" / "mindcanvas" / "config.toml"


def load_config(path: Path | None = None) -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = path or get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(Config(), data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            logger.warning("Ignoring config file %s: %s", path, e)

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config, coercing each value to the field's type."""
    for section_field in fields(config):
        table = data.get(section_field.name)
        if not isinstance(table, dict):
            continue
        section = getattr(config, section_field.name)
        for attr in fields(section):
            if attr.name in table:
                conv = type(getattr(section, attr.name))
                setattr(section, attr.name, conv(table[attr.name]))
    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "MINDCANVAS_MIN_SCALE": ("viewport", "min_scale", float),
        "MINDCANVAS_MAX_SCALE": ("viewport", "max_scale", float),
        "MINDCANVAS_ZOOM_SPEED": ("viewport", "zoom_speed", float),
        "MINDCANVAS_INITIAL_SCALE": ("viewport", "initial_scale", float),
        "MINDCANVAS_ZOOM_DURATION": ("animation", "zoom_duration", float),
        "MINDCANVAS_PAN_DURATION": ("animation", "pan_duration", float),
        "MINDCANVAS_FRAME_INTERVAL_MS": ("animation", "frame_interval_ms", int),
        "MINDCANVAS_MAX_STACK_SIZE": ("history", "max_stack_size", int),
        "MINDCANVAS_MERGE_WINDOW": ("history", "merge_window", float),
        "MINDCANVAS_SELECTION_PADDING": ("render", "selection_padding", float),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError):
                setattr(getattr(config, section), attr, conv(val))

    return config


# Module-level config instance, loaded on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None

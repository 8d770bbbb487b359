"""Dock configuration."""

from car_dock.config.loader import ConfigLoader, DockConfig

__all__ = [
    "ConfigLoader",
    "DockConfig",
]

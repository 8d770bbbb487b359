"""Car dock.

Slot manager for the fixed-size app dock of a car launcher: pinned and
usage-driven items, least-recently-used replacement and fallback filling of
empty slots.

Example:
    >>> from car_dock import DockConfig, DockEngine
    >>> engine = DockEngine(DockConfig(capacity=4), catalog, tasks, catalog)
    >>> await engine.initialize()
"""

from car_dock.channel import DockListChannel
from car_dock.config import ConfigLoader, DockConfig
from car_dock.controller import DockController, DockInterface
from car_dock.engine import DockEngine, InsufficientCandidatesError
from car_dock.events import (
    DockEvent,
    DockEventDispatcher,
    EnabledState,
    PackageAction,
    PackageChange,
    PackageChangeHandler,
    TaskStackListener,
)
from car_dock.resolver import CandidateResolver, Exclusions
from car_dock.types import (
    AppMetadata,
    ComponentName,
    DockItem,
    DockItemType,
    RunningTask,
)

__all__ = [
    # Types
    "AppMetadata",
    "ComponentName",
    "DockItem",
    "DockItemType",
    "RunningTask",
    # Config
    "ConfigLoader",
    "DockConfig",
    # Core
    "CandidateResolver",
    "Exclusions",
    "DockEngine",
    "InsufficientCandidatesError",
    "DockListChannel",
    # Events
    "DockController",
    "DockInterface",
    "DockEvent",
    "DockEventDispatcher",
    "EnabledState",
    "PackageAction",
    "PackageChange",
    "PackageChangeHandler",
    "TaskStackListener",
]

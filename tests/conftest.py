"""Pytest configuration and shared fixtures."""

import random
import sys
from pathlib import Path
from typing import Callable, List
from unittest.mock import MagicMock

import pytest

# Add src to Python path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from car_dock.config import DockConfig  # noqa: E402
from car_dock.engine import DockEngine  # noqa: E402
from car_dock.providers import InMemoryAppCatalog, InMemoryTaskSnapshot  # noqa: E402
from car_dock.resolver import CandidateResolver  # noqa: E402
from car_dock.types import ComponentName, DockItem  # noqa: E402

APP_PACKAGES = [f"com.example.app{i}" for i in range(10)]


def make_component(package_name: str) -> ComponentName:
    """Main activity component of a test package."""
    return ComponentName(package_name, f"{package_name}.MainActivity")


class DockRecorder:
    """Observer that records every published dock list."""

    def __init__(self) -> None:
        self.published: List[List[DockItem]] = []

    def __call__(self, items: List[DockItem]) -> None:
        self.published.append(items)

    @property
    def count(self) -> int:
        return len(self.published)

    @property
    def last(self) -> List[DockItem]:
        return self.published[-1]


@pytest.fixture
def apps() -> List[ComponentName]:
    """Provide the components of the test catalog."""
    return [make_component(p) for p in APP_PACKAGES]


@pytest.fixture
def catalog(apps) -> InMemoryAppCatalog:
    """Provide a catalog with ten launchable apps."""
    catalog = InMemoryAppCatalog()
    for i, component in enumerate(apps):
        catalog.install(component, name=f"App {i}", icon_color=0xFF000000 + i)
    return catalog


@pytest.fixture
def task_snapshot() -> InMemoryTaskSnapshot:
    """Provide an empty task snapshot."""
    return InMemoryTaskSnapshot()


@pytest.fixture
def recorder() -> DockRecorder:
    """Provide a recording dock observer."""
    return DockRecorder()


@pytest.fixture
def notifier() -> MagicMock:
    """Provide a mock no-space notifier."""
    return MagicMock()


@pytest.fixture
def make_engine(catalog, task_snapshot, notifier) -> Callable[..., DockEngine]:
    """Provide a factory for engines over the test catalog."""

    def _make(**config_kwargs) -> DockEngine:
        config = DockConfig(**config_kwargs)
        return DockEngine(
            config,
            metadata_provider=catalog,
            task_provider=task_snapshot,
            launcher_provider=catalog,
            media_provider=catalog,
            resolver=CandidateResolver(random.Random(0)),
            no_space_notifier=notifier,
        )

    return _make


@pytest.fixture
def scenario_file(tmp_path) -> Path:
    """Provide a small simulation scenario."""
    path = tmp_path / "scenario.yaml"
    path.write_text(
        """
dock:
  capacity: 3
  default_apps: ["com.example.maps/.MapsActivity"]
apps:
  - component: com.example.maps/.MapsActivity
    name: Maps
    distraction_optimized: true
  - component: com.example.phone/.DialerActivity
    name: Phone
  - component: com.example.radio/.RadioActivity
    name: Radio
  - component: com.example.music/.PlayerActivity
    name: Music
tasks: ["com.example.radio/.RadioActivity"]
events:
  - launch: com.example.phone/.DialerActivity
  - pin: {component: com.example.phone/.DialerActivity, index: 2}
  - remove_package: com.example.maps
"""
    )
    return path

"""Collaborator protocols consumed by the dock engine.

The platform supplies app metadata, running tasks, launchable activities,
media services and driving-safety capabilities. Each concern is a small
protocol; the in-memory implementations below back the tests and the
simulation CLI.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Set

from car_dock.types import AppMetadata, ComponentName, RunningTask

logger = logging.getLogger(__name__)


class MetadataProvider(Protocol):
    """Resolves presentation metadata for a component."""

    def resolve(self, component: ComponentName) -> Optional[AppMetadata]:
        """Look up a component.

        Returns:
            Metadata, or None if the component is not installed
        """
        ...


class MediaCapabilityProvider(Protocol):
    """Lists background media service components."""

    def media_service_components(
        self, package_name: Optional[str] = None
    ) -> Set[ComponentName]:
        """Media service components, optionally restricted to one package."""
        ...


class TaskSnapshotProvider(Protocol):
    """Reports the current foreground tasks."""

    def current_foreground_tasks(self) -> List[RunningTask]:
        """Running tasks, most recent first."""
        ...


class LauncherCandidateProvider(Protocol):
    """Lists launchable activities."""

    def all_known_identities(
        self, package_name: Optional[str] = None
    ) -> Set[ComponentName]:
        """Launcher activities, optionally restricted to one package."""
        ...


class CapabilityProvider(Protocol):
    """Answers driving-safety questions about components."""

    def is_distraction_optimized(self, component: ComponentName) -> bool:
        """True if the component may be used while driving."""
        ...


class InMemoryAppCatalog:
    """Installed-app catalog held in memory.

    Implements the metadata, launcher and media protocols over a single
    inventory so install/uninstall stay consistent across all three.

    Example:
        >>> catalog = InMemoryAppCatalog()
        >>> catalog.install(ComponentName("com.example.maps", "com.example.maps.Main"), "Maps")
        >>> catalog.all_known_identities()
        {ComponentName(package_name='com.example.maps', class_name='com.example.maps.Main')}
    """

    def __init__(self) -> None:
        self._metadata: Dict[ComponentName, AppMetadata] = {}
        self._launchable: Set[ComponentName] = set()
        self._media: Set[ComponentName] = set()

    def install(
        self,
        component: ComponentName,
        name: str,
        icon: object = None,
        icon_color: Optional[int] = None,
        launchable: bool = True,
        media: bool = False,
    ) -> None:
        """Register a component.

        Args:
            component: Component identity
            name: Display label
            icon: Opaque icon handle
            icon_color: Dominant icon color
            launchable: Whether it shows up as a launcher activity
            media: Whether it is a media service component
        """
        self._metadata[component] = AppMetadata(name=name, icon=icon, icon_color=icon_color)
        if launchable:
            self._launchable.add(component)
        if media:
            self._media.add(component)
        logger.debug(f"Installed {component}")

    def uninstall(self, package_name: str) -> None:
        """Forget every component of a package."""
        self._metadata = {
            c: m for c, m in self._metadata.items() if c.package_name != package_name
        }
        self._launchable = {c for c in self._launchable if c.package_name != package_name}
        self._media = {c for c in self._media if c.package_name != package_name}
        logger.debug(f"Uninstalled {package_name}")

    def resolve(self, component: ComponentName) -> Optional[AppMetadata]:
        return self._metadata.get(component)

    def all_known_identities(
        self, package_name: Optional[str] = None
    ) -> Set[ComponentName]:
        return _filter_package(self._launchable, package_name)

    def media_service_components(
        self, package_name: Optional[str] = None
    ) -> Set[ComponentName]:
        return _filter_package(self._media, package_name)


class InMemoryTaskSnapshot:
    """Task list that callers push into directly."""

    def __init__(self, tasks: Optional[Iterable[RunningTask]] = None) -> None:
        self.tasks: List[RunningTask] = list(tasks or [])

    def move_to_front(self, task: RunningTask) -> None:
        """Make a task the most recent one."""
        self.tasks = [t for t in self.tasks if t.task_id != task.task_id]
        self.tasks.insert(0, task)

    def current_foreground_tasks(self) -> List[RunningTask]:
        return list(self.tasks)


class StaticCapabilityProvider:
    """Capability provider backed by a fixed allow-list."""

    def __init__(self, distraction_optimized: Iterable[ComponentName] = ()) -> None:
        self.distraction_optimized = set(distraction_optimized)

    def is_distraction_optimized(self, component: ComponentName) -> bool:
        return component in self.distraction_optimized


def _filter_package(
    components: Set[ComponentName], package_name: Optional[str]
) -> Set[ComponentName]:
    if package_name is None:
        return set(components)
    return {c for c in components if c.package_name == package_name}

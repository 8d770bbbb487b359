"""Dock slot engine.

This module owns the authoritative slot→item mapping of the dock. It applies
pin, unpin and usage-driven replacement, keeps recency order for eviction of
dynamic items, and republishes the full dock list after every operation.

The mapping is an insertion-ordered dict keyed by slot index. Iteration order
is recency order: the first entry is the least recently touched slot. Putting
a new item at an existing key keeps the slot's position; popping and
re-inserting moves it to most recent.

Example:
    >>> engine = DockEngine(config, catalog, tasks, catalog, media_provider=catalog)
    >>> engine.observe(render)
    >>> await engine.initialize()
    >>> await engine.add_or_refresh_dynamic(ComponentName.unflatten("com.example.maps/.Main"))
"""

import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set
from uuid import UUID, uuid4

from car_dock.channel import DockListChannel
from car_dock.config import DockConfig
from car_dock.providers import (
    CapabilityProvider,
    LauncherCandidateProvider,
    MediaCapabilityProvider,
    MetadataProvider,
    TaskSnapshotProvider,
)
from car_dock.resolver import CandidateResolver
from car_dock.tasks import task_components
from car_dock.types import ComponentName, DockItem, DockItemType

logger = logging.getLogger(__name__)

DockObserver = Callable[[List[DockItem]], None]


class InsufficientCandidatesError(RuntimeError):
    """Raised when an empty slot cannot be filled from any source."""


class DockEngine:
    """Slot manager for a fixed-capacity dock.

    Every public coroutine holds the engine lock for its whole
    read-modify-publish sequence, so concurrent event feeds never observe a
    half-applied change.
    """

    def __init__(
        self,
        config: DockConfig,
        metadata_provider: MetadataProvider,
        task_provider: TaskSnapshotProvider,
        launcher_provider: LauncherCandidateProvider,
        media_provider: Optional[MediaCapabilityProvider] = None,
        capability_provider: Optional[CapabilityProvider] = None,
        resolver: Optional[CandidateResolver] = None,
        no_space_notifier: Optional[Callable[[str], None]] = None,
        id_factory: Callable[[], UUID] = uuid4,
    ) -> None:
        """Initialize dock engine.

        Args:
            config: Dock configuration
            metadata_provider: Resolves component metadata
            task_provider: Reports running tasks
            launcher_provider: Lists launchable components
            media_provider: Lists media service components
            capability_provider: Driving-safety capabilities; may arrive later
            resolver: Candidate resolver for empty slots
            no_space_notifier: Called with a message when a pin has nowhere to go
            id_factory: Source of surrogate item ids
        """
        self.config = config
        self.capacity = config.capacity
        self.exclusions = config.exclusions()

        self.metadata_provider = metadata_provider
        self.task_provider = task_provider
        self.launcher_provider = launcher_provider
        self.media_provider = media_provider
        self.capability_provider = capability_provider
        self.resolver = resolver or CandidateResolver()
        self.no_space_notifier = no_space_notifier
        self.id_factory = id_factory

        self._items: Dict[int, DockItem] = {}
        self._lock = asyncio.Lock()
        self._launcher_components: Set[ComponentName] = set(
            launcher_provider.all_known_identities()
        )
        self._media_components: Set[ComponentName] = (
            set(media_provider.media_service_components()) if media_provider else set()
        )

        self._observer: Optional[DockObserver] = None
        self._channels: List[DockListChannel] = []
        self._last_published: Optional[List[DockItem]] = None
        self.is_initialized = False

    # Lifecycle

    async def initialize(self) -> List[DockItem]:
        """Seed the dock with the configured default apps and publish.

        Defaults beyond capacity are ignored. A default that cannot be
        resolved leaves its slot empty for materialization to fill.

        Returns:
            Published dock list
        """
        async with self._lock:
            if self.is_initialized:
                logger.warning("Dock already initialized")
                return self._publish()

            for index, component in enumerate(self.config.default_components()):
                if index >= self.capacity:
                    break
                item = self._create_item(component, DockItemType.STATIC)
                if item is not None:
                    self._items[index] = item

            self.is_initialized = True
            logger.info(
                f"Dock initialized with {len(self._items)} pinned item(s), "
                f"capacity {self.capacity}"
            )
            return self._publish()

    async def destroy(self) -> None:
        """Detach the observer and close all channels."""
        async with self._lock:
            self._observer = None
            for channel in self._channels:
                channel.close()
            self._channels.clear()
        logger.info("Dock engine destroyed")

    async def observe(self, observer: DockObserver) -> None:
        """Register the dock observer.

        The observer receives the last published list right away, then every
        list published afterwards. Registering replaces any previous observer.

        Args:
            observer: Callable receiving the full dock list
        """
        async with self._lock:
            if self._observer is not None:
                logger.warning("Replacing existing dock observer")
            self._observer = observer
            if self._last_published is not None:
                self._notify_observer(self._last_published)

    async def stop_observing(self) -> None:
        """Unregister the dock observer."""
        async with self._lock:
            self._observer = None

    async def subscribe(self) -> DockListChannel:
        """Open a latest-value channel of dock lists.

        Channels are closed by ``destroy()``.

        Returns:
            Channel primed with the last published list, if any
        """
        async with self._lock:
            channel = DockListChannel()
            if self._last_published is not None:
                channel.publish(self._last_published)
            self._channels.append(channel)
            return channel

    # Pinning

    async def pin_by_id(self, item_id: UUID) -> None:
        """Pin an item already in the dock.

        The item keeps its slot and its recency position.

        Args:
            item_id: Surrogate id of the item
        """
        logger.debug(f"Pin item, id: {item_id}")
        async with self._lock:
            index = self._index_of_id(item_id)
            if index is not None:
                item = self._items[index]
                logger.debug(f"Pinning {item.component} at {index}")
                self._items[index] = item.with_type(DockItemType.STATIC)
            self._publish()

    async def pin_by_identity(
        self, component: ComponentName, index: Optional[int] = None
    ) -> bool:
        """Pin a component that may not be in the dock yet.

        Args:
            component: Component to pin
            index: Slot to pin at. Without one, the first empty or dynamic
                slot is used; if there is none the no-space notifier fires.

        Returns:
            True if the component was placed
        """
        logger.debug(f"Pin item, component: {component}, index: {index}")
        async with self._lock:
            placed = False
            item = self._create_item(component, DockItemType.STATIC)

            if item is None:
                pass
            elif index is not None:
                if 0 <= index < self.capacity:
                    logger.debug(f"Pinning {component} at {index}")
                    self._items[index] = item
                    placed = True
                else:
                    logger.debug(f"Invalid index provided: {index}")
            else:
                target = self._find_index_to_pin()
                if target is None:
                    logger.debug("No dynamic or empty spots available to pin")
                    self._notify_no_space()
                else:
                    logger.debug(f"Pinning {component} at {target}")
                    self._items[target] = item
                    placed = True

            self._publish()
            return placed

    async def unpin_by_id(self, item_id: UUID) -> None:
        """Clear the slot holding the given item.

        Args:
            item_id: Surrogate id of the item
        """
        logger.debug(f"Unpin item, id: {item_id}")
        async with self._lock:
            index = self._index_of_id(item_id)
            if index is not None:
                item = self._items.pop(index)
                logger.debug(f"Unpinning {item.component} at {index}")
            self._publish()

    async def unpin_by_identity(self, component: ComponentName) -> None:
        """Clear every slot holding exactly this component.

        Args:
            component: Component to remove
        """
        logger.debug(f"Unpin item, component: {component}")
        async with self._lock:
            for index in [i for i, item in self._items.items() if item.component == component]:
                logger.debug(f"Unpinning {component} at {index}")
                del self._items[index]
            self._publish()

    # Usage-driven updates

    async def add_or_refresh_dynamic(self, component: ComponentName) -> bool:
        """Record that an app became relevant.

        If the app's package is already in the dock as a dynamic item, that
        slot is refreshed and becomes most recent. Otherwise the app fills
        an empty slot, or replaces the least recently touched dynamic item.
        Pinned items are never replaced.

        Args:
            component: Component that was launched or brought to front

        Returns:
            True if the dock was updated
        """
        logger.debug(f"Add dynamic item, component: {component}")
        async with self._lock:
            updated = self._add_or_refresh_dynamic(component)
            self._publish()
            return updated

    def _add_or_refresh_dynamic(self, component: ComponentName) -> bool:
        if self.exclusions.is_excluded(component):
            logger.debug("Dynamic item is excluded")
            return False

        if self._is_package_in_dock(component.package_name, DockItemType.STATIC):
            logger.debug("Dynamic item is already present in the dock as static item")
            return False

        index = self._index_of_package(component.package_name)
        if index is None:
            index = self._index_of_least_recent_dynamic()
        if index is None or index >= self.capacity:
            logger.debug("No dynamic item to replace")
            return False

        item = self._create_item(component, DockItemType.DYNAMIC)
        if item is None:
            return False

        logger.debug(f"Updating {component} at {index}")
        self._items.pop(index, None)
        self._items[index] = item
        return True

    async def remove_by_package(self, package_name: str) -> None:
        """Drop a removed package from the dock and all caches.

        Args:
            package_name: Package that was uninstalled or disabled
        """
        logger.debug(f"Remove items, package: {package_name}")
        async with self._lock:
            for index in [
                i for i, item in self._items.items() if item.package_name == package_name
            ]:
                del self._items[index]

            media_before = len(self._media_components)
            self._media_components = {
                c for c in self._media_components if c.package_name != package_name
            }
            if len(self._media_components) != media_before:
                logger.debug(f"Media components were removed for {package_name}")

            self._launcher_components = {
                c for c in self._launcher_components if c.package_name != package_name
            }
            self._publish()

    async def add_launcher_components(self, components: Iterable[ComponentName]) -> None:
        """Add launchable components, e.g. after a package install.

        Args:
            components: Components to add to the launcher candidate set
        """
        async with self._lock:
            components = set(components)
            self._launcher_components |= components
            logger.debug(f"Added launcher components: {sorted(map(str, components))}")

    async def add_media_components(self, package_name: str) -> None:
        """Add the media service components of a newly installed package.

        Args:
            package_name: Installed package
        """
        if self.media_provider is None:
            return
        async with self._lock:
            components = set(self.media_provider.media_service_components(package_name))
            self._media_components |= components
            logger.debug(f"Added media components: {sorted(map(str, components))}")

    async def refresh_capability_flags(self, provider: CapabilityProvider) -> None:
        """Swap in a capability provider and recompute restriction flags.

        Items keep their slot, type and recency position.

        Args:
            provider: New capability provider
        """
        async with self._lock:
            self.capability_provider = provider
            for index, item in list(self._items.items()):
                self._items[index] = item.with_restriction(
                    self._is_restricted(item.component, item.is_media)
                )
            self._publish()

    async def materialize_full_list(self) -> List[DockItem]:
        """Fill empty slots and publish the full dock list.

        Returns:
            Dock list of exactly ``capacity`` items

        Raises:
            InsufficientCandidatesError: If a slot cannot be filled
        """
        async with self._lock:
            return self._publish()

    # Read-only accessors

    def items(self) -> Dict[int, DockItem]:
        """Snapshot of the slot mapping, least recently touched first."""
        return dict(self._items)

    def media_components(self) -> Set[ComponentName]:
        """Known media service components."""
        return set(self._media_components)

    def launcher_components(self) -> Set[ComponentName]:
        """Known launchable components."""
        return set(self._launcher_components)

    def icon_color_for(self, component: ComponentName) -> int:
        """Icon color for a component, or the configured default."""
        metadata = self.metadata_provider.resolve(component)
        if metadata is None or metadata.icon_color is None:
            return self.config.default_icon_color
        return metadata.icon_color

    # Internals (callers hold the lock)

    def _publish(self) -> List[DockItem]:
        items = self._materialize()
        self._last_published = items
        self._notify_observer(items)
        for channel in self._channels:
            channel.publish(items)
        return items

    def _materialize(self) -> List[DockItem]:
        """Fill every empty slot from tasks, then launcher apps.

        Raises:
            InsufficientCandidatesError: If a slot has no placeable candidate
        """
        tasks = task_components(
            self.task_provider.current_foreground_tasks(),
            user_id=self.config.user_id,
            limit=self.config.max_tasks_to_fetch,
        )

        for index in range(self.capacity):
            if index in self._items:
                continue

            candidates = self.resolver.candidates(
                tasks,
                self._launcher_components,
                self._placed_packages(),
                self.exclusions,
            )
            for component in candidates:
                item = self._create_item(component, DockItemType.DYNAMIC)
                if item is not None:
                    logger.debug(f"Adding fallback item ({component}) at {index}")
                    self._items[index] = item
                    break
            else:
                raise InsufficientCandidatesError(
                    f"Cannot find enough apps to place in the dock (slot {index})"
                )

        return [self._items[i] for i in range(self.capacity) if i in self._items]

    def _notify_observer(self, items: List[DockItem]) -> None:
        if self._observer is None:
            return
        try:
            self._observer(list(items))
        except Exception as e:
            logger.error(f"Dock observer failed: {e}", exc_info=True)

    def _notify_no_space(self) -> None:
        if self.no_space_notifier is None:
            logger.info(self.config.no_space_message)
            return
        try:
            self.no_space_notifier(self.config.no_space_message)
        except Exception as e:
            logger.error(f"No-space notifier failed: {e}", exc_info=True)

    def _create_item(
        self, component: ComponentName, item_type: DockItemType
    ) -> Optional[DockItem]:
        metadata = self.metadata_provider.resolve(component)
        if metadata is None:
            logger.debug(f"Component {component} not found")
            return None

        is_media = component in self._media_components
        icon_color = metadata.icon_color
        if icon_color is None:
            icon_color = self.config.default_icon_color

        return DockItem(
            id=self._unique_id(),
            type=item_type,
            component=component,
            name=metadata.name,
            icon=metadata.icon,
            icon_color=icon_color,
            is_restricted=self._is_restricted(component, is_media),
            is_media=is_media,
        )

    def _is_restricted(self, component: ComponentName, is_media: bool) -> bool:
        # media apps render a driving-safe template of their own
        if is_media:
            return False
        if self.capability_provider is None:
            return True
        return not self.capability_provider.is_distraction_optimized(component)

    def _unique_id(self) -> UUID:
        existing = {item.id for item in self._items.values()}
        for _ in range(self.config.max_unique_id_tries + 1):
            item_id = self.id_factory()
            if item_id not in existing:
                return item_id
        return self.id_factory()

    def _find_index_to_pin(self) -> Optional[int]:
        for index in range(self.capacity):
            item = self._items.get(index)
            if item is None or item.is_dynamic:
                return index
        return None

    def _index_of_least_recent_dynamic(self) -> Optional[int]:
        if len(self._items) < self.capacity:
            return next(i for i in range(self.capacity) if i not in self._items)
        for index, item in self._items.items():
            if item.is_dynamic:
                return index
        return None

    def _index_of_package(self, package_name: str) -> Optional[int]:
        for index, item in self._items.items():
            if item.package_name == package_name:
                return index
        return None

    def _index_of_id(self, item_id: UUID) -> Optional[int]:
        for index, item in self._items.items():
            if item.id == item_id:
                return index
        return None

    def _is_package_in_dock(
        self, package_name: str, item_type: Optional[DockItemType] = None
    ) -> bool:
        return any(
            item.package_name == package_name
            and (item_type is None or item.type == item_type)
            for item in self._items.values()
        )

    def _placed_packages(self) -> Set[str]:
        return {item.package_name for item in self._items.values()}

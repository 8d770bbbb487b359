"""Dock controller.

The controller is the single entry point the event feeds call into: user
gestures (pin/unpin), task changes (app launched) and package changes
(installed/removed). It forwards each call to the dock engine and keeps the
engine's launcher and media caches in step with installs.

Feeds that run on their own threads must go through ``submit_threadsafe`` so
that every engine operation executes on the engine's event loop.
"""

import asyncio
import concurrent.futures
import logging
from typing import Any, Callable, Coroutine, Optional, Protocol, Set
from uuid import UUID

from car_dock.engine import DockEngine
from car_dock.providers import LauncherCandidateProvider
from car_dock.types import ComponentName

logger = logging.getLogger(__name__)


class DockInterface(Protocol):
    """Operations event feeds may invoke on the dock."""

    async def app_pinned(self, component: ComponentName, index: Optional[int] = None) -> None:
        ...

    async def app_pinned_by_id(self, item_id: UUID) -> None:
        ...

    async def app_unpinned(self, component: ComponentName) -> None:
        ...

    async def app_unpinned_by_id(self, item_id: UUID) -> None:
        ...

    async def app_launched(self, component: ComponentName) -> None:
        ...

    async def package_removed(self, package_name: str) -> None:
        ...

    async def package_added(self, package_name: str) -> None:
        ...


class DockController:
    """Routes dock events to the engine.

    Example:
        >>> controller = DockController(engine, catalog)
        >>> await controller.app_launched(component)
        >>> controller.submit_threadsafe(controller.package_removed, "com.example.maps")
    """

    def __init__(
        self,
        engine: DockEngine,
        launcher_provider: LauncherCandidateProvider,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """Initialize controller.

        Args:
            engine: Dock engine to drive
            launcher_provider: Source of launchable components for new installs
            loop: Loop that owns the engine, required for ``submit_threadsafe``
        """
        self.engine = engine
        self.launcher_provider = launcher_provider
        self.loop = loop

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Bind the controller to the engine's loop.

        Args:
            loop: Loop to bind; defaults to the running loop
        """
        self.loop = loop or asyncio.get_running_loop()

    async def app_pinned(self, component: ComponentName, index: Optional[int] = None) -> None:
        await self.engine.pin_by_identity(component, index)

    async def app_pinned_by_id(self, item_id: UUID) -> None:
        await self.engine.pin_by_id(item_id)

    async def app_unpinned(self, component: ComponentName) -> None:
        await self.engine.unpin_by_identity(component)

    async def app_unpinned_by_id(self, item_id: UUID) -> None:
        await self.engine.unpin_by_id(item_id)

    async def app_launched(self, component: ComponentName) -> None:
        await self.engine.add_or_refresh_dynamic(component)

    async def package_removed(self, package_name: str) -> None:
        logger.info(f"Package removed: {package_name}")
        await self.engine.remove_by_package(package_name)

    async def package_added(self, package_name: str) -> None:
        """Register the media and launcher components of a new package."""
        logger.info(f"Package added: {package_name}")
        await self.engine.add_media_components(package_name)
        await self.engine.add_launcher_components(
            self.launcher_provider.all_known_identities(package_name)
        )

    def icon_color_for(self, component: ComponentName) -> int:
        return self.engine.icon_color_for(component)

    def media_service_components(self) -> Set[ComponentName]:
        return self.engine.media_components()

    def submit_threadsafe(
        self, operation: Callable[..., Coroutine[Any, Any, Any]], *args: Any
    ) -> concurrent.futures.Future:
        """Run a controller operation on the engine loop from another thread.

        Args:
            operation: Controller coroutine function, e.g. ``controller.app_launched``
            *args: Arguments for the operation

        Returns:
            Future resolving to the operation's result

        Raises:
            RuntimeError: If no loop is bound
        """
        if self.loop is None:
            raise RuntimeError("Controller is not bound to an event loop")
        return asyncio.run_coroutine_threadsafe(operation(*args), self.loop)

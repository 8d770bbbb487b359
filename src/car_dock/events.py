"""Dock event feeds.

Turns raw platform notifications into dock controller calls:

- dock events (``LAUNCH``, ``PIN``, ``UNPIN``) sent by other system apps
- package changes (removed, added, enabled state changed)
- task-stack changes (a task moved to front)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from car_dock.controller import DockInterface
from car_dock.tasks import get_component_name
from car_dock.types import ComponentName, RunningTask

logger = logging.getLogger(__name__)


class DockEvent(str, Enum):
    """Events other apps can send to the dock."""

    LAUNCH = "car_dock.events.LAUNCH"
    PIN = "car_dock.events.PIN"
    UNPIN = "car_dock.events.UNPIN"

    @classmethod
    def from_action(cls, action: Optional[str]) -> Optional["DockEvent"]:
        """Parse an action string.

        Returns:
            Matching event, or None if the action is unknown
        """
        for event in cls:
            if event.value == action:
                return event
        return None


class DockEventDispatcher:
    """Routes dock events to the controller."""

    def __init__(self, dock: DockInterface) -> None:
        self.dock = dock

    async def dispatch(self, action: Optional[str], component: Optional[ComponentName]) -> bool:
        """Handle one dock event.

        Args:
            action: Event action string
            component: Component the event refers to

        Returns:
            True if the event was routed
        """
        event = DockEvent.from_action(action)
        if event is None or component is None:
            logger.debug(f"Ignoring dock event {action!r} for {component}")
            return False

        if event == DockEvent.LAUNCH:
            await self.dock.app_launched(component)
        elif event == DockEvent.PIN:
            await self.dock.app_pinned(component)
        elif event == DockEvent.UNPIN:
            await self.dock.app_unpinned(component)
        return True


class PackageAction(str, Enum):
    """Package change notifications."""

    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class EnabledState(str, Enum):
    """Application enabled setting reported by the platform."""

    DEFAULT = "default"
    ENABLED = "enabled"
    DISABLED = "disabled"
    DISABLED_USER = "disabled_user"
    DISABLED_UNTIL_USED = "disabled_until_used"


@dataclass
class PackageChange:
    """A package change notification.

    Attributes:
        action: What happened
        package_name: Affected package
        uid: Uid of the package; -1 when the platform did not send one
        replacing: True when the change is part of an update
    """

    action: PackageAction
    package_name: Optional[str]
    uid: int = -1
    replacing: bool = False


class PackageChangeHandler:
    """Keeps the dock in step with package installs and removals.

    A disabled package is treated exactly like a removed one.
    """

    DISABLED_STATES = (EnabledState.DISABLED, EnabledState.DISABLED_USER)

    def __init__(
        self,
        dock: DockInterface,
        enabled_state: Callable[[str], EnabledState],
    ) -> None:
        """Initialize handler.

        Args:
            dock: Dock controller
            enabled_state: Looks up a package's enabled setting
        """
        self.dock = dock
        self.enabled_state = enabled_state

    async def handle(self, change: PackageChange) -> bool:
        """Handle one package change.

        Args:
            change: Package change notification

        Returns:
            True if the dock was told about it
        """
        logger.debug(f"Package change: {change}")
        if change.uid == -1 or not change.package_name:
            return False

        if change.action == PackageAction.REMOVED:
            if change.replacing:
                return False
            await self.dock.package_removed(change.package_name)
            return True

        if change.action == PackageAction.ADDED:
            if change.replacing:
                return False
            await self.dock.package_added(change.package_name)
            return True

        if change.action == PackageAction.CHANGED:
            if self.enabled_state(change.package_name) in self.DISABLED_STATES:
                logger.debug(f"Package disabled: {change.package_name}")
                await self.dock.package_removed(change.package_name)
                return True

        return False


class TaskStackListener:
    """Reports tasks moved to front as app launches."""

    def __init__(self, user_id: int, dock: DockInterface) -> None:
        self.user_id = user_id
        self.dock = dock

    async def on_task_moved_to_front(self, task: RunningTask) -> None:
        """Handle a task coming to the foreground."""
        if task.user_id != self.user_id:
            return
        component = get_component_name(task)
        if component is None:
            return
        await self.dock.app_launched(component)

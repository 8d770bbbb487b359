"""Core value types for the dock.

This module defines the data structures shared by the resolver, the slot
engine and the event plumbing: component identities, dock items and
running-task snapshots.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ComponentName:
    """Identity of an application component (package + class).

    Example:
        >>> ComponentName.unflatten("com.example.maps/.MapsActivity")
        ComponentName(package_name='com.example.maps', class_name='com.example.maps.MapsActivity')
    """

    package_name: str
    class_name: str

    def flatten(self) -> str:
        """Return the ``package/class`` string form."""
        return f"{self.package_name}/{self.class_name}"

    @classmethod
    def unflatten(cls, value: Optional[str]) -> Optional["ComponentName"]:
        """Parse a flattened component string.

        A class name starting with ``.`` is relative to the package.

        Args:
            value: String of the form ``package/class``

        Returns:
            ComponentName, or None if the string is malformed
        """
        if not value:
            return None

        sep = value.find("/")
        if sep <= 0 or sep + 1 >= len(value):
            return None

        package_name = value[:sep]
        class_name = value[sep + 1:]
        if class_name.startswith("."):
            class_name = package_name + class_name

        return cls(package_name=package_name, class_name=class_name)

    def __str__(self) -> str:
        return self.flatten()


class DockItemType(str, Enum):
    """Kind of dock item."""

    STATIC = "static"  # pinned by the user
    DYNAMIC = "dynamic"  # populated from usage, evictable


@dataclass(frozen=True)
class AppMetadata:
    """Presentation metadata resolved for a component.

    Attributes:
        name: Display label
        icon: Opaque icon handle, carried through to the renderer
        icon_color: Dominant icon color as ARGB int, if known
    """

    name: str
    icon: Any = None
    icon_color: Optional[int] = None


@dataclass(frozen=True)
class DockItem:
    """One occupied dock slot.

    Items are immutable; changing a slot means replacing its item.
    ``icon`` and ``icon_color`` never take part in equality.
    """

    type: DockItemType
    component: ComponentName
    name: str
    is_restricted: bool
    id: UUID = field(default_factory=uuid4)
    icon: Any = field(default=None, compare=False)
    icon_color: Optional[int] = field(default=None, compare=False)
    is_media: bool = False

    @property
    def package_name(self) -> str:
        return self.component.package_name

    @property
    def is_static(self) -> bool:
        return self.type == DockItemType.STATIC

    @property
    def is_dynamic(self) -> bool:
        return self.type == DockItemType.DYNAMIC

    def with_type(self, item_type: DockItemType) -> "DockItem":
        """Copy of this item with a different type (same id)."""
        return replace(self, type=item_type)

    def with_restriction(self, is_restricted: bool) -> "DockItem":
        """Copy of this item with a recomputed restriction flag."""
        return replace(self, is_restricted=is_restricted)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": str(self.id),
            "type": self.type.value,
            "component": self.component.flatten(),
            "name": self.name,
            "is_restricted": self.is_restricted,
            "is_media": self.is_media,
            "icon_color": self.icon_color,
        }


@dataclass
class RunningTask:
    """Snapshot of a running task as reported by the platform.

    Attributes:
        task_id: Platform task id
        user_id: Owning user/session
        base_activity: Root activity of the task, if known
        base_intent_component: Component of the intent that started the task
        base_intent_data: Data URI attached to the base intent
    """

    task_id: int
    user_id: int = 0
    base_activity: Optional[ComponentName] = None
    base_intent_component: Optional[ComponentName] = None
    base_intent_data: Optional[str] = None

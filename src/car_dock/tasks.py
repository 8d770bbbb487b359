"""Helpers for turning running-task snapshots into dock identities.

Media apps are launched through a shared car-media proxy activity, so the
task's root activity is the proxy. The real media component is encoded in the
base intent data as ``custom:/<package>/<class>``.
"""

import logging
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from car_dock.types import ComponentName, RunningTask

logger = logging.getLogger(__name__)

CAR_MEDIA_ACTIVITY = ComponentName(
    "com.android.car.media", "com.android.car.media.MediaActivity"
)
CAR_MEDIA_DATA_SCHEME = "custom"


def is_media_proxy(component: Optional[ComponentName]) -> bool:
    """Check whether a component is the car-media proxy activity."""
    return component == CAR_MEDIA_ACTIVITY


def get_media_component_name(task: RunningTask) -> Optional[ComponentName]:
    """Extract the media component a proxy task is playing.

    Args:
        task: Task whose root is the media proxy activity

    Returns:
        Media service component, or None if the intent data is unusable
    """
    data = task.base_intent_data
    if not data:
        logger.debug("No data attached to the base intent")
        return None

    parts = urlsplit(data)
    if parts.scheme != CAR_MEDIA_DATA_SCHEME:
        logger.debug(f"Data scheme doesn't match: {parts.scheme}")
        return None

    ssp = data[len(parts.scheme) + 1:]
    if ssp.startswith("/"):
        ssp = ssp[1:]

    component = ComponentName.unflatten(ssp)
    logger.debug(f"Media component found: {component}")
    return component


def get_component_name(task: RunningTask) -> Optional[ComponentName]:
    """Identity a task should be represented by in the dock.

    Args:
        task: Running task snapshot

    Returns:
        Component name, or None if the task carries no usable identity
    """
    component = task.base_activity or task.base_intent_component
    if component is None:
        return None

    if is_media_proxy(component):
        return get_media_component_name(task)
    return component


def task_components(
    tasks: Iterable[RunningTask], user_id: int, limit: Optional[int] = None
) -> List[ComponentName]:
    """Identities of the given user's tasks, in task order.

    Args:
        tasks: Task snapshots, most recent first
        user_id: Only tasks of this user are kept
        limit: Maximum number of tasks to consider

    Returns:
        Component names, tasks without an identity dropped
    """
    components = []
    for index, task in enumerate(tasks):
        if limit is not None and index >= limit:
            break
        if task.user_id != user_id:
            continue
        component = get_component_name(task)
        if component is not None:
            components.append(component)
    return components

"""Unit tests for task component extraction."""

import pytest

from car_dock.tasks import (
    CAR_MEDIA_ACTIVITY,
    get_component_name,
    get_media_component_name,
    task_components,
)
from car_dock.types import ComponentName, RunningTask

MEDIA_SERVICE = ComponentName("com.example.radio", "com.example.radio.MediaService")


@pytest.mark.unit
class TestGetComponentName:
    """Test identity extraction from tasks."""

    def test_base_activity_preferred(self, apps):
        """Test the base activity wins over the intent component."""
        task = RunningTask(task_id=1, base_activity=apps[0], base_intent_component=apps[1])

        assert get_component_name(task) == apps[0]

    def test_intent_component_fallback(self, apps):
        """Test the intent component is used without a base activity."""
        task = RunningTask(task_id=1, base_intent_component=apps[1])

        assert get_component_name(task) == apps[1]

    def test_no_identity(self):
        """Test a task without components yields None."""
        assert get_component_name(RunningTask(task_id=1)) is None

    def test_media_proxy_resolved(self):
        """Test the media proxy maps to the playing media component."""
        task = RunningTask(
            task_id=1,
            base_activity=CAR_MEDIA_ACTIVITY,
            base_intent_data=f"custom:/{MEDIA_SERVICE.flatten()}",
        )

        assert get_component_name(task) == MEDIA_SERVICE


@pytest.mark.unit
class TestGetMediaComponentName:
    """Test media component decoding."""

    def test_without_leading_slash(self):
        """Test the scheme-specific part may omit the slash."""
        task = RunningTask(task_id=1, base_intent_data=f"custom:{MEDIA_SERVICE.flatten()}")

        assert get_media_component_name(task) == MEDIA_SERVICE

    @pytest.mark.parametrize("data", [None, "", "content:/com.example.radio/.MediaService"])
    def test_unusable_data(self, data):
        """Test missing data or a foreign scheme yields None."""
        task = RunningTask(task_id=1, base_activity=CAR_MEDIA_ACTIVITY, base_intent_data=data)

        assert get_media_component_name(task) is None


@pytest.mark.unit
class TestTaskComponents:
    """Test task list filtering."""

    def test_filters_user_and_empty_tasks(self, apps):
        """Test only the user's tasks with an identity are kept, in order."""
        tasks = [
            RunningTask(task_id=1, user_id=10, base_activity=apps[0]),
            RunningTask(task_id=2, user_id=0),
            RunningTask(task_id=3, user_id=0, base_activity=apps[2]),
            RunningTask(task_id=4, user_id=0, base_activity=apps[1]),
        ]

        assert task_components(tasks, user_id=0) == [apps[2], apps[1]]

    def test_limit_applies_before_filtering(self, apps):
        """Test the fetch limit counts every task."""
        tasks = [
            RunningTask(task_id=1, user_id=10, base_activity=apps[0]),
            RunningTask(task_id=2, user_id=0, base_activity=apps[1]),
            RunningTask(task_id=3, user_id=0, base_activity=apps[2]),
        ]

        assert task_components(tasks, user_id=0, limit=2) == [apps[1]]

"""Unit tests for the dock list channel."""

import asyncio

import pytest

from car_dock.channel import DockListChannel


@pytest.mark.unit
class TestDockListChannel:
    """Test latest-value delivery."""

    def test_empty(self):
        """Test a fresh channel has nothing pending."""
        channel = DockListChannel()

        assert channel.get_nowait() is None
        assert channel.latest is None

    def test_publish_replaces_pending(self):
        """Test only the newest unconsumed list is kept."""
        channel = DockListChannel()

        channel.publish(["a"])
        channel.publish(["b"])

        assert channel.get_nowait() == ["b"]
        assert channel.get_nowait() is None
        assert channel.dropped == 1

    def test_publish_copies_list(self):
        """Test later mutation of the source list is not seen."""
        channel = DockListChannel()
        items = ["a"]

        channel.publish(items)
        items.append("b")

        assert channel.get_nowait() == ["a"]

    @pytest.mark.asyncio
    async def test_get(self):
        """Test awaiting the next list."""
        channel = DockListChannel()
        channel.publish(["a"])

        assert await channel.get() == ["a"]

    @pytest.mark.asyncio
    async def test_closed(self):
        """Test a closed channel ignores publishes and refuses reads."""
        channel = DockListChannel()
        channel.close()

        channel.publish(["a"])

        assert channel.latest is None
        assert channel.get_nowait() is None
        with pytest.raises(RuntimeError):
            await channel.get()

    @pytest.mark.asyncio
    async def test_close_wakes_all_waiters(self):
        """Test every consumer blocked in get() is released on close."""
        channel = DockListChannel()
        waiters = [asyncio.ensure_future(channel.get()) for _ in range(2)]
        await asyncio.sleep(0)

        channel.close()
        results = await asyncio.wait_for(
            asyncio.gather(*waiters, return_exceptions=True), timeout=1.0
        )

        assert all(isinstance(r, RuntimeError) for r in results)

    @pytest.mark.asyncio
    async def test_pending_list_delivered_after_close(self):
        """Test a list published before close is still received once."""
        channel = DockListChannel()
        channel.publish(["a"])

        channel.close()

        assert await channel.get() == ["a"]
        with pytest.raises(RuntimeError):
            await channel.get()

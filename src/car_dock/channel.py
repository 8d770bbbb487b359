"""Latest-value channel for dock list updates.

Renderers consume dock lists at their own pace. A channel only ever holds
the most recent list: publishing while a list is still pending replaces it.
"""

import asyncio
import logging
from typing import List, Optional

from car_dock.types import DockItem

logger = logging.getLogger(__name__)

# queued by close() to wake consumers blocked in get()
_CLOSED = object()


class DockListChannel:
    """Single-slot queue of dock lists.

    Example:
        >>> channel = await engine.subscribe()
        >>> items = await channel.get()
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self.latest: Optional[List[DockItem]] = None
        self.closed = False
        self.dropped = 0

    def publish(self, items: List[DockItem]) -> None:
        """Offer a new list, replacing any list not yet consumed.

        Args:
            items: Full dock list
        """
        if self.closed:
            return

        self.latest = list(items)
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(self.latest)

    async def get(self) -> List[DockItem]:
        """Wait for the next list.

        A list published before ``close()`` is still delivered.

        Raises:
            RuntimeError: If the channel is closed and nothing is pending
        """
        if self.closed and self._queue.empty():
            raise RuntimeError("Channel closed")

        items = await self._queue.get()
        if items is _CLOSED:
            # pass the wake-up on to the next waiting consumer
            self._queue.put_nowait(_CLOSED)
            raise RuntimeError("Channel closed")
        return items

    def get_nowait(self) -> Optional[List[DockItem]]:
        """Pending list, or None if nothing new was published."""
        if self._queue.empty():
            return None
        items = self._queue.get_nowait()
        if items is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return items

    def close(self) -> None:
        """Stop accepting lists and wake consumers waiting in ``get()``."""
        if self.closed:
            return
        self.closed = True
        if self._queue.empty():
            self._queue.put_nowait(_CLOSED)
        logger.debug("Dock list channel closed")

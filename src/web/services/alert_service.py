from __future__ import annotations

import asyncio
import logging
from typing import List, Set

from models.crowd import AlertEvent


class AlertBroadcaster:
    """
    Fans alert events out to connected WebSocket clients.

    Each client owns a bounded queue; publish() never blocks the sampling
    loop, and a client that stops draining its queue loses the oldest
    alerts first. Alerts are not retained once delivered.
    """

    def __init__(self, max_queue: int = 100):
        self.max_queue = max_queue
        self._queues: Set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue)
        self._queues.add(queue)
        logging.info(f"Alert subscriber connected, total: {len(self._queues)}")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._queues.discard(queue)
        logging.debug(f"Alert subscriber disconnected, total: {len(self._queues)}")

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    def publish(self, alert: AlertEvent) -> None:
        for queue in list(self._queues):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(alert)

    def drain(self, queue: asyncio.Queue) -> List[AlertEvent]:
        """Pop every alert currently waiting in a subscriber queue."""
        alerts = []
        while not queue.empty():
            alerts.append(queue.get_nowait())
        return alerts

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set
from uuid import UUID

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from tableside.schemas.realtime import InventoryEvent, OrderEvent, WsEnvelope

logger = logging.getLogger(__name__)


class BroadcastManager:
    """
    Simple in-process pub-sub manager for WebSocket topics.

    Topics:
      - orders:{restaurant_id}            every order change in a restaurant (staff)
      - order:{order_id}                  one order (customer tracking page)
      - table:{restaurant_id}:{number}    orders of one table (customer table view)
      - inventory:{restaurant_id}         stock level changes (staff)

    Events only tell subscribers that something changed; clients re-fetch.
    """

    def __init__(self) -> None:
        self._topics: Dict[str, Set[WebSocket]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()

    def _topic_lock(self, topic: str) -> asyncio.Lock:
        if topic not in self._locks:
            self._locks[topic] = asyncio.Lock()
        return self._locks[topic]

    # PUBLIC_INTERFACE
    def orders_topic(self, restaurant_id: UUID | str) -> str:
        """Return the staff order feed topic for a restaurant."""
        return f"orders:{restaurant_id}"

    # PUBLIC_INTERFACE
    def order_topic(self, order_id: UUID | str) -> str:
        """Return the tracking topic for a single order."""
        return f"order:{order_id}"

    # PUBLIC_INTERFACE
    def table_topic(self, restaurant_id: UUID | str, table_number: int) -> str:
        """Return the topic for orders placed from one table."""
        return f"table:{restaurant_id}:{table_number}"

    # PUBLIC_INTERFACE
    def inventory_topic(self, restaurant_id: UUID | str) -> str:
        """Return the inventory feed topic for a restaurant."""
        return f"inventory:{restaurant_id}"

    async def _ensure_topic(self, topic: str) -> None:
        async with self._global_lock:
            if topic not in self._topics:
                self._topics[topic] = set()

    # PUBLIC_INTERFACE
    def subscriber_count(self, topic: str) -> int:
        """Number of sockets currently subscribed to a topic."""
        return len(self._topics.get(topic, ()))

    # PUBLIC_INTERFACE
    async def connect(self, topic: str, websocket: WebSocket) -> None:
        """Add an accepted websocket to the topic subscribers."""
        await self._ensure_topic(topic)
        async with self._topic_lock(topic):
            self._topics[topic].add(websocket)
            logger.info("WebSocket connected to topic=%s; subscribers=%d", topic, len(self._topics[topic]))

    # PUBLIC_INTERFACE
    async def disconnect(self, topic: str, websocket: WebSocket) -> None:
        """Remove websocket from topic subscribers."""
        if topic not in self._topics:
            return
        async with self._topic_lock(topic):
            self._topics[topic].discard(websocket)
            logger.info("WebSocket disconnected from topic=%s; subscribers=%d", topic, len(self._topics[topic]))
            if not self._topics[topic]:
                del self._topics[topic]
                self._locks.pop(topic, None)

    # PUBLIC_INTERFACE
    async def broadcast(self, topic: str, message: dict, exclude: Optional[WebSocket] = None) -> int:
        """
        Broadcast a dict message to all subscribers in the topic.

        Returns the number of sockets the message was delivered to. Sockets that
        fail or are already closed are dropped from the topic.
        """
        if topic not in self._topics:
            return 0
        delivered = 0
        async with self._topic_lock(topic):
            to_drop: list[WebSocket] = []
            for ws in list(self._topics.get(topic, ())):
                if exclude is not None and ws is exclude:
                    continue
                if ws.application_state == WebSocketState.DISCONNECTED or ws.client_state == WebSocketState.DISCONNECTED:
                    to_drop.append(ws)
                    continue
                try:
                    await ws.send_json(message)
                    delivered += 1
                except (RuntimeError, OSError, WebSocketDisconnect):
                    logger.exception("Failed to send message to websocket; scheduling drop")
                    to_drop.append(ws)
            for ws in to_drop:
                self._topics.get(topic, set()).discard(ws)
        return delivered

    # PUBLIC_INTERFACE
    async def publish_order_event(self, event_type: str, event: OrderEvent) -> None:
        """
        Publish an order change to the restaurant feed, the order's own topic
        and the topic of the table it was placed from.
        """
        payload = event.model_dump(mode="json")
        topics = [
            self.orders_topic(event.restaurant_id),
            self.order_topic(event.order_id),
            self.table_topic(event.restaurant_id, event.table_number),
        ]
        for topic in topics:
            env = WsEnvelope(type=event_type, payload=payload, channel=topic)
            await self.broadcast(topic, env.model_dump(mode="json"))

    # PUBLIC_INTERFACE
    async def publish_inventory_event(self, event: InventoryEvent) -> None:
        """Publish a stock level change to the restaurant inventory feed."""
        topic = self.inventory_topic(event.restaurant_id)
        env = WsEnvelope(type="inventory.changed", payload=event.model_dump(mode="json"), channel=topic)
        await self.broadcast(topic, env.model_dump(mode="json"))


# Singleton instance
broadcast_manager = BroadcastManager()

# cinesync/services/redis_pub_sub.py
import json
import logging

import redis.asyncio as redis

from cinesync.core.config import Settings

logger = logging.getLogger(__name__)

ROOM_CHANNEL_PREFIX = "room:"
USER_CHANNEL_PREFIX = "user:"


class AsyncRedisPubSubService:
    """
    Cross-instance fan-out for watch-room and user events.

    Room events go to ``room:<code>``, per-user events (notifications) to
    ``user:<id>``. Every instance listens to both patterns and hands what it
    receives to its own ConnectionManager.
    """

    def __init__(self, settings: Settings):
        self.host = settings.REDIS_HOST
        self.port = settings.REDIS_PORT
        self.access_key = settings.REDIS_ACCESS_KEY
        self.ssl = settings.REDIS_SSL
        self.client = None
        self.pubsub = None

    async def connect(self):
        """Establish async connection to Redis."""
        scheme = "rediss" if self.ssl else "redis"
        auth = f":{self.access_key}@" if self.access_key else ""
        self.client = redis.from_url(
            f"{scheme}://{auth}{self.host}:{self.port}",
            decode_responses=True
        )
        await self.client.ping()
        logger.info(f"✓ Connected to Redis at {self.host}:{self.port}")

    async def publish(self, channel: str, message: dict):
        """Publish message to channel."""
        await self.client.publish(channel, json.dumps(message))
        logger.debug(f"📤 Published to Redis channel '{channel}'")

    async def broadcast_to_room(self, room_code: str, message: dict):
        await self.publish(f"{ROOM_CHANNEL_PREFIX}{room_code}", message)

    async def send_to_user(self, user_id: str, message: dict):
        await self.publish(f"{USER_CHANNEL_PREFIX}{user_id}", message)

    async def listen(self, connection_manager):
        """
        Listen to room and user channels and deliver to local WebSockets.

        Runs until cancelled; a malformed message is logged and skipped.
        """
        self.pubsub = self.client.pubsub()
        await self.pubsub.psubscribe(f"{ROOM_CHANNEL_PREFIX}*", f"{USER_CHANNEL_PREFIX}*")
        logger.info("✓ Subscribed to Redis room and user channels")

        async for message in self.pubsub.listen():
            if message["type"] not in ("message", "pmessage"):
                continue
            channel = message["channel"]
            try:
                data = json.loads(message["data"])
            except (TypeError, ValueError) as e:
                logger.error(f"Error decoding Redis message on {channel}: {e}")
                continue

            if channel.startswith(ROOM_CHANNEL_PREFIX):
                room_code = channel[len(ROOM_CHANNEL_PREFIX):]
                logger.debug(f"➡ Redis: Routing {data.get('type')} to room={room_code}")
                if data.get("type") == "room_closed":
                    await connection_manager.close_room(room_code, data.get("reason") or "Room closed")
                else:
                    await connection_manager.broadcast_to_room(room_code, data)
            elif channel.startswith(USER_CHANNEL_PREFIX):
                await connection_manager.send_to_user(channel[len(USER_CHANNEL_PREFIX):], data)
            else:
                logger.warning(f"Redis message on unexpected channel {channel} - ignoring")

    async def close(self):
        """Close connections."""
        if self.pubsub:
            await self.pubsub.punsubscribe()
            await self.pubsub.close()
        if self.client:
            await self.client.close()
        logger.info("Redis connection closed")

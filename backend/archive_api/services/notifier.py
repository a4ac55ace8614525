"""Redis pub/sub change notifications for per-user entry channels."""
from __future__ import annotations

import logging
from typing import Iterator

from redis import Redis
from redis.client import PubSub
from redis.exceptions import RedisError

from ..schemas import EntryEvent
from ..settings import ArchiveSettings

logger = logging.getLogger(__name__)


class NotifierError(RuntimeError):
    """Raised when a change channel cannot be subscribed to."""


class ChangeNotifier:
    """Publish entry changes to the owner's channel, at most once."""

    def __init__(self, settings: ArchiveSettings) -> None:
        self._prefix = settings.events_channel_prefix
        self._connection = self._create_connection(settings)

    @staticmethod
    def _create_connection(settings: ArchiveSettings) -> Redis:
        """Instantiate a Redis connection, supporting fakeredis for tests."""

        url = settings.redis_url
        if url.startswith("fakeredis://"):
            import fakeredis

            return fakeredis.FakeRedis()  # type: ignore[return-value]
        return Redis.from_url(url)

    def channel_for(self, user_id: str) -> str:
        return f"{self._prefix}:entries:{user_id}"

    def ping(self) -> bool:
        """Check whether the Redis backend is reachable."""

        try:
            return bool(self._connection.ping())
        except RedisError:
            return False

    def publish(self, event: EntryEvent) -> bool:
        """Send ``event`` to its owner's channel.

        Delivery is fire-and-forget: a Redis failure is logged and reported
        through the return value but never raised to the writer.
        """

        try:
            self._connection.publish(self.channel_for(event.user_id), event.model_dump_json())
        except RedisError as exc:
            logger.warning("Failed to publish %s for entry %s: %s", event.event, event.entry_id, exc)
            return False
        return True

    def subscribe(self, user_id: str) -> PubSub:
        """Open a pub/sub handle listening on the user's channel."""

        pubsub = self._connection.pubsub(ignore_subscribe_messages=True)
        try:
            pubsub.subscribe(self.channel_for(user_id))
        except RedisError as exc:
            pubsub.close()
            raise NotifierError("Unable to subscribe to change channel") from exc
        return pubsub

    def stream(self, user_id: str, *, heartbeat_seconds: float = 15.0) -> Iterator[str]:
        """Yield Server-Sent Event frames for the user's channel until closed."""

        pubsub = self.subscribe(user_id)
        try:
            yield ": connected\n\n"
            while True:
                try:
                    message = pubsub.get_message(timeout=heartbeat_seconds)
                except RedisError as exc:
                    logger.warning("Change stream for %s interrupted: %s", user_id, exc)
                    return
                if message is None:
                    yield ": keep-alive\n\n"
                    continue
                data = message.get("data")
                if isinstance(data, bytes):
                    data = data.decode("utf-8")
                yield f"event: change\ndata: {data}\n\n"
        finally:
            pubsub.close()

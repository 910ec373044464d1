# foodorder/services/realtime.py
import json
from typing import Protocol

import redis

from foodorder.celery_worker import celery_app
from foodorder.utils.retry import redis_retry
from foodorder.utils.settings import REDIS_URL
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_ORDERS_CHANNEL = "private-admin-orders"
ORDER_CHANNEL_PREFIX = "private-order-"

ORDER_SUBMITTED_EVENT = "order.submitted"


def build_order_channel_name(display_id: str) -> str:
    return f"{ORDER_CHANNEL_PREFIX}{display_id}"


class RealtimePublisher(Protocol):
    def publish(self, channel: str, event_name: str, payload: dict) -> None: ...


class RedisRealtimePublisher:
    """Publikuje {"event", "data"} jako JSON na kanal redis pub/sub."""

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def publish(self, channel: str, event_name: str, payload: dict) -> None:
        message = json.dumps({"event": event_name, "data": payload}, default=str)
        receivers = self.redis.publish(channel, message)
        logger.info(f"Publish {event_name} -> {channel} ({receivers} odbiorcow)")


class QueuedRealtimePublisher:
    """
    Fire-and-forget: wrzuca publikacje do kolejki Celery,
    request nie czeka na redis pub/sub.
    """

    def publish(self, channel: str, event_name: str, payload: dict) -> None:
        publish_realtime_event_task.delay(channel, event_name, payload)


@celery_app.task(name="foodorder.services.realtime.publish_realtime_event_task")
def publish_realtime_event_task(channel: str, event_name: str, payload: dict):
    RedisRealtimePublisher().publish(channel, event_name, payload)
    return {"channel": channel, "event": event_name, "status": "sent"}

# foodorder/services/notification_service.py
from foodorder.domain.schemas import OrderSubmittedPayload
from foodorder.services.realtime import (
    ADMIN_ORDERS_CHANNEL,
    ORDER_SUBMITTED_EVENT,
    QueuedRealtimePublisher,
    RealtimePublisher,
    build_order_channel_name,
)
from foodorder.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia realtime o zamowieniach (kanal admina + kanal zamowienia).
    Best-effort: zamowienie jest juz zapisane, wiec bledy tylko logujemy.
    """

    def __init__(self, publisher: RealtimePublisher | None = None):
        self.publisher = publisher or QueuedRealtimePublisher()

    def broadcast_order_submitted(self, payload: OrderSubmittedPayload) -> int:
        """Zwraca liczbe kanalow, na ktore publikacja sie udala."""
        data = payload.model_dump(by_alias=True, mode="json")
        channels = [ADMIN_ORDERS_CHANNEL, build_order_channel_name(payload.display_id)]

        delivered = 0
        for channel in channels:
            try:
                self.publisher.publish(channel, ORDER_SUBMITTED_EVENT, data)
                delivered += 1
            except Exception:
                logger.exception(
                    f"[NOTIFICATION] Nie udalo sie opublikowac {ORDER_SUBMITTED_EVENT} "
                    f"dla {payload.display_id} na {channel}"
                )

        logger.info(f"[NOTIFICATION] Order {payload.display_id} submitted, kanaly: {delivered}/{len(channels)}")
        return delivered

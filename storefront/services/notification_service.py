# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, handed off to Celery.
    Payment instructions go out manually (WhatsApp), this only records the event.
    """

    @staticmethod
    def send_order_notification(user_id: str, order_id: str, amount) -> None:
        send_order_notification_task.delay(user_id, order_id, str(amount))


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: str, amount: str):
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} placed, awaiting payment of {amount}")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}

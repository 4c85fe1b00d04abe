# shop/services/notification_service.py
import smtplib
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from shop.celery_worker import celery_app
from shop.data.database import SessionLocal
from shop.data.models.user import UserModel
from shop.utils.settings import SMTP_SERVER, SMTP_PORT, SENDER_EMAIL, SENDER_PASSWORD
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications. Publishing goes to Celery and returns immediately;
    a failure to publish is logged and reported as False, never raised.
    """

    def send_order_confirmation(self, user_id: str, order_id: int, total: Decimal) -> bool:
        try:
            # retry=False: a dead broker must not stall the checkout request
            send_order_confirmation_task.apply_async(
                args=(user_id, order_id, str(total)),
                retry=False,
            )
        except Exception as e:
            logger.warning(f"Could not queue confirmation for order {order_id} (user {user_id}): {e}")
            return False

        logger.info(f"Queued confirmation for order {order_id} (user {user_id})")
        return True


def _render_confirmation(name: str, order_id: int, total: str) -> str:
    return (
        f"<p>Hello {name},</p>"
        f"<p>Thank you for your order <b>#{order_id}</b>.</p>"
        f"<p>Amount charged to your wallet: <b>${total}</b></p>"
    )


def _send_mail(recipient: str, subject: str, body: str) -> None:
    msg = MIMEMultipart()
    msg["From"] = SENDER_EMAIL
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "html"))

    with smtplib.SMTP(SMTP_SERVER, SMTP_PORT, timeout=10) as server:
        server.starttls()
        server.login(SENDER_EMAIL, SENDER_PASSWORD)
        server.sendmail(SENDER_EMAIL, recipient, msg.as_string())


@celery_app.task(
    name="shop.services.notification_service.send_order_confirmation_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_order_confirmation_task(user_id: str, order_id: int, total: str):
    """
    Celery task: emails the order confirmation when SMTP is configured,
    otherwise only logs it.
    """
    db = SessionLocal()
    try:
        user = db.get(UserModel, user_id)
    finally:
        db.close()

    if not SMTP_SERVER or not user or not user.email:
        logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} placed, total {total}")
        return {"user_id": user_id, "order_id": order_id, "status": "logged"}

    _send_mail(
        user.email,
        f"Order #{order_id} confirmation",
        _render_confirmation(user.name, order_id, total),
    )
    logger.info(f"Confirmation for order {order_id} sent to {user.email}")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}

# shop/tasks/reconcile.py
from shop.celery_worker import celery_app
from shop.data.database import SessionLocal
from shop.services.order_store import OrderStore
from shop.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="shop.tasks.reconcile.report_unreconciled_orders_task")
def report_unreconciled_orders_task():
    """
    Periodic reminder: logs every order left in an inconsistent
    paid/unpaid state by a failed checkout.
    """
    logger.info("Reconciliation sweep started")

    db = SessionLocal()
    try:
        flagged = OrderStore(db).list_flagged_orders()

        logger.info(f"Found {len(flagged)} orders waiting for reconciliation")

        for order in flagged:
            logger.warning(
                f"Order {order.id} (user {order.user_id}, total {order.total}, "
                f"status {order.status}) needs reconciliation: {order.reconciliation_note}"
            )

        return [order.id for order in flagged]
    finally:
        db.close()

# shop/celery_worker.py
from celery import Celery

from shop.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "shop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# import tasks explicitly so the worker registers them
celery_app.conf.imports = (
    "shop.tasks.reconcile",
    "shop.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "report-unreconciled-orders-every-10-minutes": {
        "task": "shop.tasks.reconcile.report_unreconciled_orders_task",
        "schedule": 600.0,
    },
}

celery_app.conf.timezone = "UTC"

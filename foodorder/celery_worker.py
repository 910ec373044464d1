# foodorder/celery_worker.py
from celery import Celery

from foodorder.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "foodorder",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "foodorder.services.realtime",
)

celery_app.conf.timezone = "UTC"
celery_app.conf.task_ignore_result = True

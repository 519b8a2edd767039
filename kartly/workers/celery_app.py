# kartly/workers/celery_app.py
from celery import Celery

from kartly.core.config import settings

celery_app = Celery(
    "kartly",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["kartly.workers.maintenance_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.BUSINESS_TIMEZONE,
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

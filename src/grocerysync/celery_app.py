"""Celery application configuration for meal plan event delivery."""

import os

from celery import Celery

from grocerysync.config import get_settings

settings = get_settings()

# Celery's database result backend takes the SQLAlchemy URL behind a db+ prefix
RESULT_BACKEND_URL = f"db+{settings.database_url}"

celery_app = Celery(
    "grocerysync",
    broker=settings.redis_url,
    backend=RESULT_BACKEND_URL,
    include=["grocerysync.tasks.events"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    enable_utc=True,
    # Task execution settings
    task_acks_late=True,  # Acknowledge after the event is applied
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # Result settings
    result_expires=86400,
    # Retry settings (default for all tasks)
    task_default_retry_delay=30,
    task_max_retries=5,
    # Queue routing
    task_routes={
        "grocerysync.tasks.events.*": {"queue": "meal-plan-events"},
    },
    # Logging
    worker_hijack_root_logger=False,
)

if os.name == "nt":
    celery_app.conf.update(
        worker_pool="solo",
    )

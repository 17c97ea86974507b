# rentez/workers/celery_app.py
from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from ..config import settings

celery_app = Celery(
    "rentez",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["rentez.workers.rent_tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    timezone="UTC",
    enable_utc=True,
)

celery_app.conf.task_routes = {
    "rentez.workers.rent_tasks.*": {"queue": "rent"},
}

celery_app.conf.beat_schedule = {
    "mark-overdue-payments": {
        "task": "rentez.workers.rent_tasks.mark_overdue_payments",
        "schedule": crontab(hour=settings.overdue_sweep_hour_utc, minute=0),
    },
    "send-rent-reminders": {
        "task": "rentez.workers.rent_tasks.send_rent_reminders",
        "schedule": crontab(hour=settings.reminder_hour_utc, minute=0),
    },
}

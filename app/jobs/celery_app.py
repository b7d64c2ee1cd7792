"""Celery application shared by the web process (publisher) and the worker."""

from __future__ import annotations

from celery import Celery

from app.core.config import settings

celery_app = Celery("approvals.jobs", include=["app.jobs.worker"])
celery_app.conf.broker_url = settings.celery_broker_url
celery_app.conf.result_backend = settings.celery_result_backend
celery_app.conf.task_default_queue = settings.celery_queue_name
celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.enable_utc = True
celery_app.conf.timezone = "UTC"

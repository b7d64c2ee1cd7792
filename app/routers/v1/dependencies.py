"""Shared FastAPI dependencies for v1 routers: external collaborators.

Tests replace these through ``app.dependency_overrides``.
"""

from functools import lru_cache

from app.core.config import settings
from app.jobs.celery_app import celery_app
from app.jobs.queue import CeleryJobQueue, JobQueue
from app.storage.object_store import ObjectStore, object_store_from_settings


@lru_cache
def get_object_store() -> ObjectStore:
    return object_store_from_settings(settings)


@lru_cache
def get_job_queue() -> JobQueue:
    return CeleryJobQueue(celery_app, queue=settings.celery_queue_name)

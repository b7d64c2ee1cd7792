"""Job queue collaborator — the core only enqueues; execution belongs to the worker."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from celery import Celery
from kombu.exceptions import KombuError

from app.core.exceptions import JobQueueError

logger = logging.getLogger(__name__)

CONVERT_TO_PDF_JOB = "files.convert_to_pdf"


class JobQueue(Protocol):
    async def enqueue(
        self,
        job_name: str,
        payload: dict[str, Any],
        *,
        tenant_id: str,
        actor_id: str | None,
        trace_id: str | None,
    ) -> str: ...


class CeleryJobQueue:
    """Publishes jobs by name so the web process never imports worker code."""

    def __init__(self, celery_app: Celery, queue: str | None = None):
        self._app = celery_app
        self._queue = queue

    async def enqueue(
        self,
        job_name: str,
        payload: dict[str, Any],
        *,
        tenant_id: str,
        actor_id: str | None,
        trace_id: str | None,
    ) -> str:
        envelope = {
            "payload": payload,
            "tenant_id": tenant_id,
            "actor_id": actor_id,
            "trace_id": trace_id,
        }
        try:
            result = await asyncio.to_thread(
                self._app.send_task, job_name, kwargs=envelope, queue=self._queue,
            )
        except (KombuError, OSError) as exc:
            logger.error("Failed to enqueue %s: %s", job_name, exc)
            raise JobQueueError(f"Failed to enqueue job '{job_name}'") from exc
        return result.id

"""Celery tasks. Run with ``celery -A app.jobs.celery_app worker``."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.core.config import settings
from app.db.base import build_engine, build_session_factory
from app.jobs.celery_app import celery_app
from app.jobs.queue import CONVERT_TO_PDF_JOB
from app.services.conversion import ConversionService
from app.storage.object_store import object_store_from_settings

LOGGER = logging.getLogger(__name__)


async def run_conversion(
    evidence_file_id: str, tenant_id: str, trace_id: str | None = None
) -> str:
    """Convert one evidence file in its own session; returns the final status.

    Each task runs in a fresh event loop, so it gets its own engine too.
    """
    engine = build_engine(settings.database_url)
    try:
        async with build_session_factory(engine)() as session:
            service = ConversionService(
                session, tenant_id, store=object_store_from_settings(settings)
            )
            try:
                evidence = await service.convert(evidence_file_id, trace_id)
            finally:
                # Persist CONVERT_FAILED as well as READY
                await session.commit()
            return evidence.status
    finally:
        await engine.dispose()


@celery_app.task(name=CONVERT_TO_PDF_JOB)
def convert_to_pdf(
    payload: dict[str, Any],
    tenant_id: str,
    actor_id: str | None = None,
    trace_id: str | None = None,
) -> str:
    evidence_file_id = payload["evidenceFileId"]
    LOGGER.info(
        "job %s start evidence=%s tenant=%s actor=%s trace=%s",
        CONVERT_TO_PDF_JOB, evidence_file_id, tenant_id, actor_id, trace_id,
    )
    return asyncio.run(run_conversion(evidence_file_id, tenant_id, trace_id))

"""Office → PDF conversion step run by the background worker.

Owns the CONVERT_PENDING → READY | CONVERT_FAILED transition of an evidence
file. The rendering itself is delegated to an injected converter.
"""


import asyncio
import logging
import re
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.domain.evidence import EvidenceFile, EvidenceStatus
from app.repositories.evidence import EvidenceFileRepository
from app.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

# (source bytes, original filename) -> PDF bytes
Converter = Callable[[bytes, str], bytes]

PDF_MIME_TYPE = "application/pdf"


def view_key_for(source_key: str) -> str:
    """``.../source/report.xlsx`` -> ``.../view/report.pdf``"""
    view_key = source_key.replace("/source/", "/view/", 1)
    return re.sub(r"\.\w+$", "", view_key) + ".pdf"


def placeholder_pdf(source: bytes, original_name: str) -> bytes:
    """Single-page PDF stating the upload was received; stands in until a real renderer is wired."""
    text = f"Placeholder for {original_name} ({len(source)} bytes)"
    text = text.encode("latin-1", "replace").decode("latin-1")
    text = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    stream = f"BT /F1 14 Tf 72 720 Td ({text}) Tj ET"
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        "/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = "%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out.encode("latin-1")))
        out += f"{number} 0 obj\n{body}\nendobj\n"
    xref_at = len(out.encode("latin-1"))
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n"
    out += "".join(f"{offset:010d} 00000 n \n" for offset in offsets)
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n"
    return out.encode("latin-1")


class ConversionService:
    def __init__(
        self,
        session: AsyncSession,
        tenant_id: str,
        *,
        store: ObjectStore,
        converter: Converter = placeholder_pdf,
    ):
        self._repo = EvidenceFileRepository(session, tenant_id)
        self._tenant_id = tenant_id
        self._store = store
        self._converter = converter

    async def convert(self, evidence_file_id: str, trace_id: str | None = None) -> EvidenceFile:
        evidence = await self._repo.get_by_id(evidence_file_id)
        if not evidence:
            logger.error(
                "Conversion target %s not found for tenant %s", evidence_file_id, self._tenant_id
            )
            raise NotFoundError("Evidence file", evidence_file_id)

        if evidence.status != EvidenceStatus.CONVERT_PENDING.value:
            # Already processed (job redelivered) or never convertible
            logger.warning(
                "Skipping conversion of %s in status %s", evidence_file_id, evidence.status
            )
            return evidence

        if not evidence.source_key:
            logger.error("Evidence %s has no source key; marking failed", evidence_file_id)
            await self._repo.set_status(evidence_file_id, EvidenceStatus.CONVERT_FAILED)
            return await self._repo.reload(evidence_file_id)  # type: ignore[return-value]

        try:
            source = await self._store.get(evidence.source_key)
            pdf = await asyncio.to_thread(self._converter, source, evidence.original_name)
            view_key = view_key_for(evidence.source_key)
            await self._store.put(view_key, pdf, PDF_MIME_TYPE)
        except Exception:
            logger.exception("Conversion of %s failed (trace=%s)", evidence_file_id, trace_id)
            await self._repo.set_status(
                evidence_file_id,
                EvidenceStatus.CONVERT_FAILED,
                expected=EvidenceStatus.CONVERT_PENDING,
            )
            raise

        await self._repo.set_status(
            evidence_file_id,
            EvidenceStatus.READY,
            expected=EvidenceStatus.CONVERT_PENDING,
            view_key=view_key,
        )
        logger.info(
            "Converted %s -> %s (%d bytes, trace=%s)", evidence_file_id, view_key, len(pdf), trace_id
        )
        return await self._repo.reload(evidence_file_id)  # type: ignore[return-value]

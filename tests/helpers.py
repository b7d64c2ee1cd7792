"""Shared fakes and constants for the test suite."""

from datetime import datetime, timedelta, timezone
from typing import Any

from app.core.exceptions import StorageError
from app.storage.object_store import SignedUrl

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"
ACTOR = "user-1"

T0 = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class FakeObjectStore:
    """Dict-backed object store; records every write."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self.objects[key] = (data, content_type)

    async def get(self, key: str) -> bytes:
        try:
            return self.objects[key][0]
        except KeyError as exc:
            raise StorageError(f"Failed to read object '{key}'") from exc

    async def signed_url(self, key: str, expires_in: int) -> SignedUrl:
        return SignedUrl(
            url=f"https://objects.test/{key}?expires={expires_in}",
            expires_at=T0 + timedelta(seconds=expires_in),
        )


class FailingObjectStore(FakeObjectStore):
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        raise StorageError(f"Failed to write object '{key}'")


class FakeJobQueue:
    def __init__(self):
        self.jobs: list[dict[str, Any]] = []

    async def enqueue(self, job_name, payload, *, tenant_id, actor_id, trace_id) -> str:
        self.jobs.append(
            {
                "name": job_name,
                "payload": payload,
                "tenant_id": tenant_id,
                "actor_id": actor_id,
                "trace_id": trace_id,
            }
        )
        return f"job-{len(self.jobs)}"


class FixedClock:
    """Settable clock; call ``advance`` to move time forward."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def headers(tenant: str = TENANT, actor: str = ACTOR, **extra: str) -> dict[str, str]:
    return {"X-Tenant-ID": tenant, "X-Actor-ID": actor, **extra}

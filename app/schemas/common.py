"""Base schema for request and response bodies, plus the health payload."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire (`evidenceTtlSeconds`).

    `from_attributes` lets routers validate ORM rows directly.
    """

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "from_attributes": True,
    }


class HealthResponse(CamelModel):
    status: str = "ok"
    app: str
    env: str
    storage_backend: str

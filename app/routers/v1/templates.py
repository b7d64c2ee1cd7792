"""Request template router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import RequestContext, get_request_context
from app.core.pagination import PaginationParams
from app.core.response import DataResponse, ListResponse, paginated
from app.db.base import get_db
from app.schemas.request import TemplateCreate, TemplateOut
from app.services.templates import TemplateService

router = APIRouter(prefix="/templates", tags=["Templates"])


@router.get("", response_model=ListResponse[TemplateOut])
async def list_templates(
    pagination: PaginationParams = Depends(),
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    items, total = await TemplateService(session, ctx.tenant_id).list_templates(pagination)
    return paginated(
        [TemplateOut.model_validate(t) for t in items],
        total, pagination.page, pagination.limit,
    )


@router.post("", response_model=DataResponse[TemplateOut], status_code=status.HTTP_201_CREATED)
async def create_template(
    body: TemplateCreate,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    template = await TemplateService(session, ctx.tenant_id).create_template(
        body, ctx.actor_id, ctx.trace_id
    )
    return {"data": TemplateOut.model_validate(template)}


@router.get("/{template_id}", response_model=DataResponse[TemplateOut])
async def get_template(
    template_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
):
    template = await TemplateService(session, ctx.tenant_id).get_template(template_id)
    return {"data": TemplateOut.model_validate(template)}

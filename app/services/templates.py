"""Request template service — evidence policy defaults for new requests."""


from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.pagination import PaginationParams
from app.domain.request import RequestTemplate
from app.repositories.request import TemplateRepository
from app.schemas.request import TemplateCreate
from app.services.audit import TEMPLATE_CREATED, AuditService

class TemplateService:
    def __init__(self, session: AsyncSession, tenant_id: str):
        self._repo = TemplateRepository(session, tenant_id)
        self._audit = AuditService(session, tenant_id)

    async def list_templates(self, pagination: PaginationParams):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
        )

    async def get_template(self, template_id: str) -> RequestTemplate:
        template = await self._repo.get_by_id(template_id)
        if not template:
            raise NotFoundError("Template", template_id)
        return template

    async def create_template(
        self, data: TemplateCreate, actor_id: str, trace_id: str | None = None
    ) -> RequestTemplate:
        template = await self._repo.create(created_by=actor_id, **data.model_dump())
        await self._audit.append(
            actor_id=actor_id,
            trace_id=trace_id,
            event_name=TEMPLATE_CREATED,
            event_data={
                "templateId": template.id,
                "name": template.name,
                "evidenceRequiredForApproval": template.evidence_required_for_approval,
                "evidenceTtlSeconds": template.evidence_ttl_seconds,
            },
            entity_type="template",
            entity_id=template.id,
        )
        return template

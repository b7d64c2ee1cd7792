"""Request lifecycle service — creation with policy resolution, lookup, submission.

Approval and rejection live in :mod:`app.services.approval`.
"""


import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.domain.request import ApprovalRequest, RequestStatus
from app.repositories.request import RequestRepository
from app.schemas.request import RequestCreate
from app.services.audit import REQUEST_CREATED, REQUEST_SUBMITTED, AuditService
from app.services.templates import TemplateService

logger = logging.getLogger(__name__)

_POLICY_FIELDS = ("evidence_required_for_approval", "evidence_ttl_seconds")


class RequestService:
    def __init__(self, session: AsyncSession, tenant_id: str):
        self._repo = RequestRepository(session, tenant_id)
        self._templates = TemplateService(session, tenant_id)
        self._audit = AuditService(session, tenant_id)

    async def _resolve_policy(self, data: RequestCreate) -> tuple[dict[str, Any], str]:
        """Return (policy, source); explicit fields win over the template, the template over defaults."""
        policy: dict[str, Any] = {
            "evidence_required_for_approval": False,
            "evidence_ttl_seconds": None,
        }
        source = "default"
        if data.template_id:
            template = await self._templates.get_template(data.template_id)
            policy = {
                "evidence_required_for_approval": template.evidence_required_for_approval,
                "evidence_ttl_seconds": template.evidence_ttl_seconds,
            }
            source = "template"

        overrides = {
            name: getattr(data, name)
            for name in _POLICY_FIELDS
            if name in data.model_fields_set
        }
        # An explicit null for "required" means "not specified", not "false"
        if overrides.get("evidence_required_for_approval", False) is None:
            overrides.pop("evidence_required_for_approval")
        if overrides:
            policy.update(overrides)
            source = "override"
        return policy, source

    async def create_request(
        self, data: RequestCreate, actor_id: str, trace_id: str | None = None
    ) -> ApprovalRequest:
        policy, source = await self._resolve_policy(data)
        request = await self._repo.create(
            title=data.title,
            requester_id=data.requester_id or actor_id,
            template_id=data.template_id,
            status=RequestStatus.DRAFT.value,
            **policy,
        )
        await self._audit.append(
            actor_id=actor_id,
            trace_id=trace_id,
            event_name=REQUEST_CREATED,
            event_data={
                "requestId": request.id,
                "requesterId": request.requester_id,
                "templateId": data.template_id,
                "effectivePolicy": {
                    "evidenceRequiredForApproval": request.evidence_required_for_approval,
                    "evidenceTtlSeconds": request.evidence_ttl_seconds,
                },
                "source": source,
            },
            entity_type="request",
            entity_id=request.id,
        )
        logger.info("Request %s created (policy source=%s)", request.id, source)
        return request

    async def get_request(self, request_id: str) -> ApprovalRequest:
        request = await self._repo.get_by_id(request_id)
        if not request:
            raise NotFoundError("Request", request_id)
        return request

    async def submit_request(
        self, request_id: str, actor_id: str, trace_id: str | None = None
    ) -> ApprovalRequest:
        request = await self.get_request(request_id)
        swapped = await self._repo.transition(
            request_id,
            from_statuses=(RequestStatus.DRAFT.value,),
            to_status=RequestStatus.SUBMITTED.value,
        )
        if not swapped:
            raise ConflictError(
                f"Request '{request_id}' cannot be submitted from status {request.status}",
                details={"status": request.status},
            )
        await self._audit.append(
            actor_id=actor_id,
            trace_id=trace_id,
            event_name=REQUEST_SUBMITTED,
            event_data={"requestId": request_id},
            entity_type="request",
            entity_id=request_id,
        )
        return await self._repo.reload(request_id)  # type: ignore[return-value]

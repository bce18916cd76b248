from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from agrihero.apps.api.deps import Principal, get_repository, require_super_admin
from agrihero.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from agrihero.domain.entities import AuditLog
from agrihero.persistence.filters import AuditLogFilter
from agrihero.persistence.repository import Repository


router = APIRouter(prefix="/audit-logs", tags=["audit"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[AuditLog])
async def list_audit_logs(
    action: str | None = None,
    admin_id: int | None = Query(default=None, alias="adminId"),
    _principal: Principal = Depends(require_super_admin),
    repository: Repository = Depends(get_repository),
) -> list[AuditLog]:
    # The audit trail itself is readable only by super admins.
    return await repository.audit_logs.list_all(AuditLogFilter(action=action, admin_id=admin_id))

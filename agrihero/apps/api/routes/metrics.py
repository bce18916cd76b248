from __future__ import annotations

from fastapi import APIRouter, Depends

from agrihero.apps.api.deps import Principal, get_repository, require_admin
from agrihero.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from agrihero.domain.entities import SystemMetric
from agrihero.persistence.filters import SystemMetricFilter
from agrihero.persistence.repository import Repository


router = APIRouter(prefix="/metrics", tags=["metrics"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[SystemMetric])
async def list_system_metrics(
    type: str | None = None,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> list[SystemMetric]:
    return await repository.system_metrics.list_all(SystemMetricFilter(type=type))

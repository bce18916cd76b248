from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agrihero.apps.api.deps import Principal, get_repository, require_admin
from agrihero.apps.api.openapi import DEFAULT_ERROR_RESPONSES, NOT_FOUND_RESPONSE
from agrihero.domain.entities import ComplianceReport
from agrihero.persistence.filters import ComplianceReportFilter
from agrihero.persistence.repository import Repository
from agrihero.services import audit


router = APIRouter(prefix="/compliance-reports", tags=["compliance"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[ComplianceReport])
async def list_compliance_reports(
    type: str | None = None,
    status: str | None = None,
    region: str | None = None,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> list[ComplianceReport]:
    report_filter = ComplianceReportFilter(type=type, status=status, region=region)
    return await repository.compliance_reports.list_all(report_filter)


@router.post("/{report_id}/generate", response_model=ComplianceReport, responses=NOT_FOUND_RESPONSE)
async def generate_compliance_report(
    report_id: int,
    principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> ComplianceReport:
    # Generation refreshes lastGenerated only; report content and pendingActions are left as stored.
    report = await repository.compliance_reports.touch(report_id, "last_generated")
    if report is None:
        raise HTTPException(status_code=404, detail="Compliance report not found")
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.COMPLIANCE_REPORT_GENERATION,
        metadata={"reportId": report_id, "reportType": report.type},
    )
    return report

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agrihero.apps.api.deps import Principal, get_repository, require_admin
from agrihero.apps.api.openapi import DEFAULT_ERROR_RESPONSES, NOT_FOUND_RESPONSE
from agrihero.domain.entities import Content
from agrihero.domain.schemas import ContentModeration
from agrihero.persistence.filters import ContentFilter
from agrihero.persistence.repository import Repository
from agrihero.services import audit


router = APIRouter(prefix="/contents", tags=["contents"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[Content])
async def list_contents(
    type: str | None = None,
    status: str | None = None,
    reported: bool | None = None,
    region: str | None = None,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> list[Content]:
    content_filter = ContentFilter(type=type, status=status, reported=reported, region=region)
    return await repository.contents.list_all(content_filter)


@router.put("/{content_id}/moderate", response_model=Content, responses=NOT_FOUND_RESPONSE)
async def moderate_content(
    content_id: int,
    payload: ContentModeration,
    principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> Content:
    # Moderation is the only path that changes a content item's status.
    content = await repository.contents.get(content_id)
    if content is None:
        raise HTTPException(status_code=404, detail="Content not found")
    updated = await repository.contents.update(content_id, {"status": payload.status})
    if updated is None:
        raise HTTPException(status_code=404, detail="Content not found")
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.CONTENT_MODERATION,
        metadata={
            "contentId": content_id,
            "oldStatus": content.status,
            "newStatus": payload.status,
            "reason": payload.reason,
        },
    )
    return updated

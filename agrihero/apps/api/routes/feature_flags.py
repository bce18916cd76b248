from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agrihero.apps.api.deps import Principal, get_repository, require_admin, require_super_admin
from agrihero.apps.api.openapi import CONFLICT_RESPONSE, DEFAULT_ERROR_RESPONSES, NOT_FOUND_RESPONSE
from agrihero.domain.entities import FeatureFlag
from agrihero.domain.schemas import FeatureFlagCreate, FeatureFlagUpdate
from agrihero.persistence.filters import FeatureFlagFilter
from agrihero.persistence.repository import Repository
from agrihero.services import audit


router = APIRouter(prefix="/feature-flags", tags=["feature-flags"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[FeatureFlag])
async def list_feature_flags(
    scope: str | None = None,
    enabled: bool | None = None,
    region: str | None = None,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> list[FeatureFlag]:
    # A region query matches flags whose region list contains it.
    flag_filter = FeatureFlagFilter(
        scope=scope,
        enabled=enabled,
        regions=(region,) if region else None,
    )
    return await repository.feature_flags.list_all(flag_filter)


@router.post("", response_model=FeatureFlag, status_code=201, responses=CONFLICT_RESPONSE)
async def create_feature_flag(
    payload: FeatureFlagCreate,
    principal: Principal = Depends(require_super_admin),
    repository: Repository = Depends(get_repository),
) -> FeatureFlag:
    flag = await repository.feature_flags.create({**payload.to_fields(), "updated_by": principal.id})
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.FEATURE_FLAG_CREATION,
        metadata={"flagId": flag.id, "flagName": flag.name},
    )
    return flag


@router.put(
    "/{flag_id}",
    response_model=FeatureFlag,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
)
async def update_feature_flag(
    flag_id: int,
    payload: FeatureFlagUpdate,
    principal: Principal = Depends(require_super_admin),
    repository: Repository = Depends(get_repository),
) -> FeatureFlag:
    flag = await repository.feature_flags.get(flag_id)
    if flag is None:
        raise HTTPException(status_code=404, detail="Feature flag not found")
    changes = payload.to_fields()
    # Every update is attributed to the acting admin.
    updated = await repository.feature_flags.update(flag_id, {**changes, "updated_by": principal.id})
    if updated is None:
        raise HTTPException(status_code=404, detail="Feature flag not found")
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.FEATURE_FLAG_UPDATE,
        metadata={
            "flagId": flag_id,
            "flagName": flag.name,
            "oldEnabled": flag.enabled,
            "newEnabled": changes.get("enabled", flag.enabled),
        },
    )
    return updated

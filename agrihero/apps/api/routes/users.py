from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from agrihero.apps.api.deps import (
    Principal,
    get_app_settings,
    get_repository,
    get_session_store,
    require_admin,
    require_super_admin,
)
from agrihero.apps.api.openapi import CONFLICT_RESPONSE, DEFAULT_ERROR_RESPONSES, NOT_FOUND_RESPONSE
from agrihero.core.config import Settings
from agrihero.domain.entities import User
from agrihero.domain.schemas import UserCreate, UserUpdate
from agrihero.persistence.filters import UserFilter
from agrihero.persistence.repository import Repository
from agrihero.services import audit
from agrihero.services.auth.passwords import hash_password
from agrihero.services.auth.sessions import SessionStore


router = APIRouter(prefix="/users", tags=["users"], responses=DEFAULT_ERROR_RESPONSES)


class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    username: str
    email: str
    full_name: str
    role: str
    region: str | None
    status: str
    last_active: datetime


def to_user_response(user: User) -> UserResponse:
    # Password hashes never leave the server.
    return UserResponse.model_validate(user.model_dump(exclude={"password"}))


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="User not found")


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: str | None = None,
    region: str | None = None,
    status: str | None = None,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> list[UserResponse]:
    users = await repository.users.list_all(UserFilter(role=role, region=region, status=status))
    return [to_user_response(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse, responses=NOT_FOUND_RESPONSE)
async def get_user(
    user_id: int,
    _principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
) -> UserResponse:
    user = await repository.users.get(user_id)
    if user is None:
        raise _not_found()
    return to_user_response(user)


@router.post(
    "",
    response_model=UserResponse,
    status_code=201,
    responses=CONFLICT_RESPONSE,
)
async def create_user(
    payload: UserCreate,
    principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> UserResponse:
    fields = payload.to_fields()
    fields["password"] = hash_password(fields["password"], iterations=settings.password_hash_iterations)
    user = await repository.users.create(fields)
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.USER_CREATION,
        metadata={"userId": user.id, "userRole": user.role},
    )
    return to_user_response(user)


@router.put("/{user_id}", response_model=UserResponse, responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE})
async def update_user(
    user_id: int,
    payload: UserUpdate,
    principal: Principal = Depends(require_admin),
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> UserResponse:
    changes = payload.to_fields()
    if "password" in changes:
        changes["password"] = hash_password(changes["password"], iterations=settings.password_hash_iterations)
    user = await repository.users.update(user_id, changes)
    if user is None:
        raise _not_found()
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.USER_UPDATE,
        metadata={"userId": user_id, "updates": payload.changed_keys()},
    )
    return to_user_response(user)


@router.delete(
    "/{user_id}",
    status_code=204,
    response_class=Response,
    responses=NOT_FOUND_RESPONSE,
)
async def delete_user(
    user_id: int,
    principal: Principal = Depends(require_super_admin),
    repository: Repository = Depends(get_repository),
    sessions: SessionStore = Depends(get_session_store),
) -> Response:
    user = await repository.users.get(user_id)
    if user is None:
        raise _not_found()
    if not await repository.users.delete(user_id):
        # Removed concurrently between the lookup and the delete.
        raise _not_found()
    sessions.revoke_user(user_id)
    await audit.record_event(
        repository,
        admin_id=principal.id,
        action=audit.USER_DELETION,
        metadata={"userId": user_id, "userRole": user.role, "userEmail": user.email},
    )
    return Response(status_code=204)

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from agrihero.apps.api.deps import (
    Principal,
    extract_session_token,
    get_app_settings,
    get_current_principal,
    get_repository,
    get_session_store,
)
from agrihero.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from agrihero.apps.api.routes.users import UserResponse, to_user_response
from agrihero.core.config import Settings
from agrihero.persistence.repository import Repository
from agrihero.services.auth.passwords import verify_password
from agrihero.services.auth.sessions import SessionStore


logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"], responses=DEFAULT_ERROR_RESPONSES)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(UserResponse):
    # Returned for non-browser clients that send the token as a bearer header.
    token: str


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    repository: Repository = Depends(get_repository),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> LoginResponse:
    user = await repository.users.find_first(username=payload.username)
    if user is None or not verify_password(payload.password, user.password):
        logger.info("login_failed username=%s", payload.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if user.status == "suspended":
        raise HTTPException(status_code=401, detail="Account suspended")
    token = sessions.create(user.id)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    logger.info("login_succeeded user_id=%s role=%s", user.id, user.role)
    return LoginResponse(**to_user_response(user).model_dump(), token=token)


@router.post("/logout", status_code=204, response_class=Response)
async def logout(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    token = extract_session_token(request, settings)
    if token:
        sessions.revoke(token)
    response = Response(status_code=204)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/user", response_model=UserResponse)
async def current_user(
    principal: Principal = Depends(get_current_principal),
    repository: Repository = Depends(get_repository),
) -> UserResponse:
    user = await repository.users.get(principal.id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return to_user_response(user)

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from agrihero.core.config import Settings
from agrihero.persistence.repository import Repository
from agrihero.services.auth.roles import AccessDecision, AccessTier, check_access
from agrihero.services.auth.sessions import SessionStore


logger = logging.getLogger(__name__)

_FORBIDDEN_MESSAGES: dict[AccessTier, str] = {
    AccessTier.ADMIN: "Forbidden: Admin role required",
    AccessTier.SUPER_ADMIN: "Forbidden: Super Admin role required",
}


def get_repository(request: Request) -> Repository:
    # The repository is built at process start and injected through app state.
    return request.app.state.repository


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


class Principal(BaseModel):
    # Capture the authenticated admin used for RBAC and audit attribution.
    id: int
    username: str
    role: str


def _auth_error(message: str) -> HTTPException:
    # Normalize auth errors for clients without leaking internal details.
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "AUTH_UNAUTHORIZED", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden_error(message: str) -> HTTPException:
    # Use 403 for authenticated principals lacking permissions.
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": "AUTH_FORBIDDEN", "message": message},
    )


def extract_session_token(request: Request, settings: Settings) -> str | None:
    # Browsers send the session cookie; API clients may use a bearer header instead.
    cookie_token = request.cookies.get(settings.session_cookie_name)
    if cookie_token:
        return cookie_token
    header_value = request.headers.get("Authorization")
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def get_optional_principal(
    request: Request,
    repository: Repository = Depends(get_repository),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> Principal | None:
    token = extract_session_token(request, settings)
    if not token:
        return None
    user_id = sessions.resolve(token)
    if user_id is None:
        return None
    user = await repository.users.get(user_id)
    # Deleted or suspended accounts stop authenticating immediately.
    if user is None or user.status == "suspended":
        return None
    return Principal(id=user.id, username=user.username, role=user.role)


async def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise _auth_error("Unauthorized")
    return principal


def _enforce_tier(request: Request, principal: Principal | None, tier: AccessTier) -> Principal:
    decision = check_access(
        authenticated=principal is not None,
        role=principal.role if principal is not None else None,
        tier=tier,
    )
    if decision is AccessDecision.UNAUTHORIZED:
        logger.info("auth_unauthorized path=%s method=%s", request.url.path, request.method)
        raise _auth_error("Unauthorized")
    if decision is AccessDecision.FORBIDDEN:
        logger.info(
            "rbac_forbidden path=%s method=%s admin_id=%s role=%s required=%s",
            request.url.path,
            request.method,
            principal.id,
            principal.role,
            tier.value,
        )
        raise _forbidden_error(_FORBIDDEN_MESSAGES[tier])
    return principal


def require_tier(tier: AccessTier):
    # Dependency factory to enforce RBAC at the route level before any repository access.
    async def _dependency(
        request: Request,
        principal: Principal | None = Depends(get_optional_principal),
    ) -> Principal:
        return _enforce_tier(request, principal, tier)

    # Lets the validation handler find the tier a route requires.
    _dependency.access_tier = tier  # type: ignore[attr-defined]
    return _dependency


def route_access_tier(request: Request) -> AccessTier | None:
    route = request.scope.get("route")
    dependant = getattr(route, "dependant", None)
    if dependant is None:
        return None
    for dependency in dependant.dependencies:
        tier = getattr(dependency.call, "access_tier", None)
        if tier is not None:
            return tier
    return None


async def check_route_guard(request: Request) -> None:
    """Apply the matched route's access tier outside dependency resolution.

    FastAPI decodes a JSON body before it resolves dependencies, so a
    malformed body would otherwise be reported ahead of a missing session.
    Raises the same 401/403 errors as the route guard.
    """
    tier = route_access_tier(request)
    if tier is None:
        return
    principal = await get_optional_principal(
        request,
        repository=get_repository(request),
        sessions=get_session_store(request),
        settings=get_app_settings(request),
    )
    _enforce_tier(request, principal, tier)


require_admin = require_tier(AccessTier.ADMIN)
require_super_admin = require_tier(AccessTier.SUPER_ADMIN)

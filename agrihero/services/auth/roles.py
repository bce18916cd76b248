from __future__ import annotations

from enum import Enum


ADMIN_ROLES: frozenset[str] = frozenset({"support_agent", "regional_admin", "super_admin"})
SUPER_ADMIN_ROLES: frozenset[str] = frozenset({"super_admin"})


class AccessTier(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class AccessDecision(str, Enum):
    ALLOW = "allow"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"


_TIER_ROLES: dict[AccessTier, frozenset[str]] = {
    AccessTier.ADMIN: ADMIN_ROLES,
    AccessTier.SUPER_ADMIN: SUPER_ADMIN_ROLES,
}


def check_access(*, authenticated: bool, role: str | None, tier: AccessTier) -> AccessDecision:
    # Pure decision: authentication first, then tier membership.
    if not authenticated:
        return AccessDecision.UNAUTHORIZED
    if role not in _TIER_ROLES[tier]:
        return AccessDecision.FORBIDDEN
    return AccessDecision.ALLOW

from __future__ import annotations

import logging
from typing import Any

from agrihero.core.errors import AgriHeroError
from agrihero.domain.entities import AuditLog
from agrihero.domain.schemas import AuditLogCreate
from agrihero.persistence.repository import Repository


logger = logging.getLogger(__name__)

USER_CREATION = "user_creation"
USER_UPDATE = "user_update"
USER_DELETION = "user_deletion"
CONTENT_MODERATION = "content_moderation"
FEATURE_FLAG_CREATION = "feature_flag_creation"
FEATURE_FLAG_UPDATE = "feature_flag_update"
COMPLIANCE_REPORT_GENERATION = "compliance_report_generation"
PRODUCE_MARKET_CREATION = "produce_market_creation"
PRODUCE_MARKET_UPDATE = "produce_market_update"
PRODUCE_MARKET_DELETION = "produce_market_deletion"

AUDIT_ACTIONS: frozenset[str] = frozenset(
    {
        USER_CREATION,
        USER_UPDATE,
        USER_DELETION,
        CONTENT_MODERATION,
        FEATURE_FLAG_CREATION,
        FEATURE_FLAG_UPDATE,
        COMPLIANCE_REPORT_GENERATION,
        PRODUCE_MARKET_CREATION,
        PRODUCE_MARKET_UPDATE,
        PRODUCE_MARKET_DELETION,
    }
)

_SENSITIVE_KEY_PATTERNS = ["password", "authorization", "token", "secret"]
_REDACTED_VALUE = "[REDACTED]"


def _is_sensitive_key(key: str) -> bool:
    # Match sensitive key fragments case-insensitively to enforce redaction policy.
    lowered = key.lower()
    return any(pattern in lowered for pattern in _SENSITIVE_KEY_PATTERNS)


def sanitize_metadata(value: Any) -> Any:
    # Recursively scrub sensitive fields while preserving safe structure.
    if isinstance(value, dict):
        sanitized: dict[str, Any] = {}
        for raw_key, raw_value in value.items():
            key = str(raw_key)
            if _is_sensitive_key(key):
                sanitized[key] = _REDACTED_VALUE
            else:
                sanitized[key] = sanitize_metadata(raw_value)
        return sanitized
    if isinstance(value, list):
        return [sanitize_metadata(item) for item in value]
    return value


async def record_event(
    repository: Repository,
    *,
    admin_id: int | None,
    action: str,
    metadata: dict[str, Any] | None = None,
    best_effort: bool = True,
) -> AuditLog | None:
    """Append one audit entry for a completed administrative mutation.

    The primary mutation has already been stored when this runs. With
    ``best_effort`` a failed write is logged and ``None`` returned; the
    mutation is not rolled back.
    """
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unknown audit action: {action}")
    payload = AuditLogCreate(
        admin_id=admin_id,
        action=action,
        metadata=sanitize_metadata(metadata or {}),
    ).to_fields()
    try:
        return await repository.audit_logs.create(payload)
    except AgriHeroError as exc:
        if not best_effort:
            raise
        logger.warning("audit_event_write_failed action=%s admin_id=%s", action, admin_id, exc_info=exc)
        return None

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import hashlib
import secrets


TOKEN_PREFIX = "ahs_"


def _utc_now() -> datetime:
    # Keep session timestamps in UTC for consistent expiry checks.
    return datetime.now(timezone.utc)


def hash_session_token(raw_token: str) -> str:
    # Use SHA-256 for deterministic, non-reversible token storage.
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_session_token() -> tuple[str, str]:
    raw_token = f"{TOKEN_PREFIX}{secrets.token_urlsafe(32)}"
    return raw_token, hash_session_token(raw_token)


@dataclass
class SessionRecord:
    user_id: int
    created_at: datetime
    expires_at: datetime | None
    last_seen_at: datetime | None = None


class SessionStore:
    """In-process admin session store keyed by hashed token."""

    def __init__(self, *, ttl_hours: int | None = 24) -> None:
        self._ttl = timedelta(hours=ttl_hours) if ttl_hours else None
        self._sessions: dict[str, SessionRecord] = {}

    def create(self, user_id: int) -> str:
        raw_token, token_hash = generate_session_token()
        now = _utc_now()
        self.prune_expired(now)
        expires_at = now + self._ttl if self._ttl is not None else None
        self._sessions[token_hash] = SessionRecord(user_id=user_id, created_at=now, expires_at=expires_at)
        return raw_token

    def resolve(self, raw_token: str) -> int | None:
        token_hash = hash_session_token(raw_token)
        record = self._sessions.get(token_hash)
        if record is None:
            return None
        now = _utc_now()
        if record.expires_at is not None and record.expires_at <= now:
            # Drop expired sessions lazily on lookup.
            self._sessions.pop(token_hash, None)
            return None
        record.last_seen_at = now
        return record.user_id

    def prune_expired(self, now: datetime | None = None) -> int:
        # Sweep sessions whose tokens were abandoned after expiry and never presented again.
        now = now or _utc_now()
        stale = [
            key for key, record in self._sessions.items() if record.expires_at is not None and record.expires_at <= now
        ]
        for key in stale:
            del self._sessions[key]
        return len(stale)

    def revoke(self, raw_token: str) -> bool:
        return self._sessions.pop(hash_session_token(raw_token), None) is not None

    def revoke_user(self, user_id: int) -> int:
        # Used when an account is deleted so its sessions stop authenticating.
        stale = [key for key, record in self._sessions.items() if record.user_id == user_id]
        for key in stale:
            del self._sessions[key]
        return len(stale)

    def clear(self) -> None:
        self._sessions.clear()

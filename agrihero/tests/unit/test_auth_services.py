from __future__ import annotations

from datetime import timedelta

import pytest

from agrihero.services.auth.passwords import hash_password, verify_password
from agrihero.services.auth.roles import AccessDecision, AccessTier, check_access
from agrihero.services.auth.sessions import TOKEN_PREFIX, SessionStore, hash_session_token


@pytest.mark.parametrize(
    ("authenticated", "role", "tier", "expected"),
    [
        (False, None, AccessTier.ADMIN, AccessDecision.UNAUTHORIZED),
        (False, None, AccessTier.SUPER_ADMIN, AccessDecision.UNAUTHORIZED),
        (True, "farmer", AccessTier.ADMIN, AccessDecision.FORBIDDEN),
        (True, "agronomist", AccessTier.ADMIN, AccessDecision.FORBIDDEN),
        (True, "support_agent", AccessTier.ADMIN, AccessDecision.ALLOW),
        (True, "regional_admin", AccessTier.ADMIN, AccessDecision.ALLOW),
        (True, "super_admin", AccessTier.ADMIN, AccessDecision.ALLOW),
        (True, "regional_admin", AccessTier.SUPER_ADMIN, AccessDecision.FORBIDDEN),
        (True, "super_admin", AccessTier.SUPER_ADMIN, AccessDecision.ALLOW),
    ],
)
def test_check_access_decisions(authenticated, role, tier, expected) -> None:
    assert check_access(authenticated=authenticated, role=role, tier=tier) is expected


def test_password_hash_verifies_and_is_salted() -> None:
    first = hash_password("password", iterations=1000)
    second = hash_password("password", iterations=1000)
    assert first != second
    assert first.startswith("pbkdf2:sha256:1000$")
    assert verify_password("password", first)
    assert not verify_password("wrong", first)


def test_verify_password_rejects_malformed_hashes() -> None:
    assert not verify_password("password", "password")
    assert not verify_password("password", "md5$1$salt$digest")


def test_session_store_issues_resolves_and_revokes() -> None:
    store = SessionStore(ttl_hours=1)
    token = store.create(42)
    assert token.startswith(TOKEN_PREFIX)
    assert store.resolve(token) == 42
    assert store.resolve("ahs_unknown") is None
    assert store.revoke(token) is True
    assert store.resolve(token) is None


def test_session_store_drops_expired_sessions() -> None:
    store = SessionStore(ttl_hours=1)
    token = store.create(7)
    record = store._sessions[hash_session_token(token)]
    record.expires_at = record.created_at - timedelta(seconds=1)
    assert store.resolve(token) is None
    assert hash_session_token(token) not in store._sessions


def test_revoke_user_removes_every_session_for_the_user() -> None:
    store = SessionStore()
    tokens = [store.create(3), store.create(3)]
    other = store.create(4)
    assert store.revoke_user(3) == 2
    assert all(store.resolve(token) is None for token in tokens)
    assert store.resolve(other) == 4


def test_abandoned_expired_sessions_are_pruned_on_next_login() -> None:
    store = SessionStore(ttl_hours=1)
    abandoned = store.create(5)
    live = store.create(6)
    record = store._sessions[hash_session_token(abandoned)]
    record.expires_at = record.created_at - timedelta(seconds=1)

    # The expired token is never presented again; issuing a new session sweeps it.
    fresh = store.create(7)
    assert hash_session_token(abandoned) not in store._sessions
    assert store.resolve(live) == 6
    assert store.resolve(fresh) == 7
    assert store.prune_expired() == 0

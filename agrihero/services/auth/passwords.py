from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


DEFAULT_ITERATIONS = 260_000


def hash_password(password: str, *, iterations: int = DEFAULT_ITERATIONS) -> str:
    # Salted PBKDF2 so equal passwords never share a stored hash.
    return generate_password_hash(password, method=f"pbkdf2:sha256:{iterations}", salt_length=16)


def verify_password(password: str, stored: str) -> bool:
    try:
        return check_password_hash(stored, password)
    except ValueError:
        # Unknown hash method in the stored value.
        return False

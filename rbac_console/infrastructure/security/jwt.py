"""
Bearer tokens identifying the acting user.

Tokens come from the identity provider and only the ``sub`` claim is relied
on. ``create_access_token`` signs with the same key for local tooling and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from rbac_console.infrastructure.config.settings import Settings, get_settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    settings = settings or get_settings()
    lifetime = (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {**data, "exp": datetime.now(UTC) + lifetime}
    return str(jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm))


def verify_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate a token, returning its claims.

    Raises ValueError for a bad signature, an expired token or a missing subject.
    """
    settings = settings or get_settings()
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}") from e
    if not claims.get("sub"):
        raise ValueError("Token has no subject")
    return claims

from datetime import timedelta

import pytest

from rbac_console.infrastructure.security.jwt import create_access_token, verify_token


def test_round_trip_keeps_subject():
    token = create_access_token(data={"sub": "user-1"})

    payload = verify_token(token)

    assert payload["sub"] == "user-1"
    assert "exp" in payload


def test_expired_token_is_rejected():
    token = create_access_token(data={"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

    with pytest.raises(ValueError):
        verify_token(token)


def test_token_without_subject_is_rejected():
    token = create_access_token(data={"role": "admin"})

    with pytest.raises(ValueError, match="no subject"):
        verify_token(token)


def test_garbage_is_rejected():
    with pytest.raises(ValueError):
        verify_token("not-a-jwt")

import time

import pytest
from jose import jwt

from fitin.auth import create_access_token, decode_access_token, extract_bearer_token, get_session
from fitin.config import settings
from fitin.main import app


def test_token_round_trip_yields_session():
    token = create_access_token({"sub": "user-1"})
    session = get_session(token)
    assert session is not None
    assert session.user_id == "user-1"
    assert session.expires_at > time.time()


def test_expired_token_has_no_session():
    token = jwt.encode({"sub": "user-1", "exp": time.time() - 10}, settings.JWT_SECRET, algorithm="HS256")
    assert decode_access_token(token) is None
    assert get_session(token) is None


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "user-1", "exp": time.time() + 60}, "other-secret", algorithm="HS256")
    assert get_session(token) is None


def test_token_without_subject_has_no_session():
    assert get_session(create_access_token({"role": "member"})) is None


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Basic abc", None),
        ("Bearer ", None),
        ("Bearer abc.def", "abc.def"),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


@pytest.mark.asyncio
async def test_bearer_token_reaches_the_flow(client, profile_store):
    from fitin.deps import get_profile_store

    app.dependency_overrides[get_profile_store] = lambda: profile_store
    token = create_access_token({"sub": "00000000-0000-0000-0000-0000000000b2"})

    response = await client.get("/v1/onboarding", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["step"] == "welcome"


@pytest.mark.asyncio
async def test_garbage_token_is_unauthorized(client):
    response = await client.get("/v1/onboarding", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

import pytest
from jose import jwt

from config import settings
from routers import rate_limit
from services.session_token import SESSION_TOKEN_TYPE, create_session_token, decode_session_token


def test_session_token_round_trip():
    session = create_session_token("user-123")
    claims = decode_session_token(session["token"])
    assert claims["sub"] == "user-123"
    assert claims["type"] == SESSION_TOKEN_TYPE
    assert claims["anon"] is True
    assert claims["exp"] == session["expires_at"]


def test_session_token_rejects_tampering_and_wrong_type():
    token = create_session_token("user-123")["token"]
    with pytest.raises(ValueError):
        decode_session_token(token + "x")

    foreign = jwt.encode({"sub": "user-123", "type": "other"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(ValueError):
        decode_session_token(foreign)

    no_subject = jwt.encode({"type": SESSION_TOKEN_TYPE}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(ValueError):
        decode_session_token(no_subject)


@pytest.mark.asyncio
async def test_local_quota_blocks_after_limit():
    key = "semiotics:rate:test:127.0.0.1"
    results = [await rate_limit._consume_local_quota(key, 2, 60) for _ in range(3)]
    assert results == [True, True, False]


@pytest.mark.asyncio
async def test_local_quota_resets_after_window(monkeypatch):
    key = "semiotics:rate:test:10.0.0.1"
    clock = [1000.0]
    monkeypatch.setattr(rate_limit.time, "time", lambda: clock[0])

    assert await rate_limit._consume_local_quota(key, 1, 60)
    assert not await rate_limit._consume_local_quota(key, 1, 60)
    clock[0] += 61
    assert await rate_limit._consume_local_quota(key, 1, 60)

"""Tests for signed session tokens"""

import time
from datetime import timedelta

import pytest

from stockroom.auth.tokens import SESSION_MAX_AGE, SessionTokens

SECRET = "test-secret"
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def _signed_at(offset: timedelta, claims=None) -> str:
    """Sign a token as if issued `offset` from now."""
    issued = time.time() + offset.total_seconds()
    signer = SessionTokens(SECRET, clock=lambda: issued)
    return signer.sign(claims or {"id": "user-1", "email": "a@b.com"})


def test_sign_and_verify_round_trip():
    tokens = SessionTokens(SECRET)
    token = tokens.sign({"id": "user-1", "email": "a@b.com"})
    assert tokens.verify(token) == {"id": "user-1", "email": "a@b.com"}


def test_token_has_three_segments():
    token = SessionTokens(SECRET).sign({"id": "user-1"})
    assert len(token.split(".")) == 3


def test_max_age_is_seven_days():
    assert SESSION_MAX_AGE == timedelta(days=7)
    assert SessionTokens(SECRET).max_age_seconds == 7 * 24 * 60 * 60


def test_recent_token_accepted():
    token = _signed_at(-timedelta(seconds=5))
    assert SessionTokens(SECRET).verify(token)["id"] == "user-1"


def test_token_just_inside_window_accepted():
    token = _signed_at(-(SESSION_MAX_AGE - timedelta(hours=1)))
    assert SessionTokens(SECRET).verify(token) is not None


def test_expired_token_rejected():
    token = _signed_at(-(SESSION_MAX_AGE + timedelta(minutes=1)))
    assert SessionTokens(SECRET).verify(token) is None


def test_token_from_the_future_rejected():
    token = _signed_at(timedelta(hours=1))
    assert SessionTokens(SECRET).verify(token) is None


def test_wrong_secret_rejected():
    token = SessionTokens("other-secret").sign({"id": "user-1"})
    assert SessionTokens(SECRET).verify(token) is None


def test_flipping_any_signature_character_rejects():
    tokens = SessionTokens(SECRET)
    token = tokens.sign({"id": "user-1"})
    head, signature = token.rsplit(".", 1)
    assert signature

    for i, ch in enumerate(signature):
        replacement = "A" if ch != "A" else "B"
        tampered = f"{head}.{signature[:i]}{replacement}{signature[i + 1:]}"
        assert tokens.verify(tampered) is None, f"accepted tampered signature at position {i}"


def test_tampered_payload_rejected():
    tokens = SessionTokens(SECRET)
    token = tokens.sign({"id": "user-1"})
    payload, rest = token.split(".", 1)
    forged = SessionTokens("attacker").sign({"id": "admin"}).split(".", 1)[0]
    assert forged != payload
    assert tokens.verify(f"{forged}.{rest}") is None


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c", "...", "é.ü.ß"])
def test_malformed_tokens_rejected(token):
    assert SessionTokens(SECRET).verify(token) is None


def test_payload_without_id_rejected():
    tokens = SessionTokens(SECRET)
    token = tokens._serializer.dumps({"email": "a@b.com"})
    assert tokens.verify(token) is None


def test_non_dict_payload_rejected():
    tokens = SessionTokens(SECRET)
    token = tokens._serializer.dumps(["user-1"])
    assert tokens.verify(token) is None


def test_sign_requires_user_id():
    with pytest.raises(ValueError):
        SessionTokens(SECRET).sign({"email": "a@b.com"})


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        SessionTokens("")

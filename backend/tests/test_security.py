from datetime import timedelta

from comicstop.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    hash_secret,
    secrets_match,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong-password", hashed)


def test_verify_password_handles_missing_or_broken_hash():
    assert not verify_password("secret123", None)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_access_token_carries_subject():
    token = create_access_token({"sub": "user-1"})
    payload = decode_access_token(token)
    assert payload["sub"] == "user-1"
    assert payload["exp"] > payload["iat"]


def test_expired_or_tampered_token_is_rejected():
    expired = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
    assert decode_access_token(expired) is None
    assert decode_access_token(create_access_token({"sub": "user-1"}) + "x") is None
    assert decode_access_token("garbage") is None


def test_secret_hash_comparison():
    stored = hash_secret("123456")
    assert len(stored) == 64
    assert secrets_match(stored, "123456")
    assert not secrets_match(stored, "654321")
    assert not secrets_match(None, "123456")

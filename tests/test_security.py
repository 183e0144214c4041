from __future__ import annotations

import time

from crm_api.app.core import security
from crm_api.app.core.security import (
    _b64_url_encode,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


SECRET = "unit-test-secret"


def test_token_round_trip_carries_id_and_expiry():
    token = create_access_token({"id": 7}, SECRET, 60)
    payload = decode_access_token(token, SECRET)
    assert payload is not None
    assert payload["id"] == 7
    assert payload["exp"] - payload["iat"] == 60


def test_token_rejected_with_other_secret():
    token = create_access_token({"id": 7}, SECRET, 60)
    assert decode_access_token(token, "another-secret") is None


def test_expired_token_rejected(monkeypatch):
    token = create_access_token({"id": 7}, SECRET, 10)
    real_time = time.time
    monkeypatch.setattr(security.time, "time", lambda: real_time() + 11)
    assert decode_access_token(token, SECRET) is None


def test_tampered_payload_rejected():
    header, _, signature = create_access_token({"id": 7}, SECRET, 60).split(".")
    forged = _b64_url_encode(b'{"id":1,"exp":9999999999}')
    assert decode_access_token(f"{header}.{forged}.{signature}", SECRET) is None


def test_malformed_tokens_rejected():
    for token in ["", "abc", "a.b", "a.b.c", "!!.??.**"]:
        assert decode_access_token(token, SECRET) is None


def test_unsigned_algorithm_rejected():
    header = _b64_url_encode(b'{"alg":"none","typ":"JWT"}')
    payload = _b64_url_encode(b'{"id":1,"exp":9999999999}')
    assert decode_access_token(f"{header}.{payload}.", SECRET) is None


def test_empty_secret_never_verifies():
    token = create_access_token({"id": 7}, SECRET, 60)
    assert decode_access_token(token, "") is None


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("example-password", 1_000)
    second = hash_password("example-password", 1_000)
    assert first != second
    assert "example-password" not in first
    assert verify_password("example-password", first)
    assert not verify_password("wrong-password", first)


def test_iteration_count_is_stored_in_hash():
    hashed = hash_password("pw", 1_234)
    scheme, iterations, _, _ = hashed.split("$")
    assert scheme == "pbkdf2_sha256"
    assert iterations == "1234"
    # Still verifiable after the configured cost factor changes.
    assert verify_password("pw", hashed)


def test_verify_password_handles_garbage():
    assert not verify_password("pw", "")
    assert not verify_password("pw", "not-a-hash")
    assert not verify_password("pw", "md5$1$00$00")

"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed
arbitrary claims plus an issue time (``iat``) and an expiration
timestamp (``exp``).  The signing secret and the lifetime are passed in
by the caller; nothing here reads configuration on its own.

Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random 16‑byte salt.
The iteration count is the configurable cost factor and is stored in the
hash string (``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``), so a
change of the cost factor does not invalidate existing hashes.

The ``get_current_employee_id`` dependency protects routes: it pulls the
bearer token from the ``Authorization`` header and resolves it to an
employee id through the auth service stored on the application state.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthError


logger = logging.getLogger(__name__)

HASH_SCHEME = "pbkdf2_sha256"


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], secret: str, expires_in: int) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with ``iat`` and ``exp`` (UNIX timestamps).
    A standard header with algorithm HS256 is used.  The token is a
    string of the form ``header.payload.signature``, where each part is
    base64url encoded.  Clients send it as ``Authorization: Bearer
    <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"id": 42}``).
    secret : str
        HMAC signing secret.  Must be non-empty.
    expires_in : int
        Lifetime of the token in seconds.

    Returns
    -------
    str
        A signed JWT token.
    """
    if not secret:
        raise ValueError("A signing secret is required")
    now = int(time.time())
    to_encode = dict(data)
    to_encode["iat"] = now
    to_encode["exp"] = now + int(expires_in)
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Splits the token into header, payload and signature, checks the
    header algorithm, verifies the HMAC signature and checks the ``exp``
    field.  Returns the payload dictionary if every check passes,
    otherwise ``None``.
    """
    if not token or not secret:
        return None
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    try:
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        actual_sig = _b64_url_decode(signature_b64)
        payload = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(header, dict) or header.get("alg") != "HS256":
        return None
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    # Constant‑time comparison to prevent timing attacks
    if not hmac.compare_digest(_sign(signing_input, secret), actual_sig):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp <= time.time():
        return None
    return payload


def hash_password(password: str, iterations: int) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    Parameters
    ----------
    password : str
        The plain text password to hash.
    iterations : int
        PBKDF2 iteration count (the cost factor).

    Returns
    -------
    str
        ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``
    """
    if iterations < 1:
        raise ValueError("iterations must be positive")
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored hash string.

    The iteration count and salt are read back from the stored string,
    the digest is recomputed and compared in constant time.  Returns
    ``False`` for any malformed stored value.
    """
    try:
        scheme, iterations, salt_hex, hash_hex = hashed_password.split("$", 3)
        if scheme != HASH_SCHEME:
            return False
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
        dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, int(iterations))
    except (AttributeError, ValueError):
        return False
    return hmac.compare_digest(dk, stored_hash)


security = HTTPBearer(auto_error=False)


def get_current_employee_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """Dependency that resolves the bearer token to an employee id.

    Raises ``AuthError`` (401) when the header is missing or not a
    bearer credential, and lets the auth service reject malformed,
    expired or badly signed tokens.
    """
    if credentials is None:
        raise AuthError("Authentication required.")
    return request.app.state.employee_service.verify(credentials.credentials)

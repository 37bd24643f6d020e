"""
Password hashing (bcrypt) and signed access tokens (PyJWT, HS256 by default).

Tokens carry the user id in `sub` and are issued by this API only; a token
with a different issuer, a missing subject or a past `exp` is rejected.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import bcrypt
import jwt

from core import config

TOKEN_ISSUER = "device-registry-api"

# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72


class AuthSecurityError(RuntimeError):
    pass


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    email: str
    expires_at: int


def jwt_secret() -> str:
    # Set JWT_SECRET outside local development.
    return config.env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return config.env_str("JWT_ALG", "HS256")


def access_token_expire_minutes() -> int:
    return max(1, config.env_int("ACCESS_TOKEN_EXPIRE_MIN", 60))


def now_epoch_s() -> int:
    return int(time.time())


def _password_bytes(plain_password: str) -> bytes:
    password = (plain_password or "").encode("utf-8")
    if len(password) > BCRYPT_MAX_BYTES:
        raise AuthSecurityError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes.")
    return password


def hash_password(plain_password: str) -> str:
    password = _password_bytes(plain_password)
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    hashed = (password_hash or "").encode("utf-8")
    try:
        password = _password_bytes(plain_password)
    except AuthSecurityError:
        return False
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def build_access_token(*, user_id: int, email: str) -> str:
    issued_at = now_epoch_s()
    return jwt.encode(
        {
            "sub": str(user_id),
            "email": email,
            "iss": TOKEN_ISSUER,
            "iat": issued_at,
            "exp": issued_at + access_token_expire_minutes() * 60,
        },
        jwt_secret(),
        algorithm=jwt_algorithm(),
    )


def decode_access_token(token: str) -> AccessClaims:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            jwt_secret(),
            algorithms=[jwt_algorithm()],
            issuer=TOKEN_ISSUER,
            options={"require": ["sub", "exp", "iss"]},
        )
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid or expired token. Please login again.") from exc

    subject = str(payload["sub"]).strip()
    if not subject.isdigit() or int(subject) <= 0:
        raise AuthSecurityError("Invalid access token subject.")
    return AccessClaims(user_id=int(subject), email=str(payload.get("email") or ""), expires_at=int(payload["exp"]))

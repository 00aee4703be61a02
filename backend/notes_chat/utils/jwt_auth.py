from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from notes_chat.errors import Unauthorized

bearer = HTTPBearer(auto_error=False)


def _secret() -> str:
    s = os.getenv("JWT_SECRET", "")
    if not s:
        # set it in the env for dev/tests; mandatory in production
        raise RuntimeError("JWT_SECRET is not set")
    return s


def _algo() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _exp_minutes() -> int:
    try:
        return int(os.getenv("JWT_EXP_MINUTES", "15"))
    except ValueError:
        return 15


def create_access_token(subject: str) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=_exp_minutes())
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, _secret(), algorithm=_algo())


def decode_token(token: str) -> dict:
    return jwt.decode(token, _secret(), algorithms=[_algo()])


def resolve_user_id(creds: Optional[HTTPAuthorizationCredentials]) -> str:
    """Return the token subject, or raise :class:`Unauthorized`."""
    if creds is None or creds.scheme.lower() != "bearer" or not creds.credentials:
        raise Unauthorized("Missing credentials")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise Unauthorized("Invalid or expired token")
    sub = payload.get("sub")
    if not sub:
        raise Unauthorized("Invalid token")
    return str(sub)


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> str:
    return resolve_user_id(creds)

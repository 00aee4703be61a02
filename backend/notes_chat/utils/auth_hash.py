"""Password hashing for the built-in token issuer.

bcrypt via passlib's CryptContext, with ``BCRYPT_ROUNDS`` as an optional
cost override. When the bcrypt backend cannot be initialised the context
falls back to pbkdf2_sha256 so registration keeps working.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


def _rounds_from_env() -> Optional[int]:
    raw = os.environ.get("BCRYPT_ROUNDS")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _build_context(rounds: Optional[int]) -> CryptContext:
    try:
        kwargs = {"bcrypt__rounds": rounds} if rounds else {}
        ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", **kwargs)
        ctx.hash("probe")
        return ctx
    except Exception as exc:
        logger.warning("bcrypt backend unavailable (%s); using pbkdf2_sha256", exc)
        kwargs = {"pbkdf2_sha256__rounds": rounds} if rounds else {}
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto", **kwargs)


pwd_context = _build_context(_rounds_from_env())


def hash_password(plain: str) -> str:
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if ``plain`` matches the stored hash."""
    if plain is None or hashed is None:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False

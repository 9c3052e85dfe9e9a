from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status

from config import get_config_value, set_session_secret

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "homeschool_session"
SECRET_HASH_ALGO = "pbkdf2_sha256"
SECRET_HASH_ITERATIONS = 200_000
DEFAULT_SESSION_MINUTES = 720
ROLES = ("parent", "child")


@dataclass(frozen=True)
class Session:
    role: str
    user_id: str


def get_session_minutes() -> int:
    minutes = get_config_value("auth", "session_minutes", DEFAULT_SESSION_MINUTES)
    try:
        return int(minutes)
    except (TypeError, ValueError):
        return DEFAULT_SESSION_MINUTES


def get_session_secret() -> bytes:
    secret = get_config_value("auth", "session_secret")
    if not secret:
        secret = secrets.token_hex(32)
        set_session_secret(secret)
        logger.info("Generated a new session secret")
    return hashlib.sha256(secret.encode("utf-8")).digest()


def hash_secret(value: str) -> str:
    """Hash a password or PIN with a random salt."""
    value_clean = value.strip()
    if not value_clean:
        raise ValueError("Secret cannot be empty")
    salt = secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        value_clean.encode("utf-8"),
        salt.encode("utf-8"),
        SECRET_HASH_ITERATIONS,
    )
    digest = base64.urlsafe_b64encode(dk).decode("utf-8")
    return f"{SECRET_HASH_ALGO}${SECRET_HASH_ITERATIONS}${salt}${digest}"


def verify_secret(value: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash:
        return False
    try:
        algo, iterations_str, salt, digest = stored_hash.split("$", 3)
    except ValueError:
        return False
    if algo != SECRET_HASH_ALGO:
        return False
    try:
        iterations = int(iterations_str)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        value.strip().encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    )
    computed = base64.urlsafe_b64encode(dk).decode("utf-8")
    return hmac.compare_digest(computed, digest)


def create_session_cookie(role: str, user_id: str, duration_minutes: Optional[int] = None) -> str:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    duration = duration_minutes if duration_minutes is not None else get_session_minutes()
    expires_at = int(time.time()) + int(duration) * 60
    payload = f"{role}:{user_id}:{expires_at}"
    signature = hmac.new(get_session_secret(), payload.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{payload}:{signature}"


def parse_session_cookie(cookie_value: Optional[str]) -> Optional[Session]:
    if not cookie_value:
        return None
    try:
        payload, signature = cookie_value.rsplit(":", 1)
        role, user_id, expires_str = payload.split(":", 2)
    except ValueError:
        return None
    expected = hmac.new(get_session_secret(), payload.encode("utf-8"), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(signature, expected):
        return None
    try:
        expires_at = int(expires_str)
    except ValueError:
        return None
    if expires_at < int(time.time()) or role not in ROLES:
        return None
    return Session(role=role, user_id=user_id)


def get_session(request: Request) -> Optional[Session]:
    return parse_session_cookie(request.cookies.get(SESSION_COOKIE_NAME))


def require_any_session(request: Request) -> Session:
    session = get_session(request)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return session


def require_parent(request: Request) -> str:
    session = require_any_session(request)
    if session.role != "parent":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Parent session required")
    return session.user_id


def require_child(request: Request) -> str:
    session = require_any_session(request)
    if session.role != "child":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Child session required")
    return session.user_id


def generate_family_code() -> str:
    alphabet = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    return "".join(secrets.choice(alphabet) for _ in range(6))

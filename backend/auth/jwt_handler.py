from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config


def create_access_token(subject: str, email: str | None = None, expires_minutes: int | None = None) -> str:
    """Issue a bearer token for a professional identified by ``subject``."""
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    issued_at = datetime.now(timezone.utc)
    payload = {"sub": subject, "exp": issued_at + timedelta(minutes=expire_minutes), "iat": issued_at}
    if email:
        payload["email"] = email
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])

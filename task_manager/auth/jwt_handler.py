import uuid
from datetime import datetime, timedelta, timezone

import jwt

from task_manager.core import config

def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expire_minutes)
    # jti keeps tokens minted for the same user within one second distinct.
    payload = {"sub": subject, "exp": expire, "iat": now, "jti": uuid.uuid4().hex}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])

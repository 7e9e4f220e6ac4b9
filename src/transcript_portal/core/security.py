"""Password hashing and bearer-token helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from .config import Settings
from .errors import UnauthorizedError


def get_password_hash(password: str, rounds: int = 12) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(matric_no: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Issue an access token whose subject is the matriculation number."""

    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims: Dict[str, Any] = {"sub": matric_no, "exp": expire, "type": "access"}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the matriculation number carried by ``token``."""

    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthorizedError("Could not validate credentials") from exc

    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedError("Invalid token")
    return str(payload["sub"])

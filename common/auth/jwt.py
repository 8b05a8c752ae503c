"""
JWT Token helpers (local identity backend)
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from common.config import get_config


class TokenData(BaseModel):
    sub: str
    email: Optional[str] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class InvalidTokenError(Exception):
    """Token could not be decoded or lacks a subject."""


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    auth = get_config().auth
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=auth.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, auth.jwt_secret_key, algorithm=auth.algorithm)


def verify_token(token: str) -> TokenData:
    """Verify and decode a JWT token"""
    auth = get_config().auth
    try:
        payload = jwt.decode(token, auth.jwt_secret_key, algorithms=[auth.algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
    sub = payload.get("sub")
    if sub is None:
        raise InvalidTokenError("Token has no subject")
    return TokenData(sub=sub, email=payload.get("email"))

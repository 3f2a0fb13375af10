from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from models import User
from services import config
from services.errors import Unauthorized
from services.invoice_pipeline import InvoicePipeline

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: uuid.UUID, expires: Optional[int] = None) -> str:
    expires = config.ACCESS_TOKEN_EXPIRE_SECONDS if expires is None else expires
    to_encode = {
        "sub": str(user_id),
        "exp": datetime.now(tz=timezone.utc) + timedelta(seconds=expires),
    }
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: Optional[str]) -> uuid.UUID:
    if not token:
        raise Unauthorized("Not authorized, no token")
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
        return uuid.UUID(payload.get("sub"))
    except ExpiredSignatureError:
        raise Unauthorized("Not authorized, token expired")
    except (JWTError, ValueError, TypeError, AttributeError):
        raise Unauthorized("Not authorized, token failed")


async def authenticate(token: Optional[str]) -> User:
    """Resolve a bearer token to an existing user, or raise Unauthorized."""
    user_id = decode_access_token(token)
    user = await User.get_or_none(id=user_id)
    if not user:
        raise Unauthorized("Not authorized, user not found")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    token = credentials.credentials if credentials and credentials.scheme.lower() == "bearer" else None
    return await authenticate(token)


def get_pipeline(request: Request) -> InvoicePipeline:
    return request.app.state.pipeline

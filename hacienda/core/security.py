import logging
import uuid
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from hacienda.models.user import User

logger = logging.getLogger("hacienda-files")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

# jti -> expiry of tokens revoked by sign-out
revoked_tokens: dict[str, datetime] = {}


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Sign a session token. ``data`` must carry ``sub`` (user id) and ``email``."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise credentials_exception
    if not payload.get("sub") or payload.get("jti") in revoked_tokens:
        raise credentials_exception
    return payload


def revoke_token(payload: dict) -> None:
    now = datetime.utcnow()
    for jti, expires_at in list(revoked_tokens.items()):
        if expires_at <= now:
            del revoked_tokens[jti]
    revoked_tokens[payload["jti"]] = datetime.utcfromtimestamp(payload["exp"])


async def get_session_claims(token: str = Depends(oauth2_scheme)) -> dict:
    return decode_access_token(token)


async def get_current_user(
    claims: dict = Depends(get_session_claims),
    db: AsyncSession = Depends(get_db),
):
    res = await db.execute(select(User).where(User.id == claims["sub"]))
    user = res.scalars().first()
    if user is None or not user.is_active:
        logger.warning("Token for unknown or inactive user %s", claims["sub"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

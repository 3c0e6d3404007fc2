import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finflow.config import settings
from finflow.core.database import get_db
from finflow.core.errors import AuthError
from finflow.models.user import AuthSession, User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class AuthContext:
    """Identity every data access is scoped by.

    Established at login (one AuthSession row per token) and invalid once the
    session is revoked at logout or the token expires.
    """
    user_id: int
    email: str
    session_id: str
    expires_at: datetime


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user: User, session_id: str, expires_at: datetime) -> str:
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "jti": session_id,
        "exp": expires_at,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


async def open_session(db: AsyncSession, user: User, expires_delta: Optional[timedelta] = None) -> str:
    now = _utcnow()
    expires_at = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    session = AuthSession(id=uuid.uuid4().hex, user_id=user.id, created_at=now, expires_at=expires_at)
    db.add(session)
    await db.commit()
    logger.info(f"Opened session for user {user.id}")
    return create_access_token(user, session.id, expires_at)


async def revoke_session(db: AsyncSession, auth: AuthContext):
    res = await db.execute(select(AuthSession).where(AuthSession.id == auth.session_id))
    session = res.scalar_one_or_none()
    if session and session.revoked_at is None:
        session.revoked_at = _utcnow()
        await db.commit()
        logger.info(f"Revoked session for user {auth.user_id}")


async def get_auth_context(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)) -> AuthContext:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise AuthError("Could not validate credentials")

    session_id = payload.get("jti")
    subject = payload.get("sub")
    if not session_id or not subject:
        raise AuthError("Could not validate credentials")

    res = await db.execute(select(AuthSession).where(AuthSession.id == session_id))
    session = res.scalar_one_or_none()
    if session is None or session.revoked_at is not None or str(session.user_id) != subject:
        raise AuthError("Session is no longer active")

    return AuthContext(
        user_id=session.user_id,
        email=payload.get("email", ""),
        session_id=session_id,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    )

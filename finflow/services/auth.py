import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finflow.core.errors import AuthError, ConflictError, NotFoundError
from finflow.core.security import AuthContext, get_password_hash, open_session, revoke_session, verify_password
from finflow.core.seed import seed_default_categories
from finflow.models.user import User
from finflow.schemas.auth import UserRegister
from finflow.services.snapshot import snapshot_cache

logger = logging.getLogger(__name__)


class AuthService:
    @staticmethod
    async def register(db: AsyncSession, data: UserRegister) -> User:
        res = await db.execute(select(User).where(User.email == data.email))
        if res.scalar_one_or_none():
            raise ConflictError("Email already registered")

        user = User(email=data.email, name=data.name, password_hash=get_password_hash(data.password))
        db.add(user)
        await db.commit()
        await db.refresh(user)

        await seed_default_categories(db, user.id)
        logger.info(f"Registered user {user.id}")
        return user

    @staticmethod
    async def login(db: AsyncSession, email: str, password: str) -> str:
        res = await db.execute(select(User).where(User.email == email.lower().strip()))
        user = res.scalar_one_or_none()
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Rejected login attempt")
            raise AuthError("Invalid credentials")
        return await open_session(db, user)

    @staticmethod
    async def logout(db: AsyncSession, auth: AuthContext):
        await revoke_session(db, auth)
        snapshot_cache.discard(auth.user_id)
        return {"status": "logged_out"}

    @staticmethod
    async def get_user(db: AsyncSession, auth: AuthContext) -> User:
        res = await db.execute(select(User).where(User.id == auth.user_id))
        user = res.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models.user import User, UserRole
from core.exceptions import ConflictError, NotFoundError, AuthenticationError
from core.security import hash_password, verify_password
from core.logger import logger

class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.username == username))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return result.scalars().all()

    async def create_user(self, username: str, password: str, role: UserRole = UserRole.user) -> User:
        # Usernames are compared case-sensitively
        if await self.get_by_username(username):
            raise ConflictError("Username already exists")

        user = User(username=username, password=hash_password(password), role=UserRole(role))
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("New user created", user_id=user.id, username=username, role=user.role.value)
        return user

    async def authenticate(self, username: str, password: str) -> User:
        user = await self.get_by_username(username)
        if not user or not verify_password(password, user.password):
            logger.warning("Login failed", username=username)
            raise AuthenticationError("Invalid username or password")
        logger.info("User logged in", user_id=user.id)
        return user

    async def update_user(self, user_id: int, password: Optional[str] = None, role: Optional[UserRole] = None) -> User:
        """Administrative change of password and/or role."""
        user = await self.get_user(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")

        fields = []
        if password is not None:
            user.password = hash_password(password)
            fields.append("password")
        if role is not None:
            user.role = UserRole(role)
            fields.append("role")

        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User updated", user_id=user_id, fields=fields)
        return user

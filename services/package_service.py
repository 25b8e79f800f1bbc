from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models.quiz import QuizPackage
from models.user import User, UserRole
from models.base import utcnow
from core.exceptions import NotFoundError, PermissionDeniedError, PackageAlreadyDeletedError
from core.config import settings
from core.logger import logger

# Fields an admin may change through update_package
UPDATABLE_FIELDS = ("title", "description", "time_limit_minutes", "is_active")

class PackageService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_package(
        self,
        created_by: int,
        title: str,
        description: Optional[str] = None,
        time_limit_minutes: Optional[int] = None,
        is_active: bool = True,
    ) -> QuizPackage:
        result = await self.db.execute(select(User).filter(User.id == created_by))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User not found")
        if user.role != UserRole.admin:
            raise PermissionDeniedError("Only admin users can create quiz packages")

        package = QuizPackage(
            title=title,
            description=description or None,
            time_limit_minutes=time_limit_minutes or settings.DEFAULT_TIME_LIMIT_MINUTES,
            total_questions=0,
            is_active=is_active,
            created_by=created_by,
        )
        self.db.add(package)
        await self.db.commit()
        await self.db.refresh(package)
        logger.info("Quiz package created", package_id=package.id, created_by=created_by, title=title)
        return package

    async def list_packages(self, user_id: Optional[int] = None) -> List[QuizPackage]:
        """Admins see every package, everybody else only active ones."""
        is_admin = False
        if user_id is not None:
            result = await self.db.execute(select(User.role).filter(User.id == user_id))
            is_admin = result.scalar_one_or_none() == UserRole.admin

        query = select(QuizPackage).order_by(QuizPackage.id)
        if not is_admin:
            query = query.filter(QuizPackage.is_active == True)

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_package(self, package_id: int) -> Optional[QuizPackage]:
        result = await self.db.execute(select(QuizPackage).filter(QuizPackage.id == package_id))
        return result.scalar_one_or_none()

    async def update_package(self, package_id: int, **fields) -> QuizPackage:
        package = await self.get_package(package_id)
        if not package:
            raise NotFoundError(f"Quiz package with ID {package_id} not found")

        changed = []
        for key, value in fields.items():
            # description is the only nullable column
            if key in UPDATABLE_FIELDS and (value is not None or key == "description"):
                setattr(package, key, value)
                changed.append(key)
        package.updated_at = utcnow()

        await self.db.commit()
        await self.db.refresh(package)
        logger.info("Quiz package updated", package_id=package_id, fields=changed)
        return package

    async def delete_package(self, package_id: int) -> QuizPackage:
        """Soft delete: only flips is_active, questions and sessions stay."""
        package = await self.get_package(package_id)
        if not package:
            raise NotFoundError("Quiz package not found")
        if not package.is_active:
            raise PackageAlreadyDeletedError("Quiz package is already deleted")

        package.is_active = False
        package.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(package)
        logger.info("Quiz package deleted", package_id=package_id)
        return package

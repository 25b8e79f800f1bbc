import enum
from sqlalchemy import Column, Integer, String, Enum
from models.base import Base, TimestampMixin

class UserRole(str, enum.Enum):
    admin = "admin"
    user = "user"

class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.user, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
from uuid import uuid4
import enum

from app.database.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class User(Base):
    """Dueños del negocio y usuarios con acceso al sistema."""
    __tablename__ = "users"

    user_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    business_name = Column(String(100), unique=True, nullable=False)
    owner_name = Column(String(100), nullable=False)
    email_address = Column(String(255), unique=True, nullable=False, index=True)
    phone_number = Column(String(20), nullable=True)
    password = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.ADMIN.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    @property
    def id(self):
        return self.user_id

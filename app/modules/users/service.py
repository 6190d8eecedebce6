from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from uuid import UUID
from typing import Optional, Tuple, List
import logging

from app.common.responses import paginate
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import UserCreate, UserUpdate, AuthContext
from app.modules.auth.service import AuthService
from app.modules.auth.utils import hash_password

logger = logging.getLogger(__name__)


class UserService:
    """Servicio para gestión de usuarios"""

    def __init__(self, db: Session):
        self.db = db

    def list_users(self, page: int, limit: int, search: Optional[str] = None) -> Tuple[List[User], int]:
        query = self.db.query(User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.business_name.ilike(pattern),
                User.owner_name.ilike(pattern),
                User.email_address.ilike(pattern),
            ))
        query = query.order_by(User.created_at.desc())
        return paginate(query, page, limit)

    def get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    def create_user(self, data: UserCreate) -> User:
        try:
            AuthService(self.db).ensure_unique(email=data.email_address, business_name=data.business_name)
            user = User(
                email_address=data.email_address.lower(),
                business_name=data.business_name,
                owner_name=data.owner_name,
                phone_number=data.phone_number,
                password=hash_password(data.password),
                role=data.role,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"User created: {user.email_address} ({user.role})")
            return user
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating user: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user"
            )

    def update_user(self, user_id: UUID, data: UserUpdate, auth_context: AuthContext) -> User:
        try:
            user = self.get_user(user_id)
            update_dict = data.model_dump(exclude_unset=True)

            if "role" in update_dict and auth_context.role != UserRole.ADMIN.value:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only administrators can change roles"
                )

            if not update_dict:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

            email = update_dict.get("email_address")
            business_name = update_dict.get("business_name")
            AuthService(self.db).ensure_unique(
                email=email if email and email.lower() != user.email_address else None,
                business_name=business_name if business_name and business_name != user.business_name else None,
                exclude_id=user.user_id,
            )

            if email:
                update_dict["email_address"] = email.lower()
            if "password" in update_dict:
                update_dict["password"] = hash_password(update_dict["password"])

            for field, value in update_dict.items():
                setattr(user, field, value)

            self.db.commit()
            self.db.refresh(user)
            return user
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update user"
            )

    def delete_user(self, user_id: UUID, auth_context: AuthContext) -> None:
        if user_id == auth_context.user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
        try:
            user = self.get_user(user_id)
            self.db.delete(user)
            self.db.commit()
            logger.info(f"User deleted: {user_id}")
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete user"
            )

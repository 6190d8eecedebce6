"""
Dependencias de autenticación para FastAPI.
"""
from typing import List, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.dependencies.dbDependecies import get_db
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import AuthContext
from app.modules.auth.utils import verify_access_token

# Security scheme
security = HTTPBearer(auto_error=False)

EMPLOYEE_ROLES = [UserRole.ADMIN.value, UserRole.MANAGER.value, UserRole.EMPLOYEE.value]
MANAGER_ROLES = [UserRole.ADMIN.value, UserRole.MANAGER.value]
ADMIN_ROLES = [UserRole.ADMIN.value]

class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Obtener usuario actual desde el bearer token.
        El usuario debe seguir existiendo en la base de datos.
        """
        if credentials is None or not credentials.credentials:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )

        payload = verify_access_token(credentials.credentials)

        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user = db.query(User).filter(User.user_id == user_id).first()
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user_id = user.user_id
        return user

    @staticmethod
    def get_auth_context(user: User = Depends(get_current_user)) -> AuthContext:
        """Contexto de autenticación del usuario actual."""
        return AuthContext(
            user_id=user.user_id,
            email=user.email_address,
            name=user.owner_name,
            role=user.role or UserRole.ADMIN.value,
        )

    @staticmethod
    def require_role(allowed_roles: List[str]):
        """
        Dependencia para requerir roles específicos.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if auth_context.role not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Access denied. Required roles: {', '.join(allowed_roles)}"
                )
            return auth_context
        return role_checker

    @staticmethod
    def require_admin():
        return AuthDependencies.require_role(ADMIN_ROLES)

    @staticmethod
    def require_manager():
        return AuthDependencies.require_role(MANAGER_ROLES)

    @staticmethod
    def require_employee():
        return AuthDependencies.require_role(EMPLOYEE_ROLES)

    @staticmethod
    def require_self_or_admin():
        """
        Permite el acceso al propio usuario (path param user_id) o a un admin.
        """
        def checker(user_id: UUID, auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if auth_context.role == UserRole.ADMIN.value or auth_context.user_id == user_id:
                return auth_context
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. You can only access your own account"
            )
        return checker

# Instancias de dependencias
get_current_user = AuthDependencies.get_current_user
get_auth_context = AuthDependencies.get_auth_context
require_admin = AuthDependencies.require_admin
require_manager = AuthDependencies.require_manager
require_employee = AuthDependencies.require_employee

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from datetime import datetime, timezone
from uuid import UUID
import logging

from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import (
    RegisterRequest, UserOut, AuthResponse, AuthTokens, AccessTokenResponse
)
from app.modules.auth.utils import (
    hash_password, verify_password, create_access_token, create_refresh_token,
    verify_refresh_token, ACCESS_TOKEN_LIFETIME
)

logger = logging.getLogger(__name__)


def build_token_payload(user: User) -> dict:
    return {
        "sub": str(user.user_id),
        "email": user.email_address,
        "username": user.owner_name,
        "role": user.role or UserRole.ADMIN.value,
    }


class AuthService:
    """Servicio de autenticación: registro, login y renovación de tokens."""

    def __init__(self, db: Session):
        self.db = db

    def _issue_tokens(self, user: User) -> AuthResponse:
        return AuthResponse(
            user=UserOut.from_user(user),
            tokens=AuthTokens(
                accessToken=create_access_token(build_token_payload(user)),
                refreshToken=create_refresh_token(str(user.user_id)),
                expiresIn=ACCESS_TOKEN_LIFETIME,
            ),
        )

    def ensure_unique(self, email: str = None, business_name: str = None, exclude_id: UUID = None):
        """Verifica unicidad de email y nombre de negocio (409 si ya existen)."""
        if email:
            query = self.db.query(User).filter(User.email_address == email.lower())
            if exclude_id:
                query = query.filter(User.user_id != exclude_id)
            if query.first():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        if business_name:
            query = self.db.query(User).filter(User.business_name == business_name)
            if exclude_id:
                query = query.filter(User.user_id != exclude_id)
            if query.first():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Business name already taken")

    def register(self, data: RegisterRequest) -> AuthResponse:
        """
        Registrar un nuevo dueño de negocio.
        Los dueños registrados reciben el rol admin.
        """
        try:
            self.ensure_unique(email=data.email_address, business_name=data.business_name)

            user = User(
                email_address=data.email_address.lower(),
                business_name=data.business_name,
                owner_name=data.owner_name,
                phone_number=data.phone_number,
                password=hash_password(data.password),
                role=UserRole.ADMIN.value,
                last_login=datetime.now(timezone.utc),
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"User registered: {user.email_address}")
            return self._issue_tokens(user)

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Registration failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Registration failed"
            )

    def login(self, email: str, password: str) -> AuthResponse:
        """
        Login con email y contraseña. Actualiza last_login.
        """
        user = self.db.query(User).filter(User.email_address == email.lower()).first()

        if not user or not verify_password(password, user.password):
            logger.warning(f"Failed login attempt for {email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)

        return self._issue_tokens(user)

    def refresh_access_token(self, refresh_token: str) -> AccessTokenResponse:
        """Generar un nuevo access token a partir de un refresh token válido."""
        payload = verify_refresh_token(refresh_token)
        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

        user = self.db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

        return AccessTokenResponse(
            accessToken=create_access_token(build_token_payload(user)),
            expiresIn=ACCESS_TOKEN_LIFETIME,
        )

    def get_profile(self, user_id: UUID) -> UserOut:
        user = self.db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return UserOut.from_user(user)

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import (
    RegisterRequest, LoginRequest, RefreshTokenRequest, AuthContext
)

auth_router = APIRouter()

@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """
    Registrar nuevo dueño de negocio y devolver tokens.
    """
    auth_service = AuthService(db)
    result = auth_service.register(data)
    return success_response(result, "User registered successfully", status.HTTP_201_CREATED)

@auth_router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    auth_service = AuthService(db)
    result = auth_service.login(data.email, data.password)
    return success_response(result, "Login successful")

@auth_router.post("/refresh")
def refresh_token(body: RefreshTokenRequest, db: Session = Depends(get_db)):
    auth_service = AuthService(db)
    result = auth_service.refresh_access_token(body.refresh_token)
    return success_response(result, "Token refreshed successfully")

@auth_router.post("/logout")
def logout(auth_context: AuthContext = Depends(get_auth_context)):
    """Logout sin estado: el cliente descarta sus tokens."""
    return success_response(None, "Logout successful")

@auth_router.get("/profile")
def get_profile(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(get_auth_context)
):
    auth_service = AuthService(db)
    profile = auth_service.get_profile(auth_context.user_id)
    return success_response(profile, "Profile retrieved successfully")

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.core.database import get_db
from projecthub.core.exceptions import DuplicateEmailError, InvalidCredentialsError
from projecthub.core.logging_config import logger, set_user_id
from projecthub.core.rate_limiter import limiter, register_rate_limit, signin_rate_limit
from projecthub.core.security import get_password_hash, verify_password
from projecthub.models.user import User
from projecthub.modules.auth.dependencies import get_current_user, get_token_service
from projecthub.schemas.auth import (
    UserRegister,
    UserSignin,
    RegisterResponse,
    SigninResponse,
    UserResponse,
)
from projecthub.services.user_store import UserStore


router = APIRouter(tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse)
@limiter.limit(register_rate_limit)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register new user"""
    client_ip = request.client.host if request.client else "unknown"
    rounds = request.app.state.settings.BCRYPT_ROUNDS

    try:
        user = await UserStore(db).create_user(
            username=user_data.username,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password, rounds=rounds),
            role=user_data.effective_role,
        )
    except DuplicateEmailError:
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason="Email already registered",
            client_ip=client_ip
        )
        raise

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role
    )

    return RegisterResponse(success=True, message="User registered successfully!")


@router.post("/signin", response_model=SigninResponse)
@limiter.limit(signin_rate_limit)
async def signin(
    request: Request,
    credentials: UserSignin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for a session token"""
    client_ip = request.client.host if request.client else "unknown"

    user = await UserStore(db).find_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="signin",
            success=False,
            user_email=credentials.email,
            reason="User not found" if not user else "Invalid password",
            client_ip=client_ip
        )
        raise InvalidCredentialsError()

    set_user_id(str(user.id))
    token = get_token_service(request).issue(str(user.id))

    logger.log_auth_event(
        event="signin",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role
    )

    return SigninResponse(message="Login successful", token=token)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user info"""
    return current_user

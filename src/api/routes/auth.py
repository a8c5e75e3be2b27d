"""Authentication routes.

This module handles HTTP endpoints for email domain validation, registration,
email verification, login and logout, plus the dependencies other routers use
to resolve the calling user and check their role.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from core.dependencies import DbSessionDep, UserManagerDep
from core.exceptions import QueryQuestError, UserNotFoundError
from schemas.common import MessageResponse
from schemas.email_validation import EmailValidationResult, ValidateEmailRequest
from schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    Role,
    User,
    VerifyEmailRequest,
)
from utils.converters import model_to_user
from utils.email_domain import validate_email_domain

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
# Sign-up forms call the domain check before any account exists
validation_router = APIRouter(prefix="/api", tags=["Auth"])

# HTTP Bearer token security; missing tokens are answered with 401 below
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Verify JWT token from Authorization header.

    Args:
        credentials: HTTP Bearer token credentials.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If token is missing, invalid or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    try:
        payload = jwt.decode(
            credentials.credentials, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    if payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return payload


def get_current_user(
    user_manager: UserManagerDep,
    token_payload: dict = Depends(verify_token),
) -> User:
    """Get current authenticated user.

    Args:
        user_manager: Injected UserManager instance.
        token_payload: Decoded JWT token payload.

    Returns:
        Current User object.

    Raises:
        HTTPException: If the user no longer exists.
    """
    try:
        model = user_manager.get_user(int(token_payload["sub"]))
    except (UserNotFoundError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user session",
        )
    return model_to_user(model)


def require_staff(current_user: User = Depends(get_current_user)) -> User:
    """Allow teachers and admins only."""
    if not current_user.role.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only teachers and admins can perform this action.",
        )
    return current_user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Allow admins only."""
    if current_user.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can perform this action.",
        )
    return current_user


@validation_router.post(
    "/validate-email",
    response_model=EmailValidationResult,
    summary="Check an email against institution domains",
)
def validate_email(req: ValidateEmailRequest, db: DbSessionDep) -> EmailValidationResult:
    """Tell the sign-up form which institution and role an email maps to.

    Raises:
        HTTPException: 400 if email is missing.
    """
    if not req.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is required",
        )
    return validate_email_domain(db, req.email)


@router.post(
    "/register",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
def register(req: RegisterRequest, user_manager: UserManagerDep) -> User:
    """Register a new user.

    The institution and role are inferred from the email domain; the
    account stays unverified until the emailed link is opened.

    Args:
        req: Registration request with name, email and password.
        user_manager: Injected UserManager instance.

    Returns:
        The created account without password or token.

    Raises:
        HTTPException: 400 on missing fields, unrecognized domain or
            duplicate email.
    """
    try:
        model = user_manager.register(req.name, req.email, req.password)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_user(model)


@router.post("/verify-email", response_model=MessageResponse, summary="Verify an email address")
def verify_email(req: VerifyEmailRequest, user_manager: UserManagerDep) -> MessageResponse:
    try:
        user_manager.verify_email(req.token)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(
        message="Email verified successfully! You can now log in to your account."
    )


@router.post("/login", response_model=LoginResponse, summary="Log in")
def login(req: LoginRequest, user_manager: UserManagerDep) -> LoginResponse:
    """Login with email and password.

    Args:
        req: Login request with email and password.
        user_manager: Injected UserManager instance.

    Returns:
        LoginResponse with user information and JWT token.

    Raises:
        HTTPException: 401 on bad credentials, 403 if the email is not
            verified yet.
    """
    try:
        model = user_manager.authenticate(req.email, req.password)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    access_token = create_access_token(
        data={"sub": str(model.id), "role": model.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return LoginResponse(user=model_to_user(model), token=access_token)


@router.post("/logout", response_model=MessageResponse, summary="Log out")
def logout() -> MessageResponse:
    """Logout endpoint.

    Note: Since we're using stateless JWT tokens, logout is handled
    client-side by removing the token. This endpoint exists for API
    consistency.
    """
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=User, summary="Current user")
def get_current_user_info(current_user: User = Depends(get_current_user)) -> User:
    return current_user

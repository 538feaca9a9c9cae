"""
Authentication API endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlmodel import Session
from typing import Optional
import httpx
import structlog

from campus_order.core.auth import SessionResolver
from campus_order.core.config import Settings, get_settings
from campus_order.core.database import get_session
from campus_order.core.dependencies import get_email_client, get_session_resolver
from campus_order.models.user import User
from campus_order.schemas.auth import (
    ForgotPasswordRequest, ResetPasswordRequest, SessionResponse, SignInRequest, SignUpRequest, UserResponse,
)
from campus_order.services.accounts import FORGOT_PASSWORD_MESSAGE, AccountService
from campus_order.services.email import EmailClient, EmailDeliveryError, mask_email

logger = structlog.get_logger(__name__)
router = APIRouter()


def _start_session(response: Response, user: User, resolver: SessionResolver, settings: Settings) -> SessionResponse:
    token = resolver.issue(user.id, user.email, user.name)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
    )
    return SessionResponse(token=token, user=UserResponse.model_validate(user))


async def send_reset_email(email_client: EmailClient, email: str, name: Optional[str], reset_url: str):
    try:
        await email_client.send_password_reset(email, name, reset_url)
    except (httpx.HTTPError, EmailDeliveryError) as e:
        logger.error(f"Failed to send reset email to {mask_email(email)}: {e}")


@router.post("/sign-up", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    payload: SignUpRequest,
    response: Response,
    session: Session = Depends(get_session),
    resolver: SessionResolver = Depends(get_session_resolver),
    settings: Settings = Depends(get_settings),
):
    """Register a customer account and sign it in"""
    user = AccountService(session).sign_up(payload.email, payload.password, payload.name)
    return _start_session(response, user, resolver, settings)


@router.post("/sign-in", response_model=SessionResponse)
def sign_in(
    payload: SignInRequest,
    response: Response,
    session: Session = Depends(get_session),
    resolver: SessionResolver = Depends(get_session_resolver),
    settings: Settings = Depends(get_settings),
):
    """Sign in with email and password"""
    user = AccountService(session).authenticate(payload.email, payload.password)
    logger.info(f"User {user.id} signed in")
    return _start_session(response, user, resolver, settings)


@router.post("/sign-out")
def sign_out(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True}


@router.post("/auth/forgot-password")
def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    settings: Settings = Depends(get_settings),
):
    """Always answers with the same message so accounts cannot be enumerated"""
    result = AccountService(session).create_password_reset(payload.email, settings.PASSWORD_RESET_EXPIRE_MINUTES)
    if result is not None:
        user, token = result
        reset_url = f"{settings.APP_BASE_URL.rstrip('/')}/reset-password?token={token}"
        background_tasks.add_task(send_reset_email, email_client, user.email, user.name, reset_url)
    return {"status": True, "message": FORGOT_PASSWORD_MESSAGE}


@router.post("/auth/reset-password")
def reset_password(payload: ResetPasswordRequest, session: Session = Depends(get_session)):
    AccountService(session).reset_password(payload.token, payload.new_password)
    return {"status": True, "message": "Password updated. You can now sign in."}

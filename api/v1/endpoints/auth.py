from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.deps import get_current_user, get_session_store, oauth2_scheme
from models.user import User
from schemas.auth import LoginRequest, RegisterRequest, SessionResponse, Token, UserDisplay
from services.security import is_admin_identity
from services.sessions import AuthResult, SessionStore


router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def to_display(user: User) -> UserDisplay:
    return UserDisplay(
        user_id=str(user.id) if user.id else None,
        username=user.username,
        email=user.email,
        is_admin=is_admin_identity(user),
    )


def session_response(result: AuthResult, failure_status: int) -> JSONResponse:
    body = SessionResponse(
        success=result.success,
        user=to_display(result.user) if result.user else None,
        access_token=result.token,
        error=result.error,
    )
    code = status.HTTP_200_OK if result.success else failure_status
    return JSONResponse(status_code=code, content=body.model_dump())


@router.post("/auth/register", response_model=SessionResponse)
async def register(payload: RegisterRequest, store: SessionStore = Depends(get_session_store)) -> JSONResponse:
    result = await store.register(payload.username, str(payload.email), payload.password, payload.extra)
    if not result.success:
        logger.info("auth.register_rejected", extra={"username": payload.username, "reason": result.error})
    return session_response(result, status.HTTP_400_BAD_REQUEST)


@router.post("/auth/login", response_model=SessionResponse)
async def login(payload: LoginRequest, store: SessionStore = Depends(get_session_store)) -> JSONResponse:
    result = await store.login(payload.username, payload.password)
    if not result.success:
        logger.warning("auth.login_rejected", extra={"username": payload.username})
    return session_response(result, status.HTTP_401_UNAUTHORIZED)


@router.post("/auth/token", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    store: SessionStore = Depends(get_session_store),
) -> Token:
    # OAuth2 password flow for the interactive docs
    result = await store.login((form_data.username or "").strip(), form_data.password)
    if not result.success or not result.token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error or "Incorrect username or password")
    return Token(access_token=result.token)


@router.post("/auth/logout", response_model=SessionResponse)
async def logout(
    token: Optional[str] = Depends(oauth2_scheme),
    store: SessionStore = Depends(get_session_store),
) -> JSONResponse:
    if not token:
        return session_response(AuthResult(success=True), status.HTTP_200_OK)
    result = await store.logout(token)
    return session_response(result, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/users/me", response_model=UserDisplay)
async def read_users_me(current_user: User = Depends(get_current_user)) -> UserDisplay:
    return to_display(current_user)

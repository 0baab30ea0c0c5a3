"""
DevCamper Backend — Authentication Routes
===========================================

    POST /api/v1/auth/register                 public
    POST /api/v1/auth/login                    public
    GET  /api/v1/auth/logout                   public
    GET  /api/v1/auth/me                       bearer
    PUT  /api/v1/auth/updatedetails            bearer
    PUT  /api/v1/auth/updatepassword           bearer
    POST /api/v1/auth/forgotpassword           public
    PUT  /api/v1/auth/resetpassword/{token}    public

Token responses carry the JWT in the body and in an http-only `token`
cookie (`secure` in production). Protected routes only read the
Authorization header; the cookie is for browser clients.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import get_current_identity, get_email_service, get_token_codec
from app.schemas.common import DataResponse, ErrorResponse, TokenResponse
from app.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from app.security import Identity, TokenCodec
from app.services.auth_service import auth_service
from app.services.email_service import EmailService

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])

_SECONDS_PER_DAY = 24 * 60 * 60


def _token_response(response: Response, token: str) -> TokenResponse:
    response.set_cookie(
        "token",
        token,
        max_age=settings.jwt_cookie_expire_days * _SECONDS_PER_DAY,
        httponly=True,
        secure=settings.is_production,
    )
    return TokenResponse(token=token)


@router.post("/register", response_model=TokenResponse, summary="Register a user or publisher")
async def register(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenResponse:
    _, token = await auth_service.register(db, payload, codec)
    return _token_response(response, token)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenResponse:
    _, token = await auth_service.login(db, payload, codec)
    return _token_response(response, token)


@router.get("/logout", response_model=DataResponse, summary="Clear the token cookie")
async def logout(response: Response) -> DataResponse:
    response.set_cookie("token", "none", max_age=10, httponly=True, secure=settings.is_production)
    return DataResponse(data={})


@router.get("/me", response_model=DataResponse, summary="Current user")
async def me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    user = await auth_service.me(db, identity)
    return DataResponse(data=user.to_dict())


@router.put("/updatedetails", response_model=DataResponse, summary="Update name and email")
async def update_details(
    payload: UpdateDetailsRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    user = await auth_service.update_details(db, identity, payload)
    return DataResponse(data=user.to_dict())


@router.put("/updatepassword", response_model=TokenResponse, summary="Change password")
async def update_password(
    payload: UpdatePasswordRequest,
    response: Response,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenResponse:
    _, token = await auth_service.update_password(db, identity, payload, codec)
    return _token_response(response, token)


@router.post(
    "/forgotpassword",
    response_model=DataResponse,
    responses={
        404: {"description": "No user with that email", "model": ErrorResponse},
        500: {"description": "Email could not be sent", "model": ErrorResponse},
    },
    summary="Email a password reset link",
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    mailer: EmailService = Depends(get_email_service),
) -> DataResponse:
    base = str(request.base_url)

    def reset_url(token: str) -> str:
        return f"{base}api/v1/auth/resetpassword/{token}"

    await auth_service.forgot_password(db, payload.email, mailer, reset_url)
    return DataResponse(data="Email sent")


@router.put(
    "/resetpassword/{resettoken}",
    response_model=TokenResponse,
    responses={400: {"description": "Invalid or expired token", "model": ErrorResponse}},
    summary="Set a new password with a reset token",
)
async def reset_password(
    resettoken: str,
    payload: ResetPasswordRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenResponse:
    _, token = await auth_service.reset_password(db, resettoken, payload.password, codec)
    return _token_response(response, token)

"""
DevCamper Backend — Account Service
=====================================

What:  Registration, login and the self-service account operations
       (details, password, forgotten-password flow).
Who:   Called by app/routes/auth.py.

Password reset flow:
    POST /auth/forgotpassword {email}
        → random token; SHA-256 stored with a RESET_TOKEN_EXPIRE_MINUTES expiry
        → reset URL emailed (raw token only ever leaves in the email)
        → delivery failure: stored token cleared, EmailDeliveryError
    PUT /auth/resetpassword/{token} {password}
        → user with matching hash AND unexpired token (compared in SQL)
        → new password, token cleared, fresh bearer token
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import (
    EmailDeliveryError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models.user import User
from app.schemas.user import (
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from app.security import (
    Identity,
    TokenCodec,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:

    async def _by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        return await db.scalar(select(User).where(User.email == email.lower()))

    async def _current_user(self, db: AsyncSession, identity: Identity) -> User:
        user = await db.get(User, identity.id)
        if user is None:
            raise UnauthorizedError()
        return user

    async def register(
        self, db: AsyncSession, payload: RegisterRequest, codec: TokenCodec
    ) -> Tuple[User, str]:
        hashed = await run_in_threadpool(hash_password, payload.password, settings.bcrypt_rounds)
        user = User(
            name=payload.name,
            email=payload.email.lower(),
            role=payload.role,
            password=hashed,
        )
        db.add(user)
        await db.flush()
        logger.info("Registered user %s (%s)", user.id, user.role)
        return user, codec.issue(user.id)

    async def login(
        self, db: AsyncSession, payload: LoginRequest, codec: TokenCodec
    ) -> Tuple[User, str]:
        if not payload.email or not payload.password:
            raise ValidationError("Please provide an email and password")

        user = await self._by_email(db, payload.email)
        if user is None or not await run_in_threadpool(
            verify_password, payload.password, user.password
        ):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return user, codec.issue(user.id)

    async def me(self, db: AsyncSession, identity: Identity) -> User:
        return await self._current_user(db, identity)

    async def update_details(
        self, db: AsyncSession, identity: Identity, payload: UpdateDetailsRequest
    ) -> User:
        user = await self._current_user(db, identity)
        if payload.name is not None:
            user.name = payload.name
        if payload.email is not None:
            user.email = payload.email.lower()
        await db.flush()
        return user

    async def update_password(
        self,
        db: AsyncSession,
        identity: Identity,
        payload: UpdatePasswordRequest,
        codec: TokenCodec,
    ) -> Tuple[User, str]:
        user = await self._current_user(db, identity)
        if not await run_in_threadpool(verify_password, payload.current_password, user.password):
            raise UnauthorizedError("Password is incorrect")

        user.password = await run_in_threadpool(
            hash_password, payload.new_password, settings.bcrypt_rounds
        )
        await db.flush()
        return user, codec.issue(user.id)

    async def forgot_password(
        self,
        db: AsyncSession,
        email: str,
        mailer: EmailService,
        reset_url: Callable[[str], str],
    ) -> None:
        """
        Args:
            reset_url: builds the emailed link from the raw token
        """
        user = await self._by_email(db, email)
        if user is None:
            raise NotFoundError(resource="user", message="There is no user with that email")

        token, token_hash = generate_reset_token()
        user.reset_password_token = token_hash
        user.reset_password_expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.reset_token_expire_minutes
        )
        await db.flush()

        try:
            await mailer.send_password_reset(user.email, reset_url(token))
        except EmailDeliveryError:
            user.reset_password_token = None
            user.reset_password_expire = None
            await db.flush()
            raise

        logger.info("Password reset email sent to user %s", user.id)

    async def reset_password(
        self, db: AsyncSession, token: str, password: str, codec: TokenCodec
    ) -> Tuple[User, str]:
        user = await db.scalar(
            select(User).where(
                User.reset_password_token == hash_reset_token(token),
                User.reset_password_expire > datetime.now(timezone.utc),
            )
        )
        if user is None:
            raise ValidationError("Invalid token")

        user.password = await run_in_threadpool(hash_password, password, settings.bcrypt_rounds)
        user.reset_password_token = None
        user.reset_password_expire = None
        await db.flush()
        return user, codec.issue(user.id)


auth_service = AuthService()

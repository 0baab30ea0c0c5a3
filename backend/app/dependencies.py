"""
DevCamper Backend — FastAPI Dependencies
==========================================

What:  Builds the per-request collaborators route handlers depend on.
How:   Plain FastAPI dependencies. Each collaborator is built from `settings`
       here and nowhere else, so tests swap any of them through
       `app.dependency_overrides`.

    get_current_identity   Authorization header → Identity (401 otherwise)
    require_roles(*roles)  get_current_identity + role-gate (403 otherwise)
    get_geocoder           MapQuest client configured with GeoConfig
    get_email_service      SMTP sender
    get_file_service       photo storage
"""

from functools import lru_cache
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.security import AuthConfig, AuthenticationResolver, Identity, TokenCodec
from app.services.authorization import authorization_policy
from app.services.email_service import EmailService
from app.services.file_service import FileService, file_service
from app.services.geo_service import GeoConfig, Geocoder


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(
        AuthConfig(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_days=settings.jwt_expire_days,
        )
    )


def get_auth_resolver(codec: TokenCodec = Depends(get_token_codec)) -> AuthenticationResolver:
    return AuthenticationResolver(codec)


@lru_cache
def get_geocoder() -> Geocoder:
    return Geocoder(
        GeoConfig(
            api_key=settings.geocoder_api_key,
            base_url=settings.geocoder_base_url,
            timeout=settings.geocoder_timeout,
        )
    )


@lru_cache
def get_email_service() -> EmailService:
    return EmailService.from_settings()


def get_file_service() -> FileService:
    return file_service


async def get_current_identity(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    resolver: AuthenticationResolver = Depends(get_auth_resolver),
) -> Identity:
    identity = await resolver.resolve(db, request.headers.get("Authorization"))
    request.state.identity = identity
    return identity


def require_roles(*roles: str) -> Callable:
    """
    Dependency factory for role-gated routes.

    Usage:
        @router.post("/", ...)
        async def create(identity: Identity = Depends(require_roles("publisher", "admin"))):
    """

    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        authorization_policy.require_role(identity, roles)
        return identity

    return dependency

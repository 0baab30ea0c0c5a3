"""
DevCamper Backend — User Administration Service
=================================================

Admin-only CRUD over users (routes/users.py). Self-service account changes
live in AuthService.
"""

import logging
from typing import Mapping

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.database import parse_id
from app.exceptions import NotFoundError
from app.models.user import User
from app.schemas.common import QueryResult
from app.schemas.user import UserCreate, UserUpdate
from app.security import hash_password
from app.services.query_service import ResourceQuery, query_service

logger = logging.getLogger(__name__)

USER_QUERY = ResourceQuery(
    model=User,
    filterable=frozenset({"name", "email", "role", "created_at"}),
)


class UserService:

    async def list_users(self, db: AsyncSession, params: Mapping[str, str]) -> QueryResult:
        return await query_service.execute(db, USER_QUERY, params)

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, parse_id(user_id, "user"))
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def create_user(self, db: AsyncSession, payload: UserCreate) -> User:
        hashed = await run_in_threadpool(hash_password, payload.password, settings.bcrypt_rounds)
        user = User(
            name=payload.name,
            email=payload.email.lower(),
            role=payload.role,
            password=hashed,
        )
        db.add(user)
        await db.flush()
        logger.info("User %s created with role %s", user.id, user.role)
        return user

    async def update_user(self, db: AsyncSession, user_id: str, payload: UserUpdate) -> User:
        user = await self.get_user(db, user_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in changes:
            changes["email"] = changes["email"].lower()
        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()
        return user

    async def delete_user(self, db: AsyncSession, user_id: str) -> None:
        user = await self.get_user(db, user_id)
        await db.delete(user)
        await db.flush()
        logger.info("User %s deleted", user.id)


user_service = UserService()

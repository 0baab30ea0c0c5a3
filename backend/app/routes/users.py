"""
DevCamper Backend — User Administration Routes
================================================

Every route requires an admin bearer token (router-level dependency).

    GET    /api/v1/users        shaped list
    GET    /api/v1/users/{id}
    POST   /api/v1/users
    PUT    /api/v1/users/{id}
    DELETE /api/v1/users/{id}
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_roles
from app.schemas.common import DataResponse, QueryResult
from app.schemas.user import UserCreate, UserUpdate
from app.services.user_service import user_service

router = APIRouter(
    prefix="/api/v1/users",
    tags=["Users"],
    dependencies=[Depends(require_roles("admin"))],
)


@router.get("", response_model=QueryResult, summary="List users")
async def list_users(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> QueryResult:
    result = await user_service.list_users(db, dict(request.query_params))
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get("/{user_id}", response_model=DataResponse, summary="Get a user")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    user = await user_service.get_user(db, user_id)
    return DataResponse(data=user.to_dict())


@router.post("", status_code=201, response_model=DataResponse, summary="Create a user")
async def create_user(
    payload: UserCreate, db: AsyncSession = Depends(get_db_session)
) -> DataResponse:
    user = await user_service.create_user(db, payload)
    return DataResponse(data=user.to_dict())


@router.put("/{user_id}", response_model=DataResponse, summary="Update a user")
async def update_user(
    user_id: str, payload: UserUpdate, db: AsyncSession = Depends(get_db_session)
) -> DataResponse:
    user = await user_service.update_user(db, user_id, payload)
    return DataResponse(data=user.to_dict())


@router.delete("/{user_id}", response_model=DataResponse, summary="Delete a user")
async def delete_user(user_id: str, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    await user_service.delete_user(db, user_id)
    return DataResponse(data={})

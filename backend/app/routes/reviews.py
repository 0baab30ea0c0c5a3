"""
DevCamper Backend — Review Route Handlers
===========================================

    GET    /api/v1/reviews                          public, shaped list
    GET    /api/v1/bootcamps/{bootcamp_id}/reviews  public
    GET    /api/v1/reviews/{id}                     public
    POST   /api/v1/bootcamps/{bootcamp_id}/reviews  user | admin
    PUT    /api/v1/reviews/{id}                     user | admin, owner
    DELETE /api/v1/reviews/{id}                     user | admin, owner
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_roles
from app.schemas.common import DataResponse, ErrorResponse, ListResponse, QueryResult
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.security import Identity
from app.services.review_service import review_service

router = APIRouter(prefix="/api/v1", tags=["Reviews"])

user_or_admin = require_roles("user", "admin")


@router.get("/reviews", response_model=QueryResult, summary="List reviews")
async def list_reviews(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> QueryResult:
    result = await review_service.list_reviews(db, dict(request.query_params))
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/bootcamps/{bootcamp_id}/reviews",
    response_model=ListResponse,
    summary="List the reviews of one bootcamp",
)
async def list_bootcamp_reviews(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    data = await review_service.list_bootcamp_reviews(db, bootcamp_id)
    return ListResponse(count=len(data), data=data)


@router.get(
    "/reviews/{review_id}",
    response_model=DataResponse,
    responses={404: {"description": "Review not found", "model": ErrorResponse}},
    summary="Get a review with its bootcamp's name and description",
)
async def get_review(
    review_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    return DataResponse(data=await review_service.get_review(db, review_id))


@router.post(
    "/bootcamps/{bootcamp_id}/reviews",
    status_code=201,
    response_model=DataResponse,
    responses={400: {"description": "Invalid body or already reviewed", "model": ErrorResponse}},
    summary="Review a bootcamp",
)
async def add_review(
    bootcamp_id: str,
    payload: ReviewCreate,
    identity: Identity = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    review = await review_service.add_review(db, identity, bootcamp_id, payload)
    return DataResponse(data=review.to_dict())


@router.put("/reviews/{review_id}", response_model=DataResponse, summary="Update a review")
async def update_review(
    review_id: str,
    payload: ReviewUpdate,
    identity: Identity = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    review = await review_service.update_review(db, identity, review_id, payload)
    return DataResponse(data=review.to_dict())


@router.delete("/reviews/{review_id}", response_model=DataResponse, summary="Delete a review")
async def delete_review(
    review_id: str,
    identity: Identity = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    await review_service.delete_review(db, identity, review_id)
    return DataResponse(data={})

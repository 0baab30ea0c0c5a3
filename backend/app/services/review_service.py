"""
DevCamper Backend — Review Service
====================================

What:  Review CRUD plus maintenance of the parent bootcamp's average_rating.
Who:   Called by app/routes/reviews.py and the nested bootcamp routes.

One review per user per bootcamp is enforced by uq_reviews_bootcamp_user;
a second review surfaces as IntegrityError at flush and is answered with 400.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import parse_id
from app.exceptions import NotFoundError
from app.models.bootcamp import Bootcamp
from app.models.review import Review
from app.schemas.common import QueryResult
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.security import Identity
from app.services.authorization import authorization_policy
from app.services.query_service import ResourceQuery, query_service

logger = logging.getLogger(__name__)

BOOTCAMP_SUMMARY = ("name", "description")

REVIEW_QUERY = ResourceQuery(
    model=Review,
    filterable=frozenset({"title", "rating", "bootcamp_id", "user_id", "created_at"}),
    populate="bootcamp",
    populate_fields=BOOTCAMP_SUMMARY,
)


async def recompute_average_rating(db: AsyncSession, bootcamp_id: uuid.UUID) -> None:
    mean = await db.scalar(select(func.avg(Review.rating)).where(Review.bootcamp_id == bootcamp_id))
    average_rating = float(mean) if mean is not None else None
    await db.execute(
        update(Bootcamp).where(Bootcamp.id == bootcamp_id).values(average_rating=average_rating)
    )
    logger.debug("Bootcamp %s average_rating → %s", bootcamp_id, average_rating)


class ReviewService:

    async def list_reviews(self, db: AsyncSession, params: Mapping[str, str]) -> QueryResult:
        return await query_service.execute(db, REVIEW_QUERY, params)

    async def list_bootcamp_reviews(self, db: AsyncSession, bootcamp_id: str) -> List[Dict[str, Any]]:
        bid = parse_id(bootcamp_id, "bootcamp")
        result = await db.execute(
            select(Review).where(Review.bootcamp_id == bid).order_by(Review.created_at, Review.id)
        )
        return [review.to_dict() for review in result.scalars().all()]

    async def _get(self, db: AsyncSession, review_id: str, populate: bool = False) -> Review:
        message = f"No review found with the id of {review_id}"
        stmt = select(Review).where(Review.id == parse_id(review_id, "review", message))
        if populate:
            stmt = stmt.options(selectinload(Review.bootcamp))
        review = await db.scalar(stmt)
        if review is None:
            raise NotFoundError(resource="review", resource_id=str(review_id), message=message)
        return review

    async def get_review(self, db: AsyncSession, review_id: str) -> Dict[str, Any]:
        review = await self._get(db, review_id, populate=True)
        return review.to_dict(populate=(("bootcamp", BOOTCAMP_SUMMARY),))

    async def add_review(
        self, db: AsyncSession, identity: Identity, bootcamp_id: str, payload: ReviewCreate
    ) -> Review:
        message = f"No bootcamp with the id of {bootcamp_id}"
        bootcamp = await db.get(Bootcamp, parse_id(bootcamp_id, "bootcamp", message))
        if bootcamp is None:
            raise NotFoundError(resource="bootcamp", resource_id=str(bootcamp_id), message=message)

        review = Review(**payload.model_dump(), bootcamp_id=bootcamp.id, user_id=identity.id)
        db.add(review)
        await db.flush()
        await recompute_average_rating(db, bootcamp.id)
        return review

    async def update_review(
        self, db: AsyncSession, identity: Identity, review_id: str, payload: ReviewUpdate
    ) -> Review:
        review = await self._get(db, review_id)
        authorization_policy.require_owner(identity, review, "update", "review")

        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(review, field, value)
        await db.flush()
        await recompute_average_rating(db, review.bootcamp_id)
        return review

    async def delete_review(self, db: AsyncSession, identity: Identity, review_id: str) -> None:
        review = await self._get(db, review_id)
        authorization_policy.require_owner(identity, review, "delete", "review")

        bootcamp_id = review.bootcamp_id
        await db.delete(review)
        await db.flush()
        await recompute_average_rating(db, bootcamp_id)


review_service = ReviewService()

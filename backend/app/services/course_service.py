"""
DevCamper Backend — Course Service
====================================

What:  Course CRUD plus maintenance of the parent bootcamp's average_cost.
Who:   Called by app/routes/courses.py and the nested bootcamp routes.

average_cost:
    ceil(avg(tuition) / 10) * 10 over the bootcamp's courses, NULL when it
    has none. Recomputed after every course create/update/delete, inside the
    same session as the write.
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Mapping

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import parse_id
from app.exceptions import NotFoundError
from app.models.bootcamp import Bootcamp
from app.models.course import Course
from app.schemas.common import QueryResult
from app.schemas.course import CourseCreate, CourseUpdate
from app.security import Identity
from app.services.authorization import authorization_policy
from app.services.query_service import ResourceQuery, query_service

logger = logging.getLogger(__name__)

BOOTCAMP_SUMMARY = ("name", "description")

COURSE_QUERY = ResourceQuery(
    model=Course,
    filterable=frozenset({
        "title", "weeks", "tuition", "minimum_skill", "scholarship_available",
        "bootcamp_id", "user_id", "created_at",
    }),
    populate="bootcamp",
    populate_fields=BOOTCAMP_SUMMARY,
)


async def recompute_average_cost(db: AsyncSession, bootcamp_id: uuid.UUID) -> None:
    mean = await db.scalar(select(func.avg(Course.tuition)).where(Course.bootcamp_id == bootcamp_id))
    average_cost = math.ceil(mean / 10) * 10 if mean is not None else None
    await db.execute(
        update(Bootcamp).where(Bootcamp.id == bootcamp_id).values(average_cost=average_cost)
    )
    logger.debug("Bootcamp %s average_cost → %s", bootcamp_id, average_cost)


class CourseService:

    async def list_courses(self, db: AsyncSession, params: Mapping[str, str]) -> QueryResult:
        return await query_service.execute(db, COURSE_QUERY, params)

    async def list_bootcamp_courses(self, db: AsyncSession, bootcamp_id: str) -> List[Dict[str, Any]]:
        bid = parse_id(bootcamp_id, "bootcamp")
        result = await db.execute(
            select(Course).where(Course.bootcamp_id == bid).order_by(Course.created_at, Course.id)
        )
        return [course.to_dict() for course in result.scalars().all()]

    async def _get(self, db: AsyncSession, course_id: str, populate: bool = False) -> Course:
        message = f"No course with the id of {course_id}"
        stmt = select(Course).where(Course.id == parse_id(course_id, "course", message))
        if populate:
            stmt = stmt.options(selectinload(Course.bootcamp))
        course = await db.scalar(stmt)
        if course is None:
            raise NotFoundError(resource="course", resource_id=str(course_id), message=message)
        return course

    async def get_course(self, db: AsyncSession, course_id: str) -> Dict[str, Any]:
        course = await self._get(db, course_id, populate=True)
        return course.to_dict(populate=(("bootcamp", BOOTCAMP_SUMMARY),))

    async def add_course(
        self, db: AsyncSession, identity: Identity, bootcamp_id: str, payload: CourseCreate
    ) -> Course:
        message = f"No bootcamp with the id of {bootcamp_id}"
        bootcamp = await db.get(Bootcamp, parse_id(bootcamp_id, "bootcamp", message))
        if bootcamp is None:
            raise NotFoundError(resource="bootcamp", resource_id=str(bootcamp_id), message=message)
        authorization_policy.require_owner(identity, bootcamp, "add a course to", "bootcamp")

        course = Course(**payload.model_dump(), bootcamp_id=bootcamp.id, user_id=identity.id)
        db.add(course)
        await db.flush()
        await recompute_average_cost(db, bootcamp.id)
        return course

    async def update_course(
        self, db: AsyncSession, identity: Identity, course_id: str, payload: CourseUpdate
    ) -> Course:
        course = await self._get(db, course_id)
        authorization_policy.require_owner(identity, course, "update", "course")

        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(course, field, value)
        await db.flush()
        await recompute_average_cost(db, course.bootcamp_id)
        return course

    async def delete_course(self, db: AsyncSession, identity: Identity, course_id: str) -> None:
        course = await self._get(db, course_id)
        authorization_policy.require_owner(identity, course, "delete", "course")

        bootcamp_id = course.bootcamp_id
        await db.delete(course)
        await db.flush()
        await recompute_average_cost(db, bootcamp_id)


course_service = CourseService()

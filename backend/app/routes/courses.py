"""
DevCamper Backend — Course Route Handlers
===========================================

    GET    /api/v1/courses                          public, shaped list
    GET    /api/v1/bootcamps/{bootcamp_id}/courses  public
    GET    /api/v1/courses/{id}                     public
    POST   /api/v1/bootcamps/{bootcamp_id}/courses  publisher | admin, bootcamp owner
    PUT    /api/v1/courses/{id}                     publisher | admin, owner
    DELETE /api/v1/courses/{id}                     publisher | admin, owner
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_roles
from app.schemas.common import DataResponse, ErrorResponse, ListResponse, QueryResult
from app.schemas.course import CourseCreate, CourseUpdate
from app.security import Identity
from app.services.course_service import course_service

router = APIRouter(prefix="/api/v1", tags=["Courses"])

publisher_or_admin = require_roles("publisher", "admin")


@router.get("/courses", response_model=QueryResult, summary="List courses")
async def list_courses(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> QueryResult:
    result = await course_service.list_courses(db, dict(request.query_params))
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/bootcamps/{bootcamp_id}/courses",
    response_model=ListResponse,
    summary="List the courses of one bootcamp",
)
async def list_bootcamp_courses(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    data = await course_service.list_bootcamp_courses(db, bootcamp_id)
    return ListResponse(count=len(data), data=data)


@router.get(
    "/courses/{course_id}",
    response_model=DataResponse,
    responses={404: {"description": "Course not found", "model": ErrorResponse}},
    summary="Get a course with its bootcamp's name and description",
)
async def get_course(
    course_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    return DataResponse(data=await course_service.get_course(db, course_id))


@router.post(
    "/bootcamps/{bootcamp_id}/courses",
    status_code=201,
    response_model=DataResponse,
    summary="Add a course to a bootcamp",
)
async def add_course(
    bootcamp_id: str,
    payload: CourseCreate,
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    course = await course_service.add_course(db, identity, bootcamp_id, payload)
    return DataResponse(data=course.to_dict())


@router.put("/courses/{course_id}", response_model=DataResponse, summary="Update a course")
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    course = await course_service.update_course(db, identity, course_id, payload)
    return DataResponse(data=course.to_dict())


@router.delete("/courses/{course_id}", response_model=DataResponse, summary="Delete a course")
async def delete_course(
    course_id: str,
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    await course_service.delete_course(db, identity, course_id)
    return DataResponse(data={})

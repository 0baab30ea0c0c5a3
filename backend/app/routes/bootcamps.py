"""
DevCamper Backend — Bootcamp Route Handlers
=============================================

    GET    /api/v1/bootcamps                            public, shaped list
    GET    /api/v1/bootcamps/radius/{zipcode}/{distance} public
    GET    /api/v1/bootcamps/{id}                       public
    POST   /api/v1/bootcamps                            publisher | admin
    PUT    /api/v1/bootcamps/{id}                       publisher | admin, owner
    DELETE /api/v1/bootcamps/{id}                       publisher | admin, owner
    PUT    /api/v1/bootcamps/{id}/photo                 publisher | admin, owner

Nested course and review routes live in courses.py / reviews.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import get_file_service, get_geocoder, require_roles
from app.schemas.bootcamp import BootcampCreate, BootcampUpdate
from app.schemas.common import DataResponse, ErrorResponse, ListResponse, QueryResult
from app.security import Identity
from app.services.bootcamp_service import bootcamp_service
from app.services.file_service import FileService
from app.services.geo_service import Geocoder, RadiusResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bootcamps", tags=["Bootcamps"])

publisher_or_admin = require_roles("publisher", "admin")


@router.get(
    "",
    response_model=QueryResult,
    responses={400: {"description": "Malformed query", "model": ErrorResponse}},
    summary="List bootcamps",
    description=(
        "Filter with `field=value` or `field[gt|gte|lt|lte|in]=value`, project with "
        "`select=a,b`, order with `sort=-a,b`, page with `page`/`limit`. Each bootcamp "
        "embeds its courses. The total match count is in the X-Total-Count header."
    ),
)
async def list_bootcamps(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> QueryResult:
    result = await bootcamp_service.list_bootcamps(db, dict(request.query_params))
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=ListResponse,
    summary="Bootcamps within a distance of a postal code",
)
async def bootcamps_in_radius(
    zipcode: str,
    distance: float,
    db: AsyncSession = Depends(get_db_session),
    geocoder: Geocoder = Depends(get_geocoder),
) -> ListResponse:
    """`distance` is in GEO_DISTANCE_UNIT (km by default)."""
    resolver = RadiusResolver(geocoder, settings.earth_radius)
    data = await bootcamp_service.bootcamps_in_radius(db, zipcode, distance, resolver)
    return ListResponse(count=len(data), data=data)


@router.get(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses={404: {"description": "Bootcamp not found", "model": ErrorResponse}},
    summary="Get a single bootcamp",
)
async def get_bootcamp(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
    return DataResponse(data=bootcamp.to_dict())


@router.post(
    "",
    status_code=201,
    response_model=DataResponse,
    responses={
        400: {"description": "Invalid body or already owns a bootcamp", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Role not allowed", "model": ErrorResponse},
    },
    summary="Create a bootcamp",
)
async def create_bootcamp(
    payload: BootcampCreate,
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
    geocoder: Geocoder = Depends(get_geocoder),
) -> DataResponse:
    bootcamp = await bootcamp_service.create_bootcamp(db, identity, payload, geocoder)
    return DataResponse(data=bootcamp.to_dict())


@router.put(
    "/{bootcamp_id}",
    response_model=DataResponse,
    summary="Update a bootcamp",
)
async def update_bootcamp(
    bootcamp_id: str,
    payload: BootcampUpdate,
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
    geocoder: Geocoder = Depends(get_geocoder),
) -> DataResponse:
    bootcamp = await bootcamp_service.update_bootcamp(db, identity, bootcamp_id, payload, geocoder)
    return DataResponse(data=bootcamp.to_dict())


@router.delete(
    "/{bootcamp_id}",
    response_model=DataResponse,
    summary="Delete a bootcamp with its courses and reviews",
)
async def delete_bootcamp(
    bootcamp_id: str,
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    await bootcamp_service.delete_bootcamp(db, identity, bootcamp_id)
    return DataResponse(data={})


@router.put(
    "/{bootcamp_id}/photo",
    response_model=DataResponse,
    responses={
        400: {"description": "Missing, non-image or oversized file", "model": ErrorResponse},
        500: {"description": "File could not be written", "model": ErrorResponse},
    },
    summary="Upload a bootcamp photo",
)
async def upload_photo(
    bootcamp_id: str,
    file: Optional[UploadFile] = File(default=None, description="Image file"),
    identity: Identity = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_file_service),
) -> DataResponse:
    filename = content_type = content = None
    if file is not None:
        filename, content_type = file.filename, file.content_type
        content = await file.read()

    name = await bootcamp_service.upload_photo(
        db, identity, bootcamp_id, filename, content_type, content, files
    )
    return DataResponse(data=name)

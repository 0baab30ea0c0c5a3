"""
DevCamper Backend — Bootcamp Service
======================================

What:  Business logic for bootcamps: shaped listing, CRUD, radius search and
       photo upload.
Who:   Called by app/routes/bootcamps.py.

Stateless: every method receives the session and the identity/collaborators
it needs, so one shared instance serves all requests.

Create flow (POST /api/v1/bootcamps):
    ┌────────────┐   ┌──────────────────┐   ┌──────────┐   ┌────────────┐
    │ owns one?  │──▶│ single-ownership │──▶│ geocode  │──▶│ insert +   │
    │ (SELECT)   │   │ policy check     │   │ address  │   │ flush      │
    └────────────┘   └──────────────────┘   └──────────┘   └────────────┘
    The SELECT and INSERT are not atomic. exclusive_owner_id (UNIQUE) makes
    a concurrent second insert fail with IntegrityError → 400.
"""

import logging
import re
import unicodedata
import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import parse_id
from app.exceptions import NotFoundError
from app.models.bootcamp import Bootcamp
from app.models.course import Course
from app.models.review import Review
from app.schemas.bootcamp import BootcampCreate, BootcampUpdate
from app.schemas.common import QueryResult
from app.security import Identity
from app.services.authorization import authorization_policy
from app.services.file_service import FileService
from app.services.geo_service import Geocoder, GeoPoint, RadiusResolver
from app.services.query_service import ResourceQuery, query_service

logger = logging.getLogger(__name__)

BOOTCAMP_QUERY = ResourceQuery(
    model=Bootcamp,
    filterable=frozenset({
        "name", "slug", "city", "state", "zipcode", "country",
        "average_cost", "average_rating",
        "housing", "job_assistance", "job_guarantee", "accept_gi",
        "user_id", "created_at",
    }),
    populate="courses",
)


def slugify(value: str) -> str:
    """'Devworks Bootcamp!' → 'devworks-bootcamp'"""
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    return re.sub(r"[^a-z0-9]+", "-", ascii_value.lower()).strip("-")


def _apply_location(bootcamp: Bootcamp, point: GeoPoint) -> None:
    bootcamp.longitude = point.longitude
    bootcamp.latitude = point.latitude
    bootcamp.formatted_address = point.formatted_address
    bootcamp.street = point.street
    bootcamp.city = point.city
    bootcamp.state = point.state
    bootcamp.zipcode = point.zipcode
    bootcamp.country = point.country


class BootcampService:

    async def list_bootcamps(self, db: AsyncSession, params: Mapping[str, str]) -> QueryResult:
        return await query_service.execute(db, BOOTCAMP_QUERY, params)

    async def get_bootcamp(self, db: AsyncSession, bootcamp_id: str) -> Bootcamp:
        bootcamp = await db.get(Bootcamp, parse_id(bootcamp_id, "bootcamp"))
        if bootcamp is None:
            raise NotFoundError(resource="bootcamp", resource_id=str(bootcamp_id))
        return bootcamp

    async def owns_bootcamp(self, db: AsyncSession, user_id: uuid.UUID) -> bool:
        found = await db.scalar(select(Bootcamp.id).where(Bootcamp.user_id == user_id).limit(1))
        return found is not None

    async def create_bootcamp(
        self,
        db: AsyncSession,
        identity: Identity,
        payload: BootcampCreate,
        geocoder: Geocoder,
    ) -> Bootcamp:
        """
        Raises:
            ValidationError: the identity already owns a bootcamp (non-admin)
            NotFoundError:   the address could not be geocoded
            GeocodingError:  the geocoder could not be reached
        """
        already_owns = await self.owns_bootcamp(db, identity.id)
        authorization_policy.ensure_can_create_bootcamp(identity, already_owns)

        point = await geocoder.geocode(payload.address)

        data = payload.model_dump(exclude={"address"})
        bootcamp = Bootcamp(
            **data,
            slug=slugify(payload.name),
            user_id=identity.id,
            exclusive_owner_id=None if identity.is_admin else identity.id,
        )
        _apply_location(bootcamp, point)

        db.add(bootcamp)
        await db.flush()
        logger.info("Bootcamp %s created by user %s", bootcamp.id, identity.id)
        return bootcamp

    async def update_bootcamp(
        self,
        db: AsyncSession,
        identity: Identity,
        bootcamp_id: str,
        payload: BootcampUpdate,
        geocoder: Geocoder,
    ) -> Bootcamp:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        authorization_policy.require_owner(identity, bootcamp, "update", "bootcamp")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"address"})
        for field, value in changes.items():
            setattr(bootcamp, field, value)
        if "name" in changes:
            bootcamp.slug = slugify(bootcamp.name)

        if payload.address is not None:
            _apply_location(bootcamp, await geocoder.geocode(payload.address))

        await db.flush()
        return bootcamp

    async def delete_bootcamp(self, db: AsyncSession, identity: Identity, bootcamp_id: str) -> None:
        """Removes the bootcamp with its courses and reviews."""
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        authorization_policy.require_owner(identity, bootcamp, "delete", "bootcamp")

        await db.execute(delete(Course).where(Course.bootcamp_id == bootcamp.id))
        await db.execute(delete(Review).where(Review.bootcamp_id == bootcamp.id))
        await db.delete(bootcamp)
        await db.flush()
        logger.info("Bootcamp %s deleted by user %s", bootcamp.id, identity.id)

    async def bootcamps_in_radius(
        self,
        db: AsyncSession,
        zipcode: str,
        distance: float,
        resolver: RadiusResolver,
    ) -> List[Dict[str, Any]]:
        """
        Bootcamps whose location lies within `distance` of the postal code.

        The bounding box is a superset of the spherical cap; rows it admits
        are then checked exactly.
        """
        sphere = await resolver.resolve(zipcode, distance)
        min_lat, max_lat, min_lng, max_lng = sphere.bounding_box()

        criteria = [
            Bootcamp.latitude.is_not(None),
            Bootcamp.longitude.is_not(None),
            Bootcamp.latitude.between(min_lat, max_lat),
        ]
        if min_lng is not None and max_lng is not None:
            criteria.append(Bootcamp.longitude.between(min_lng, max_lng))

        result = await db.execute(
            select(Bootcamp).where(and_(*criteria)).order_by(Bootcamp.created_at.desc(), Bootcamp.id)
        )
        return [
            bootcamp.to_dict()
            for bootcamp in result.scalars().all()
            if sphere.contains(bootcamp.longitude, bootcamp.latitude)
        ]

    async def upload_photo(
        self,
        db: AsyncSession,
        identity: Identity,
        bootcamp_id: str,
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes],
        files: FileService,
    ) -> str:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        authorization_policy.require_owner(identity, bootcamp, "update", "bootcamp")

        name = await files.save_photo(bootcamp.id, filename, content_type, content)
        bootcamp.photo = name
        await db.flush()
        return name


bootcamp_service = BootcampService()

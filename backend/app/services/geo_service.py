"""
DevCamper Backend — Geocoding & Radius Search
===============================================

What:  Resolves addresses / postal codes to coordinates and turns
       "within D of postal code Z" into a spherical containment test.
Who:   BootcampService (location on create/update, radius search).

Geocoding:
    MapQuest geocoding API over httpx:
        GET {base_url}/address?key=<api key>&location=<query>&maxResults=1
    The first location of the first result is the best match.
    - no match                    → NotFoundError (404)
    - network / HTTP / API error  → GeocodingError (500, generic message)
    There are no retries: a failed lookup fails the request.

Radius:
    angular radius = distance / earth_radius
    earth_radius comes from configuration (GEO_DISTANCE_UNIT: km → 6378,
    mi → 3963), so the unit of `distance` is explicit rather than assumed.
    The search region is a spherical cap centred on (longitude, latitude).
    A latitude/longitude bounding box narrows candidates in SQL, then the
    exact great-circle distance (haversine) decides membership.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from app.exceptions import GeocodingError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoConfig:
    api_key: str
    base_url: str = "https://www.mapquestapi.com/geocoding/v1"
    timeout: float = 10.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class Geocoder:
    """
    Thin async client for the geocoding provider.

    Args:
        config:    provider credentials and endpoint
        transport: optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(self, config: GeoConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def geocode(self, query: str) -> GeoPoint:
        params = {"key": self.config.api_key, "location": query, "maxResults": 1}
        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get("/address", params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Geocoding request for %r failed: %s", query, e)
            raise GeocodingError(context={"query": query, "error": type(e).__name__})

        status = payload.get("info", {}).get("statuscode", 0)
        if status != 0:
            logger.error("Geocoder answered status %s for %r", status, query)
            raise GeocodingError(context={"query": query, "statuscode": status})

        results = payload.get("results") or []
        locations = results[0].get("locations") if results else None
        if not locations:
            raise NotFoundError(
                resource="location",
                message=f"No location found for '{query}'",
                context={"query": query},
            )
        try:
            return self._to_point(locations[0])
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Geocoder returned no usable coordinates for %r", query)
            raise GeocodingError(context={"query": query, "error": type(e).__name__})

    @staticmethod
    def _to_point(location: dict) -> GeoPoint:
        lat_lng = location.get("latLng") or location.get("displayLatLng") or {}
        street = location.get("street") or None
        city = location.get("adminArea5") or None
        state = location.get("adminArea3") or None
        zipcode = location.get("postalCode") or None
        country = location.get("adminArea1") or None

        state_zip = " ".join(part for part in (state, zipcode) if part)
        formatted = ", ".join(part for part in (street, city, state_zip, country) if part)

        return GeoPoint(
            latitude=float(lat_lng["lat"]),
            longitude=float(lat_lng["lng"]),
            formatted_address=formatted or None,
            street=street,
            city=city,
            state=state,
            zipcode=zipcode,
            country=country,
        )


@dataclass(frozen=True)
class SphereQuery:
    """Spherical cap: every point within `radius` radians of the centre."""

    longitude: float
    latitude: float
    radius: float

    @property
    def center(self) -> Tuple[float, float]:
        """(longitude, latitude), the order geospatial stores expect."""
        return (self.longitude, self.latitude)

    def bounding_box(self) -> Tuple[float, float, Optional[float], Optional[float]]:
        """
        Returns (min_lat, max_lat, min_lng, max_lng) enclosing the cap.

        Longitude bounds are None when the cap touches a pole or crosses the
        antimeridian; only the latitude band is usable then.
        """
        if self.radius >= math.pi:
            return (-90.0, 90.0, None, None)

        delta_lat = math.degrees(self.radius)
        min_lat = self.latitude - delta_lat
        max_lat = self.latitude + delta_lat
        if min_lat <= -90.0 or max_lat >= 90.0:
            return (max(min_lat, -90.0), min(max_lat, 90.0), None, None)

        ratio = math.sin(self.radius) / math.cos(math.radians(self.latitude))
        if ratio >= 1.0:
            return (min_lat, max_lat, None, None)
        delta_lng = math.degrees(math.asin(ratio))
        min_lng = self.longitude - delta_lng
        max_lng = self.longitude + delta_lng
        if min_lng < -180.0 or max_lng > 180.0:
            return (min_lat, max_lat, None, None)
        return (min_lat, max_lat, min_lng, max_lng)

    def central_angle(self, longitude: float, latitude: float) -> float:
        """Great-circle angle (radians) between the centre and a point (haversine)."""
        phi1, phi2 = math.radians(self.latitude), math.radians(latitude)
        d_phi = phi2 - phi1
        d_lambda = math.radians(longitude - self.longitude)
        a = (
            math.sin(d_phi / 2) ** 2
            + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
        )
        return 2 * math.asin(min(1.0, math.sqrt(a)))

    def contains(self, longitude: float, latitude: float) -> bool:
        return self.central_angle(longitude, latitude) <= self.radius + 1e-12


class RadiusResolver:
    """Postal code + distance → SphereQuery."""

    def __init__(self, geocoder: Geocoder, earth_radius: float = 6378.0):
        self.geocoder = geocoder
        self.earth_radius = earth_radius

    def angular_radius(self, distance: float) -> float:
        if distance < 0 or math.isnan(distance):
            raise ValidationError("Distance must be a non-negative number", field="distance")
        return distance / self.earth_radius

    async def resolve(self, postal_code: str, distance: float) -> SphereQuery:
        radius = self.angular_radius(distance)
        point = await self.geocoder.geocode(postal_code)
        logger.info(
            "Radius search around %s (%.5f, %.5f), radius %.6f rad",
            postal_code, point.latitude, point.longitude, radius,
        )
        return SphereQuery(longitude=point.longitude, latitude=point.latitude, radius=radius)

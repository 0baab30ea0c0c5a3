"""
DevCamper Backend — Query Shaping Service
===========================================

What:  Turns list-endpoint query strings into a filtered, projected, sorted,
       paginated SELECT, runs it, and packages the rows with pagination metadata.
Who:   Called by every collection GET (bootcamps, courses, reviews, users).

Query string grammar:
    select=name,description          fields to return (id is always returned)
    sort=-average_cost,name          "-" prefix = descending; default -created_at
    page=2&limit=10                  defaults 1 / 25; limit capped by settings
    field=value                      equality
    field[gt|gte|lt|lte]=value       comparison
    field[in]=a,b,c                  membership

    Any other key is a filter. Keys that don't parse, operators outside the
    list above and fields outside the resource's allow-list are rejected with
    a 400. They are never passed through to the database.

Pagination:
    skip = (page - 1) * limit
    next = {page + 1, limit}  iff skip + limit < total
    prev = {page - 1, limit}  iff page > 1
    total comes from a COUNT over the same filters, ignoring skip/limit.

Results are ordered by the requested sort keys and then by primary key, so
repeating a request with no intervening writes returns identical pages.
"""

import enum
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Type

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only, selectinload
from sqlalchemy.sql import ColumnElement, Select

from app.config import settings
from app.database import Base
from app.exceptions import ValidationError
from app.schemas.common import PageRef, QueryResult

logger = logging.getLogger(__name__)

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})

# field or field[op]
_KEY_PATTERN = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<op>[^\[\]]*)\])?$")

# signed 64-bit, the widest integer SQLite and Postgres BIGINT accept
_MAX_SQL_INT = 2 ** 63 - 1

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


class Comparator(str, enum.Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


# Operators accepted inside brackets; equality is the bare key
BRACKET_COMPARATORS = {
    c.value: c for c in (Comparator.GT, Comparator.GTE, Comparator.LT, Comparator.LTE, Comparator.IN)
}


@dataclass(frozen=True)
class FilterCondition:
    field: str
    comparator: Comparator
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class QueryPlan:
    """A fully validated list request, independent of any database session."""

    filters: Tuple[FilterCondition, ...] = ()
    fields: Optional[Tuple[str, ...]] = None
    sort: Tuple[SortKey, ...] = ()
    page: int = 1
    limit: int = 25

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ResourceQuery:
    """
    Describes how one resource may be queried.

    Attributes:
        model:            ORM class
        filterable:       allow-list of fields usable as filters
        populate:         relationship eagerly loaded and embedded in each row
        populate_fields:  subset of the related row's fields to embed
        default_sort:     sort expression used when the request has none
    """

    model: Type[Base]
    filterable: FrozenSet[str]
    populate: Optional[str] = None
    populate_fields: Optional[Tuple[str, ...]] = None
    default_sort: str = "-created_at"

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @property
    def selectable(self) -> Tuple[str, ...]:
        return self.model.public_fields()


def build_pagination(page: int, limit: int, total: int) -> Dict[str, PageRef]:
    pagination: Dict[str, PageRef] = {}
    skip = (page - 1) * limit
    if skip + limit < total:
        pagination["next"] = PageRef(page=page + 1, limit=limit)
    if page > 1:
        pagination["prev"] = PageRef(page=page - 1, limit=limit)
    return pagination


def _positive_int(raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class QueryService:
    """
    Builds and runs shaped list queries.

    Stateless apart from the paging defaults, so a single instance is shared.
    """

    def __init__(self, default_limit: int = 25, max_limit: int = 100):
        self.default_limit = default_limit
        self.max_limit = max_limit

    # ── Plan building (pure) ──────────────────────────────────────────────

    def build_plan(self, resource: ResourceQuery, params: Mapping[str, str]) -> QueryPlan:
        filters = tuple(
            self._parse_filter(resource, key, value)
            for key, value in params.items()
            if key not in RESERVED_PARAMS
        )

        fields = None
        if params.get("select"):
            fields = tuple(_split_csv(params["select"]))
            unknown = [f for f in fields if f not in resource.selectable]
            if unknown:
                raise ValidationError(
                    f"Cannot select unknown field(s): {', '.join(unknown)}",
                    field="select",
                    context={"resource": resource.name},
                )

        sort = self._parse_sort(resource, params.get("sort") or resource.default_sort)

        page = _positive_int(params.get("page"), 1)
        limit = min(_positive_int(params.get("limit"), self.default_limit), self.max_limit)
        if (page - 1) * limit > _MAX_SQL_INT:
            raise ValidationError(f"Page {page} is out of range", field="page")

        return QueryPlan(filters=filters, fields=fields, sort=sort, page=page, limit=limit)

    def _parse_filter(self, resource: ResourceQuery, key: str, raw: str) -> FilterCondition:
        match = _KEY_PATTERN.match(key)
        if match is None:
            raise ValidationError(f"Malformed query parameter '{key}'", field=key)

        field, op = match.group("field"), match.group("op")
        if op is None:
            comparator = Comparator.EQ
        elif op in BRACKET_COMPARATORS:
            comparator = BRACKET_COMPARATORS[op]
        else:
            raise ValidationError(
                f"Unsupported operator '{op}' in query parameter '{key}'",
                field=key,
                context={"allowed": sorted(BRACKET_COMPARATORS)},
            )

        if field not in resource.filterable:
            raise ValidationError(
                f"Cannot filter {resource.name} by '{field}'",
                field=field,
                context={"allowed": sorted(resource.filterable)},
            )

        if comparator is Comparator.IN:
            value: Any = tuple(self._coerce(resource, field, item) for item in _split_csv(raw))
        else:
            value = self._coerce(resource, field, raw)
        return FilterCondition(field=field, comparator=comparator, value=value)

    def _parse_sort(self, resource: ResourceQuery, raw: str) -> Tuple[SortKey, ...]:
        keys = []
        for item in _split_csv(raw):
            descending = item.startswith("-")
            field = item[1:] if descending else item
            if field not in resource.selectable:
                raise ValidationError(f"Cannot sort by unknown field '{field}'", field="sort")
            keys.append(SortKey(field=field, descending=descending))
        return tuple(keys)

    def _coerce(self, resource: ResourceQuery, field: str, raw: str) -> Any:
        """Convert a query-string value to the column's Python type."""
        column = resource.model.__table__.c[field]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return raw

        try:
            if python_type is bool:
                lowered = raw.lower()
                if lowered in _TRUE_VALUES:
                    return True
                if lowered in _FALSE_VALUES:
                    return False
                raise ValueError(raw)
            if python_type is datetime:
                return datetime.fromisoformat(raw)
            if python_type is uuid.UUID:
                return uuid.UUID(raw)
            if python_type is int:
                value = int(raw)
                if abs(value) > _MAX_SQL_INT:
                    raise ValueError(raw)
                return value
            return python_type(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid value '{raw}' for field '{field}'", field=field)

    # ── Statement building ────────────────────────────────────────────────

    def criteria(self, resource: ResourceQuery, plan: QueryPlan) -> List[ColumnElement]:
        clauses = []
        for condition in plan.filters:
            column = getattr(resource.model, condition.field)
            if condition.comparator is Comparator.EQ:
                clauses.append(column == condition.value)
            elif condition.comparator is Comparator.GT:
                clauses.append(column > condition.value)
            elif condition.comparator is Comparator.GTE:
                clauses.append(column >= condition.value)
            elif condition.comparator is Comparator.LT:
                clauses.append(column < condition.value)
            elif condition.comparator is Comparator.LTE:
                clauses.append(column <= condition.value)
            else:
                clauses.append(column.in_(condition.value))
        return clauses

    def build_statement(
        self,
        resource: ResourceQuery,
        plan: QueryPlan,
        base_criteria: Sequence[ColumnElement] = (),
    ) -> Select:
        model = resource.model
        stmt = select(model).where(*base_criteria, *self.criteria(resource, plan))

        if plan.fields is not None:
            columns = list(dict.fromkeys((*plan.fields, *self._populate_columns(resource))))
            stmt = stmt.options(load_only(*(getattr(model, name) for name in columns)))

        if resource.populate:
            stmt = stmt.options(selectinload(getattr(model, resource.populate)))

        order_by = []
        for key in plan.sort:
            column = getattr(model, key.field)
            order_by.append(column.desc() if key.descending else column.asc())
        # Primary key tie-breaker keeps pages stable between identical requests
        order_by.append(model.id.asc())

        return stmt.order_by(*order_by).offset(plan.skip).limit(plan.limit)

    def _populate_columns(self, resource: ResourceQuery) -> Tuple[str, ...]:
        """Local columns the populate relationship needs loaded (e.g. a foreign key)."""
        if not resource.populate:
            return ()
        relationship = sa_inspect(resource.model).relationships[resource.populate]
        return tuple(column.key for column in relationship.local_columns)

    # ── Execution ─────────────────────────────────────────────────────────

    async def execute(
        self,
        db: AsyncSession,
        resource: ResourceQuery,
        params: Mapping[str, str],
        base_criteria: Sequence[ColumnElement] = (),
    ) -> QueryResult:
        """
        Run a shaped list query.

        Raises:
            ValidationError: malformed or disallowed query parameters
        """
        plan = self.build_plan(resource, params)
        model = resource.model
        where = [*base_criteria, *self.criteria(resource, plan)]

        total = await db.scalar(select(func.count()).select_from(model).where(*where)) or 0

        result = await db.execute(self.build_statement(resource, plan, base_criteria))
        rows = result.scalars().all()

        populate = ((resource.populate, resource.populate_fields),) if resource.populate else ()
        data = [row.to_dict(plan.fields, populate=populate) for row in rows]

        logger.debug(
            "Query %s: %d filter(s), page=%d limit=%d → %d of %d",
            resource.name, len(plan.filters), plan.page, plan.limit, len(data), total,
        )

        return QueryResult(
            success=True,
            count=len(data),
            pagination=build_pagination(plan.page, plan.limit, total),
            data=data,
            total=total,
        )


query_service = QueryService(
    default_limit=settings.query_default_limit,
    max_limit=settings.query_max_limit,
)

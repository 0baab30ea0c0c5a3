"""
DevCamper Backend — Query Shaping Tests
=========================================

Tests for plan building (pure) and for executing shaped queries against the
in-memory database.

Test Categories:
    1. Plan building:  filters, operators, select, sort, paging defaults
    2. Rejection:      malformed keys, unknown operators, disallowed fields
    3. Pagination:     next/prev arithmetic
    4. Execution:      filtering, projection, populate, stable pages
"""

import pytest

from app.exceptions import ValidationError
from app.models import Bootcamp, Course, User
from app.services.bootcamp_service import BOOTCAMP_QUERY
from app.services.course_service import COURSE_QUERY
from app.services.query_service import (
    Comparator,
    FilterCondition,
    QueryService,
    SortKey,
    build_pagination,
)
from app.services.user_service import USER_QUERY


async def _seed_owner(session) -> User:
    owner = User(name="Owner", email="owner@example.com", role="publisher", password="x")
    session.add(owner)
    await session.flush()
    return owner


async def _seed_bootcamps(session, owner: User, count: int):
    bootcamps = []
    for i in range(count):
        bootcamp = Bootcamp(
            name=f"Camp {i:02d}",
            slug=f"camp-{i:02d}",
            description="A bootcamp",
            careers=["Web Development"],
            city="Boston" if i % 2 == 0 else "Lowell",
            housing=i % 3 == 0,
            average_cost=float(1000 * (i + 1)),
            user_id=owner.id,
        )
        session.add(bootcamp)
        bootcamps.append(bootcamp)
    await session.flush()
    return bootcamps


class TestBuildPlan:
    """Query string → QueryPlan, no database involved."""

    def setup_method(self):
        self.service = QueryService(default_limit=25, max_limit=100)

    # ── Filters ───────────────────────────────────────────────────────────

    def test_bracket_operator_with_select_and_sort(self):
        """average_cost[lte]=10000&select=name,description&sort=-average_cost"""
        plan = self.service.build_plan(BOOTCAMP_QUERY, {
            "average_cost[lte]": "10000",
            "select": "name,description",
            "sort": "-average_cost",
        })

        assert plan.filters == (
            FilterCondition(field="average_cost", comparator=Comparator.LTE, value=10000.0),
        )
        assert plan.fields == ("name", "description")
        assert plan.sort == (SortKey(field="average_cost", descending=True),)
        assert plan.page == 1
        assert plan.limit == 25

    def test_bare_key_is_equality(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"city": "Boston"})
        assert plan.filters == (FilterCondition("city", Comparator.EQ, "Boston"),)

    def test_in_operator_splits_values(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"city[in]": "Boston, Lowell"})
        assert plan.filters[0].comparator is Comparator.IN
        assert plan.filters[0].value == ("Boston", "Lowell")

    def test_boolean_values_are_coerced(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"housing": "true", "accept_gi": "0"})
        values = {f.field: f.value for f in plan.filters}
        assert values == {"housing": True, "accept_gi": False}

    def test_default_sort_is_newest_first(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {})
        assert plan.sort == (SortKey(field="created_at", descending=True),)
        assert plan.fields is None

    # ── Paging defaults ───────────────────────────────────────────────────

    def test_page_and_limit(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"page": "3", "limit": "10"})
        assert (plan.page, plan.limit, plan.skip) == (3, 10, 20)

    def test_invalid_paging_falls_back_to_defaults(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"page": "0", "limit": "abc"})
        assert (plan.page, plan.limit) == (1, 25)

    def test_limit_is_capped(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"limit": "5000"})
        assert plan.limit == 100

    def test_page_beyond_64_bit_offset_is_rejected(self):
        with pytest.raises(ValidationError, match="out of range"):
            self.service.build_plan(BOOTCAMP_QUERY, {"page": str(10 ** 20), "limit": "10"})

    def test_largest_addressable_page_is_accepted(self):
        plan = self.service.build_plan(BOOTCAMP_QUERY, {"page": str(2 ** 63), "limit": "1"})
        assert plan.skip == 2 ** 63 - 1

    # ── Rejection ─────────────────────────────────────────────────────────

    def test_rejects_unknown_operator(self):
        """Operators outside gt/gte/lt/lte/in never reach the database."""
        with pytest.raises(ValidationError, match="Unsupported operator"):
            self.service.build_plan(BOOTCAMP_QUERY, {"name[regex]": ".*"})

    def test_rejects_malformed_key(self):
        with pytest.raises(ValidationError, match="Malformed query parameter"):
            self.service.build_plan(BOOTCAMP_QUERY, {"average_cost[lte": "5"})

    def test_rejects_field_outside_allow_list(self):
        with pytest.raises(ValidationError, match="Cannot filter bootcamps by 'careers'"):
            self.service.build_plan(BOOTCAMP_QUERY, {"careers": "Business"})

    def test_rejects_filter_on_password(self):
        with pytest.raises(ValidationError, match="Cannot filter users"):
            self.service.build_plan(USER_QUERY, {"password[gt]": ""})

    def test_rejects_selecting_hidden_field(self):
        with pytest.raises(ValidationError, match="password"):
            self.service.build_plan(USER_QUERY, {"select": "name,password"})

    def test_rejects_unknown_sort_field(self):
        with pytest.raises(ValidationError, match="Cannot sort"):
            self.service.build_plan(BOOTCAMP_QUERY, {"sort": "-popularity"})

    def test_rejects_uncoercible_value(self):
        with pytest.raises(ValidationError, match="Invalid value"):
            self.service.build_plan(BOOTCAMP_QUERY, {"average_cost[gt]": "cheap"})

    def test_rejects_integer_beyond_64_bits(self):
        with pytest.raises(ValidationError, match="Invalid value"):
            self.service.build_plan(COURSE_QUERY, {"weeks[gt]": str(10 ** 20)})


class TestBuildPagination:

    def test_first_page_of_many(self):
        pagination = build_pagination(page=1, limit=10, total=25)
        assert set(pagination) == {"next"}
        assert (pagination["next"].page, pagination["next"].limit) == (2, 10)

    def test_middle_page(self):
        pagination = build_pagination(page=2, limit=10, total=25)
        assert (pagination["next"].page, pagination["prev"].page) == (3, 1)

    def test_last_page(self):
        pagination = build_pagination(page=3, limit=10, total=25)
        assert set(pagination) == {"prev"}
        assert pagination["prev"].page == 2

    def test_exact_fit_has_no_next(self):
        assert build_pagination(page=1, limit=25, total=25) == {}


class TestExecute:
    """Shaped queries against the in-memory database."""

    @pytest.mark.asyncio
    async def test_pages_over_twenty_five_rows(self, db_session):
        owner = await _seed_owner(db_session)
        await _seed_bootcamps(db_session, owner, 25)
        service = QueryService()

        page2 = await service.execute(
            db_session, BOOTCAMP_QUERY, {"page": "2", "limit": "10", "sort": "name"}
        )
        assert page2.count == 10
        assert page2.total == 25
        assert [row["name"] for row in page2.data][:2] == ["Camp 10", "Camp 11"]
        assert page2.pagination["next"].page == 3
        assert page2.pagination["prev"].page == 1

        page3 = await service.execute(
            db_session, BOOTCAMP_QUERY, {"page": "3", "limit": "10", "sort": "name"}
        )
        assert page3.count == 5
        assert "next" not in page3.pagination
        assert page3.pagination["prev"].page == 2

    @pytest.mark.asyncio
    async def test_filter_select_and_sort(self, db_session):
        owner = await _seed_owner(db_session)
        await _seed_bootcamps(db_session, owner, 12)

        result = await QueryService().execute(db_session, BOOTCAMP_QUERY, {
            "average_cost[lte]": "5000",
            "select": "name",
            "sort": "-average_cost",
        })

        assert result.count == 5
        assert [row["name"] for row in result.data] == [
            "Camp 04", "Camp 03", "Camp 02", "Camp 01", "Camp 00",
        ]
        assert set(result.data[0]) == {"id", "name", "courses"}

    @pytest.mark.asyncio
    async def test_in_and_boolean_filters_combine(self, db_session):
        owner = await _seed_owner(db_session)
        await _seed_bootcamps(db_session, owner, 12)

        result = await QueryService().execute(
            db_session, BOOTCAMP_QUERY, {"city[in]": "Boston", "housing": "true", "sort": "name"}
        )

        # even index and multiple of three
        assert [row["name"] for row in result.data] == ["Camp 00", "Camp 06"]

    @pytest.mark.asyncio
    async def test_bootcamps_embed_their_courses(self, db_session):
        owner = await _seed_owner(db_session)
        (bootcamp,) = await _seed_bootcamps(db_session, owner, 1)
        db_session.add(Course(
            title="Front End", description="HTML", weeks=8, tuition=8000,
            minimum_skill="beginner", bootcamp_id=bootcamp.id, user_id=owner.id,
        ))
        await db_session.flush()

        result = await QueryService().execute(db_session, BOOTCAMP_QUERY, {})

        assert [c["title"] for c in result.data[0]["courses"]] == ["Front End"]

    @pytest.mark.asyncio
    async def test_courses_embed_bootcamp_summary(self, db_session):
        owner = await _seed_owner(db_session)
        (bootcamp,) = await _seed_bootcamps(db_session, owner, 1)
        db_session.add(Course(
            title="Back End", description="SQL", weeks=10, tuition=9000,
            minimum_skill="intermediate", bootcamp_id=bootcamp.id, user_id=owner.id,
        ))
        await db_session.flush()

        result = await QueryService().execute(db_session, COURSE_QUERY, {"select": "title"})

        row = result.data[0]
        assert row["title"] == "Back End"
        assert row["bootcamp"] == {
            "id": bootcamp.id, "name": "Camp 00", "description": "A bootcamp",
        }

    @pytest.mark.asyncio
    async def test_repeated_request_returns_identical_page(self, db_session):
        owner = await _seed_owner(db_session)
        await _seed_bootcamps(db_session, owner, 8)
        service = QueryService()
        params = {"page": "2", "limit": "3"}

        first = await service.execute(db_session, BOOTCAMP_QUERY, params)
        second = await service.execute(db_session, BOOTCAMP_QUERY, params)

        assert [r["id"] for r in first.data] == [r["id"] for r in second.data]

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, db_session):
        owner = await _seed_owner(db_session)
        await _seed_bootcamps(db_session, owner, 3)

        result = await QueryService().execute(db_session, BOOTCAMP_QUERY, {"page": "5"})

        assert result.count == 0
        assert result.total == 3
        assert result.pagination["prev"].page == 4

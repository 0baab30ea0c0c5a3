"""
DevCamper Backend — Review API Tests
======================================

One review per user per bootcamp, rating bounds, and the bootcamp's
average_rating (mean rating, null when it has no reviews).
"""

import uuid

import pytest

from conftest import auth, create_bootcamp, create_review


async def average_rating(client, bootcamp_id):
    response = await client.get(f"/api/v1/bootcamps/{bootcamp_id}")
    return response.json()["data"]["average_rating"]


class TestAddReview:

    @pytest.mark.asyncio
    async def test_user_reviews_bootcamp(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        reviewer, token = await make_user(role="user")
        bootcamp = await create_bootcamp(client, publisher)

        review = await create_review(client, token, bootcamp["id"], rating=9)

        assert review["rating"] == 9
        assert review["user_id"] == str(reviewer.id)
        assert review["bootcamp_id"] == bootcamp["id"]

    @pytest.mark.asyncio
    async def test_publisher_cannot_review(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        bootcamp = await create_bootcamp(client, publisher)

        response = await client.post(
            f"/api/v1/bootcamps/{bootcamp['id']}/reviews",
            json={"title": "Mine", "text": "Best", "rating": 10},
            headers=auth(publisher),
        )

        assert response.status_code == 403
        assert response.json()["error"] == (
            "User role publisher is not authorized to access this route"
        )

    @pytest.mark.asyncio
    async def test_second_review_rejected(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        _, token = await make_user(role="user")
        bootcamp = await create_bootcamp(client, publisher)
        await create_review(client, token, bootcamp["id"])

        response = await client.post(
            f"/api/v1/bootcamps/{bootcamp['id']}/reviews",
            json={"title": "Again", "text": "Still good", "rating": 7},
            headers=auth(token),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Duplicate field value entered"
        assert await average_rating(client, bootcamp["id"]) == 8

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 11])
    async def test_rating_out_of_range(self, client, make_user, rating):
        _, publisher = await make_user(role="publisher")
        _, token = await make_user(role="user")
        bootcamp = await create_bootcamp(client, publisher)

        response = await client.post(
            f"/api/v1/bootcamps/{bootcamp['id']}/reviews",
            json={"title": "T", "text": "T", "rating": rating},
            headers=auth(token),
        )

        assert response.status_code == 400
        assert "rating" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_unknown_bootcamp(self, client, make_user):
        _, token = await make_user(role="user")
        missing = uuid.uuid4()

        response = await client.post(
            f"/api/v1/bootcamps/{missing}/reviews",
            json={"title": "T", "text": "T", "rating": 5},
            headers=auth(token),
        )

        assert response.status_code == 404
        assert response.json()["error"] == f"No bootcamp with the id of {missing}"


class TestReadReviews:

    @pytest.mark.asyncio
    async def test_get_review_embeds_bootcamp_summary(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        _, token = await make_user(role="user")
        bootcamp = await create_bootcamp(client, publisher)
        review = await create_review(client, token, bootcamp["id"])

        response = await client.get(f"/api/v1/reviews/{review['id']}")

        assert response.json()["data"]["bootcamp"]["name"] == bootcamp["name"]

    @pytest.mark.asyncio
    async def test_unknown_review(self, client):
        response = await client.get("/api/v1/reviews/abc")

        assert response.status_code == 404
        assert response.json()["error"] == "No review found with the id of abc"

    @pytest.mark.asyncio
    async def test_nested_list(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        bootcamp = await create_bootcamp(client, publisher)
        for _ in range(2):
            _, token = await make_user(role="user")
            await create_review(client, token, bootcamp["id"])

        response = await client.get(f"/api/v1/bootcamps/{bootcamp['id']}/reviews")

        assert response.json()["count"] == 2


class TestAverageRating:

    @pytest.mark.asyncio
    async def test_mean_of_ratings(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        bootcamp = await create_bootcamp(client, publisher)
        for rating in (8, 5):
            _, token = await make_user(role="user")
            await create_review(client, token, bootcamp["id"], rating=rating)

        assert await average_rating(client, bootcamp["id"]) == 6.5

    @pytest.mark.asyncio
    async def test_follows_update_and_delete(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        _, token = await make_user(role="user")
        _, admin = await make_user(role="admin")
        bootcamp = await create_bootcamp(client, publisher)
        review = await create_review(client, token, bootcamp["id"], rating=4)

        response = await client.put(
            f"/api/v1/reviews/{review['id']}", json={"rating": 10}, headers=auth(token)
        )
        assert response.status_code == 200
        assert await average_rating(client, bootcamp["id"]) == 10

        response = await client.delete(f"/api/v1/reviews/{review['id']}", headers=auth(admin))
        assert response.status_code == 200
        assert await average_rating(client, bootcamp["id"]) is None

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, client, make_user):
        _, publisher = await make_user(role="publisher")
        _, author = await make_user(role="user")
        other, other_token = await make_user(role="user")
        bootcamp = await create_bootcamp(client, publisher)
        review = await create_review(client, author, bootcamp["id"])

        response = await client.put(
            f"/api/v1/reviews/{review['id']}", json={"rating": 1}, headers=auth(other_token)
        )

        assert response.status_code == 403
        assert response.json()["error"] == (
            f"User {other.id} is not authorized to update review {review['id']}"
        )

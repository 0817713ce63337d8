"""
Tests for public user profiles
"""
import uuid

from soundscore.models.comment_reaction import CommentReaction
from tests.conftest import make_rating, make_user


class TestUserProfile:
    """Tests for GET /api/users/{id}"""

    async def test_public_profile_hides_email(self, client, user):
        response = await client.get(f"/api/users/{user.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["nickname"] == "listener"
        assert "email" not in data
        assert "is_admin" not in data

    async def test_unknown_user(self, client):
        response = await client.get(f"/api/users/{uuid.uuid4()}")
        assert response.status_code == 404

    async def test_malformed_user_id(self, client):
        response = await client.get("/api/users/not-a-uuid")
        assert response.status_code == 400


class TestUserRatings:
    """Tests for GET /api/users/{id}/ratings"""

    async def test_sort_and_with_comments(self, client, db, user, releases):
        await make_rating(db, user, releases[0], 4)
        await make_rating(db, user, releases[1], 9, text="Fake Plastic Trees, enough said.")
        await make_rating(db, user, releases[2], 7)

        by_score = await client.get(f"/api/users/{user.id}/ratings", params={"sort_by": "rating_high"})
        reviewed = await client.get(f"/api/users/{user.id}/ratings", params={"with_comments": True})

        assert [r["score"] for r in by_score.json()] == [9, 7, 4]
        assert by_score.json()[0]["release"]["title"] == "The Bends"
        assert [r["release"]["title"] for r in reviewed.json()] == ["The Bends"]

    async def test_search_filter(self, client, db, user, releases):
        await make_rating(db, user, releases[0], 4)
        await make_rating(db, user, releases[2], 7)

        response = await client.get(f"/api/users/{user.id}/ratings", params={"release": "kid"})

        assert [r["release"]["title"] for r in response.json()] == ["Kid A"]

    async def test_anonymous_text_hidden_from_others(self, client, user_client, db, user, release):
        """The score stays public, the anonymous review text does not"""
        await make_rating(db, user, release, 8, text="Secretly my favourite.", is_anonymous=True)

        public = await client.get(f"/api/users/{user.id}/ratings")
        own = await user_client.get(f"/api/users/{user.id}/ratings")

        assert public.json()[0]["score"] == 8
        assert public.json()[0]["text"] is None
        assert own.json()[0]["text"] == "Secretly my favourite."

    async def test_anonymous_text_not_erased(self, client, db, user, release):
        """Hiding text from a viewer must never write through to the database"""
        await make_rating(db, user, release, 8, text="Secretly my favourite.", is_anonymous=True)

        await client.get(f"/api/users/{user.id}/ratings")
        comments = await client.get(f"/api/comments/releases/{release.id}")

        assert comments.json()[0]["text"] == "Secretly my favourite."


class TestUserComments:
    """Tests for GET /api/users/{id}/comments"""

    async def test_anonymous_comments_only_for_owner_and_admin(self, client, user_client, admin_client, db, user, releases):
        await make_rating(db, user, releases[0], 6, text="Signed review here.")
        await make_rating(db, user, releases[1], 2, text="Not putting my name on this.", is_anonymous=True)

        public = await client.get(f"/api/users/{user.id}/comments")
        own = await user_client.get(f"/api/users/{user.id}/comments")
        moderator = await admin_client.get(f"/api/users/{user.id}/comments")

        assert len(public.json()) == 1
        assert len(own.json()) == 2
        assert len(moderator.json()) == 2

    async def test_sort_by_likes(self, client, db, user, other_user, releases):
        quiet = await make_rating(db, user, releases[0], 6, text="Nobody reads this one.")
        popular = await make_rating(db, user, releases[1], 9, text="Everyone agrees with this.")
        db.add(CommentReaction(comment_id=popular.id, user_id=other_user.id, reaction_type="like"))
        await db.commit()

        response = await client.get(f"/api/users/{user.id}/comments", params={"sort_by": "likes_high"})

        assert [c["id"] for c in response.json()] == [popular.id, quiet.id]
        assert response.json()[0]["like_count"] == 1
        assert response.json()[0]["release"]["title"] == "The Bends"


class TestUserStats:
    """Tests for GET /api/users/{id}/stats"""

    async def test_stats(self, client, db, user, releases):
        first = await make_rating(db, user, releases[0], 8, text="Underrated debut honestly.")
        await make_rating(db, user, releases[1], 8)
        await make_rating(db, user, releases[2], 3)
        for i in range(2):
            fan = await make_user(db, nickname=f"fan{i}")
            db.add(CommentReaction(comment_id=first.id, user_id=fan.id, reaction_type="like"))
        await db.commit()

        response = await client.get(f"/api/users/{user.id}/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["ratings_count"] == 3
        assert data["comments_count"] == 1
        assert data["average_rating"] == 6.3
        assert data["rating_distribution"]["8"] == 2
        assert data["rating_distribution"]["3"] == 1
        assert data["rating_distribution"]["10"] == 0
        assert len(data["rating_distribution"]) == 10
        assert data["total_likes"] == 2
        assert data["total_dislikes"] == 0
        assert data["recent_activity"] == 3

    async def test_stats_for_new_user(self, client, user):
        data = (await client.get(f"/api/users/{user.id}/stats")).json()
        assert data["ratings_count"] == 0
        assert data["average_rating"] == 0.0
        assert sum(data["rating_distribution"].values()) == 0

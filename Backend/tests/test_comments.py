"""
Tests for reviews, reactions and reports
"""
from soundscore.models.comment import Comment
from soundscore.models.comment_reaction import CommentReaction
from soundscore.models.report import Report
from tests.conftest import count_rows, make_rating, make_user

REVIEW = "Paranoid Android still sounds like the future."


class TestCreateComment:
    """Tests for POST /api/comments/releases/{id}"""

    async def test_create_comment_with_rating(self, user_client, user, release):
        """A review with a score creates the rating and the text together"""
        response = await user_client.post(
            f"/api/comments/releases/{release.id}",
            json={"text": f"  {REVIEW}  ", "rating": 9}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["text"] == REVIEW
        assert data["rating"] == 9
        assert data["author"]["nickname"] == "listener"
        assert data["author"]["id"] == str(user.id)
        assert data["like_count"] == 0
        assert data["dislike_count"] == 0
        assert data["user_reaction"] is None

    async def test_comment_attaches_to_existing_rating(self, user_client, user, release, db):
        """Reviewing a release already rated reuses the rating row and its score"""
        rating = await make_rating(db, user, release, 6)

        response = await user_client.post(f"/api/comments/releases/{release.id}", json={"text": REVIEW})

        assert response.status_code == 201
        assert response.json()["id"] == rating.id
        assert response.json()["rating"] == 6
        assert await count_rows(db, Comment, Comment.release_id == release.id) == 1

    async def test_comment_without_any_rating(self, user_client, release):
        """Without a previous rating the review must carry one"""
        response = await user_client.post(f"/api/comments/releases/{release.id}", json={"text": REVIEW})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "rating"

    async def test_second_comment_conflicts(self, user_client, user, release, db):
        """One review per user and release"""
        await make_rating(db, user, release, 7, text=REVIEW)

        response = await user_client.post(
            f"/api/comments/releases/{release.id}",
            json={"text": "Changed my mind entirely.", "rating": 3}
        )

        assert response.status_code == 409
        assert response.json()["code"] == "COMMENT_EXISTS"

    async def test_comment_text_length(self, user_client, release):
        """Text shorter than five characters after trimming is rejected"""
        response = await user_client.post(
            f"/api/comments/releases/{release.id}",
            json={"text": "  ok  ", "rating": 5}
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "text"
        assert "at least 5" in response.json()["errors"][0]["message"]

    async def test_comment_with_script_rejected(self, user_client, release):
        """Markup such as script tags is refused"""
        response = await user_client.post(
            f"/api/comments/releases/{release.id}",
            json={"text": "Great <script>alert(1)</script> record", "rating": 5}
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "Comment contains forbidden content"

    async def test_anonymous_comment_hides_author(self, user_client, client, release):
        """Anonymous reviews are listed without their author"""
        await user_client.post(
            f"/api/comments/releases/{release.id}",
            json={"text": REVIEW, "rating": 8, "is_anonymous": True}
        )

        response = await client.get(f"/api/comments/releases/{release.id}")

        assert response.status_code == 200
        assert response.json()[0]["is_anonymous"] is True
        assert response.json()[0]["author"] is None


class TestListComments:
    """Tests for GET /api/comments/releases/{id}"""

    async def test_rating_only_rows_not_listed(self, client, db, user, other_user, release):
        """Scores without text are ratings, not comments"""
        await make_rating(db, user, release, 8, text=REVIEW)
        await make_rating(db, other_user, release, 4)

        response = await client.get(f"/api/comments/releases/{release.id}")

        assert len(response.json()) == 1

    async def test_sort_by_likes(self, client, db, user, other_user, release):
        """sort_by=likes puts the most liked review first"""
        first = await make_rating(db, user, release, 8, text=REVIEW)
        second = await make_rating(db, other_user, release, 4, text="Overrated, if I'm honest.")
        fan = await make_user(db, nickname="fan")
        db.add(CommentReaction(comment_id=second.id, user_id=fan.id, reaction_type="like"))
        await db.commit()

        by_likes = await client.get(f"/api/comments/releases/{release.id}", params={"sort_by": "likes"})
        by_rating = await client.get(f"/api/comments/releases/{release.id}", params={"sort_by": "rating"})

        assert [c["id"] for c in by_likes.json()] == [second.id, first.id]
        assert [c["id"] for c in by_rating.json()] == [first.id, second.id]

    async def test_invalid_sort(self, client, release):
        response = await client.get(f"/api/comments/releases/{release.id}", params={"sort_by": "random"})
        assert response.status_code == 400

    async def test_unknown_release(self, client):
        response = await client.get("/api/comments/releases/404")
        assert response.status_code == 404


class TestEditComment:
    """Tests for PUT/DELETE /api/comments/{id}"""

    async def test_owner_can_edit(self, user_client, user, release, db):
        """The author can change text and score"""
        comment = await make_rating(db, user, release, 7, text=REVIEW)

        response = await user_client.put(
            f"/api/comments/{comment.id}",
            json={"text": "Even better on vinyl.", "rating": 10}
        )

        assert response.status_code == 200
        assert response.json()["text"] == "Even better on vinyl."
        assert response.json()["rating"] == 10

    async def test_other_user_cannot_edit(self, other_client, user, release, db):
        comment = await make_rating(db, user, release, 7, text=REVIEW)

        response = await other_client.put(f"/api/comments/{comment.id}", json={"text": "Hijacked review"})

        assert response.status_code == 403

    async def test_other_user_cannot_delete(self, other_client, user, release, db):
        comment = await make_rating(db, user, release, 7, text=REVIEW)

        response = await other_client.delete(f"/api/comments/{comment.id}")

        assert response.status_code == 403
        assert await count_rows(db, Comment) == 1

    async def test_delete_cascades_reactions_and_reports(self, user_client, other_client, user, release, db):
        """Deleting a review removes its reactions and reports with it"""
        comment = await make_rating(db, user, release, 7, text=REVIEW)
        await other_client.post(f"/api/comments/{comment.id}/react", json={"reaction_type": "dislike"})
        await other_client.post(f"/api/comments/{comment.id}/report", json={"reason": "Spoilers everywhere"})
        assert await count_rows(db, CommentReaction) == 1
        assert await count_rows(db, Report) == 1

        response = await user_client.delete(f"/api/comments/{comment.id}")

        assert response.status_code == 204
        assert await count_rows(db, Comment) == 0
        assert await count_rows(db, CommentReaction) == 0
        assert await count_rows(db, Report) == 0

    async def test_edit_rating_without_text(self, user_client, user, release, db):
        """A bare score is not a comment, so editing it through comments changes nothing"""
        rating = await make_rating(db, user, release, 4)

        response = await user_client.put(f"/api/comments/{rating.id}", json={"rating": 9})

        assert response.status_code == 404
        assert await count_rows(db, Comment, Comment.score == 4) == 1

    async def test_delete_rating_without_text(self, user_client, user, release, db):
        """Only the ratings endpoint removes a bare score"""
        rating = await make_rating(db, user, release, 4)

        response = await user_client.delete(f"/api/comments/{rating.id}")

        assert response.status_code == 404
        assert await count_rows(db, Comment) == 1

    async def test_admin_delete_rating_without_text(self, admin_client, user, release, db):
        rating = await make_rating(db, user, release, 4)

        response = await admin_client.delete(f"/api/admin/comments/{rating.id}")

        assert response.status_code == 404
        assert await count_rows(db, Comment) == 1


class TestReactions:
    """Tests for POST/DELETE /api/comments/{id}/react"""

    async def test_like_then_switch_to_dislike(self, other_client, user, release, db):
        """Reacting again replaces the previous reaction"""
        comment = await make_rating(db, user, release, 7, text=REVIEW)

        liked = await other_client.post(f"/api/comments/{comment.id}/react", json={"reaction_type": "like"})
        assert liked.status_code == 200
        assert liked.json() == {"comment_id": comment.id, "like_count": 1, "dislike_count": 0, "user_reaction": "like"}

        disliked = await other_client.post(f"/api/comments/{comment.id}/react", json={"reaction_type": "dislike"})
        assert disliked.json() == {"comment_id": comment.id, "like_count": 0, "dislike_count": 1, "user_reaction": "dislike"}
        assert await count_rows(db, CommentReaction) == 1

    async def test_remove_reaction(self, other_client, user, release, db):
        comment = await make_rating(db, user, release, 7, text=REVIEW)
        await other_client.post(f"/api/comments/{comment.id}/react", json={"reaction_type": "like"})

        response = await other_client.delete(f"/api/comments/{comment.id}/react")

        assert response.status_code == 200
        assert response.json()["like_count"] == 0
        assert response.json()["user_reaction"] is None

    async def test_viewer_reaction_in_listing(self, other_client, user, release, db):
        """Listings tell the viewer which way they reacted"""
        comment = await make_rating(db, user, release, 7, text=REVIEW)
        await other_client.post(f"/api/comments/{comment.id}/react", json={"reaction_type": "like"})

        response = await other_client.get(f"/api/comments/releases/{release.id}")

        assert response.json()[0]["user_reaction"] == "like"
        assert response.json()[0]["like_count"] == 1

    async def test_invalid_reaction_type(self, other_client, user, release, db):
        comment = await make_rating(db, user, release, 7, text=REVIEW)
        response = await other_client.post(f"/api/comments/{comment.id}/react", json={"reaction_type": "love"})
        assert response.status_code == 400

    async def test_cannot_react_to_rating_without_text(self, other_client, user, release, db):
        rating = await make_rating(db, user, release, 7)
        response = await other_client.post(f"/api/comments/{rating.id}/react", json={"reaction_type": "like"})
        assert response.status_code == 404


class TestReports:
    """Tests for POST /api/comments/{id}/report"""

    async def test_report_comment(self, other_client, other_user, user, release, db):
        comment = await make_rating(db, user, release, 7, text=REVIEW)

        response = await other_client.post(f"/api/comments/{comment.id}/report", json={"reason": "  Off-topic rant  "})

        assert response.status_code == 201
        data = response.json()
        assert data["reason"] == "Off-topic rant"
        assert data["status"] == "pending"
        assert data["reported_by"] == str(other_user.id)
        assert data["resolved_at"] is None

    async def test_duplicate_pending_report(self, other_client, user, release, db):
        """A user can't stack pending reports on the same review"""
        comment = await make_rating(db, user, release, 7, text=REVIEW)
        await other_client.post(f"/api/comments/{comment.id}/report", json={"reason": "Off-topic rant"})

        response = await other_client.post(f"/api/comments/{comment.id}/report", json={"reason": "Still off-topic"})

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_REPORTED"

    async def test_reason_too_short(self, other_client, user, release, db):
        comment = await make_rating(db, user, release, 7, text=REVIEW)
        response = await other_client.post(f"/api/comments/{comment.id}/report", json={"reason": "bad"})
        assert response.status_code == 400

    async def test_report_unknown_comment(self, other_client):
        response = await other_client.post("/api/comments/999/report", json={"reason": "Off-topic rant"})
        assert response.status_code == 404

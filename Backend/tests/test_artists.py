"""
Tests for artists
"""
from datetime import date

from tests.conftest import make_artist, make_release


class TestArtists:
    """Tests for /api/artists/"""

    async def test_list_sorted_by_name(self, client, db):
        await make_artist(db, "Slowdive")
        await make_artist(db, "Beach House")

        response = await client.get("/api/artists/")

        assert [a["name"] for a in response.json()] == ["Beach House", "Slowdive"]

    async def test_search_includes_latest_cover(self, client, db, artist):
        """Search hits carry the cover of the artist's newest release"""
        await make_release(db, artist, "Pablo Honey", date(1993, 2, 22), cover_url="https://covers.test/pablo.jpg")
        await make_release(db, artist, "A Moon Shaped Pool", date(2016, 5, 8), cover_url="https://covers.test/amsp.jpg")
        await make_release(db, artist, "Untitled Demo", None, cover_url=None)

        response = await client.get("/api/artists/search", params={"q": "RADIO"})

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Radiohead"
        assert response.json()[0]["latest_release_cover"] == "https://covers.test/amsp.jpg"

    async def test_search_without_releases(self, client, db):
        await make_artist(db, "Boards of Canada")
        response = await client.get("/api/artists/search", params={"q": "boards"})
        assert response.json()[0]["latest_release_cover"] is None

    async def test_artist_releases(self, client, db, artist, release):
        other = await make_artist(db, "Thom Yorke")
        await make_release(db, other, "The Eraser", date(2006, 7, 10))

        response = await client.get(f"/api/artists/{artist.id}/releases")

        assert [r["title"] for r in response.json()] == ["OK Computer"]

    async def test_unknown_artist(self, client):
        assert (await client.get("/api/artists/42")).status_code == 404


class TestManageArtists:

    async def test_admin_creates_artist(self, admin_client):
        response = await admin_client.post("/api/artists/", json={"name": "Aphex Twin", "deezer_id": "1209"})

        assert response.status_code == 201
        assert response.json()["name"] == "Aphex Twin"
        assert response.json()["deezer_id"] == "1209"

    async def test_duplicate_name(self, admin_client, artist):
        response = await admin_client.post("/api/artists/", json={"name": "Radiohead"})

        assert response.status_code == 409
        assert response.json()["message"] == "Artist 'Radiohead' already exists"
        assert response.json()["code"] == "DUPLICATE"

    async def test_update_artist(self, admin_client, artist):
        response = await admin_client.put(f"/api/artists/{artist.id}", json={"image_url": "https://img.test/rh.jpg"})

        assert response.status_code == 200
        assert response.json()["image_url"] == "https://img.test/rh.jpg"
        assert response.json()["name"] == "Radiohead"

    async def test_regular_user_cannot_create(self, user_client):
        response = await user_client.post("/api/artists/", json={"name": "Aphex Twin"})
        assert response.status_code == 403

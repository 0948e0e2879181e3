"""Tests for the tag and clip-tag endpoints."""

import pytest

from yt_referencer.db.sql_models import ClipTagModel


def _create_tag(client, name):
    return client.post("/api/tags", json={"name": name})


def _create_clip(client):
    resp = client.post(
        "/api/clips",
        json={
            "videoId": "dQw4w9WgXcQ",
            "title": "Chorus",
            "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
            "startTime": 30,
            "endTime": 90,
        },
    )
    return resp.json()["id"]


def _tag_clip(client, clip_id, tag_id, rating):
    return client.post(f"/api/clips/{clip_id}/tags", json={"tagId": tag_id, "rating": rating})


class TestTags:
    def test_list_empty(self, auth_client):
        resp = auth_client.get("/api/tags")
        assert resp.status_code == 200
        assert resp.json() == {"tags": []}

    def test_create(self, auth_client):
        resp = _create_tag(auth_client, "funny")
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "funny"
        assert {"id", "createdAt", "updatedAt"} <= data.keys()

    def test_duplicate_name_conflicts(self, auth_client):
        _create_tag(auth_client, "funny")
        resp = _create_tag(auth_client, "funny")
        assert resp.status_code == 409
        assert resp.json()["error"] == "A tag with this name already exists."
        assert len(auth_client.get("/api/tags").json()["tags"]) == 1

    def test_same_name_for_different_users(self, auth_client, other_client):
        assert _create_tag(auth_client, "funny").status_code == 201
        assert _create_tag(other_client, "funny").status_code == 201

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, auth_client, name):
        assert _create_tag(auth_client, name).status_code == 400

    def test_list_sorted_by_name(self, auth_client):
        for name in ("zeta", "alpha", "mid"):
            _create_tag(auth_client, name)
        names = [t["name"] for t in auth_client.get("/api/tags").json()["tags"]]
        assert names == ["alpha", "mid", "zeta"]

    def test_get_and_rename(self, auth_client):
        tag_id = _create_tag(auth_client, "funny").json()["id"]
        resp = auth_client.patch(f"/api/tags/{tag_id}", json={"name": "hilarious"})
        assert resp.status_code == 200
        assert resp.json()["tag"]["name"] == "hilarious"
        assert auth_client.get(f"/api/tags/{tag_id}").json()["tag"]["name"] == "hilarious"

    def test_rename_to_existing_conflicts(self, auth_client):
        _create_tag(auth_client, "funny")
        tag_id = _create_tag(auth_client, "sad").json()["id"]
        resp = auth_client.patch(f"/api/tags/{tag_id}", json={"name": "funny"})
        assert resp.status_code == 409

    def test_rename_unknown_is_404(self, auth_client):
        resp = auth_client.patch("/api/tags/nope", json={"name": "x"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Tag not found"

    def test_foreign_tag_invisible(self, auth_client, other_client):
        tag_id = _create_tag(other_client, "theirs").json()["id"]
        assert auth_client.get(f"/api/tags/{tag_id}").status_code == 404
        assert auth_client.delete(f"/api/tags/{tag_id}").status_code == 404

    def test_delete(self, auth_client):
        tag_id = _create_tag(auth_client, "funny").json()["id"]
        assert auth_client.delete(f"/api/tags/{tag_id}").status_code == 204
        assert auth_client.get("/api/tags").json()["tags"] == []
        assert auth_client.delete(f"/api/tags/{tag_id}").status_code == 404


class TestClipTags:
    def test_add_and_list(self, auth_client):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(auth_client, "funny").json()["id"]

        resp = _tag_clip(auth_client, clip_id, tag_id, 4)
        assert resp.status_code == 201
        assoc = resp.json()
        assert assoc["clipId"] == clip_id
        assert assoc["tagId"] == tag_id
        assert assoc["rating"] == 4
        assert assoc["tag"] == {"id": tag_id, "name": "funny"}

        tags = auth_client.get(f"/api/clips/{clip_id}/tags").json()["tags"]
        assert tags == [{"id": tag_id, "name": "funny", "rating": 4}]

    def test_re_adding_overwrites_rating(self, auth_client, db_session):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(auth_client, "funny").json()["id"]

        _tag_clip(auth_client, clip_id, tag_id, 2)
        _tag_clip(auth_client, clip_id, tag_id, 5)

        tags = auth_client.get(f"/api/clips/{clip_id}/tags").json()["tags"]
        assert tags == [{"id": tag_id, "name": "funny", "rating": 5}]
        assert db_session.query(ClipTagModel).count() == 1

    @pytest.mark.parametrize("rating", [0, 6, "3"])
    def test_rating_out_of_range(self, auth_client, rating):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(auth_client, "funny").json()["id"]
        assert _tag_clip(auth_client, clip_id, tag_id, rating).status_code == 400

    def test_unknown_tag_is_404(self, auth_client):
        clip_id = _create_clip(auth_client)
        resp = _tag_clip(auth_client, clip_id, "nope", 3)
        assert resp.status_code == 404

    def test_foreign_tag_is_404(self, auth_client, other_client):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(other_client, "theirs").json()["id"]
        assert _tag_clip(auth_client, clip_id, tag_id, 3).status_code == 404

    def test_foreign_clip_is_404(self, auth_client, other_client):
        clip_id = _create_clip(other_client)
        assert auth_client.get(f"/api/clips/{clip_id}/tags").status_code == 404

    def test_remove(self, auth_client):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(auth_client, "funny").json()["id"]
        _tag_clip(auth_client, clip_id, tag_id, 3)

        resp = auth_client.request("DELETE", f"/api/clips/{clip_id}/tags", json={"tagId": tag_id})
        assert resp.status_code == 204
        assert auth_client.get(f"/api/clips/{clip_id}/tags").json()["tags"] == []

        resp = auth_client.request("DELETE", f"/api/clips/{clip_id}/tags", json={"tagId": tag_id})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Tag association not found"

    def test_deleting_tag_drops_associations(self, auth_client, db_session):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(auth_client, "funny").json()["id"]
        _tag_clip(auth_client, clip_id, tag_id, 3)

        auth_client.delete(f"/api/tags/{tag_id}")

        assert auth_client.get(f"/api/clips/{clip_id}/tags").json()["tags"] == []
        assert db_session.query(ClipTagModel).count() == 0

    def test_deleting_clip_drops_associations(self, auth_client, db_session):
        clip_id = _create_clip(auth_client)
        tag_id = _create_tag(auth_client, "funny").json()["id"]
        _tag_clip(auth_client, clip_id, tag_id, 3)

        auth_client.delete(f"/api/clips/{clip_id}")

        assert db_session.query(ClipTagModel).count() == 0
        assert len(auth_client.get("/api/tags").json()["tags"]) == 1

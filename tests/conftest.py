"""Shared test fixtures."""

import itertools
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from yt_referencer.db.connection import get_db, init_db, make_engine, make_session_factory
from yt_referencer.db.sql_models import SessionModel, UserModel
from yt_referencer.main import app
from yt_referencer.tools.referencer_api import ReferencerClient

TEST_BASE_URL = "http://testserver/api"


# --- Database-backed app ---


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def test_app(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


def add_user(db, name: str, email: str, token: str, expires_in: timedelta = timedelta(days=7)) -> UserModel:
    user = UserModel(name=name, email=email)
    db.add(user)
    db.flush()
    db.add(SessionModel(token=token, user_id=user.id, expires_at=datetime.now(timezone.utc) + expires_in))
    db.commit()
    return user


@pytest.fixture
def make_user(db_session):
    """Add a user with a live session; returns the user row."""

    def _make(name, email, token, expires_in=timedelta(days=7)):
        return add_user(db_session, name, email, token, expires_in)

    return _make


@pytest.fixture
def user_token(db_session) -> str:
    add_user(db_session, "Ada", "ada@example.com", "token-ada")
    return "token-ada"


@pytest.fixture
def other_token(db_session) -> str:
    add_user(db_session, "Grace", "grace@example.com", "token-grace")
    return "token-grace"


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


@pytest.fixture
def auth_client(test_app, user_token):
    c = TestClient(test_app)
    c.headers["Authorization"] = f"Bearer {user_token}"
    return c


@pytest.fixture
def other_client(test_app, other_token):
    c = TestClient(test_app)
    c.headers["Authorization"] = f"Bearer {other_token}"
    return c


# --- In-memory store behind httpx.MockTransport ---

_STAMP = "2024-05-01T12:00:00Z"


class FakeStore:
    """Just enough of the store's HTTP surface to drive the client-side caches."""

    def __init__(self):
        self.tags: dict[str, dict] = {}
        self.clip_tags: dict[str, dict[str, int]] = {}
        self.clips: dict[str, dict] = {}
        self.requests: list[tuple[str, str]] = []
        self.unauthorized = False
        self.fail_tag_list = False
        self._ids = itertools.count(1)

    def count(self, method: str, path: str) -> int:
        return self.requests.count((method, path))

    def add_tag(self, name: str) -> dict:
        tag_id = f"tag-{next(self._ids)}"
        self.tags[tag_id] = {"id": tag_id, "name": name, "createdAt": _STAMP, "updatedAt": _STAMP}
        return self.tags[tag_id]

    def add_clip(self, start_time: int = 30, end_time: int = 90) -> dict:
        clip_id = f"clip-{next(self._ids)}"
        self.clips[clip_id] = {
            "id": clip_id,
            "videoId": "dQw4w9WgXcQ",
            "title": "Chorus",
            "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
            "startTime": start_time,
            "endTime": end_time,
            "isPublic": False,
            "shareSlug": None,
            "createdAt": _STAMP,
            "updatedAt": _STAMP,
        }
        return self.clips[clip_id]

    def client(self) -> ReferencerClient:
        return ReferencerClient(TEST_BASE_URL, "token", transport=httpx.MockTransport(self.handler))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        method = request.method
        self.requests.append((method, path))
        if self.unauthorized:
            return httpx.Response(401, json={"error": "Unauthorized"})

        body = json.loads(request.content) if request.content else {}
        parts = path.strip("/").split("/")

        if parts == ["tags"]:
            return self._tags_collection(method, body)
        if parts[0] == "tags" and len(parts) == 2:
            return self._tag_item(method, parts[1], body)
        if parts == ["clips"] and method == "POST":
            clip = self.add_clip(body["startTime"], body["endTime"])
            clip.update(videoId=body["videoId"], title=body["title"], thumbnail=body["thumbnail"])
            return httpx.Response(200, json=clip)
        if parts[0] == "clips" and len(parts) == 2:
            return self._clip_item(method, parts[1], body)
        if parts[0] == "clips" and len(parts) == 3 and parts[2] == "tags":
            return self._clip_tags(method, parts[1], body)
        return httpx.Response(404, json={"error": "Not found"})

    def _tags_collection(self, method, body):
        if method == "GET":
            if self.fail_tag_list:
                return httpx.Response(500, json={"error": "Internal server error"})
            return httpx.Response(200, json={"tags": list(self.tags.values())})
        if any(t["name"] == body["name"] for t in self.tags.values()):
            return httpx.Response(409, json={"error": "A tag with this name already exists."})
        return httpx.Response(201, json=self.add_tag(body["name"]))

    def _tag_item(self, method, tag_id, body):
        if tag_id not in self.tags:
            return httpx.Response(404, json={"error": "Tag not found"})
        if method == "DELETE":
            del self.tags[tag_id]
            for ratings in self.clip_tags.values():
                ratings.pop(tag_id, None)
            return httpx.Response(204)
        if any(t["name"] == body["name"] and t["id"] != tag_id for t in self.tags.values()):
            return httpx.Response(409, json={"error": "A tag with this name already exists."})
        self.tags[tag_id] = {**self.tags[tag_id], "name": body["name"]}
        return httpx.Response(200, json={"tag": self.tags[tag_id]})

    def _clip_item(self, method, clip_id, body):
        if clip_id not in self.clips:
            return httpx.Response(404, json={"error": "Clip not found"})
        if method == "DELETE":
            del self.clips[clip_id]
            return httpx.Response(204)
        if method == "PATCH":
            self.clips[clip_id].update(body)
        return httpx.Response(200, json={"clip": self.clips[clip_id]})

    def _clip_tags(self, method, clip_id, body):
        ratings = self.clip_tags.setdefault(clip_id, {})
        if method == "GET":
            tags = [
                {"id": tag_id, "name": self.tags[tag_id]["name"], "rating": rating}
                for tag_id, rating in ratings.items()
            ]
            return httpx.Response(200, json={"tags": tags})
        tag_id = body["tagId"]
        if tag_id not in self.tags:
            return httpx.Response(404, json={"error": "Tag not found"})
        if method == "POST":
            ratings[tag_id] = body["rating"]
            return httpx.Response(201, json={"clipId": clip_id, "tagId": tag_id, "rating": body["rating"]})
        if ratings.pop(tag_id, None) is None:
            return httpx.Response(404, json={"error": "Tag association not found"})
        return httpx.Response(204)


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()

"""
Pytest configuration.

Points the app at an in-memory SQLite database before the package is
imported, recreates the schema for every test and provides in-memory
stand-ins for the object store and the media-processing service.
"""

import io
import os
from datetime import timedelta

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "false"

import pytest
from fastapi.testclient import TestClient

from youtback.db import Base, SessionLocal, engine
from youtback.errors import NotFoundError, ProcessingFailedError
from youtback.models import CategoryScore, LanguageScore, Like, User, Video, utcnow


class FakeMediaStore:
    def __init__(self):
        self.objects = {}

    def get(self, path):
        if path not in self.objects:
            raise NotFoundError(f"cannot retrieve target [{path}] file")
        return io.BytesIO(self.objects[path])

    def put(self, stream, path):
        self.objects[path] = stream.read()

    def remove(self, path):
        self.objects.pop(path, None)

    def list_files(self, prefix):
        return sorted(k for k in self.objects if k.startswith(prefix))

    def remove_folder(self, prefix):
        for key in self.list_files(prefix):
            self.remove(key)


class FakeProcessingClient:
    """Replies True to every request unless ``ok`` is switched off."""

    def __init__(self):
        self.ok = True
        self.submitted = []
        self.published = []

    def submit(self, queue, path):
        self.submitted.append((queue, path))
        return f"reply:{len(self.submitted)}"

    def await_reply(self, reply_to, timeout=None):
        if not self.ok:
            raise ProcessingFailedError("Received false from processing microservice")

    def process(self, queue, path, timeout=None):
        self.await_reply(self.submit(queue, path), timeout)

    def publish(self, queue, payload):
        self.published.append((queue, payload))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def processing():
    return FakeProcessingClient()


@pytest.fixture
def make_user(db):
    def _make(user_id="u1", username="tester"):
        user = User(id=user_id, username=username, email=f"{user_id}@example.com",
                    authorities="ROLE_USER", created_at=utcnow())
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_video(db):
    def _make(owner_id="u1", category="Sport", language="en", views=0, title=None, duration=60):
        video = Video(owner_id=owner_id, title=title or f"{category} video", description="",
                      category=category, language=language, duration=duration, views=views,
                      upload_date=utcnow())
        db.add(video)
        db.commit()
        return video

    return _make


@pytest.fixture
def add_like(db):
    def _add(user_id, video_id, days_ago=0):
        db.add(Like(user_id=user_id, video_id=video_id, timestamp=utcnow() - timedelta(days=days_ago)))
        db.commit()

    return _add


@pytest.fixture
def set_affinity(db):
    def _set(user_id, categories=None, languages=None):
        for category, score in (categories or {}).items():
            db.add(CategoryScore(user_id=user_id, category=category, score=score))
        for language, score in (languages or {}).items():
            db.add(LanguageScore(user_id=user_id, language=language, score=score))
        db.commit()

    return _set


@pytest.fixture
def client(db, media_store, processing):
    from youtback.deps import get_media_store, get_processing_client
    from youtback.main import app

    app.dependency_overrides[get_media_store] = lambda: media_store
    app.dependency_overrides[get_processing_client] = lambda: processing
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

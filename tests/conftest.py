"""Shared pytest fixtures for boom tests.

Every test gets its own SQLite file database. An open read transaction keeps writers
from committing until its session is closed: helpers below always work in short-lived
sessions and return plain ids.
"""

import uuid
from pathlib import Path
from typing import Callable

import pytest
from sqlalchemy.orm import sessionmaker

from boom.database import Base, build_engine
from boom.models import Gift, Purchase, User, Video, VideoEntitlement  # noqa: F401 - register tables
from boom.services.media_storage import MediaStorage

TEST_SECRET = "test-secret-key"


@pytest.fixture
def engine(tmp_path: Path):
    engine = build_engine(f"sqlite:///{tmp_path / 'boom_test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def storage(tmp_path: Path) -> MediaStorage:
    return MediaStorage(root=tmp_path / "media", secret_key=TEST_SECRET, max_upload_bytes=1024 * 1024)


@pytest.fixture
def make_user(session_factory) -> Callable[..., str]:
    """Create an account and return its id."""

    def _make(username: str, balance: int = 500) -> str:
        with session_factory() as s:
            user = User(username=username, email=f"{username}@example.com", password="not-a-real-hash", balance=balance)
            s.add(user)
            s.commit()
            return user.id

    return _make


@pytest.fixture
def make_video(session_factory, storage) -> Callable[..., str]:
    """Create a video and return its id. stored=True writes a media file and sets storage_path."""

    def _make(
        creator_id: str,
        video_type: str = "long",
        price: int = 0,
        video_url: str | None = None,
        stored: bool = True,
    ) -> str:
        storage_path = None
        if stored:
            storage_path = f"{video_type}/{uuid.uuid4()}.mp4"
            path = storage.root / storage_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"0123456789" * 10)
        with session_factory() as s:
            video = Video(
                title=f"{video_type} video",
                description="test video",
                video_type=video_type,
                price=price,
                creator_id=creator_id,
                video_url=video_url,
                storage_path=storage_path,
            )
            s.add(video)
            s.commit()
            return video.id

    return _make


@pytest.fixture
def balance_of(session_factory) -> Callable[[str], int]:
    def _balance(user_id: str) -> int:
        with session_factory() as s:
            return s.get(User, user_id).balance

    return _balance


@pytest.fixture
def count_rows(session_factory) -> Callable[..., int]:
    """Count rows of a model matching the given column values."""

    def _count(model, **filters) -> int:
        with session_factory() as s:
            return s.query(model).filter_by(**filters).count()

    return _count

"""
Shared fixtures: a throwaway SQLite database, an in-memory image store,
and a FastAPI app whose dependencies point at both.
"""

import asyncio
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from blog_admin.core.exceptions import ImageUploadException
from blog_admin.core.security import create_access_token
from blog_admin.crud.user_crud import user_crud
from blog_admin.database.session import get_db
from blog_admin.main import app
from blog_admin.models import Base
from blog_admin.services.storage_service import (
    DeletionResult,
    ImageReference,
    ImageStore,
    get_image_store,
)


class FakeImageStore(ImageStore):
    """Records every call; uploads and deletes can be made to fail."""

    def __init__(self):
        self.assets = {}
        self.uploads = []
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(self, file_bytes: bytes, filename: Optional[str] = None) -> ImageReference:
        if self.fail_uploads:
            raise ImageUploadException()
        public_id = f"blog-posts/test-{len(self.uploads) + 1}"
        self.uploads.append(public_id)
        self.assets[public_id] = file_bytes
        return ImageReference(
            url=f"https://res.cloudinary.com/demo/image/upload/{public_id}.jpg",
            public_id=public_id,
        )

    async def delete(self, public_id: str) -> DeletionResult:
        self.deleted.append(public_id)
        if self.fail_deletes:
            return DeletionResult(public_id=public_id, ok=False, error="not found")
        self.assets.pop(public_id, None)
        return DeletionResult(public_id=public_id, ok=True)

    def seed(self, public_id: str) -> ImageReference:
        self.assets[public_id] = b"seeded"
        return ImageReference(
            url=f"https://res.cloudinary.com/demo/image/upload/{public_id}.jpg",
            public_id=public_id,
        )


def run(coro):
    return asyncio.run(coro)


VALID_POST = {
    "title": "Hello World!",
    "excerpt": "A short intro text",
    "content": "x" * 60,
    "readTime": 5,
    "status": "draft",
}


@pytest.fixture
def valid_post():
    return dict(VALID_POST)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}", poolclass=NullPool
    )

    async def _create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run(_create_tables())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    run(engine.dispose())


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def author(session_factory):
    async def _seed():
        async with session_factory() as db:
            user = await user_crud.create(db, {
                "email": "ada@example.com",
                "name": "Ada Admin",
                "image": "https://example.com/ada.png",
            })
            await db.commit()
            return user

    return run(_seed())


@pytest.fixture
def auth_headers(author):
    return {"Authorization": f"Bearer {create_access_token(str(author.id))}"}


@pytest.fixture
def api_app(session_factory, image_store):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_store] = lambda: image_store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    return TestClient(api_app, raise_server_exceptions=False)


@pytest.fixture
def create_post(client, auth_headers, valid_post):
    """Create a post through the API and return its JSON body."""
    def _create(**overrides):
        body = dict(valid_post, **overrides)
        response = client.post("/api/posts", json=body, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create

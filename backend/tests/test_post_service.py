"""
PostService tests: record writes and hero image cleanup ordering.
"""

import uuid

import pytest

from blog_admin.core.exceptions import (
    ImageInUseException,
    PostNotFoundException,
    PostValidationException,
)
from blog_admin.crud.post_crud import post_crud
from blog_admin.models.post import PostStatus
from blog_admin.schemas.post import validate_post_payload
from blog_admin.services.post_service import PostService

from conftest import run


def _with_image(record, ref):
    return dict(record, imageUrl=ref.url, imagePublicId=ref.public_id)


@pytest.fixture
def service(image_store):
    return PostService(image_store)


@pytest.fixture
def call(session_factory):
    """Run a service coroutine inside a fresh session."""
    def _call(fn, *args, **kwargs):
        async def _inner():
            async with session_factory() as db:
                return await fn(db, *args, **kwargs)
        return run(_inner())
    return _call


class TestCreate:
    def test_create_stores_record_with_author(self, service, call, author, valid_post):
        post = call(service.create, valid_post, author.id)

        assert post.id is not None
        assert post.author_id == author.id
        assert post.author.name == "Ada Admin"
        assert post.status is PostStatus.DRAFT
        assert post.image_public_id is None

    def test_create_with_image(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        assert post.image_url == ref.url
        assert post.image_public_id == "blog-posts/a"
        assert image_store.deleted == []

    def test_invalid_record_is_not_stored(self, service, call, author, valid_post):
        with pytest.raises(PostValidationException):
            call(service.create, dict(valid_post, title="Hi"), author.id)

        assert call(service.list, include_drafts=True) == []


class TestUpdate:
    def test_removing_image_deletes_old_asset_once(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        updated = call(service.update, post.id, valid_post)

        assert updated.image_url is None
        assert updated.image_public_id is None
        assert image_store.deleted == ["blog-posts/a"]
        assert "blog-posts/a" not in image_store.assets

    def test_replacing_image_deletes_only_old_asset(self, service, call, author, valid_post, image_store):
        old = image_store.seed("blog-posts/a")
        new = image_store.seed("blog-posts/b")
        post = call(service.create, _with_image(valid_post, old), author.id)

        updated = call(service.update, post.id, _with_image(valid_post, new))

        assert updated.image_public_id == "blog-posts/b"
        assert image_store.deleted == ["blog-posts/a"]
        assert "blog-posts/b" in image_store.assets

    def test_unchanged_image_is_kept(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        updated = call(service.update, post.id, dict(_with_image(valid_post, ref), title="New title"))

        assert updated.title == "New title"
        assert image_store.deleted == []

    def test_adding_first_image_deletes_nothing(self, service, call, author, valid_post, image_store):
        post = call(service.create, valid_post, author.id)
        ref = image_store.seed("blog-posts/a")

        updated = call(service.update, post.id, _with_image(valid_post, ref))

        assert updated.image_public_id == "blog-posts/a"
        assert image_store.deleted == []

    def test_failed_asset_delete_still_updates(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)
        image_store.fail_deletes = True

        updated = call(service.update, post.id, valid_post)

        assert updated.image_public_id is None
        assert image_store.deleted == ["blog-posts/a"]
        reloaded = call(service.get, post.id, include_drafts=True)
        assert reloaded.image_public_id is None

    def test_failed_write_keeps_old_asset(self, service, call, author, valid_post, image_store, monkeypatch):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        async def broken_update(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(post_crud, "update_post", broken_update)

        with pytest.raises(RuntimeError):
            call(service.update, post.id, valid_post)

        assert image_store.deleted == []
        monkeypatch.undo()
        reloaded = call(service.get, post.id, include_drafts=True)
        assert reloaded.image_public_id == "blog-posts/a"

    def test_invalid_record_leaves_post_and_asset(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        with pytest.raises(PostValidationException):
            call(service.update, post.id, dict(valid_post, content="short"))

        assert image_store.deleted == []
        assert call(service.get, post.id, include_drafts=True).content == valid_post["content"]

    def test_missing_post_touches_no_asset(self, service, call, author, valid_post, image_store):
        with pytest.raises(PostNotFoundException):
            call(service.update, uuid.uuid4(), valid_post)

        assert image_store.deleted == []


class TestDelete:
    def test_delete_with_image_removes_asset(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        call(service.delete, post.id)

        assert image_store.deleted == ["blog-posts/a"]
        with pytest.raises(PostNotFoundException):
            call(service.get, post.id, include_drafts=True)

    def test_delete_without_image_makes_no_store_call(self, service, call, author, valid_post, image_store):
        post = call(service.create, valid_post, author.id)

        call(service.delete, post.id)

        assert image_store.deleted == []

    def test_delete_survives_asset_failure(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        post = call(service.create, _with_image(valid_post, ref), author.id)
        image_store.fail_deletes = True

        call(service.delete, post.id)

        with pytest.raises(PostNotFoundException):
            call(service.get, post.id, include_drafts=True)

    @pytest.mark.parametrize("post_id", ["not-a-uuid", str(uuid.uuid4())])
    def test_delete_missing_post(self, service, call, author, image_store, post_id):
        with pytest.raises(PostNotFoundException):
            call(service.delete, post_id)

        assert image_store.deleted == []


class TestRead:
    def test_anonymous_list_hides_drafts(self, service, call, author, valid_post):
        call(service.create, valid_post, author.id)
        published = call(service.create, dict(valid_post, status="published"), author.id)

        public = call(service.list, include_drafts=False)
        everything = call(service.list, include_drafts=True)

        assert [p.id for p in public] == [published.id]
        assert len(everything) == 2

    def test_anonymous_draft_lookup_is_not_found(self, service, call, author, valid_post):
        post = call(service.create, valid_post, author.id)

        with pytest.raises(PostNotFoundException):
            call(service.get, post.id, include_drafts=False)

    def test_image_in_use(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/a")
        call(service.create, _with_image(valid_post, ref), author.id)

        assert call(service.is_image_in_use, "blog-posts/a") is True
        assert call(service.is_image_in_use, "blog-posts/unused") is False


class TestImageOwnership:
    def test_create_refuses_image_owned_by_another_post(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/shared")
        call(service.create, _with_image(valid_post, ref), author.id)

        with pytest.raises(ImageInUseException):
            call(service.create, _with_image(valid_post, ref), author.id)

        assert len(call(service.list, include_drafts=True)) == 1

    def test_update_refuses_image_owned_by_another_post(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/shared")
        call(service.create, _with_image(valid_post, ref), author.id)
        other = call(service.create, valid_post, author.id)

        with pytest.raises(ImageInUseException):
            call(service.update, other.id, _with_image(valid_post, ref))

        assert call(service.get, other.id, include_drafts=True).image_public_id is None
        assert image_store.deleted == []

    def test_update_keeping_own_image_is_allowed(self, service, call, author, valid_post, image_store):
        ref = image_store.seed("blog-posts/mine")
        post = call(service.create, _with_image(valid_post, ref), author.id)

        updated = call(service.update, post.id, dict(_with_image(valid_post, ref), status="published"))

        assert updated.image_public_id == "blog-posts/mine"

    def test_stale_image_still_referenced_is_not_deleted(self, service, call, author, valid_post, image_store, session_factory):
        ref = image_store.seed("blog-posts/shared")
        first = call(service.create, _with_image(valid_post, ref), author.id)

        # 서비스 검사를 거치지 않고 같은 이미지를 참조하는 게시글을 직접 저장
        async def _insert_sharing_post():
            async with session_factory() as db:
                await post_crud.create_post(db, validate_post_payload(_with_image(valid_post, ref)), author.id)
                await db.commit()

        run(_insert_sharing_post())

        call(service.update, first.id, valid_post)
        call(service.delete, first.id)

        assert image_store.deleted == []
        assert "blog-posts/shared" in image_store.assets

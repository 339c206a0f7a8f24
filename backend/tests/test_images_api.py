"""
/api/upload and /api/delete-image endpoint tests
"""

import pytest

from blog_admin.core.config import settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(client, headers, content=PNG_BYTES, content_type="image/png", filename="hero.png"):
    return client.post(
        "/api/upload",
        files={"file": (filename, content, content_type)},
        headers=headers,
    )


class TestUpload:
    def test_upload_returns_reference(self, client, auth_headers, image_store):
        response = _upload(client, auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://res.cloudinary.com/demo/image/upload/blog-posts/test-1.jpg",
            "publicId": "blog-posts/test-1",
        }
        assert image_store.assets["blog-posts/test-1"] == PNG_BYTES

    def test_upload_requires_session(self, client, image_store):
        response = _upload(client, {})

        assert response.status_code == 401
        assert image_store.uploads == []

    def test_non_image_is_rejected(self, client, auth_headers, image_store):
        response = _upload(client, auth_headers, content=b"%PDF-1.4", content_type="application/pdf", filename="a.pdf")

        assert response.status_code == 400
        assert response.json() == {"error": "Only image files can be uploaded"}
        assert image_store.uploads == []

    def test_empty_file_is_rejected(self, client, auth_headers):
        response = _upload(client, auth_headers, content=b"")

        assert response.status_code == 400

    def test_oversized_file_is_rejected(self, client, auth_headers, image_store, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)

        response = _upload(client, auth_headers)

        assert response.status_code == 400
        assert image_store.uploads == []

    def test_missing_file_is_rejected(self, client, auth_headers):
        response = client.post("/api/upload", headers=auth_headers)

        assert response.status_code == 400

    def test_store_failure_returns_500(self, client, auth_headers, image_store):
        image_store.fail_uploads = True

        response = _upload(client, auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "Image upload failed"


class TestDeleteImage:
    def test_deletes_unattached_image(self, client, auth_headers, image_store):
        public_id = _upload(client, auth_headers).json()["publicId"]

        response = client.post("/api/delete-image", json={"publicId": public_id}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert image_store.deleted == [public_id]
        assert public_id not in image_store.assets

    def test_requires_session(self, client, image_store):
        response = client.post("/api/delete-image", json={"publicId": "blog-posts/a"})

        assert response.status_code == 401
        assert image_store.deleted == []

    @pytest.mark.parametrize("body", [{}, {"publicId": ""}, {"publicId": None}])
    def test_missing_public_id(self, client, auth_headers, body):
        response = client.post("/api/delete-image", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "No public ID provided"}

    def test_image_attached_to_post_is_refused(self, client, auth_headers, create_post, image_store):
        ref = image_store.seed("blog-posts/hero")
        create_post(imageUrl=ref.url, imagePublicId=ref.public_id)

        response = client.post("/api/delete-image", json={"publicId": ref.public_id}, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "image_in_use"
        assert image_store.deleted == []

    def test_store_failure_returns_500(self, client, auth_headers, image_store):
        image_store.fail_deletes = True

        response = client.post("/api/delete-image", json={"publicId": "blog-posts/gone"}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to delete image"

"""API tests for site CRUD: validation, truncation, and cover image upload/delete sequencing."""

from unittest.mock import AsyncMock, patch

from helpers import ApiTestCase, bearer, site_payload
from smartlink.core.config import get_settings
from smartlink.services.image_store import ImageDeleteError, ImageUploadError, UploadedImage

HOSTED_URL = "https://res.cloudinary.com/demo/image/upload/v1712345678/smart-links/abc123.jpg"
NEW_HOSTED_URL = "https://res.cloudinary.com/demo/image/upload/v1712349999/smart-links/def456.png"
DATA_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="


def _uploaded(url: str = HOSTED_URL, public_id: str = "smart-links/abc123") -> UploadedImage:
    return UploadedImage(public_id=public_id, url=url, width=800, height=600, format="jpg")


class TestCreateSite(ApiTestCase):
    def test_create_then_get_round_trip(self) -> None:
        created = self.create_site()
        resp = self.client.get(f"/api/sites/{created['id']}")
        self.assertEqual(resp.status_code, 200)
        fetched = resp.json()
        for field, value in site_payload().items():
            self.assertEqual(fetched[field], value)
        self.assertEqual(fetched["cover_image"], "")
        self.assertIsNotNone(fetched["created_at"])
        self.assertIsNotNone(fetched["updated_at"])

    def test_missing_description_is_rejected_and_not_persisted(self) -> None:
        payload = site_payload()
        del payload["description"]
        resp = self.client.post("/api/sites", json=payload, headers=bearer())
        self.assertEqual(resp.status_code, 400)
        self.assertIn("description", resp.json()["message"])
        self.assertEqual(self.count_sites(), 0)

    def test_blank_description_is_rejected(self) -> None:
        resp = self.client.post("/api/sites", json=site_payload(description="   "), headers=bearer())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.count_sites(), 0)

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_missing_description_checked_before_upload(self, mock_upload: AsyncMock) -> None:
        payload = site_payload(cover_image=DATA_URI)
        del payload["description"]
        resp = self.client.post("/api/sites", json=payload, headers=bearer())
        self.assertEqual(resp.status_code, 400)
        mock_upload.assert_not_awaited()

    def test_oversized_fields_are_truncated(self) -> None:
        created = self.create_site(
            title="t" * 250,
            category="c" * 80,
            site_url="https://example.com/" + "p" * 600,
        )
        self.assertEqual(len(created["title"]), 200)
        self.assertEqual(len(created["category"]), 50)
        self.assertEqual(len(created["site_url"]), 500)

        # Re-submitting the truncated values stores them unchanged.
        again = self.create_site(
            title=created["title"],
            category=created["category"],
            site_url=created["site_url"],
        )
        for field in ("title", "category", "site_url"):
            self.assertEqual(again[field], created[field])

    def test_external_cover_url_is_kept(self) -> None:
        created = self.create_site(cover_image="https://example.com/cover.png")
        self.assertEqual(created["cover_image"], "https://example.com/cover.png")

    def test_long_cover_image_is_rejected(self) -> None:
        resp = self.client.post(
            "/api/sites",
            json=site_payload(cover_image="https://example.com/" + "a" * 600),
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.count_sites(), 0)

    def test_non_url_cover_image_is_rejected(self) -> None:
        resp = self.client.post(
            "/api/sites",
            json=site_payload(cover_image="iVBORw0KGgoAAAANSUhEUg"),
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_data_uri_cover_is_uploaded_and_replaced(self, mock_upload: AsyncMock) -> None:
        mock_upload.return_value = _uploaded()
        created = self.create_site(cover_image=DATA_URI)
        self.assertEqual(created["cover_image"], HOSTED_URL)
        mock_upload.assert_awaited_once()
        self.assertEqual(mock_upload.await_args.args[0], DATA_URI)

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_upload_failure_rejects_request(self, mock_upload: AsyncMock) -> None:
        mock_upload.side_effect = ImageUploadError("Image upload failed: Invalid image file")
        resp = self.client.post("/api/sites", json=site_payload(cover_image=DATA_URI), headers=bearer())
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["message"], "Invalid cover_image or upload failed")
        self.assertIn("Invalid image file", body["error"])
        self.assertEqual(self.count_sites(), 0)


    def test_malformed_json_is_bad_request(self) -> None:
        resp = self.client.post(
            "/api/sites",
            content=b"{bad",
            headers={"Content-Type": "application/json", **bearer()},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"message": "body: JSON decode error", "fields": ["body"]})
        self.assertEqual(self.count_sites(), 0)

    def test_non_object_json_is_bad_request(self) -> None:
        resp = self.client.post("/api/sites", json=["not", "an", "object"], headers=bearer())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.count_sites(), 0)


class TestListAndGet(ApiTestCase):
    def test_list_is_newest_first(self) -> None:
        first = self.create_site(title="First")
        second = self.create_site(title="Second")
        resp = self.client.get("/api/sites")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s["id"] for s in resp.json()], [second["id"], first["id"]])

    def test_unknown_id_is_not_found(self) -> None:
        resp = self.client.get("/api/sites/12345")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "Site not found")

    def test_non_integer_id_is_bad_request(self) -> None:
        self.assertEqual(self.client.get("/api/sites/abc").status_code, 400)


class TestUpdateSite(ApiTestCase):
    def test_partial_update_changes_only_supplied_fields(self) -> None:
        created = self.create_site()
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"title": "Google"},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200)
        updated = resp.json()
        self.assertEqual(updated["title"], "Google")
        self.assertEqual(updated["site_url"], created["site_url"])
        self.assertEqual(updated["description"], created["description"])

    def test_update_truncates(self) -> None:
        created = self.create_site()
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"category": "x" * 60},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["category"], "x" * 50)

    def test_update_cannot_blank_description(self) -> None:
        created = self.create_site()
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"description": ""},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)

    def test_update_unknown_site_is_not_found(self) -> None:
        resp = self.client.put("/api/sites/999", json={"title": "x"}, headers=bearer())
        self.assertEqual(resp.status_code, 404)

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_new_cover_replaces_and_discards_old(
        self,
        mock_upload: AsyncMock,
        mock_delete: AsyncMock,
    ) -> None:
        created = self.create_site(cover_image=HOSTED_URL)
        mock_upload.return_value = _uploaded(NEW_HOSTED_URL, "smart-links/def456")
        mock_delete.return_value = True
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"cover_image": DATA_URI},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["cover_image"], NEW_HOSTED_URL)
        mock_delete.assert_awaited_once()
        self.assertEqual(mock_delete.await_args.args[0], "smart-links/abc123")

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_old_cover_delete_failure_does_not_fail_update(
        self,
        mock_upload: AsyncMock,
        mock_delete: AsyncMock,
    ) -> None:
        created = self.create_site(cover_image=HOSTED_URL)
        mock_upload.return_value = _uploaded(NEW_HOSTED_URL, "smart-links/def456")
        mock_delete.side_effect = ImageDeleteError("Image delete failed: boom")
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"cover_image": DATA_URI},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["cover_image"], NEW_HOSTED_URL)

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    def test_update_without_cover_change_keeps_image(self, mock_delete: AsyncMock) -> None:
        created = self.create_site(cover_image=HOSTED_URL)
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"title": "Renamed"},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["cover_image"], HOSTED_URL)
        mock_delete.assert_not_awaited()


    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_upload_failure_leaves_site_unchanged(
        self,
        mock_upload: AsyncMock,
        mock_delete: AsyncMock,
    ) -> None:
        created = self.create_site(cover_image=HOSTED_URL)
        mock_upload.side_effect = ImageUploadError("Image upload failed: Invalid image file")
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            json={"title": "Renamed", "cover_image": DATA_URI},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Invalid cover_image or upload failed")
        mock_delete.assert_not_awaited()
        stored = self.client.get(f"/api/sites/{created['id']}").json()
        self.assertEqual(stored["title"], created["title"])
        self.assertEqual(stored["cover_image"], HOSTED_URL)

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_multipart_upload_failure_leaves_site_unchanged(
        self,
        mock_upload: AsyncMock,
        mock_delete: AsyncMock,
    ) -> None:
        created = self.create_site(cover_image=HOSTED_URL)
        mock_upload.side_effect = ImageUploadError("Image upload failed: timed out")
        resp = self.client.put(
            f"/api/sites/{created['id']}/with-image",
            data={"title": "Renamed"},
            files={"image": ("cover.png", b"png bytes", "image/png")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)
        mock_delete.assert_not_awaited()
        stored = self.client.get(f"/api/sites/{created['id']}").json()
        self.assertEqual(stored["title"], created["title"])
        self.assertEqual(stored["cover_image"], HOSTED_URL)

    def test_malformed_json_is_bad_request(self) -> None:
        created = self.create_site()
        resp = self.client.put(
            f"/api/sites/{created['id']}",
            content=b"{bad",
            headers={"Content-Type": "application/json", **bearer()},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["fields"], ["body"])


class TestDeleteSite(ApiTestCase):
    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    def test_hosted_cover_is_deleted_once(self, mock_delete: AsyncMock) -> None:
        mock_delete.return_value = True
        created = self.create_site(cover_image=HOSTED_URL)
        resp = self.client.delete(f"/api/sites/{created['id']}", headers=bearer())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Site deleted"})
        mock_delete.assert_awaited_once()
        self.assertEqual(mock_delete.await_args.args[0], "smart-links/abc123")
        self.assertEqual(self.client.get(f"/api/sites/{created['id']}").status_code, 404)

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    def test_external_or_empty_cover_triggers_no_image_delete(self, mock_delete: AsyncMock) -> None:
        external = self.create_site(cover_image="https://example.com/cover")
        empty = self.create_site()
        for site in (external, empty):
            resp = self.client.delete(f"/api/sites/{site['id']}", headers=bearer())
            self.assertEqual(resp.status_code, 200)
        mock_delete.assert_not_awaited()
        self.assertEqual(self.count_sites(), 0)

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    def test_record_deleted_even_if_image_delete_fails(self, mock_delete: AsyncMock) -> None:
        mock_delete.side_effect = ImageDeleteError("Image delete failed: unreachable")
        created = self.create_site(cover_image=HOSTED_URL)
        resp = self.client.delete(f"/api/sites/{created['id']}", headers=bearer())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.count_sites(), 0)

    def test_deleting_missing_site_is_ok(self) -> None:
        resp = self.client.delete("/api/sites/4242", headers=bearer())
        self.assertEqual(resp.status_code, 200)


class TestImageEndpoints(ApiTestCase):
    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_upload_image(self, mock_upload: AsyncMock) -> None:
        mock_upload.return_value = _uploaded()
        resp = self.client.post(
            "/api/sites/upload-image",
            files={"image": ("cover.png", b"\x89PNG fake bytes", "image/png")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body["image"]["url"], HOSTED_URL)
        self.assertEqual(body["image"]["public_id"], "smart-links/abc123")
        self.assertEqual(mock_upload.await_args.args[0], b"\x89PNG fake bytes")

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_upload_rejects_non_images(self, mock_upload: AsyncMock) -> None:
        resp = self.client.post(
            "/api/sites/upload-image",
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Only image files are allowed!")
        mock_upload.assert_not_awaited()

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_upload_rejects_oversized_files(self, mock_upload: AsyncMock) -> None:
        with patch.object(get_settings(), "MAX_IMAGE_BYTES", 10):
            resp = self.client.post(
                "/api/sites/upload-image",
                files={"image": ("big.png", b"x" * 11, "image/png")},
                headers=bearer(),
            )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("File too large", resp.json()["message"])
        mock_upload.assert_not_awaited()

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_upload_failure_is_server_error(self, mock_upload: AsyncMock) -> None:
        mock_upload.side_effect = ImageUploadError("Image upload failed: connection refused")
        resp = self.client.post(
            "/api/sites/upload-image",
            files={"image": ("cover.png", b"\x89PNG fake bytes", "image/png")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(
            resp.json(),
            {"message": "Failed to upload image", "error": "Image upload failed: connection refused"},
        )

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_create_with_image_accepts_large_data_uri_field(self, mock_upload: AsyncMock) -> None:
        mock_upload.return_value = _uploaded()
        large_uri = "data:image/png;base64," + "A" * (2 * 1024 * 1024)
        resp = self.client.post(
            "/api/sites/with-image",
            data=site_payload(cover_image=large_uri),
            files={"placeholder": ("blank.txt", b"", "text/plain")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 201, resp.text[:200])
        self.assertEqual(resp.json()["cover_image"], HOSTED_URL)
        self.assertEqual(mock_upload.await_args.args[0], large_uri)

    def test_upload_requires_image_field(self) -> None:
        resp = self.client.post(
            "/api/sites/upload-image",
            files={"file": ("cover.png", b"bytes", "image/png")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_create_with_image(self, mock_upload: AsyncMock) -> None:
        mock_upload.return_value = _uploaded()
        resp = self.client.post(
            "/api/sites/with-image",
            data=site_payload(),
            files={"image": ("cover.jpg", b"jpeg bytes", "image/jpeg")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["cover_image"], HOSTED_URL)
        self.assertEqual(resp.json()["title"], "Google Search")

    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_create_with_image_validates_before_upload(self, mock_upload: AsyncMock) -> None:
        payload = site_payload()
        del payload["description"]
        resp = self.client.post(
            "/api/sites/with-image",
            data=payload,
            files={"image": ("cover.jpg", b"jpeg bytes", "image/jpeg")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 400)
        mock_upload.assert_not_awaited()
        self.assertEqual(self.count_sites(), 0)

    @patch("smartlink.api.sites.delete_image", new_callable=AsyncMock)
    @patch("smartlink.api.sites.upload_image", new_callable=AsyncMock)
    def test_update_with_image(self, mock_upload: AsyncMock, mock_delete: AsyncMock) -> None:
        created = self.create_site(cover_image=HOSTED_URL)
        mock_upload.return_value = _uploaded(NEW_HOSTED_URL, "smart-links/def456")
        mock_delete.return_value = True
        resp = self.client.put(
            f"/api/sites/{created['id']}/with-image",
            data={"title": "With new cover"},
            files={"image": ("cover.png", b"png bytes", "image/png")},
            headers=bearer(),
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["cover_image"], NEW_HOSTED_URL)
        self.assertEqual(resp.json()["title"], "With new cover")
        mock_delete.assert_awaited_once()

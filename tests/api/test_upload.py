"""Tests for the /api/upload routes."""

import pytest

PNG = b"\x89PNG\r\n\x1a\n" + b"\0" * 32

GUARDED_ROUTES = [
    ("POST", "/api/upload"),
    ("POST", "/api/upload/multiple"),
    ("POST", "/api/upload/avatar"),
    ("GET", "/api/upload/list/all"),
    ("GET", "/api/upload/some-file"),
    ("DELETE", "/api/upload/some-file"),
]


class TestGuard:
    @pytest.mark.parametrize(("method", "path"), GUARDED_ROUTES)
    def test_unauthenticated(self, client, storage, method, path):
        response = client.request(method, path)
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert storage.create_calls == 0


class TestUploadFile:
    """Tests for single file uploads."""

    def test_image_upload(self, client, auth_headers):
        response = client.post("/api/upload", files={"file": ("cat.png", PNG, "image/png")}, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "File uploaded successfully"
        data = body["data"]
        assert data["name"] == "cat.png"
        assert data["mimeType"] == "image/png"
        assert data["size"] == len(PNG)
        assert data["url"].endswith(f"/files/{data['id']}/view?project=fold-project")
        assert data["previewUrl"].endswith("width=400&height=400&quality=80")
        assert data["downloadUrl"].endswith(f"/files/{data['id']}/download?project=fold-project")

    def test_non_image_has_no_preview(self, client, auth_headers):
        response = client.post("/api/upload", files={"file": ("a.txt", b"hello", "text/plain")}, headers=auth_headers)
        assert response.json()["data"]["previewUrl"] is None

    def test_missing_file(self, client, auth_headers):
        response = client.post("/api/upload", data={"file": "not a file"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "No file provided. Please upload a file with key 'file'",
        }


class TestUploadMultiple:
    """Tests for multi-file uploads."""

    def test_upload_several(self, client, storage, auth_headers):
        files = [("files", (f"{i}.txt", b"data", "text/plain")) for i in range(3)]
        response = client.post("/api/upload/multiple", files=files, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "3 file(s) uploaded successfully"
        assert len(response.json()["data"]) == 3
        assert len(storage.files) == 3

    def test_eleven_files_rejected_before_upload(self, client, storage, auth_headers):
        files = [("files", (f"{i}.txt", b"data", "text/plain")) for i in range(11)]
        response = client.post("/api/upload/multiple", files=files, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Maximum 10 files allowed per upload"
        assert storage.create_calls == 0

    def test_no_files(self, client, auth_headers):
        response = client.post("/api/upload/multiple", data={"other": "x"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "No files provided. Please upload files with key 'files'"

    def test_no_valid_files(self, client, auth_headers):
        response = client.post("/api/upload/multiple", data={"files": "just text"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "No valid files provided"

    def test_partial_failure_rolls_back(self, client, storage, auth_headers):
        """Test that a failed upload removes the files that did make it."""
        storage.failing_names = {"bad.txt"}
        files = [("files", (name, b"data", "text/plain")) for name in ("a.txt", "bad.txt", "c.txt")]
        response = client.post("/api/upload/multiple", files=files, headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Storage rejected bad.txt"}
        assert storage.files == {}
        assert len(storage.deleted) == 2


class TestUploadAvatar:
    """Tests for avatar uploads."""

    def test_avatar_with_thumbnails(self, client, auth_headers):
        response = client.post("/api/upload/avatar", files={"avatar": ("me.png", PNG, "image/png")}, headers=auth_headers)
        assert response.status_code == 200
        thumbnails = response.json()["data"]["thumbnails"]
        assert thumbnails["small"].endswith("width=50&height=50&quality=80")
        assert thumbnails["medium"].endswith("width=150&height=150&quality=80")
        assert thumbnails["large"].endswith("width=400&height=400&quality=80")

    def test_six_megabyte_avatar_rejected(self, client, storage, auth_headers):
        big = b"\0" * (6 * 1024 * 1024)
        response = client.post("/api/upload/avatar", files={"avatar": ("big.png", big, "image/png")}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Avatar must be less than 5MB"
        assert storage.create_calls == 0

    def test_non_image_avatar_rejected(self, client, storage, auth_headers):
        response = client.post(
            "/api/upload/avatar", files={"avatar": ("cv.pdf", b"%PDF", "application/pdf")}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Only image files are allowed for avatars"
        assert storage.create_calls == 0

    def test_missing_avatar(self, client, auth_headers):
        response = client.post("/api/upload/avatar", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "No avatar provided. Please upload an image with key 'avatar'"


class TestFiles:
    """Tests for reading, deleting and listing files."""

    def test_get_missing_file(self, client, auth_headers):
        response = client.get("/api/upload/missing", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "File not found"}

    def test_delete_missing_file(self, client, auth_headers):
        response = client.delete("/api/upload/missing", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "File not found"}

    def test_get_and_delete(self, client, auth_headers):
        file_id = client.post(
            "/api/upload", files={"file": ("a.txt", b"hello", "text/plain")}, headers=auth_headers
        ).json()["data"]["id"]

        assert client.get(f"/api/upload/{file_id}", headers=auth_headers).json()["data"]["id"] == file_id
        response = client.delete(f"/api/upload/{file_id}", headers=auth_headers)
        assert response.json()["message"] == "File deleted successfully"
        assert client.get(f"/api/upload/{file_id}", headers=auth_headers).status_code == 404

    def test_list_files_paginates(self, client, auth_headers):
        for i in range(3):
            client.post("/api/upload", files={"file": (f"{i}.txt", b"x", "text/plain")}, headers=auth_headers)

        data = client.get("/api/upload/list/all", params={"limit": 2, "offset": 1}, headers=auth_headers).json()["data"]
        assert data["total"] == 3
        assert data["limit"] == 2
        assert data["offset"] == 1
        assert [f["name"] for f in data["files"]] == ["1.txt", "2.txt"]

    def test_list_files_defaults(self, client, auth_headers):
        data = client.get("/api/upload/list/all", headers=auth_headers).json()["data"]
        assert data == {"files": [], "total": 0, "limit": 25, "offset": 0}

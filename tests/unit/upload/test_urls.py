"""Tests for storage file URL templates."""

from fold.core.modules.upload.urls import FileUrls

URLS = FileUrls(endpoint="https://cloud.appwrite.io/v1/", project_id="proj", bucket_id="media")


class TestFileUrls:
    """Tests for view, preview and download URLs."""

    def test_view_url(self):
        """Test that the view URL carries the project query parameter."""
        assert URLS.view("abc") == "https://cloud.appwrite.io/v1/storage/buckets/media/files/abc/view?project=proj"

    def test_download_url(self):
        assert URLS.download("abc") == "https://cloud.appwrite.io/v1/storage/buckets/media/files/abc/download?project=proj"

    def test_preview_url_with_dimensions(self):
        """Test that width, height and quality are appended in order."""
        assert URLS.preview("abc", 400, 400, 80) == (
            "https://cloud.appwrite.io/v1/storage/buckets/media/files/abc/preview"
            "?project=proj&width=400&height=400&quality=80"
        )

    def test_preview_url_without_dimensions(self):
        """Test that unset dimensions are omitted."""
        assert URLS.preview("abc") == "https://cloud.appwrite.io/v1/storage/buckets/media/files/abc/preview?project=proj"

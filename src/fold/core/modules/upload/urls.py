"""Public URLs of files in the Appwrite bucket."""

from dataclasses import dataclass
from urllib.parse import urlencode


@dataclass(frozen=True)
class FileUrls:
    endpoint: str
    project_id: str
    bucket_id: str

    def _build(self, file_id: str, action: str, **params: int | None) -> str:
        query = {"project": self.project_id}
        query.update({key: str(value) for key, value in params.items() if value})
        base = self.endpoint.rstrip("/")
        return f"{base}/storage/buckets/{self.bucket_id}/files/{file_id}/{action}?{urlencode(query)}"

    def view(self, file_id: str) -> str:
        return self._build(file_id, "view")

    def preview(self, file_id: str, width: int | None = None, height: int | None = None, quality: int | None = None) -> str:
        """Preview URL; unset or zero dimensions are left to the provider's defaults."""
        return self._build(file_id, "preview", width=width, height=height, quality=quality)

    def download(self, file_id: str) -> str:
        return self._build(file_id, "download")

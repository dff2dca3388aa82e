from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from fold.core.views import CamelModel


@dataclass(frozen=True)
class FileUpload:
    """A file received in a multipart request, fully read into memory."""

    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_image(self) -> bool:
        return is_image_mime_type(self.mime_type)


class StoredFile(BaseModel):
    """File record as reported by the storage provider."""

    id: str = Field(..., alias="$id")
    name: str
    mime_type: str = Field(..., alias="mimeType")
    size: int = Field(..., alias="sizeOriginal")
    created_at: str = Field(..., alias="$createdAt")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StoredFileList(BaseModel):
    files: list[StoredFile]
    total: int


class FileView(CamelModel):
    """Uploaded file with ready-to-use URLs (API representation)."""

    id: str = Field(..., description="File ID")
    name: str = Field(..., description="Original filename")
    mime_type: str = Field(..., description="MIME type")
    size: int = Field(..., description="Size in bytes")
    url: str = Field(..., description="View URL")
    preview_url: str | None = Field(None, description="Preview URL, images only")
    download_url: str = Field(..., description="Download URL")
    created_at: str


class AvatarThumbnails(BaseModel):
    small: str = Field(..., description="50x50 preview URL")
    medium: str = Field(..., description="150x150 preview URL")
    large: str = Field(..., description="400x400 preview URL")


class AvatarView(CamelModel):
    """Uploaded avatar with fixed-size preview URLs (API representation)."""

    id: str
    name: str
    mime_type: str
    size: int
    url: str
    thumbnails: AvatarThumbnails
    created_at: str


class FileListView(BaseModel):
    files: list[FileView]
    total: int = Field(..., ge=0)
    limit: int
    offset: int


def is_image_mime_type(mime_type: str) -> bool:
    return mime_type.startswith("image/")

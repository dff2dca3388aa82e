import asyncio

import structlog
from appwrite.id import ID

from fold.core.core import Service
from fold.core.modules.upload.client import StorageClient
from fold.core.modules.upload.models import (
    AvatarThumbnails,
    AvatarView,
    FileListView,
    FileUpload,
    FileView,
    StoredFile,
    is_image_mime_type,
)
from fold.core.modules.upload.urls import FileUrls
from fold.errors import ValidationError

logger = structlog.get_logger(__name__)

MAX_FILES_PER_UPLOAD = 10
AVATAR_MAX_SIZE = 5 * 1024 * 1024  # 5MB
PREVIEW_SIZE = 400
PREVIEW_QUALITY = 80
AVATAR_THUMBNAIL_SIZES = {"small": 50, "medium": 150, "large": 400}


def generate_file_id() -> str:
    return ID.unique()


def validate_batch_size(count: int) -> None:
    if count == 0:
        raise ValidationError("No valid files provided")
    if count > MAX_FILES_PER_UPLOAD:
        raise ValidationError(f"Maximum {MAX_FILES_PER_UPLOAD} files allowed per upload")


class UploadService(Service):
    """Forwards uploads to the storage provider and builds file URLs."""

    @property
    def storage(self) -> StorageClient:
        return self.core.storage_client

    @property
    def urls(self) -> FileUrls:
        config = self.core.config
        return FileUrls(
            endpoint=config.appwrite_endpoint,
            project_id=config.appwrite_project_id,
            bucket_id=config.appwrite_bucket_id,
        )

    def to_view(self, stored: StoredFile) -> FileView:
        urls = self.urls
        preview_url = None
        if is_image_mime_type(stored.mime_type):
            preview_url = urls.preview(stored.id, PREVIEW_SIZE, PREVIEW_SIZE, PREVIEW_QUALITY)
        return FileView(
            id=stored.id,
            name=stored.name,
            mime_type=stored.mime_type,
            size=stored.size,
            url=urls.view(stored.id),
            preview_url=preview_url,
            download_url=urls.download(stored.id),
            created_at=stored.created_at,
        )

    async def _store(self, upload: FileUpload) -> StoredFile:
        stored = await self.storage.create_file(generate_file_id(), upload)
        logger.debug("file_uploaded", file_id=stored.id, mime_type=stored.mime_type, size=stored.size)
        return stored

    async def upload_file(self, upload: FileUpload) -> FileView:
        return self.to_view(await self._store(upload))

    async def upload_files(self, uploads: list[FileUpload]) -> list[FileView]:
        """Upload a batch concurrently, all or nothing.

        If any upload fails, the files that did reach the provider are
        deleted again and the first failure is raised.

        Raises:
            ValidationError: If the batch is empty or larger than 10 files
        """
        validate_batch_size(len(uploads))

        results = await asyncio.gather(*(self._store(upload) for upload in uploads), return_exceptions=True)
        stored = [result for result in results if isinstance(result, StoredFile)]
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            await self._rollback(stored)
            raise failures[0]
        return [self.to_view(item) for item in stored]

    async def _rollback(self, stored: list[StoredFile]) -> None:
        """Delete files uploaded as part of a failed batch."""
        results = await asyncio.gather(*(self.storage.delete_file(item.id) for item in stored), return_exceptions=True)
        for item, result in zip(stored, results, strict=True):
            if isinstance(result, BaseException):
                logger.error("upload_rollback_failed", file_id=item.id, error=str(result))
        logger.warning("upload_batch_rolled_back", deleted=sum(1 for r in results if r is None), total=len(stored))

    async def upload_avatar(self, upload: FileUpload) -> AvatarView:
        """Upload an image of at most 5MB and return fixed-size previews.

        Raises:
            ValidationError: If the file is not an image or is too large
        """
        if not upload.is_image:
            raise ValidationError("Only image files are allowed for avatars")
        if upload.size > AVATAR_MAX_SIZE:
            raise ValidationError("Avatar must be less than 5MB")

        stored = await self._store(upload)
        urls = self.urls
        thumbnails = {
            name: urls.preview(stored.id, size, size, PREVIEW_QUALITY) for name, size in AVATAR_THUMBNAIL_SIZES.items()
        }
        return AvatarView(
            id=stored.id,
            name=stored.name,
            mime_type=stored.mime_type,
            size=stored.size,
            url=urls.view(stored.id),
            thumbnails=AvatarThumbnails(**thumbnails),
            created_at=stored.created_at,
        )

    async def get_file(self, file_id: str) -> FileView:
        return self.to_view(await self.storage.get_file(file_id))

    async def delete_file(self, file_id: str) -> None:
        await self.storage.delete_file(file_id)
        logger.debug("file_deleted", file_id=file_id)

    async def list_files(self, limit: int, offset: int) -> FileListView:
        result = await self.storage.list_files(limit, offset)
        return FileListView(
            files=[self.to_view(item) for item in result.files],
            total=result.total,
            limit=limit,
            offset=offset,
        )

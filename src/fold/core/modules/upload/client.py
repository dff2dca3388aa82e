"""Storage provider client for the Appwrite Storage API."""

import asyncio
from typing import Any, Protocol

import structlog
from appwrite.client import Client
from appwrite.exception import AppwriteException
from appwrite.input_file import InputFile
from appwrite.query import Query
from appwrite.services.storage import Storage

from fold.core.modules.upload.models import FileUpload, StoredFile, StoredFileList
from fold.errors import NotFoundError, UpstreamError

logger = structlog.get_logger(__name__)


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    async def create_file(self, file_id: str, upload: FileUpload) -> StoredFile: ...

    async def get_file(self, file_id: str) -> StoredFile: ...

    async def delete_file(self, file_id: str) -> None: ...

    async def list_files(self, limit: int, offset: int) -> StoredFileList: ...


def translate_provider_error(error: AppwriteException) -> Exception:
    """Map an Appwrite failure to the error shown to the API caller."""
    if error.code == 404:
        return NotFoundError("File not found")
    return UpstreamError(error.message or "Storage provider error")


class AppwriteStorageClient:
    """Appwrite Storage bound to a single bucket.

    The SDK is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, endpoint: str, project_id: str, api_key: str, bucket_id: str) -> None:
        client = Client()
        client.set_endpoint(endpoint)
        client.set_project(project_id)
        client.set_key(api_key)
        self._storage = Storage(client)
        self.bucket_id = bucket_id

    async def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(getattr(self._storage, method), self.bucket_id, *args, **kwargs)
        except AppwriteException as e:
            logger.warning("storage_call_failed", method=method, code=e.code, error=e.message)
            raise translate_provider_error(e) from e

    async def create_file(self, file_id: str, upload: FileUpload) -> StoredFile:
        input_file = InputFile.from_bytes(upload.content, upload.filename, upload.mime_type)
        result = await self._call("create_file", file_id, input_file)
        return StoredFile.model_validate(result)

    async def get_file(self, file_id: str) -> StoredFile:
        return StoredFile.model_validate(await self._call("get_file", file_id))

    async def delete_file(self, file_id: str) -> None:
        await self._call("delete_file", file_id)

    async def list_files(self, limit: int, offset: int) -> StoredFileList:
        result = await self._call("list_files", queries=[Query.limit(limit), Query.offset(offset)])
        return StoredFileList.model_validate(result)

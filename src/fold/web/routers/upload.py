from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import UploadFile

from fold.core.modules.upload.models import AvatarView, FileListView, FileUpload, FileView
from fold.core.modules.upload.service import validate_batch_size
from fold.errors import ValidationError
from fold.web.deps import AppDep, require_auth
from fold.web.openapi import DataResponse, ErrorResponse, SuccessResponse

router = APIRouter(
    tags=["upload"],
    dependencies=[Depends(require_auth)],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


def multipart_body(field: str, multiple: bool = False) -> dict[str, Any]:
    """OpenAPI request body for routes that parse the multipart form themselves."""
    file_schema: dict[str, Any] = {"type": "string", "format": "binary"}
    if multiple:
        file_schema = {"type": "array", "items": file_schema, "maxItems": 10}
    return {
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {
                    "schema": {"type": "object", "properties": {field: file_schema}, "required": [field]}
                }
            },
        }
    }


async def read_upload(file: UploadFile) -> FileUpload:
    content = await file.read()
    return FileUpload(
        filename=file.filename or "unnamed",
        content=content,
        mime_type=file.content_type or "application/octet-stream",
    )


@router.post(
    "/upload",
    summary="Upload file",
    description="Upload a single file under the form key `file`.",
    operation_id="uploadFile",
    openapi_extra=multipart_body("file"),
    responses={
        400: {"model": ErrorResponse, "description": "No file provided"},
        500: {"model": ErrorResponse, "description": "Storage provider error"},
    },
)
async def upload_file(request: Request, app: AppDep) -> DataResponse[FileView]:
    async with request.form() as form:
        file = form.get("file")
        if not isinstance(file, UploadFile):
            raise ValidationError("No file provided. Please upload a file with key 'file'")
        upload = await read_upload(file)
    return DataResponse[FileView](message="File uploaded successfully", data=await app.upload_file(upload))


@router.post(
    "/upload/multiple",
    summary="Upload files",
    description="Upload up to 10 files under the form key `files`. Either all files are stored or none.",
    operation_id="uploadFiles",
    openapi_extra=multipart_body("files", multiple=True),
    responses={
        400: {"model": ErrorResponse, "description": "No files, no valid files or more than 10 files"},
        500: {"model": ErrorResponse, "description": "Storage provider error, uploaded files were rolled back"},
    },
)
async def upload_files(request: Request, app: AppDep) -> DataResponse[list[FileView]]:
    async with request.form() as form:
        entries = form.getlist("files")
        if not entries:
            raise ValidationError("No files provided. Please upload files with key 'files'")
        files = [entry for entry in entries if isinstance(entry, UploadFile)]
        validate_batch_size(len(files))
        uploads = [await read_upload(file) for file in files]

    views = await app.upload_files(uploads)
    return DataResponse[list[FileView]](message=f"{len(views)} file(s) uploaded successfully", data=views)


@router.post(
    "/upload/avatar",
    summary="Upload avatar",
    description="Upload an image of at most 5MB under the form key `avatar`. Returns 50, 150 and 400 pixel previews.",
    operation_id="uploadAvatar",
    openapi_extra=multipart_body("avatar"),
    responses={
        400: {"model": ErrorResponse, "description": "Missing file, not an image or larger than 5MB"},
        500: {"model": ErrorResponse, "description": "Storage provider error"},
    },
)
async def upload_avatar(request: Request, app: AppDep) -> DataResponse[AvatarView]:
    async with request.form() as form:
        file = form.get("avatar")
        if not isinstance(file, UploadFile):
            raise ValidationError("No avatar provided. Please upload an image with key 'avatar'")
        upload = await read_upload(file)
    return DataResponse[AvatarView](message="Avatar uploaded successfully", data=await app.upload_avatar(upload))


@router.get(
    "/upload/list/all",
    summary="List files",
    description="List files in the storage bucket, paginated by the provider.",
    operation_id="listFiles",
)
async def list_files(
    app: AppDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 25,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> DataResponse[FileListView]:
    return DataResponse[FileListView](data=await app.list_files(limit, offset))


@router.get(
    "/upload/{file_id}",
    summary="Get file",
    operation_id="getFile",
    responses={404: {"model": ErrorResponse, "description": "File not found"}},
)
async def get_file(file_id: str, app: AppDep) -> DataResponse[FileView]:
    return DataResponse[FileView](data=await app.get_file(file_id))


@router.delete(
    "/upload/{file_id}",
    summary="Delete file",
    operation_id="deleteFile",
    responses={404: {"model": ErrorResponse, "description": "File not found"}},
)
async def delete_file(file_id: str, app: AppDep) -> SuccessResponse:
    await app.delete_file(file_id)
    return SuccessResponse(message="File deleted successfully")

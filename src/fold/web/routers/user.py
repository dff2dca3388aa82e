from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import AfterValidator, Field, HttpUrl, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from fold.core.modules.session.models import SessionView
from fold.core.modules.user.models import UserView
from fold.core.modules.user.validators import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from fold.core.views import CamelModel
from fold.web.deps import AppDep, AuthDep, require_auth
from fold.web.openapi import DataResponse, ErrorResponse, SuccessResponse

router = APIRouter(
    tags=["user"],
    dependencies=[Depends(require_auth)],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


_http_url = TypeAdapter(HttpUrl)


def check_http_url(value: str) -> str:
    """Accept only http(s) URLs, keeping the string exactly as sent."""
    try:
        _http_url.validate_python(value)
    except PydanticValidationError as e:
        raise ValueError("Invalid url") from e
    return value


AvatarUrl = Annotated[str, AfterValidator(check_http_url)]


class UpdateProfileRequest(CamelModel):
    """Partial profile update. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100, description="Display name")
    avatar: AvatarUrl | None = Field(None, description="Avatar URL, null removes it")

    model_config = {"json_schema_extra": {"examples": [{"name": "Jane Doe"}, {"avatar": None}]}}

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("Name cannot be null")
        return value


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


@router.get(
    "/user/me",
    summary="Get profile",
    operation_id="getProfile",
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_profile(app: AppDep, auth: AuthDep) -> DataResponse[UserView]:
    return DataResponse[UserView](data=await app.get_profile(auth))


@router.patch(
    "/user/me",
    summary="Update profile",
    description="Update name and/or avatar. Only the supplied fields are written.",
    operation_id="updateProfile",
    responses={400: {"model": ErrorResponse, "description": "Validation failed"}},
)
async def update_profile(req: UpdateProfileRequest, app: AppDep, auth: AuthDep) -> DataResponse[UserView]:
    changes = req.model_dump(mode="json", exclude_unset=True)
    user = await app.update_profile(auth, changes)
    return DataResponse[UserView](message="Profile updated successfully", data=user)


@router.post(
    "/user/change-password",
    summary="Change password",
    description="Change the password and sign out every other session.",
    operation_id="changeOwnPassword",
    responses={400: {"model": ErrorResponse, "description": "Password change failed"}},
)
async def change_password(req: ChangePasswordRequest, app: AppDep, auth: AuthDep) -> SuccessResponse:
    await app.change_own_password(auth, req.current_password, req.new_password)
    return SuccessResponse(message="Password changed successfully. Other sessions have been revoked.")


@router.delete(
    "/user/me",
    summary="Delete account",
    description="Permanently delete the user together with sessions, accounts and journal content.",
    operation_id="deleteAccount",
)
async def delete_account(app: AppDep, auth: AuthDep) -> SuccessResponse:
    await app.delete_account(auth)
    return SuccessResponse(message="Account deleted successfully")


@router.get("/user/sessions", summary="List sessions", operation_id="listUserSessions")
async def list_sessions(app: AppDep, auth: AuthDep) -> DataResponse[list[SessionView]]:
    return DataResponse[list[SessionView]](data=await app.list_sessions(auth))


@router.post(
    "/user/revoke-sessions",
    summary="Revoke other sessions",
    description="Sign out every device except the current one.",
    operation_id="revokeUserSessions",
)
async def revoke_sessions(app: AppDep, auth: AuthDep) -> SuccessResponse:
    await app.revoke_other_sessions(auth)
    return SuccessResponse(message="All other sessions have been revoked")

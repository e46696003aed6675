from uuid import UUID

from fastapi import APIRouter
from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.user.models import UserView
from equizz.web.deps import AppDep, AuthDep
from equizz.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


class ChangePasswordRequest(ApiModel):
    """Request to change user password."""

    old_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


class ChangePasswordResponse(ApiModel):
    message: str
    revoked_sessions: int = Field(..., description="Other devices signed out")


class UpdateClassRequest(ApiModel):
    class_id: UUID = Field(..., description="New class")


@router.put(
    "/profile/password",
    summary="Change password",
    description="Change the password of the current user and sign out every other device.",
    operation_id="changePassword",
    responses={
        200: {"description": "Password changed successfully"},
        400: {"model": ErrorResponse, "description": "Invalid current or new password"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def change_password(request: ChangePasswordRequest, app: AppDep, auth: AuthDep) -> ChangePasswordResponse:
    revoked = await app.change_password(auth, request.old_password, request.new_password)
    return ChangePasswordResponse(message="Password changed", revoked_sessions=revoked)


@router.put(
    "/profile/class",
    summary="Change class",
    description="Move the current student to another class.",
    operation_id="updateMyClass",
    responses={
        200: {"description": "Updated user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Students only"},
        404: {"model": ErrorResponse, "description": "Class not found"},
    },
)
async def update_class(request: UpdateClassRequest, app: AppDep, auth: AuthDep) -> UserView:
    return await app.update_my_class(auth, request.class_id)

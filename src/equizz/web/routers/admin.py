from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.user.models import UserView
from equizz.web.deps import AppDep, AuthDep
from equizz.web.openapi import ErrorResponse

router = APIRouter(tags=["admin"])


class CreateStudentRequest(ApiModel):
    email: str = Field(..., description="Institutional email address")
    password: str = Field(..., description="Initial password, at least 6 characters")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    matricule: str = Field(..., min_length=1, description="Student registration number")
    class_id: UUID | None = Field(None, description="Class to enrol in")


class ResetPasswordRequest(ApiModel):
    new_password: str = Field(..., min_length=1, description="New password")


class RevokedSessionsResponse(ApiModel):
    message: str
    revoked_sessions: int


@router.get(
    "/admin/students",
    summary="List students",
    description="List student accounts, optionally limited to one class.",
    operation_id="listStudents",
    responses={
        200: {"description": "Students sorted by last name"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_students(
    app: AppDep, auth: AuthDep, class_id: Annotated[UUID | None, Query(alias="classId")] = None
) -> list[UserView]:
    return await app.list_students(auth, class_id)


@router.post(
    "/admin/students",
    summary="Create student",
    description="Create a student account.",
    operation_id="createStudent",
    status_code=201,
    responses={
        201: {"description": "Student created"},
        400: {"model": ErrorResponse, "description": "Invalid data or account already exists"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def create_student(request: CreateStudentRequest, app: AppDep, auth: AuthDep) -> UserView:
    return await app.create_student(
        auth,
        request.email,
        request.password,
        request.first_name,
        request.last_name,
        request.matricule,
        request.class_id,
    )


@router.delete(
    "/admin/students/{user_id}",
    summary="Delete student",
    description="Delete a student account and revoke all of its sessions. Anonymous submissions are kept.",
    operation_id="deleteStudent",
    status_code=204,
    responses={
        204: {"description": "Student deleted"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Student not found"},
    },
)
async def delete_student(user_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.delete_student(auth, user_id)


@router.put(
    "/admin/students/{user_id}/password",
    summary="Reset student password",
    description="Set a new password for a student and sign the student out everywhere.",
    operation_id="resetStudentPassword",
    responses={
        200: {"description": "Password reset"},
        400: {"model": ErrorResponse, "description": "Invalid password"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Student not found"},
    },
)
async def reset_student_password(
    user_id: UUID, request: ResetPasswordRequest, app: AppDep, auth: AuthDep
) -> RevokedSessionsResponse:
    revoked = await app.reset_student_password(auth, user_id, request.new_password)
    return RevokedSessionsResponse(message="Password reset", revoked_sessions=revoked)


@router.post(
    "/admin/users/{user_id}/sessions/revoke",
    summary="Revoke user sessions",
    description="Force logout of a user on every device.",
    operation_id="revokeUserSessions",
    responses={
        200: {"description": "Sessions revoked"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def revoke_user_sessions(user_id: UUID, app: AppDep, auth: AuthDep) -> RevokedSessionsResponse:
    revoked = await app.revoke_user_sessions(auth, user_id)
    return RevokedSessionsResponse(message=f"Revoked {revoked} session(s)", revoked_sessions=revoked)

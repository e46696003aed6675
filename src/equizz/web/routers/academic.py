from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.academic.models import AcademicYear, Course, SchoolClass
from equizz.web.deps import AppDep, AuthDep
from equizz.web.openapi import ErrorResponse

router = APIRouter(tags=["academic"])

ADMIN_ONLY = {403: {"model": ErrorResponse, "description": "Admin privileges required"}}
NOT_FOUND = {404: {"model": ErrorResponse, "description": "Not found"}}
INVALID = {400: {"model": ErrorResponse, "description": "Invalid data or still referenced"}}


class CreateYearRequest(ApiModel):
    label: str = Field(..., min_length=1, description="e.g. 2024-2025")
    start_date: datetime
    end_date: datetime
    is_current: bool = False


class CreateClassRequest(ApiModel):
    name: str = Field(..., min_length=1)
    academic_year_id: UUID
    level: str = ""


class CreateCourseRequest(ApiModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    class_id: UUID
    teacher: str = ""



class UpdateYearRequest(ApiModel):
    """Fields to change; omitted fields keep their value."""

    label: str | None = Field(None, min_length=1)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_current: bool | None = None


class UpdateClassRequest(ApiModel):
    name: str | None = Field(None, min_length=1)
    level: str | None = None


class UpdateCourseRequest(ApiModel):
    code: str | None = Field(None, min_length=1)
    name: str | None = Field(None, min_length=1)
    teacher: str | None = None

# --- Academic years ---


@router.get("/admin/years", summary="List academic years", operation_id="listYears", responses=ADMIN_ONLY)
async def list_years(app: AppDep, auth: AuthDep) -> list[AcademicYear]:
    return await app.list_years(auth)


@router.post(
    "/admin/years",
    summary="Create academic year",
    operation_id="createYear",
    status_code=201,
    responses={**ADMIN_ONLY, **INVALID},
)
async def create_year(request: CreateYearRequest, app: AppDep, auth: AuthDep) -> AcademicYear:
    return await app.create_year(auth, request.label, request.start_date, request.end_date, request.is_current)


@router.get(
    "/admin/years/{year_id}", summary="Get academic year", operation_id="getYear", responses={**ADMIN_ONLY, **NOT_FOUND}
)
async def get_year(year_id: UUID, app: AppDep, auth: AuthDep) -> AcademicYear:
    return await app.get_year(auth, year_id)


@router.patch(
    "/admin/years/{year_id}",
    summary="Update academic year",
    description="Partially update an academic year. Marking it current clears the flag on every other year.",
    operation_id="updateYear",
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def update_year(year_id: UUID, request: UpdateYearRequest, app: AppDep, auth: AuthDep) -> AcademicYear:
    return await app.update_year(auth, year_id, request.label, request.start_date, request.end_date, request.is_current)


@router.delete(
    "/admin/years/{year_id}",
    summary="Delete academic year",
    operation_id="deleteYear",
    status_code=204,
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def delete_year(year_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.delete_year(auth, year_id)


# --- Classes ---


@router.get("/admin/classes", summary="List classes", operation_id="listClasses", responses=ADMIN_ONLY)
async def list_classes(
    app: AppDep, auth: AuthDep, academic_year_id: Annotated[UUID | None, Query(alias="academicYearId")] = None
) -> list[SchoolClass]:
    return await app.list_classes(auth, academic_year_id)


@router.post(
    "/admin/classes",
    summary="Create class",
    operation_id="createClass",
    status_code=201,
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def create_class(request: CreateClassRequest, app: AppDep, auth: AuthDep) -> SchoolClass:
    return await app.create_class(auth, request.name, request.academic_year_id, request.level)


@router.get(
    "/admin/classes/{class_id}", summary="Get class", operation_id="getClass", responses={**ADMIN_ONLY, **NOT_FOUND}
)
async def get_class(class_id: UUID, app: AppDep, auth: AuthDep) -> SchoolClass:
    return await app.get_class(auth, class_id)


@router.patch(
    "/admin/classes/{class_id}",
    summary="Update class",
    operation_id="updateClass",
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def update_class(class_id: UUID, request: UpdateClassRequest, app: AppDep, auth: AuthDep) -> SchoolClass:
    return await app.update_class(auth, class_id, request.name, request.level)


@router.delete(
    "/admin/classes/{class_id}",
    summary="Delete class",
    operation_id="deleteClass",
    status_code=204,
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def delete_class(class_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.delete_class(auth, class_id)


# --- Courses ---


@router.get("/admin/courses", summary="List courses", operation_id="listCourses", responses=ADMIN_ONLY)
async def list_courses(
    app: AppDep, auth: AuthDep, class_id: Annotated[UUID | None, Query(alias="classId")] = None
) -> list[Course]:
    return await app.list_courses(auth, class_id)


@router.post(
    "/admin/courses",
    summary="Create course",
    operation_id="createCourse",
    status_code=201,
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def create_course(request: CreateCourseRequest, app: AppDep, auth: AuthDep) -> Course:
    return await app.create_course(auth, request.code, request.name, request.class_id, request.teacher)


@router.get(
    "/admin/courses/{course_id}", summary="Get course", operation_id="getCourse", responses={**ADMIN_ONLY, **NOT_FOUND}
)
async def get_course(course_id: UUID, app: AppDep, auth: AuthDep) -> Course:
    return await app.get_course(auth, course_id)


@router.patch(
    "/admin/courses/{course_id}",
    summary="Update course",
    operation_id="updateCourse",
    responses={**ADMIN_ONLY, **NOT_FOUND, **INVALID},
)
async def update_course(course_id: UUID, request: UpdateCourseRequest, app: AppDep, auth: AuthDep) -> Course:
    return await app.update_course(auth, course_id, request.code, request.name, request.teacher)


@router.delete(
    "/admin/courses/{course_id}",
    summary="Delete course",
    operation_id="deleteCourse",
    status_code=204,
    responses={**ADMIN_ONLY, **NOT_FOUND},
)
async def delete_course(course_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.delete_course(auth, course_id)

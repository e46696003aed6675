from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.quiz.models import Quiz, QuizQuestion, QuizStatus, QuizType
from equizz.web.deps import AppDep, AuthDep
from equizz.web.openapi import ErrorResponse

router = APIRouter(tags=["quizzes"])


class CreateQuizRequest(ApiModel):
    """New draft quiz."""

    title: str = Field(..., min_length=1)
    description: str = ""
    academic_year_id: UUID
    class_id: UUID
    course_id: UUID | None = None
    type: QuizType = Field(..., description="Evaluation period")
    start_date: datetime
    end_date: datetime
    questions: list[QuizQuestion] = Field(default_factory=list)



class UpdateQuizRequest(ApiModel):
    """Fields to change on a draft quiz; omitted fields keep their value."""

    title: str | None = Field(None, min_length=1)
    description: str | None = None
    course_id: UUID | None = None
    type: QuizType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    questions: list[QuizQuestion] | None = Field(None, description="Replaces the whole question list")

@router.get(
    "/quizzes",
    summary="List quizzes",
    description="List quizzes, newest first, with optional filters.",
    operation_id="listQuizzes",
    responses={403: {"model": ErrorResponse, "description": "Admin privileges required"}},
)
async def list_quizzes(
    app: AppDep,
    auth: AuthDep,
    class_id: Annotated[UUID | None, Query(alias="classId")] = None,
    course_id: Annotated[UUID | None, Query(alias="courseId")] = None,
    academic_year_id: Annotated[UUID | None, Query(alias="academicYearId")] = None,
    status: QuizStatus | None = None,
) -> list[Quiz]:
    return await app.list_quizzes(auth, class_id, course_id, academic_year_id, status)


@router.post(
    "/quizzes",
    summary="Create quiz",
    description="Create a quiz in draft status.",
    operation_id="createQuiz",
    status_code=201,
    responses={
        201: {"description": "Quiz created"},
        400: {"model": ErrorResponse, "description": "Invalid quiz"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Academic year, class or course not found"},
    },
)
async def create_quiz(request: CreateQuizRequest, app: AppDep, auth: AuthDep) -> Quiz:
    return await app.create_quiz(
        auth,
        request.title,
        request.academic_year_id,
        request.class_id,
        request.type,
        request.start_date,
        request.end_date,
        request.questions,
        request.description,
        request.course_id,
    )


@router.get(
    "/quizzes/{quiz_id}",
    summary="Get quiz",
    operation_id="getQuiz",
    responses={
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Quiz not found"},
    },
)
async def get_quiz(quiz_id: UUID, app: AppDep, auth: AuthDep) -> Quiz:
    return await app.get_quiz(auth, quiz_id)


@router.patch(
    "/quizzes/{quiz_id}",
    summary="Update quiz",
    description="Partially update a quiz. Only draft quizzes can be edited.",
    operation_id="updateQuiz",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid data or quiz not in draft"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Quiz or course not found"},
    },
)
async def update_quiz(quiz_id: UUID, request: UpdateQuizRequest, app: AppDep, auth: AuthDep) -> Quiz:
    return await app.update_quiz(
        auth,
        quiz_id,
        request.title,
        request.description,
        request.type,
        request.start_date,
        request.end_date,
        request.questions,
        request.course_id,
    )


@router.delete(
    "/quizzes/{quiz_id}",
    summary="Delete quiz",
    description="Delete a quiz together with its submissions and participation logs.",
    operation_id="deleteQuiz",
    status_code=204,
    responses={
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Quiz not found"},
    },
)
async def delete_quiz(quiz_id: UUID, app: AppDep, auth: AuthDep) -> None:
    await app.delete_quiz(auth, quiz_id)


@router.post(
    "/quizzes/{quiz_id}/publish",
    summary="Publish quiz",
    description="Open a quiz for student submissions.",
    operation_id="publishQuiz",
    responses={
        400: {"model": ErrorResponse, "description": "Quiz has no questions"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Quiz not found"},
    },
)
async def publish_quiz(quiz_id: UUID, app: AppDep, auth: AuthDep) -> Quiz:
    return await app.publish_quiz(auth, quiz_id)


@router.post(
    "/quizzes/{quiz_id}/unpublish",
    summary="Unpublish quiz",
    description="Move a quiz back to draft; students can no longer submit it.",
    operation_id="unpublishQuiz",
    responses={
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Quiz not found"},
    },
)
async def unpublish_quiz(quiz_id: UUID, app: AppDep, auth: AuthDep) -> Quiz:
    return await app.unpublish_quiz(auth, quiz_id)

from uuid import UUID

from fastapi import APIRouter
from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.quiz.models import Quiz
from equizz.core.modules.submission.models import Answer
from equizz.web.deps import AppDep, AuthDep
from equizz.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["student"])


class SubmitQuizRequest(ApiModel):
    quiz_id: UUID
    answers: list[Answer] = Field(..., description="One answer per question")


@router.get(
    "/student/quizzes",
    summary="Available quizzes",
    description="Published quizzes of the student's class that have not been answered yet.",
    operation_id="getMyQuizzes",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Students only"},
    },
)
async def get_my_quizzes(app: AppDep, auth: AuthDep) -> list[Quiz]:
    return await app.get_my_quizzes(auth)


@router.post(
    "/student/submit",
    summary="Submit quiz",
    description="Submit answers to a quiz. Each quiz can be submitted once; answers are stored anonymously.",
    operation_id="submitQuiz",
    status_code=201,
    responses={
        201: {"description": "Submission recorded"},
        400: {"model": ErrorResponse, "description": "Invalid answers or quiz already submitted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Students only"},
        404: {"model": ErrorResponse, "description": "Quiz not found"},
        503: {"model": ErrorResponse, "description": "Submission could not be stored"},
    },
)
async def submit_quiz(request: SubmitQuizRequest, app: AppDep, auth: AuthDep) -> MessageResponse:
    await app.submit_quiz(auth, request.quiz_id, request.answers)
    return MessageResponse(message="Quiz submitted")

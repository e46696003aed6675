from uuid import UUID

from fastapi import APIRouter

from equizz.core.modules.analysis.models import ClassStats, CourseStats, GlobalStats, QuizStats
from equizz.web.deps import AppDep, AuthDep
from equizz.web.openapi import ErrorResponse

router = APIRouter(tags=["stats"])


@router.get(
    "/stats/global",
    summary="Global statistics",
    description="Published quizzes, questions, responses and overall participation.",
    operation_id="getGlobalStats",
    responses={403: {"model": ErrorResponse, "description": "Admin privileges required"}},
)
async def get_global_stats(app: AppDep, auth: AuthDep) -> GlobalStats:
    return await app.get_global_stats(auth)


@router.get(
    "/stats/quizzes/{quiz_id}",
    summary="Quiz statistics",
    description="Participation, sentiment distribution and per-question breakdown of one quiz.",
    operation_id="getQuizStats",
    responses={
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Quiz not found"},
    },
)
async def get_quiz_stats(quiz_id: UUID, app: AppDep, auth: AuthDep) -> QuizStats:
    return await app.get_quiz_stats(auth, quiz_id)


@router.get(
    "/stats/courses/{course_id}",
    summary="Course statistics",
    description="Responses, participation and per-question breakdown across every quiz of a course.",
    operation_id="getCourseStats",
    responses={
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Course not found"},
    },
)
async def get_course_stats(course_id: UUID, app: AppDep, auth: AuthDep) -> CourseStats:
    return await app.get_course_stats(auth, course_id)


@router.get(
    "/stats/classes/{class_id}",
    summary="Class statistics",
    description="Students, courses, quizzes, responses and participation of a class.",
    operation_id="getClassStats",
    responses={
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "Class not found"},
    },
)
async def get_class_stats(class_id: UUID, app: AppDep, auth: AuthDep) -> ClassStats:
    return await app.get_class_stats(auth, class_id)

from equizz.web.routers.academic import router as academic_router
from equizz.web.routers.admin import router as admin_router
from equizz.web.routers.auth import router as auth_router
from equizz.web.routers.profile import router as profile_router
from equizz.web.routers.quizzes import router as quizzes_router
from equizz.web.routers.stats import router as stats_router
from equizz.web.routers.student import router as student_router

__all__ = [
    "academic_router",
    "admin_router",
    "auth_router",
    "profile_router",
    "quizzes_router",
    "stats_router",
    "student_router",
]

"""Shared pytest fixtures.

Services run against `FakeDatabase`, an in-memory double of the async pymongo
API, so the suite needs no MongoDB server.
"""

from datetime import UTC, datetime
from uuid import UUID

import pytest
from fake_mongo import FakeDatabase
from httpx import ASGITransport, AsyncClient

from equizz.app import App
from equizz.config import Config
from equizz.core.core import Core
from equizz.core.modules.academic.models import AcademicYear, SchoolClass
from equizz.core.modules.quiz.models import QuestionType, Quiz, QuizQuestion, QuizType
from equizz.core.modules.session.models import ClientInfo
from equizz.core.modules.user.models import User, UserRole
from equizz.web.server import create_fastapi_app

ADMIN_EMAIL = "admin@institutsaintjean.org"
ADMIN_PASSWORD = "admin123"
STUDENT_PASSWORD = "secret1"

CHROME_ON_WINDOWS = ClientInfo(
    user_agent=(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    ip="10.0.0.1",
)


@pytest.fixture
def config() -> Config:
    return Config(
        _env_file=None,
        database_url="mongodb://localhost:27017/equizz_test",
        jwt_secret="test-secret",
        session_cleanup_interval_hours=0,
        default_admin_email=ADMIN_EMAIL,
        default_admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
async def app(config, database):
    """Started application over the in-memory database."""
    app = App(config, database)
    async with app.lifespan():
        yield app


@pytest.fixture
def core(app) -> Core:
    return app.core


@pytest.fixture
async def client(app, config):
    """HTTP client bound to the FastAPI app; shares the already started App."""
    fastapi_app = create_fastapi_app(app, config)
    fastapi_app.state.app = app
    fastapi_app.state.config = config
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def school_class(core) -> SchoolClass:
    year: AcademicYear = await core.services.academic.create_year(
        "2024-2025", datetime(2024, 9, 1, tzinfo=UTC), datetime(2025, 7, 31, tzinfo=UTC), is_current=True
    )
    return await core.services.academic.create_class("L3 Informatique", year.id, level="L3")


@pytest.fixture
async def student(core, school_class) -> User:
    return await core.services.user.create_user(
        "jean.dupont@institutsaintjean.org",
        STUDENT_PASSWORD,
        "Jean",
        "Dupont",
        role=UserRole.STUDENT,
        matricule="ISJ2024001",
        class_id=school_class.id,
    )


@pytest.fixture
async def admin(core) -> User:
    user = await core.services.user.get_user_by_identifier(ADMIN_EMAIL)
    assert user is not None
    return user


@pytest.fixture
async def published_quiz(core, school_class) -> Quiz:
    """Published quiz with one question of each type."""
    quiz = await core.services.quiz.create_quiz(
        "Evaluation Algorithmique",
        school_class.academic_year_id,
        school_class.id,
        QuizType.MI_PARCOURS,
        datetime(2024, 11, 1, tzinfo=UTC),
        datetime(2024, 11, 15, tzinfo=UTC),
        [
            QuizQuestion(
                id=UUID("00000000-0000-0000-0000-000000000001"),
                text="Le rythme du cours",
                type=QuestionType.MCQ,
                options=["Trop lent", "Adapté", "Trop rapide"],
            ),
            QuizQuestion(
                id=UUID("00000000-0000-0000-0000-000000000002"),
                text="Recommanderiez-vous ce cours ?",
                type=QuestionType.CLOSED,
            ),
            QuizQuestion(
                id=UUID("00000000-0000-0000-0000-000000000003"),
                text="Commentaires",
                type=QuestionType.OPEN,
            ),
        ],
    )
    return await core.services.quiz.publish_quiz(quiz.id)

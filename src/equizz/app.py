from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from equizz import utils
from equizz.config import Config
from equizz.core.core import Core
from equizz.core.modules.academic.models import AcademicYear, Course, SchoolClass
from equizz.core.modules.access.service import AuthContext
from equizz.core.modules.analysis.models import ClassStats, CourseStats, GlobalStats, QuizStats
from equizz.core.modules.quiz.models import Quiz, QuizQuestion, QuizStatus, QuizType
from equizz.core.modules.session.models import AccessTokenGrant, ClientInfo, RevokedBy, SessionView, TokenPair
from equizz.core.modules.submission.models import Answer
from equizz.core.modules.user.models import UserRole, UserView
from equizz.errors import (
    AccessDeniedError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    UserNotFoundError,
    ValidationError,
)


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, database)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def core(self) -> Core:
        return self._core

    # === Authentication ===

    async def authenticate(self, access_token: str) -> AuthContext:
        """Resolve the identity behind an access token (used by the auth gateway)."""
        return await self._core.services.access.authenticate(access_token)

    async def login(self, identifier: str, password: str, client: ClientInfo) -> tuple[UserView, TokenPair]:
        """Authenticate by email or matricule and open a session."""
        user = await self._core.services.user.verify_credentials(identifier, password)
        if user is None:
            raise InvalidCredentialsError
        tokens = await self._core.services.session.generate_token_pair(user.id, client)
        return UserView.from_domain(user), tokens

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        matricule: str,
        class_id: UUID | None,
        client: ClientInfo,
    ) -> tuple[UserView, TokenPair]:
        """Self-registration for students with an institutional email address."""
        self._ensure_institutional_email(email)
        if class_id is not None:
            await self._core.services.academic.get_class(class_id)
        user = await self._core.services.user.create_user(
            email, password, first_name, last_name, role=UserRole.STUDENT, matricule=matricule, class_id=class_id
        )
        tokens = await self._core.services.session.generate_token_pair(user.id, client)
        return UserView.from_domain(user), tokens

    async def create_admin(
        self, auth: AuthContext, email: str, password: str, first_name: str, last_name: str
    ) -> UserView:
        """Create another administrator account (admin only)."""
        self._core.services.access.ensure_admin(auth)
        self._ensure_institutional_email(email)
        user = await self._core.services.user.create_user(email, password, first_name, last_name, role=UserRole.ADMIN)
        return UserView.from_domain(user)

    async def refresh_token(self, refresh_token: str, client: ClientInfo) -> AccessTokenGrant:
        """Exchange a refresh token for a new access token."""
        if not refresh_token:
            raise ValidationError("Refresh token required", code="REFRESH_TOKEN_REQUIRED")
        try:
            return await self._core.services.session.refresh_access_token(refresh_token, client)
        except UserNotFoundError as e:
            # The session is already revoked; report it like any other unusable refresh token
            raise InvalidRefreshTokenError(str(e)) from e

    async def logout(self, auth: AuthContext, logout_all: bool = False) -> tuple[str, int | None]:
        """End the current session, or every session of the user."""
        session = self._core.services.session
        if logout_all:
            count = await session.revoke_all_user_sessions(auth.user.id)
            return f"Logged out from {count} device(s)", count
        revoked = await session.revoke_session(auth.session_id)
        return ("Logged out" if revoked else "Session already inactive"), None

    async def get_sessions(self, auth: AuthContext) -> list[SessionView]:
        """Active sessions of the current user, the calling one flagged as current."""
        return await self._core.services.session.get_user_sessions(auth.user.id, auth.session_id)

    async def revoke_own_session(self, auth: AuthContext, session_id: UUID) -> None:
        """Revoke one of the current user's active sessions."""
        session = self._core.services.session
        if await session.find_active_session(session_id, auth.user.id) is None:
            raise NotFoundError("Session not found", code="SESSION_NOT_FOUND")
        await session.revoke_session(session_id, RevokedBy.USER, "Manual revocation")

    async def get_me(self, auth: AuthContext) -> UserView:
        return UserView.from_domain(auth.user)

    async def change_password(self, auth: AuthContext, old_password: str, new_password: str) -> int:
        """Change own password and sign out every other device. Returns sessions revoked."""
        await self._core.services.user.change_password(auth.user.id, old_password, new_password)
        return await self._core.services.session.revoke_all_user_sessions(
            auth.user.id, exclude_session_id=auth.session_id, revoked_by=RevokedBy.SECURITY, reason="Password changed"
        )

    async def update_my_class(self, auth: AuthContext, class_id: UUID) -> UserView:
        """Move the current student to another class."""
        self._core.services.access.ensure_student(auth)
        await self._core.services.academic.get_class(class_id)
        user = await self._core.services.user.update_class(auth.user.id, class_id)
        return UserView.from_domain(user)

    # === Student administration ===

    async def list_students(self, auth: AuthContext, class_id: UUID | None = None) -> list[UserView]:
        self._core.services.access.ensure_admin(auth)
        students = await self._core.services.user.list_students(class_id)
        return [UserView.from_domain(student) for student in students]

    async def create_student(
        self,
        auth: AuthContext,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        matricule: str,
        class_id: UUID | None,
    ) -> UserView:
        self._core.services.access.ensure_admin(auth)
        self._ensure_institutional_email(email)
        if class_id is not None:
            await self._core.services.academic.get_class(class_id)
        user = await self._core.services.user.create_user(
            email, password, first_name, last_name, role=UserRole.STUDENT, matricule=matricule, class_id=class_id
        )
        return UserView.from_domain(user)

    async def delete_student(self, auth: AuthContext, user_id: UUID) -> None:
        """Delete a student account and revoke all of its sessions (admin only)."""
        self._core.services.access.ensure_admin(auth)
        user = await self._core.services.user.get_user(user_id)
        if user.role != UserRole.STUDENT:
            raise ValidationError("Only student accounts can be deleted here")
        await self._core.services.session.revoke_all_user_sessions(
            user_id, revoked_by=RevokedBy.ADMIN, reason="Account deleted"
        )
        await self._core.services.user.delete_user(user_id)

    async def reset_student_password(self, auth: AuthContext, user_id: UUID, new_password: str) -> int:
        """Set a new password for a student and revoke every session of that student."""
        self._core.services.access.ensure_admin(auth)
        user = await self._core.services.user.get_user(user_id)
        if user.role != UserRole.STUDENT:
            raise ValidationError("Only student passwords can be reset here")
        await self._core.services.user.reset_password(user_id, new_password)
        return await self._core.services.session.revoke_all_user_sessions(
            user_id, revoked_by=RevokedBy.SECURITY, reason="Password reset"
        )

    async def revoke_user_sessions(self, auth: AuthContext, user_id: UUID) -> int:
        """Force logout of a user on every device (admin only)."""
        self._core.services.access.ensure_admin(auth)
        await self._core.services.user.get_user(user_id)
        return await self._core.services.session.revoke_all_user_sessions(
            user_id, revoked_by=RevokedBy.ADMIN, reason="Revoked by administrator"
        )

    # === Academic structure (admin only) ===

    async def create_year(
        self, auth: AuthContext, label: str, start_date: datetime, end_date: datetime, is_current: bool
    ) -> AcademicYear:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.create_year(label, start_date, end_date, is_current)

    async def list_years(self, auth: AuthContext) -> list[AcademicYear]:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.list_years()

    async def get_year(self, auth: AuthContext, year_id: UUID) -> AcademicYear:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.get_year(year_id)

    async def update_year(
        self,
        auth: AuthContext,
        year_id: UUID,
        label: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        is_current: bool | None = None,
    ) -> AcademicYear:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.update_year(year_id, label, start_date, end_date, is_current)

    async def delete_year(self, auth: AuthContext, year_id: UUID) -> None:
        self._core.services.access.ensure_admin(auth)
        await self._core.services.academic.delete_year(year_id)

    async def create_class(self, auth: AuthContext, name: str, academic_year_id: UUID, level: str) -> SchoolClass:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.create_class(name, academic_year_id, level)

    async def list_classes(self, auth: AuthContext, academic_year_id: UUID | None = None) -> list[SchoolClass]:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.list_classes(academic_year_id)

    async def get_class(self, auth: AuthContext, class_id: UUID) -> SchoolClass:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.get_class(class_id)

    async def update_class(
        self, auth: AuthContext, class_id: UUID, name: str | None = None, level: str | None = None
    ) -> SchoolClass:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.update_class(class_id, name, level)

    async def delete_class(self, auth: AuthContext, class_id: UUID) -> None:
        self._core.services.access.ensure_admin(auth)
        await self._core.services.academic.delete_class(class_id)

    async def create_course(self, auth: AuthContext, code: str, name: str, class_id: UUID, teacher: str) -> Course:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.create_course(code, name, class_id, teacher)

    async def list_courses(self, auth: AuthContext, class_id: UUID | None = None) -> list[Course]:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.list_courses(class_id)

    async def get_course(self, auth: AuthContext, course_id: UUID) -> Course:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.get_course(course_id)

    async def update_course(
        self,
        auth: AuthContext,
        course_id: UUID,
        code: str | None = None,
        name: str | None = None,
        teacher: str | None = None,
    ) -> Course:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.academic.update_course(course_id, code, name, teacher)

    async def delete_course(self, auth: AuthContext, course_id: UUID) -> None:
        self._core.services.access.ensure_admin(auth)
        await self._core.services.academic.delete_course(course_id)

    # === Quizzes (admin only) ===

    async def create_quiz(
        self,
        auth: AuthContext,
        title: str,
        academic_year_id: UUID,
        class_id: UUID,
        quiz_type: QuizType,
        start_date: datetime,
        end_date: datetime,
        questions: list[QuizQuestion],
        description: str = "",
        course_id: UUID | None = None,
    ) -> Quiz:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.quiz.create_quiz(
            title, academic_year_id, class_id, quiz_type, start_date, end_date, questions, description, course_id
        )

    async def list_quizzes(
        self,
        auth: AuthContext,
        class_id: UUID | None = None,
        course_id: UUID | None = None,
        academic_year_id: UUID | None = None,
        status: QuizStatus | None = None,
    ) -> list[Quiz]:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.quiz.list_quizzes(class_id, course_id, academic_year_id, status)

    async def get_quiz(self, auth: AuthContext, quiz_id: UUID) -> Quiz:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.quiz.get_quiz(quiz_id)

    async def update_quiz(
        self,
        auth: AuthContext,
        quiz_id: UUID,
        title: str | None = None,
        description: str | None = None,
        quiz_type: QuizType | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        questions: list[QuizQuestion] | None = None,
        course_id: UUID | None = None,
    ) -> Quiz:
        """Edit a draft quiz (admin only)."""
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.quiz.update_quiz(
            quiz_id, title, description, quiz_type, start_date, end_date, questions, course_id
        )

    async def delete_quiz(self, auth: AuthContext, quiz_id: UUID) -> None:
        self._core.services.access.ensure_admin(auth)
        await self._core.services.quiz.delete_quiz(quiz_id)

    async def publish_quiz(self, auth: AuthContext, quiz_id: UUID) -> Quiz:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.quiz.publish_quiz(quiz_id)

    async def unpublish_quiz(self, auth: AuthContext, quiz_id: UUID) -> Quiz:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.quiz.unpublish_quiz(quiz_id)

    # === Student quiz flow ===

    async def get_my_quizzes(self, auth: AuthContext) -> list[Quiz]:
        """Published quizzes of the student's class not answered yet."""
        student = self._core.services.access.ensure_student(auth)
        return await self._core.services.quiz.list_available_for_student(student)

    async def submit_quiz(self, auth: AuthContext, quiz_id: UUID, answers: list[Answer]) -> None:
        """Submit answers to a quiz once. Nothing identifying the student is stored with the answers."""
        student = self._core.services.access.ensure_student(auth)
        quiz = await self._core.services.quiz.get_quiz(quiz_id)
        if student.class_id != quiz.class_id:
            raise AccessDeniedError("Quiz is not assigned to your class", code="QUIZ_NOT_AVAILABLE")
        await self._core.services.submission.submit_quiz(student.id, quiz, answers)

    # === Statistics (admin only) ===

    async def get_global_stats(self, auth: AuthContext) -> GlobalStats:
        self._core.services.access.ensure_admin(auth)
        return await self._core.services.analysis.get_global_stats()

    async def get_quiz_stats(self, auth: AuthContext, quiz_id: UUID) -> QuizStats:
        self._core.services.access.ensure_admin(auth)
        quiz = await self._core.services.quiz.get_quiz(quiz_id)
        return await self._core.services.analysis.get_quiz_stats(quiz)

    async def get_course_stats(self, auth: AuthContext, course_id: UUID) -> CourseStats:
        self._core.services.access.ensure_admin(auth)
        course = await self._core.services.academic.get_course(course_id)
        return await self._core.services.analysis.get_course_stats(course)

    async def get_class_stats(self, auth: AuthContext, class_id: UUID) -> ClassStats:
        self._core.services.access.ensure_admin(auth)
        school_class = await self._core.services.academic.get_class(class_id)
        return await self._core.services.analysis.get_class_stats(school_class)

    # === Private helpers ===

    def _ensure_institutional_email(self, email: str) -> None:
        domain = self._core.config.institutional_email_domain
        if not utils.is_institutional_email(email, domain):
            raise ValidationError(f"An @{domain} email address is required", code="INVALID_EMAIL_DOMAIN")

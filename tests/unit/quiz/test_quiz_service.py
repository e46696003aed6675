"""Tests for quiz authoring and publication."""

from datetime import UTC, datetime
from uuid import UUID

import pytest

from equizz.core.modules.quiz.models import QuestionType, QuizQuestion, QuizStatus, QuizType
from equizz.core.modules.quiz.service import normalize_questions
from equizz.core.modules.submission.models import Answer
from equizz.errors import NotFoundError, ValidationError

START = datetime(2025, 1, 6, tzinfo=UTC)
END = datetime(2025, 1, 20, tzinfo=UTC)


@pytest.fixture
def quizzes(core):
    return core.services.quiz


class TestNormalizeQuestions:
    """Tests for question validation."""

    def test_closed_question_gets_default_options(self):
        [question] = normalize_questions([QuizQuestion(text="Satisfait ?", type=QuestionType.CLOSED)])
        assert question.options == ["Yes", "No"]

    def test_open_question_options_are_dropped(self):
        [question] = normalize_questions([QuizQuestion(text="Avis", type=QuestionType.OPEN, options=["a"])])
        assert question.options == []

    def test_mcq_needs_two_options(self):
        with pytest.raises(ValidationError, match="at least two options"):
            normalize_questions([QuizQuestion(text="Choix", type=QuestionType.MCQ, options=["Seul"])])

    def test_question_ids_must_be_unique(self):
        question_id = UUID("00000000-0000-0000-0000-00000000000a")
        questions = [
            QuizQuestion(id=question_id, text="Un", type=QuestionType.OPEN),
            QuizQuestion(id=question_id, text="Deux", type=QuestionType.OPEN),
        ]
        with pytest.raises(ValidationError, match="unique"):
            normalize_questions(questions)


class TestQuizLifecycle:
    """Tests for creating, publishing and deleting quizzes."""

    async def test_created_as_draft(self, quizzes, school_class):
        quiz = await quizzes.create_quiz(
            "Fin de semestre", school_class.academic_year_id, school_class.id, QuizType.FINAL, START, END, []
        )
        assert quiz.status == QuizStatus.DRAFT
        assert (await quizzes.get_quiz(quiz.id)).title == "Fin de semestre"

    async def test_class_must_belong_to_year(self, core, quizzes, school_class):
        other_year = await core.services.academic.create_year(
            "2025-2026", datetime(2025, 9, 1, tzinfo=UTC), datetime(2026, 7, 31, tzinfo=UTC)
        )
        with pytest.raises(ValidationError, match="academic year"):
            await quizzes.create_quiz("Quiz", other_year.id, school_class.id, QuizType.FINAL, START, END, [])

    async def test_end_before_start(self, quizzes, school_class):
        with pytest.raises(ValidationError):
            await quizzes.create_quiz(
                "Quiz", school_class.academic_year_id, school_class.id, QuizType.FINAL, END, START, []
            )

    async def test_cannot_publish_without_questions(self, quizzes, school_class):
        quiz = await quizzes.create_quiz(
            "Vide", school_class.academic_year_id, school_class.id, QuizType.FINAL, START, END, []
        )
        with pytest.raises(ValidationError, match="without questions"):
            await quizzes.publish_quiz(quiz.id)

    async def test_publish_and_unpublish(self, quizzes, published_quiz):
        assert published_quiz.status == QuizStatus.PUBLISHED
        assert published_quiz.published_at is not None
        draft = await quizzes.unpublish_quiz(published_quiz.id)
        assert draft.status == QuizStatus.DRAFT

    async def test_unknown_quiz(self, quizzes):
        with pytest.raises(NotFoundError) as exc_info:
            await quizzes.publish_quiz(UUID(int=42))
        assert exc_info.value.code == "QUIZ_NOT_FOUND"

    async def test_list_filters(self, quizzes, published_quiz, school_class):
        draft = await quizzes.create_quiz(
            "Brouillon", school_class.academic_year_id, school_class.id, QuizType.FINAL, START, END, []
        )
        assert [q.id for q in await quizzes.list_quizzes(status=QuizStatus.PUBLISHED)] == [published_quiz.id]
        assert {q.id for q in await quizzes.list_quizzes(class_id=school_class.id)} == {published_quiz.id, draft.id}

    async def test_delete_removes_submissions(self, core, quizzes, student, published_quiz):
        answers = [Answer(question_id=published_quiz.questions[1].id, value="Yes")]
        await core.services.submission.submit_quiz(student.id, published_quiz, answers)

        await quizzes.delete_quiz(published_quiz.id)

        assert await core.services.submission.count_submissions(published_quiz.id) == 0
        assert await core.services.submission.count_logs(published_quiz.id) == 0
        with pytest.raises(NotFoundError):
            await quizzes.get_quiz(published_quiz.id)



class TestUpdateQuiz:
    """Tests for editing draft quizzes."""

    @pytest.fixture
    async def draft(self, quizzes, school_class):
        return await quizzes.create_quiz(
            "Evaluation Algorithmiqe", school_class.academic_year_id, school_class.id, QuizType.FINAL, START, END, []
        )

    async def test_fix_title_and_questions(self, quizzes, draft):
        questions = [QuizQuestion(text="Satisfait du cours ?", type=QuestionType.CLOSED)]

        updated = await quizzes.update_quiz(draft.id, title="Evaluation Algorithmique", questions=questions)

        assert updated.title == "Evaluation Algorithmique"
        assert updated.status == QuizStatus.DRAFT
        [question] = updated.questions
        assert question.options == ["Yes", "No"]
        assert (await quizzes.get_quiz(draft.id)).questions == updated.questions

    async def test_omitted_fields_are_kept(self, quizzes, draft):
        updated = await quizzes.update_quiz(draft.id, description="Semestre 1")
        assert updated.title == draft.title
        assert updated.start_date == draft.start_date
        assert updated.description == "Semestre 1"

    async def test_questions_are_validated(self, quizzes, draft):
        with pytest.raises(ValidationError, match="at least two options"):
            await quizzes.update_quiz(
                draft.id, questions=[QuizQuestion(text="Choix", type=QuestionType.MCQ, options=["Seul"])]
            )

    async def test_end_before_stored_start(self, quizzes, draft):
        with pytest.raises(ValidationError, match="end after"):
            await quizzes.update_quiz(draft.id, end_date=START)

    async def test_published_quiz_is_frozen(self, quizzes, published_quiz):
        with pytest.raises(ValidationError) as exc_info:
            await quizzes.update_quiz(published_quiz.id, title="Autre")
        assert exc_info.value.code == "QUIZ_NOT_EDITABLE"
        assert (await quizzes.get_quiz(published_quiz.id)).title == published_quiz.title

    async def test_editable_again_after_unpublish(self, quizzes, published_quiz):
        await quizzes.unpublish_quiz(published_quiz.id)
        updated = await quizzes.update_quiz(published_quiz.id, title="Autre")
        assert updated.title == "Autre"

    async def test_course_must_belong_to_class(self, core, quizzes, draft, school_class):
        other_class = await core.services.academic.create_class("M1 Autre", school_class.academic_year_id)
        course = await core.services.academic.create_course("INF501", "Compilation", other_class.id)
        with pytest.raises(ValidationError, match="Course does not belong"):
            await quizzes.update_quiz(draft.id, course_id=course.id)

    async def test_unknown_quiz(self, quizzes):
        with pytest.raises(NotFoundError):
            await quizzes.update_quiz(UUID(int=42), title="X")

class TestAvailableForStudent:
    """Tests for the student's quiz list."""

    async def test_answered_quizzes_are_hidden(self, core, quizzes, student, published_quiz):
        assert [q.id for q in await quizzes.list_available_for_student(student)] == [published_quiz.id]

        answers = [Answer(question_id=published_quiz.questions[1].id, value="No")]
        await core.services.submission.submit_quiz(student.id, published_quiz, answers)

        assert await quizzes.list_available_for_student(student) == []

    async def test_drafts_are_hidden(self, quizzes, student, published_quiz):
        await quizzes.unpublish_quiz(published_quiz.id)
        assert await quizzes.list_available_for_student(student) == []

    async def test_student_without_class(self, core, quizzes, published_quiz):
        loner = await core.services.user.create_user("seul@institutsaintjean.org", "secret1", "Seul", "Seul")
        assert await quizzes.list_available_for_student(loner) == []

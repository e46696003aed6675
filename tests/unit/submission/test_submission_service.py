"""Tests for anonymous quiz submission with duplicate prevention."""

import asyncio
from uuid import UUID, uuid4

import pytest
from pymongo.errors import AutoReconnect

from equizz.core.modules.submission.models import Answer
from equizz.errors import DuplicateSubmissionError, StoreUnavailableError, ValidationError

MCQ = UUID("00000000-0000-0000-0000-000000000001")
CLOSED = UUID("00000000-0000-0000-0000-000000000002")
OPEN = UUID("00000000-0000-0000-0000-000000000003")


def valid_answers(comment: str = "Le cours était très intéressant et utile") -> list[Answer]:
    return [
        Answer(question_id=MCQ, value="Adapté"),
        Answer(question_id=CLOSED, value="Yes"),
        Answer(question_id=OPEN, value=comment),
    ]


@pytest.fixture
def submissions(core):
    return core.services.submission


class TestSubmitQuiz:
    """Tests for the submission flow."""

    async def test_first_submission_is_stored(self, submissions, student, published_quiz):
        submission = await submissions.submit_quiz(student.id, published_quiz, valid_answers())

        assert submission.quiz_id == published_quiz.id
        assert await submissions.has_submitted(student.id, published_quiz.id)
        assert await submissions.count_submissions(published_quiz.id) == 1
        assert await submissions.count_logs(published_quiz.id) == 1

    async def test_submission_carries_no_student_reference(self, database, submissions, student, published_quiz):
        await submissions.submit_quiz(student.id, published_quiz, valid_answers())

        stored = database.get_collection("submissions").docs[0]
        assert "student_id" not in stored
        assert student.id not in stored.values()
        log = database.get_collection("submission_logs").docs[0]
        assert set(log) == {"_id", "student_id", "quiz_id", "submitted_at"}

    async def test_second_submission_is_rejected(self, submissions, student, published_quiz):
        await submissions.submit_quiz(student.id, published_quiz, valid_answers())

        with pytest.raises(DuplicateSubmissionError) as exc_info:
            await submissions.submit_quiz(student.id, published_quiz, valid_answers("Autre avis sur ce cours"))

        assert exc_info.value.code == "DUPLICATE_SUBMISSION"
        assert str(exc_info.value) == "Quiz already submitted"
        assert await submissions.count_submissions(published_quiz.id) == 1

    async def test_concurrent_submissions_store_exactly_one(self, submissions, student, published_quiz):
        results = await asyncio.gather(
            *(submissions.submit_quiz(student.id, published_quiz, valid_answers()) for _ in range(5)),
            return_exceptions=True,
        )

        rejected = [result for result in results if isinstance(result, DuplicateSubmissionError)]
        assert len(rejected) == 4
        assert await submissions.count_submissions(published_quiz.id) == 1
        assert await submissions.count_logs(published_quiz.id) == 1

    async def test_draft_quiz_is_rejected(self, core, submissions, student, published_quiz):
        draft = await core.services.quiz.unpublish_quiz(published_quiz.id)
        with pytest.raises(ValidationError) as exc_info:
            await submissions.submit_quiz(student.id, draft, valid_answers())
        assert exc_info.value.code == "QUIZ_NOT_PUBLISHED"
        assert not await submissions.has_submitted(student.id, published_quiz.id)

    async def test_answer_to_foreign_question_is_rejected(self, submissions, student, published_quiz):
        with pytest.raises(ValidationError, match="does not belong"):
            await submissions.submit_quiz(student.id, published_quiz, [Answer(question_id=uuid4(), value="x")])

    async def test_invalid_option_is_rejected(self, submissions, student, published_quiz):
        with pytest.raises(ValidationError, match="Invalid option"):
            await submissions.submit_quiz(student.id, published_quiz, [Answer(question_id=MCQ, value="Parfait")])

    async def test_duplicate_answers_are_rejected(self, submissions, student, published_quiz):
        answers = [Answer(question_id=CLOSED, value="Yes"), Answer(question_id=CLOSED, value="No")]
        with pytest.raises(ValidationError, match="more than once"):
            await submissions.submit_quiz(student.id, published_quiz, answers)

    async def test_empty_answers_are_rejected(self, submissions, student, published_quiz):
        with pytest.raises(ValidationError):
            await submissions.submit_quiz(student.id, published_quiz, [])

    async def test_log_write_failure_is_store_unavailable(
        self, database, submissions, student, published_quiz, monkeypatch
    ):
        async def broken(*args, **kwargs):
            raise AutoReconnect("primary stepped down")

        monkeypatch.setattr(database.get_collection("submission_logs"), "insert_one", broken)

        with pytest.raises(StoreUnavailableError):
            await submissions.submit_quiz(student.id, published_quiz, valid_answers())
        assert await submissions.count_submissions(published_quiz.id) == 0

    async def test_answers_write_failure_keeps_log(self, database, submissions, student, published_quiz, monkeypatch):
        """Test that the participation log is not rolled back when storing answers fails."""

        async def broken(*args, **kwargs):
            raise AutoReconnect("primary stepped down")

        monkeypatch.setattr(database.get_collection("submissions"), "insert_one", broken)

        with pytest.raises(StoreUnavailableError):
            await submissions.submit_quiz(student.id, published_quiz, valid_answers())
        assert await submissions.has_submitted(student.id, published_quiz.id)

        monkeypatch.undo()
        with pytest.raises(DuplicateSubmissionError):
            await submissions.submit_quiz(student.id, published_quiz, valid_answers())


class TestAnalyzeAnswers:
    """Tests for sentiment scoring at submission time."""

    def test_only_long_open_answers_are_scored(self, submissions, published_quiz):
        answers = [
            Answer(question_id=MCQ, value="Adapté"),
            Answer(question_id=OPEN, value="nul"),
        ]
        sentiment = submissions.analyze_answers(published_quiz, answers)
        assert sentiment.score == 0.0
        assert sentiment.magnitude == 0.0

    def test_score_and_magnitude(self, submissions, published_quiz):
        sentiment = submissions.analyze_answers(published_quiz, valid_answers("Cours excellent mais difficile"))
        assert sentiment.score == 0.0
        assert sentiment.magnitude == 0.0

        sentiment = submissions.analyze_answers(published_quiz, valid_answers("Un cours vraiment excellent"))
        assert sentiment.score == 0.5
        assert sentiment.magnitude == 0.5

    def test_injected_scorer_is_clamped(self, submissions, published_quiz):
        submissions.score_text = lambda text: 3.0
        sentiment = submissions.analyze_answers(published_quiz, valid_answers())
        assert sentiment.score == 1.0
        assert sentiment.magnitude == 1.0

    async def test_stored_submission_has_sentiment(self, submissions, student, published_quiz):
        submission = await submissions.submit_quiz(
            student.id, published_quiz, valid_answers("Cours mauvais et ennuyeux")
        )
        assert submission.sentiment.score == -1.0
        assert -1.0 <= submission.sentiment.score <= 1.0


class TestQueries:
    """Tests for participation queries."""

    async def test_answered_quiz_ids(self, submissions, student, published_quiz):
        assert await submissions.get_answered_quiz_ids(student.id) == set()
        await submissions.submit_quiz(student.id, published_quiz, valid_answers())
        assert await submissions.get_answered_quiz_ids(student.id) == {published_quiz.id}

    async def test_delete_by_quiz(self, submissions, student, published_quiz):
        await submissions.submit_quiz(student.id, published_quiz, valid_answers())
        await submissions.delete_by_quiz(published_quiz.id)
        assert await submissions.count_submissions(published_quiz.id) == 0
        assert not await submissions.has_submitted(student.id, published_quiz.id)

from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from equizz.core.core import Service
from equizz.core.modules.analysis.sentiment import TextScorer, clamp, is_scoreable, score_text
from equizz.core.modules.quiz.models import QuestionType, Quiz, QuizStatus
from equizz.core.modules.submission.models import Answer, SentimentScore, Submission, SubmissionLog
from equizz.errors import DuplicateSubmissionError, StoreUnavailableError, ValidationError

logger = structlog.get_logger(__name__)


def validate_answers(quiz: Quiz, answers: list[Answer]) -> None:
    """Check that answers fit the quiz before anything is written."""
    if quiz.status != QuizStatus.PUBLISHED:
        raise ValidationError("Quiz is not open for submissions", code="QUIZ_NOT_PUBLISHED")
    if not answers:
        raise ValidationError("At least one answer is required")

    seen: set[UUID] = set()
    for answer in answers:
        question = quiz.get_question(answer.question_id)
        if question is None:
            raise ValidationError(f"Question '{answer.question_id}' does not belong to this quiz")
        if answer.question_id in seen:
            raise ValidationError(f"Question '{answer.question_id}' answered more than once")
        seen.add(answer.question_id)
        if question.type in (QuestionType.MCQ, QuestionType.CLOSED) and answer.value not in question.options:
            raise ValidationError(f"Invalid option for question '{question.text}'")


class SubmissionService(Service):
    """Anonymous quiz submissions with at-most-once participation per student.

    The unique (student_id, quiz_id) index on submission_logs is the only
    duplicate guard. The log is written first so a crash before the answers
    are stored still blocks a retried duplicate.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._logs = database.get_collection("submission_logs")
        self._submissions = database.get_collection("submissions")
        self.score_text: TextScorer = score_text

    async def on_start(self) -> None:
        await self._logs.create_index([("student_id", 1), ("quiz_id", 1)], unique=True)
        await self._logs.create_index([("quiz_id", 1)])
        await self._submissions.create_index([("quiz_id", 1)])

    def analyze_answers(self, quiz: Quiz, answers: list[Answer]) -> SentimentScore:
        """Average the scores of scoreable answers; magnitude is the sum of absolute scores."""
        scores = [
            clamp(self.score_text(answer.value))
            for answer in answers
            if is_scoreable(quiz.get_question(answer.question_id), answer.value)
        ]
        if not scores:
            return SentimentScore()
        return SentimentScore(score=clamp(sum(scores) / len(scores)), magnitude=sum(abs(score) for score in scores))

    async def submit_quiz(self, student_id: UUID, quiz: Quiz, answers: list[Answer]) -> Submission:
        """Record participation, then store the answers anonymously.

        Raises:
            DuplicateSubmissionError: The student already submitted this quiz
            StoreUnavailableError: A write failed; if the log was written it is kept
        """
        validate_answers(quiz, answers)

        log = SubmissionLog(student_id=student_id, quiz_id=quiz.id)
        try:
            await self._logs.insert_one(log.to_mongo())
        except DuplicateKeyError as e:
            raise DuplicateSubmissionError from e
        except PyMongoError as e:
            logger.exception("submission_log_write_failed", quiz_id=str(quiz.id))
            raise StoreUnavailableError("Unable to record submission") from e

        submission = Submission(quiz_id=quiz.id, answers=answers, sentiment=self.analyze_answers(quiz, answers))
        try:
            await self._submissions.insert_one(submission.to_mongo())
        except PyMongoError as e:
            # The participation log stays, so the student cannot resubmit
            logger.warning("submission_write_failed", quiz_id=str(quiz.id), error=str(e))
            raise StoreUnavailableError("Unable to store submission") from e

        logger.info("quiz_submitted", quiz_id=str(quiz.id), answer_count=len(answers))
        return submission

    async def has_submitted(self, student_id: UUID, quiz_id: UUID) -> bool:
        return await self._logs.count_documents({"student_id": student_id, "quiz_id": quiz_id}, limit=1) > 0

    async def get_answered_quiz_ids(self, student_id: UUID) -> set[UUID]:
        return set(await self._logs.distinct("quiz_id", {"student_id": student_id}))

    async def list_submissions(self, quiz_id: UUID) -> list[Submission]:
        return await Submission.list_cursor(self._submissions.find({"quiz_id": quiz_id}))

    async def count_submissions(self, quiz_id: UUID | None = None) -> int:
        return await self._submissions.count_documents({"quiz_id": quiz_id} if quiz_id is not None else {})

    async def count_logs(self, quiz_id: UUID) -> int:
        return await self._logs.count_documents({"quiz_id": quiz_id})

    async def get_participant_ids(self, quiz_ids: list[UUID] | None = None) -> set[UUID]:
        """Students with a log, optionally restricted to some quizzes."""
        query: dict[str, Any] = {"quiz_id": {"$in": quiz_ids}} if quiz_ids is not None else {}
        return set(await self._logs.distinct("student_id", query))

    async def count_participating_students(self) -> int:
        return len(await self.get_participant_ids())

    async def delete_by_quiz(self, quiz_id: UUID) -> None:
        submissions = await self._submissions.delete_many({"quiz_id": quiz_id})
        logs = await self._logs.delete_many({"quiz_id": quiz_id})
        logger.info(
            "quiz_submissions_deleted",
            quiz_id=str(quiz_id),
            submissions=submissions.deleted_count,
            logs=logs.deleted_count,
        )

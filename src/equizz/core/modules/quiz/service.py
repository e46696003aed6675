from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from equizz import utils
from equizz.core.core import Service
from equizz.core.modules.quiz.models import QuestionType, Quiz, QuizQuestion, QuizStatus, QuizType
from equizz.core.modules.user.models import User
from equizz.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

CLOSED_QUESTION_OPTIONS = ["Yes", "No"]


def normalize_questions(questions: list[QuizQuestion]) -> list[QuizQuestion]:
    """Validate question options and fill defaults for closed questions."""
    normalized = []
    for question in questions:
        if question.type == QuestionType.MCQ and len(question.options) < 2:
            raise ValidationError(f"Multiple choice question '{question.text}' needs at least two options")
        if question.type == QuestionType.CLOSED and not question.options:
            question = question.model_copy(update={"options": list(CLOSED_QUESTION_OPTIONS)})
        if question.type == QuestionType.OPEN and question.options:
            question = question.model_copy(update={"options": []})
        normalized.append(question)
    if len({question.id for question in normalized}) != len(normalized):
        raise ValidationError("Question IDs must be unique within a quiz")
    return normalized


class QuizService(Service):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("quizzes")

    async def on_start(self) -> None:
        await self._collection.create_index([("class_id", 1), ("status", 1)])
        await self._collection.create_index([("course_id", 1)])

    async def create_quiz(
        self,
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
        """Create a draft quiz after checking the academic references exist."""
        if end_date <= start_date:
            raise ValidationError("Quiz must end after it starts")
        academic = self.core.services.academic
        await academic.get_year(academic_year_id)
        school_class = await academic.get_class(class_id)
        if school_class.academic_year_id != academic_year_id:
            raise ValidationError("Class does not belong to the given academic year")
        if course_id is not None:
            course = await academic.get_course(course_id)
            if course.class_id != class_id:
                raise ValidationError("Course does not belong to the given class")

        quiz = Quiz(
            title=title,
            description=description,
            course_id=course_id,
            academic_year_id=academic_year_id,
            class_id=class_id,
            type=quiz_type,
            questions=normalize_questions(questions),
            start_date=start_date,
            end_date=end_date,
        )
        await self._collection.insert_one(quiz.to_mongo())
        logger.info("quiz_created", quiz_id=str(quiz.id), question_count=len(quiz.questions))
        return quiz

    async def get_quiz(self, quiz_id: UUID) -> Quiz:
        doc = await self._collection.find_one({"_id": quiz_id})
        if doc is None:
            raise NotFoundError(f"Quiz '{quiz_id}' not found", code="QUIZ_NOT_FOUND")
        return Quiz.model_validate(doc)

    async def list_quizzes(
        self,
        class_id: UUID | None = None,
        course_id: UUID | None = None,
        academic_year_id: UUID | None = None,
        status: QuizStatus | None = None,
    ) -> list[Quiz]:
        query: dict[str, Any] = {}
        if class_id is not None:
            query["class_id"] = class_id
        if course_id is not None:
            query["course_id"] = course_id
        if academic_year_id is not None:
            query["academic_year_id"] = academic_year_id
        if status is not None:
            query["status"] = status
        return await Quiz.list_cursor(self._collection.find(query).sort("created_at", -1))

    async def update_quiz(
        self,
        quiz_id: UUID,
        title: str | None = None,
        description: str | None = None,
        quiz_type: QuizType | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        questions: list[QuizQuestion] | None = None,
        course_id: UUID | None = None,
    ) -> Quiz:
        """Edit a draft quiz. Fields left as None keep their stored value.

        Published and archived quizzes cannot be edited.
        """
        quiz = await self.get_quiz(quiz_id)
        if quiz.status != QuizStatus.DRAFT:
            raise ValidationError("Only draft quizzes can be edited", code="QUIZ_NOT_EDITABLE")
        if utils.as_utc(end_date or quiz.end_date) <= utils.as_utc(start_date or quiz.start_date):
            raise ValidationError("Quiz must end after it starts")

        update: dict[str, Any] = {}
        if title is not None:
            update["title"] = title
        if description is not None:
            update["description"] = description
        if quiz_type is not None:
            update["type"] = quiz_type
        if start_date is not None:
            update["start_date"] = utils.as_utc(start_date)
        if end_date is not None:
            update["end_date"] = utils.as_utc(end_date)
        if questions is not None:
            update["questions"] = [question.model_dump() for question in normalize_questions(questions)]
        if course_id is not None:
            course = await self.core.services.academic.get_course(course_id)
            if course.class_id != quiz.class_id:
                raise ValidationError("Course does not belong to the given class")
            update["course_id"] = course_id

        if not update:
            return quiz
        # A quiz published since the read above is left untouched
        doc = await self._collection.find_one_and_update(
            {"_id": quiz_id, "status": QuizStatus.DRAFT}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise ValidationError("Only draft quizzes can be edited", code="QUIZ_NOT_EDITABLE")
        logger.info("quiz_updated", quiz_id=str(quiz_id), fields=sorted(update))
        return Quiz.model_validate(doc)

    async def count_quizzes(self, status: QuizStatus | None = None) -> int:
        return await self._collection.count_documents({"status": status} if status is not None else {})

    async def set_status(self, quiz_id: UUID, status: QuizStatus) -> Quiz:
        update: dict[str, Any] = {"status": status}
        if status == QuizStatus.PUBLISHED:
            update["published_at"] = utils.now()
        doc = await self._collection.find_one_and_update(
            {"_id": quiz_id}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError(f"Quiz '{quiz_id}' not found", code="QUIZ_NOT_FOUND")
        logger.info("quiz_status_changed", quiz_id=str(quiz_id), status=status)
        return Quiz.model_validate(doc)

    async def publish_quiz(self, quiz_id: UUID) -> Quiz:
        quiz = await self.get_quiz(quiz_id)
        if not quiz.questions:
            raise ValidationError("Cannot publish a quiz without questions")
        return await self.set_status(quiz_id, QuizStatus.PUBLISHED)

    async def unpublish_quiz(self, quiz_id: UUID) -> Quiz:
        return await self.set_status(quiz_id, QuizStatus.DRAFT)

    async def delete_quiz(self, quiz_id: UUID) -> None:
        """Delete a quiz with its submissions and submission logs."""
        await self.get_quiz(quiz_id)
        await self.core.services.submission.delete_by_quiz(quiz_id)
        await self._collection.delete_one({"_id": quiz_id})
        logger.info("quiz_deleted", quiz_id=str(quiz_id))

    async def list_available_for_student(self, student: User) -> list[Quiz]:
        """Published quizzes of the student's class that the student has not answered yet."""
        if student.class_id is None:
            return []
        answered = await self.core.services.submission.get_answered_quiz_ids(student.id)
        quizzes = await Quiz.list_cursor(
            self._collection.find({"class_id": student.class_id, "status": QuizStatus.PUBLISHED}).sort("end_date", 1)
        )
        return [quiz for quiz in quizzes if quiz.id not in answered]

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import Field

from equizz.core.db import ApiModel, MongoModel
from equizz.utils import now


class QuizType(StrEnum):
    MI_PARCOURS = "MI_PARCOURS"  # Mid-term evaluation
    FINAL = "FINAL"


class QuizStatus(StrEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class QuestionType(StrEnum):
    MCQ = "MCQ"  # Multiple choice, one of `options`
    OPEN = "OPEN"  # Free text, sentiment-scored
    CLOSED = "CLOSED"  # Yes/no


class QuizQuestion(ApiModel):
    """Question embedded in a quiz; text and options are frozen with the quiz."""

    id: UUID = Field(default_factory=uuid4)
    text: str = Field(..., min_length=1)
    type: QuestionType
    options: list[str] = Field(default_factory=list)


class Quiz(MongoModel):
    """Evaluation questionnaire for a class.

    Indexed on (class_id, status), course_id.
    """

    title: str
    description: str = ""
    course_id: UUID | None = None
    academic_year_id: UUID
    class_id: UUID
    type: QuizType
    status: QuizStatus = QuizStatus.DRAFT
    questions: list[QuizQuestion] = Field(default_factory=list)
    start_date: datetime
    end_date: datetime
    created_at: datetime = Field(default_factory=now)
    published_at: datetime | None = None

    def get_question(self, question_id: UUID) -> QuizQuestion | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

"""Quiz answers and the separate participation log.

A Submission holds answers without any student reference. A SubmissionLog
records that a student answered a quiz, without any pointer to the answers.
The two are never linked.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from equizz.core.db import ApiModel, MongoModel
from equizz.utils import now


class Answer(ApiModel):
    question_id: UUID
    value: str


class SentimentScore(ApiModel):
    score: float = Field(0.0, ge=-1.0, le=1.0)  # -1 negative .. 1 positive
    magnitude: float = Field(0.0, ge=0.0)  # Total emotional weight, unbounded


class Submission(MongoModel):
    """Anonymous answer set for one quiz attempt. Indexed on quiz_id."""

    quiz_id: UUID
    answers: list[Answer]
    sentiment: SentimentScore = Field(default_factory=SentimentScore)
    created_at: datetime = Field(default_factory=now)


class SubmissionLog(MongoModel):
    """Participation record. Indexed on (student_id, quiz_id) - unique."""

    student_id: UUID
    quiz_id: UUID
    submitted_at: datetime = Field(default_factory=now)

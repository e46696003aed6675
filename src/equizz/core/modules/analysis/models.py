from uuid import UUID

from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.quiz.models import QuestionType, QuizStatus


class QuizOverview(ApiModel):
    total_submissions: int = 0
    avg_sentiment: float = 0.0


class SentimentDistribution(ApiModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class Participation(ApiModel):
    logged_submissions: int = Field(0, description="Students who submitted, from the participation log")
    class_students: int = Field(0, description="Students currently enrolled in the quiz's class")
    participation_rate: int = Field(0, description="Percentage, rounded")


class QuestionStats(ApiModel):
    question_id: UUID
    text: str
    type: QuestionType
    response_count: int = 0
    option_counts: dict[str, int] = Field(default_factory=dict)  # MCQ and CLOSED only
    avg_sentiment: float | None = None  # OPEN only, None when nothing was scoreable
    sample_answers: list[str] = Field(default_factory=list)  # OPEN only


class QuizStats(ApiModel):
    quiz_id: UUID
    title: str
    overview: QuizOverview
    sentiment_distribution: SentimentDistribution
    participation: Participation
    questions: list[QuestionStats]


class GlobalStats(ApiModel):
    total_quizzes: int = Field(..., description="Published quizzes")
    total_questions: int
    total_responses: int
    participation_rate: int = Field(..., description="Students with at least one submission, percentage")


class QuizSummary(ApiModel):
    quiz_id: UUID
    title: str
    status: QuizStatus
    total_submissions: int = 0
    avg_sentiment: float = 0.0


class CourseStats(ApiModel):
    """All quizzes of one course, whatever their status."""

    course_id: UUID
    code: str
    name: str
    teacher: str
    total_quizzes: int
    total_responses: int
    participation_rate: int = Field(..., description="Class students with a submission in this course, percentage")
    sentiment_distribution: SentimentDistribution
    quizzes: list[QuizSummary]
    questions: list[QuestionStats] = Field(..., description="Per-question breakdown, quiz by quiz")


class ClassStats(ApiModel):
    class_id: UUID
    name: str
    academic_year: str = Field(..., description="Academic year label")
    total_students: int
    total_courses: int
    total_quizzes: int
    total_responses: int
    participation_rate: int = Field(..., description="Class students with a submission in this class, percentage")

from uuid import UUID

from equizz.core.core import Service
from equizz.core.modules.academic.models import Course, SchoolClass
from equizz.core.modules.analysis.models import (
    ClassStats,
    CourseStats,
    GlobalStats,
    Participation,
    QuestionStats,
    QuizOverview,
    QuizStats,
    QuizSummary,
    SentimentDistribution,
)
from equizz.core.modules.analysis.sentiment import TextScorer, clamp, classify, is_scoreable
from equizz.core.modules.quiz.models import QuestionType, Quiz, QuizStatus
from equizz.core.modules.submission.models import Submission

MAX_SAMPLE_ANSWERS = 5


def percentage(part: int, total: int) -> int:
    return round(part / total * 100) if total > 0 else 0


def average_sentiment(submissions: list[Submission]) -> float:
    if not submissions:
        return 0.0
    return sum(submission.sentiment.score for submission in submissions) / len(submissions)


def add_to_distribution(distribution: SentimentDistribution, submissions: list[Submission]) -> None:
    for submission in submissions:
        label = classify(submission.sentiment.score)
        setattr(distribution, label, getattr(distribution, label) + 1)


def build_question_stats(quiz: Quiz, submissions: list[Submission], scorer: TextScorer) -> list[QuestionStats]:
    """Aggregate answers per question, in quiz order."""
    stats: dict[UUID, QuestionStats] = {
        question.id: QuestionStats(
            question_id=question.id,
            text=question.text,
            type=question.type,
            option_counts={option: 0 for option in question.options} if question.type != QuestionType.OPEN else {},
        )
        for question in quiz.questions
    }
    open_scores: dict[UUID, list[float]] = {}

    for submission in submissions:
        for answer in submission.answers:
            question = quiz.get_question(answer.question_id)
            if question is None:
                continue
            item = stats[question.id]
            item.response_count += 1
            if question.type == QuestionType.OPEN:
                if len(item.sample_answers) < MAX_SAMPLE_ANSWERS:
                    item.sample_answers.append(answer.value)
                if is_scoreable(question, answer.value):
                    open_scores.setdefault(question.id, []).append(clamp(scorer(answer.value)))
            else:
                item.option_counts[answer.value] = item.option_counts.get(answer.value, 0) + 1

    for question_id, scores in open_scores.items():
        stats[question_id].avg_sentiment = sum(scores) / len(scores)
    return list(stats.values())


class AnalysisService(Service):
    """Participation and sentiment statistics over stored submissions."""

    async def get_quiz_stats(self, quiz: Quiz) -> QuizStats:
        services = self.core.services
        submissions = await services.submission.list_submissions(quiz.id)

        distribution = SentimentDistribution()
        add_to_distribution(distribution, submissions)
        overview = QuizOverview(total_submissions=len(submissions), avg_sentiment=average_sentiment(submissions))

        logged = await services.submission.count_logs(quiz.id)
        class_students = await services.user.count_students(quiz.class_id)
        participation = Participation(
            logged_submissions=logged,
            class_students=class_students,
            participation_rate=percentage(logged, class_students),
        )

        return QuizStats(
            quiz_id=quiz.id,
            title=quiz.title,
            overview=overview,
            sentiment_distribution=distribution,
            participation=participation,
            questions=build_question_stats(quiz, submissions, services.submission.score_text),
        )

    async def get_global_stats(self) -> GlobalStats:
        services = self.core.services
        published = await services.quiz.list_quizzes(status=QuizStatus.PUBLISHED)
        return GlobalStats(
            total_quizzes=len(published),
            total_questions=sum(len(quiz.questions) for quiz in published),
            total_responses=await services.submission.count_submissions(),
            participation_rate=percentage(
                await services.submission.count_participating_students(), await services.user.count_students()
            ),
        )

    async def _class_participation(self, class_id: UUID, quiz_ids: list[UUID]) -> tuple[int, int]:
        """Current class students, and how many of them answered at least one of the quizzes."""
        services = self.core.services
        students = {student.id for student in await services.user.list_students(class_id)}
        if not quiz_ids:
            return len(students), 0
        participants = await services.submission.get_participant_ids(quiz_ids)
        return len(students), len(students & participants)

    async def get_course_stats(self, course: Course) -> CourseStats:
        services = self.core.services
        quizzes = await services.quiz.list_quizzes(course_id=course.id)

        distribution = SentimentDistribution()
        summaries: list[QuizSummary] = []
        questions: list[QuestionStats] = []
        total_responses = 0
        for quiz in quizzes:
            submissions = await services.submission.list_submissions(quiz.id)
            total_responses += len(submissions)
            add_to_distribution(distribution, submissions)
            summaries.append(
                QuizSummary(
                    quiz_id=quiz.id,
                    title=quiz.title,
                    status=quiz.status,
                    total_submissions=len(submissions),
                    avg_sentiment=average_sentiment(submissions),
                )
            )
            questions.extend(build_question_stats(quiz, submissions, services.submission.score_text))

        students, participants = await self._class_participation(course.class_id, [quiz.id for quiz in quizzes])
        return CourseStats(
            course_id=course.id,
            code=course.code,
            name=course.name,
            teacher=course.teacher,
            total_quizzes=len(quizzes),
            total_responses=total_responses,
            participation_rate=percentage(participants, students),
            sentiment_distribution=distribution,
            quizzes=summaries,
            questions=questions,
        )

    async def get_class_stats(self, school_class: SchoolClass) -> ClassStats:
        services = self.core.services
        year = await services.academic.get_year(school_class.academic_year_id)
        courses = await services.academic.list_courses(school_class.id)
        quizzes = await services.quiz.list_quizzes(class_id=school_class.id)
        total_responses = 0
        for quiz in quizzes:
            total_responses += await services.submission.count_submissions(quiz.id)

        students, participants = await self._class_participation(school_class.id, [quiz.id for quiz in quizzes])
        return ClassStats(
            class_id=school_class.id,
            name=school_class.name,
            academic_year=year.label,
            total_students=students,
            total_courses=len(courses),
            total_quizzes=len(quizzes),
            total_responses=total_responses,
            participation_rate=percentage(participants, students),
        )

"""Tests for keyword sentiment scoring."""

from equizz.core.modules.analysis.sentiment import classify, clamp, is_scoreable, score_text
from equizz.core.modules.quiz.models import QuestionType, QuizQuestion


class TestScoreText:
    """Tests for score_text function."""

    def test_neutral_text(self):
        assert score_text("Le cours a lieu le lundi matin") == 0.0

    def test_positive_keywords(self):
        assert score_text("Très bon cours") == 0.5
        assert score_text("Bon cours, très clair") == 1.0

    def test_negative_keywords(self):
        assert score_text("Rythme trop rapide") == -0.5

    def test_case_insensitive(self):
        assert score_text("EXCELLENT") == 0.5

    def test_result_is_clamped(self):
        assert score_text("bon bien super utile clair") == 1.0
        assert score_text("nul nul nul mauvais") == -1.0

    def test_words_not_substrings(self):
        """Test that keywords only match whole words."""
        assert score_text("bonjour à tous") == 0.0


class TestIsScoreable:
    """Tests for deciding which answers feed sentiment."""

    def test_long_open_answer(self):
        question = QuizQuestion(text="Avis", type=QuestionType.OPEN)
        assert is_scoreable(question, "Un avis suffisamment long")

    def test_short_open_answer(self):
        question = QuizQuestion(text="Avis", type=QuestionType.OPEN)
        assert not is_scoreable(question, "Très bien")
        assert not is_scoreable(question, "   bien      ")

    def test_closed_question_never_scored(self):
        question = QuizQuestion(text="Recommandé ?", type=QuestionType.CLOSED, options=["Yes", "No"])
        assert not is_scoreable(question, "Yes, absolutely, very good")

    def test_unknown_question(self):
        assert not is_scoreable(None, "Un avis suffisamment long")


class TestClassify:
    """Tests for sentiment buckets."""

    def test_thresholds(self):
        assert classify(0.5) == "positive"
        assert classify(0.25) == "neutral"
        assert classify(0.0) == "neutral"
        assert classify(-0.25) == "neutral"
        assert classify(-0.3) == "negative"

    def test_clamp(self):
        assert clamp(2.0) == 1.0
        assert clamp(-2.0) == -1.0
        assert clamp(0.3) == 0.3

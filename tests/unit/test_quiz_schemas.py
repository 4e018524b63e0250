# =============================================================================
# TESTES - Quiz Schemas Module
# =============================================================================
# Testes unitarios para enums, schemas Pydantic e snapshot do quiz
# =============================================================================

import pytest
from pydantic import ValidationError


class TestQuestionTypeEnum:
    """Classificacao dos nove tipos."""

    def test_nine_types(self):
        from quiz.models import QuestionType

        assert len(list(QuestionType)) == 9

    def test_visual_and_free_text(self):
        from quiz.models import QuestionType

        assert QuestionType.CHART_ANALYSIS.is_visual is True
        assert QuestionType.DIAGRAM_LABELING.is_visual is True
        assert QuestionType.ESSAY_SHORT.is_visual is False
        assert QuestionType.ESSAY_SHORT.is_free_text is True
        assert QuestionType.MULTIPLE_CHOICE_EXTENDED.is_free_text is False


class TestQuizConfig:
    """Configuracao imutavel."""

    def test_defaults(self):
        from quiz.models import Difficulty, QuestionType, QuizConfig
        from quiz.models.enums import QuestionDepth

        config = QuizConfig(question_types=[QuestionType.ESSAY_SHORT])

        assert config.question_count == 10
        assert config.difficulty == Difficulty.INTERMEDIATE
        assert config.question_depth == QuestionDepth.MEDIUM
        assert config.include_explanations is True
        assert config.visual_support is False

    def test_frozen(self):
        from quiz.models import QuestionType, QuizConfig

        config = QuizConfig(question_types=[QuestionType.ESSAY_SHORT])

        with pytest.raises(ValidationError):
            config.question_count = 3

    def test_unknown_type_rejected(self):
        from quiz.models import QuizConfig

        with pytest.raises(ValidationError):
            QuizConfig(question_types=["crossword"])


class TestQuestion:
    """Questao canonica."""

    def test_minimal(self):
        from quiz.models import Question

        question = Question(id="q1", type="essay_short", question="Explain osmosis briefly.")

        assert question.metadata.categories == ["General"]
        assert question.metadata.estimated_time == 120
        assert question.is_fallback is False
        assert question.visual is None

    def test_visual_type_validated(self):
        from quiz.models import VisualContent

        with pytest.raises(ValidationError):
            VisualContent(type="video", data="aGk=")


class TestQuizProgress:
    """Snapshot retomavel."""

    def test_answers_padded(self, sample_config, sample_questions):
        from quiz.models import QuizProgress

        progress = QuizProgress(quiz_id="q", config=sample_config, questions=sample_questions)

        assert progress.answers == [None, None, None]
        assert progress.is_complete is False

    def test_record_answer(self, sample_config, sample_questions):
        from quiz.models import QuizProgress

        progress = QuizProgress(quiz_id="q", config=sample_config, questions=sample_questions)
        for index, answer in enumerate(["B", True, "text"]):
            progress.record_answer(index, answer)

        assert progress.is_complete is True
        assert progress.question_index == 2

        with pytest.raises(IndexError):
            progress.record_answer(3, "x")

    def test_dict_round_trip(self, sample_config, sample_questions):
        from quiz.models import QuizProgress

        progress = QuizProgress(
            quiz_id="q", config=sample_config, questions=sample_questions, elapsed_seconds=30
        )

        restored = QuizProgress.from_dict(progress.to_dict())

        assert restored.config == sample_config
        assert restored.questions == sample_questions
        assert restored.start_time == progress.start_time

    def test_empty_quiz_never_complete(self, sample_config):
        from quiz.models import QuizProgress

        assert QuizProgress(quiz_id="q", config=sample_config).is_complete is False


class TestRequestModels:
    """Requests da API."""

    def test_generate_requires_content(self, sample_config):
        from quiz.models import GenerateQuizRequest

        with pytest.raises(ValidationError):
            GenerateQuizRequest(content="", config=sample_config)

    def test_submit_time_non_negative(self, sample_config, sample_questions):
        from quiz.models import SubmitSessionRequest

        with pytest.raises(ValidationError):
            SubmitSessionRequest(
                config=sample_config, questions=sample_questions, answers=[], time_spent=-1
            )

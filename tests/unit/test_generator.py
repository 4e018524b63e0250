# =============================================================================
# TESTES - Advanced Quiz Generator
# =============================================================================
# Tentativas, fallback, limite mínimo e degradação visual
# =============================================================================

import json
from unittest.mock import AsyncMock

import pytest

from core.exceptions import (
    AIError,
    AIErrorCode,
    GenerationInProgressError,
    QuizGenerationError,
    ValidationError,
)
from quiz.engine.generator import AdvancedQuizGenerator
from quiz.models import QuestionType, QuizConfig


class TestGenerateSuccess:
    """Caminho feliz: a IA devolve tudo na primeira tentativa."""

    @pytest.mark.asyncio
    async def test_exact_count_first_attempt(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(4)])
        generator = AdvancedQuizGenerator(provider)

        result = await generator.generate("Photosynthesis content " * 20, sample_config)

        assert len(result.questions) == 4
        assert result.fallback_count == 0
        assert result.attempts == 1
        assert result.provider == "openai"
        assert len(provider.calls) == 1
        assert provider.calls[0]["max_tokens"] == AdvancedQuizGenerator.FIRST_ATTEMPT_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_options_get_letters(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(4, fenced=True)])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert result.questions[0].options[0] == "A) Plants absorb light"
        assert result.questions[0].correct_answer == "A"

    @pytest.mark.asyncio
    async def test_extra_questions_truncated(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(7)])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert len(result.questions) == 4

    @pytest.mark.asyncio
    async def test_true_false_string_becomes_bool(self, scripted_provider):
        item = {
            "type": "true_false_explained",
            "question": "Chlorophyll absorbs mostly green light.",
            "correct_answer": "False",
            "explanation": "Chlorophyll reflects green light, which is why leaves look green.",
            "metadata": {"difficulty": 2, "categories": ["Biology"], "estimatedTime": 45,
                         "learningObjective": "Light absorption"},
        }
        provider = scripted_provider(responses=[json.dumps({"questions": [item]})])
        config = QuizConfig(question_types=[QuestionType.TRUE_FALSE_EXPLAINED], question_count=1)

        result = await AdvancedQuizGenerator(provider).generate("content", config)

        question = result.questions[0]
        assert question.correct_answer is False
        assert question.metadata.estimated_time == 45
        assert question.metadata.learning_objective == "Light absorption"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_answer,expected", [("T", True), ("1", True), (1, True), ("f", False)])
    async def test_true_false_shorthand_answers(self, scripted_provider, raw_answer, expected):
        item = {
            "type": "true_false_explained",
            "question": "Mitochondria contain their own DNA.",
            "correct_answer": raw_answer,
            "explanation": "Mitochondria carry a small circular genome inherited maternally.",
        }
        provider = scripted_provider(responses=[json.dumps({"questions": [item]})])
        config = QuizConfig(question_types=[QuestionType.TRUE_FALSE_EXPLAINED], question_count=1)

        result = await AdvancedQuizGenerator(provider).generate("content", config)

        assert result.questions[0].correct_answer is expected
        assert result.fallback_count == 0

    @pytest.mark.asyncio
    async def test_unrecognized_true_false_answer_discarded(self, scripted_provider):
        items = [
            {
                "type": "true_false_explained",
                "question": f"Statement number {i} about cell membranes.",
                "correct_answer": answer,
                "explanation": "Cell membranes are phospholipid bilayers with embedded proteins.",
            }
            for i, answer in enumerate(["yes", "true"])
        ]
        provider = scripted_provider(responses=[json.dumps({"questions": items})])
        config = QuizConfig(question_types=[QuestionType.TRUE_FALSE_EXPLAINED], question_count=2)

        result = await AdvancedQuizGenerator(provider).generate("content", config)

        assert result.generated_count == 1
        assert result.questions[0].correct_answer is True
        assert result.questions[1].is_fallback is True

    @pytest.mark.asyncio
    async def test_beginner_true_false_quiz_from_long_notes(self, scripted_provider):
        """5 verdadeiro/falso para iniciante a partir de ~3000 caracteres."""
        from quiz.models import Difficulty

        content = (
            "Photosynthesis converts light energy into chemical energy stored in glucose. "
            "It takes place in the chloroplasts of plant cells and releases oxygen. "
        ) * 21
        content = content[:3000]
        items = [
            {
                "id": f"tf{i}",
                "type": "true_false_explained",
                "question": f"Statement {i}: photosynthesis releases oxygen as a by-product.",
                "correct_answer": answer,
                "explanation": "Water molecules are split during the light reactions, releasing oxygen.",
                "metadata": {"difficulty": 1, "categories": ["Biology"], "estimated_time": 30,
                             "learning_objective": "Products of photosynthesis"},
            }
            for i, answer in enumerate(["true", False, "False", True, "t"])
        ]
        provider = scripted_provider(responses=[json.dumps({"questions": items})])
        config = QuizConfig(
            question_types=[QuestionType.TRUE_FALSE_EXPLAINED],
            question_count=5,
            difficulty=Difficulty.BEGINNER,
        )

        result = await AdvancedQuizGenerator(provider).generate(content, config)

        assert len(content) == 3000
        assert len(result.questions) == 5
        assert result.fallback_count == 0
        assert all(q.type == QuestionType.TRUE_FALSE_EXPLAINED for q in result.questions)
        assert [q.correct_answer for q in result.questions] == [True, False, False, True, True]
        assert all(isinstance(q.correct_answer, bool) for q in result.questions)


class TestRetries:
    """Tentativas adicionais com prompt suplementar."""

    @pytest.mark.asyncio
    async def test_malformed_then_supplementary(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=["not json at all", quiz_response(4)])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert result.attempts == 2
        assert len(result.questions) == 4
        assert "additional" in provider.calls[1]["messages"][0]["content"]
        assert provider.calls[1]["max_tokens"] == AdvancedQuizGenerator.RETRY_MAX_TOKENS

    @pytest.mark.asyncio
    async def test_partial_then_rest(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(2), quiz_response(2, start=2)])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert [q.id for q in result.questions] == ["q0", "q1", "q2", "q3"]
        assert result.fallback_count == 0

    @pytest.mark.asyncio
    async def test_repeated_ids_across_attempts_made_unique(
        self, scripted_provider, quiz_response, sample_config
    ):
        provider = scripted_provider(responses=[quiz_response(2), quiz_response(2)])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert [q.id for q in result.questions] == ["q0", "q1", "q0_2", "q1_2"]
        assert result.fallback_count == 0

    @pytest.mark.asyncio
    async def test_invalid_items_discarded(self, scripted_provider, quiz_items, sample_config):
        items = quiz_items(4)
        items[1]["question"] = ""
        items[2]["options"] = ["only one"]
        provider = scripted_provider(
            responses=[json.dumps({"questions": items}), json.dumps(quiz_items(2, start=10))]
        )

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert len(result.questions) == 4
        assert result.fallback_count == 0

    @pytest.mark.asyncio
    async def test_all_attempts_fail(self, scripted_provider, sample_config):
        provider = scripted_provider(responses=["{{{", "still broken", "nope"])

        with pytest.raises(QuizGenerationError) as exc:
            await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert exc.value.details["failure_kind"] == "malformed_json"
        assert exc.value.details["attempts"] == 3

    @pytest.mark.asyncio
    async def test_provider_error_kind(self, scripted_provider, sample_config):
        error = AIError("Rate limit exceeded", AIErrorCode.RATE_LIMIT)
        provider = scripted_provider(responses=[error, error, error])

        with pytest.raises(QuizGenerationError) as exc:
            await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert exc.value.details["failure_kind"] == "provider_error"

    @pytest.mark.asyncio
    async def test_empty_response_kind(self, scripted_provider, sample_config):
        provider = scripted_provider(responses=["   ", "", " "])

        with pytest.raises(QuizGenerationError) as exc:
            await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert exc.value.details["failure_kind"] == "empty_response"


class TestFollowUp:
    """Quiz de reforco a partir das areas fracas."""

    @pytest.mark.asyncio
    async def test_first_attempt_uses_follow_up_prompt(
        self, scripted_provider, quiz_response, sample_config
    ):
        provider = scripted_provider(responses=[quiz_response(2), quiz_response(2, start=2)])

        result = await AdvancedQuizGenerator(provider).generate(
            "content", sample_config, focus_areas=["Genetics", "Ecology"]
        )

        assert len(result.questions) == 4
        first = provider.calls[0]["messages"][0]["content"]
        assert "focusing on these weak areas: Genetics, Ecology" in first
        assert provider.calls[0]["max_tokens"] == AdvancedQuizGenerator.FIRST_ATTEMPT_MAX_TOKENS
        assert "additional" in provider.calls[1]["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_without_focus_areas_uses_standard_prompt(
        self, scripted_provider, quiz_response, sample_config
    ):
        provider = scripted_provider(responses=[quiz_response(4)])

        await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert "weak areas" not in provider.calls[0]["messages"][0]["content"]


class TestFallback:
    """Preenchimento com questões genéricas."""

    @pytest.mark.asyncio
    async def test_fills_missing_with_fallback(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(3), "broken", "broken"])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert len(result.questions) == 4
        assert result.fallback_count == 1
        assert result.generated_count == 3
        assert result.questions[-1].is_fallback is True
        assert any("fallback" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_near_complete_count_warning(self, scripted_provider, quiz_response):
        provider = scripted_provider(responses=[quiz_response(4), "broken", "broken"])
        config = QuizConfig(question_types=[QuestionType.MULTIPLE_CHOICE_EXTENDED], question_count=5)

        result = await AdvancedQuizGenerator(provider).generate("content", config)

        assert result.fallback_count == 1
        assert "Generated 4 questions instead of 5 due to content limitations; added 1 fallback question(s)" in result.warnings

    @pytest.mark.asyncio
    async def test_half_is_enough(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(2)])

        result = await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert result.fallback_count == 2

    @pytest.mark.asyncio
    async def test_below_half_fails(self, scripted_provider, quiz_response, sample_config):
        provider = scripted_provider(responses=[quiz_response(1)])

        with pytest.raises(QuizGenerationError) as exc:
            await AdvancedQuizGenerator(provider).generate("content", sample_config)

        assert exc.value.details == {"generated": 1, "requested": 4, "minimum": 2}

    def test_create_fallback_questions(self):
        questions = AdvancedQuizGenerator.create_fallback_questions(3)

        assert len(questions) == 3
        assert len({q.id for q in questions}) == 3
        assert all(q.is_fallback for q in questions)
        assert all(q.type == QuestionType.MULTIPLE_CHOICE_EXTENDED for q in questions)
        assert all(q.correct_answer == "A" for q in questions)


class TestGuards:
    """Configuração inválida e geração concorrente."""

    @pytest.mark.asyncio
    async def test_invalid_config(self, scripted_provider):
        provider = scripted_provider()
        config = QuizConfig.model_construct(question_types=[], question_count=0, categories=[])

        with pytest.raises(ValidationError) as exc:
            await AdvancedQuizGenerator(provider).generate("content", config)

        assert exc.value.errors
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_generation_in_progress(self, scripted_provider, sample_config):
        provider = scripted_provider()
        AdvancedQuizGenerator._in_progress.add("busy-user")
        try:
            with pytest.raises(GenerationInProgressError):
                await AdvancedQuizGenerator(provider).generate(
                    "content", sample_config, user_id="busy-user"
                )
        finally:
            AdvancedQuizGenerator._in_progress.discard("busy-user")

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(self, scripted_provider, sample_config):
        provider = scripted_provider(responses=["x", "y", "z"])

        with pytest.raises(QuizGenerationError):
            await AdvancedQuizGenerator(provider).generate("content", sample_config, user_id="u1")

        assert AdvancedQuizGenerator.is_generating("u1") is False


class TestVisualDegradation:
    """Tipos visuais sem imagem viram apenas texto."""

    @staticmethod
    def _chart_response():
        item = {
            "type": "chart_analysis",
            "question": "What trend does the chart of photosynthesis rate show?",
            "correct_answer": "The rate rises with light intensity until it plateaus.",
            "explanation": "Light becomes non-limiting once enzymes saturate.",
            "metadata": {"difficulty": 3, "categories": ["Biology"], "estimated_time": 120,
                         "learning_objective": "Interpret rate curves"},
        }
        return json.dumps({"questions": [item]})

    @pytest.mark.asyncio
    async def test_no_image_generator(self, scripted_provider):
        provider = scripted_provider(responses=[self._chart_response()])
        config = QuizConfig(question_types=[QuestionType.CHART_ANALYSIS], question_count=1)

        result = await AdvancedQuizGenerator(provider).generate("content", config)

        assert result.questions[0].visual is None
        assert any("text-only" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_image_failure_degrades(self, scripted_provider):
        provider = scripted_provider(responses=[self._chart_response()])
        images = AsyncMock()
        images.generate = AsyncMock(side_effect=AIError("Image service down"))
        config = QuizConfig(question_types=[QuestionType.CHART_ANALYSIS], question_count=1)

        result = await AdvancedQuizGenerator(provider, image_generator=images).generate(
            "content", config
        )

        assert len(result.questions) == 1
        assert result.questions[0].visual is None
        assert any("Visual content unavailable" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_image_attached(self, scripted_provider):
        provider = scripted_provider(responses=[self._chart_response()])
        images = AsyncMock()
        images.generate = AsyncMock(return_value="data:image/png;base64,aGVsbG8=")
        config = QuizConfig(question_types=[QuestionType.CHART_ANALYSIS], question_count=1)

        result = await AdvancedQuizGenerator(provider, image_generator=images).generate(
            "content", config
        )

        visual = result.questions[0].visual
        assert visual is not None
        assert visual.type.value == "chart"
        assert visual.data.startswith("data:image/png")


class TestUsageTracking:
    """Cada chamada ao provedor gera um registro de uso."""

    @pytest.mark.asyncio
    async def test_success_and_failure_tracked(self, scripted_provider, quiz_response, sample_config):
        from agents.usage_tracker import UsageTracker

        tracker = UsageTracker(flush_size=100)
        provider = scripted_provider(
            responses=[AIError("Service down", AIErrorCode.SERVICE_UNAVAILABLE), quiz_response(4)]
        )

        await AdvancedQuizGenerator(provider, usage_tracker=tracker).generate(
            "content", sample_config, user_id="u1"
        )

        stats = await tracker.get_stats("u1")
        assert stats["total_requests"] == 2
        assert stats["error_count"] == 1
        assert stats["total_tokens"] == 300
        assert stats["by_operation"] == {"quiz_generation": 2}

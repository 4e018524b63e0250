"""Advanced Quiz Generator - Orquestrador de geracao com retries e fallback.

Fluxo de cada tentativa:
    prompt -> LLM -> parse JSON -> transformacao -> validacao por tipo -> acumulo

Ao final, completa com questoes de fallback ate o numero pedido, desde que
pelo menos metade tenha sido gerada pela IA.
"""

import logging
import math
import re
import time
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import (
    AIError,
    AIErrorCode,
    GenerationInProgressError,
    QuizGenerationError,
    ValidationError,
)
from providers.base import BaseAIProvider
from providers.image_generator import ImageGenerator
from utils.response_parser import extract_questions, parse_ai_json

from ..models.enums import QuestionType, VisualType
from ..models.schemas import Question, QuestionMetadata, QuizConfig, SubQuestion, VisualContent
from ..prompts import (
    FALLBACK_EXPLANATION,
    FALLBACK_LEARNING_OBJECTIVE,
    FALLBACK_OPTIONS,
    FALLBACK_QUESTION_TEXT,
    QUIZ_SYSTEM_PROMPT,
    VISUAL_DESCRIPTIONS,
    QuizPromptEngine,
)
from .answer_normalizer import AnswerNormalizer
from .validator import QuizValidator

logger = logging.getLogger(__name__)

_LETTER_PREFIX = re.compile(r"^([A-Z])\)?")
_OPTION_HAS_LETTER = re.compile(r"^[A-Za-z]\)\s*")


@dataclass
class GenerationResult:
    """Resultado final de uma geracao."""

    questions: list[Question]
    fallback_count: int = 0
    attempts: int = 0
    warnings: list[str] = field(default_factory=list)
    provider: str | None = None
    model: str | None = None

    @property
    def generated_count(self) -> int:
        return len(self.questions) - self.fallback_count


class AdvancedQuizGenerator:
    """Orquestra a geracao de quizzes avancados.

    - Ate MAX_ATTEMPTS chamadas sequenciais ao provedor
    - Primeira tentativa com prompt principal, retries com prompt suplementar
    - Questoes invalidas descartadas, faltantes completadas com fallback
    - Menos de MIN_SUCCESS_RATIO do pedido -> QuizGenerationError

    Example:
        >>> generator = AdvancedQuizGenerator(provider)
        >>> result = await generator.generate(content, config, user_id="u1")
        >>> len(result.questions) == config.question_count
        True
    """

    MAX_ATTEMPTS = 3
    MIN_SUCCESS_RATIO = 0.5
    FIRST_ATTEMPT_MAX_TOKENS = 6000
    RETRY_MAX_TOKENS = 4000
    TEMPERATURE = 0.7

    DIFFICULTY_RANGE = (1, 5)
    ESTIMATED_TIME_RANGE = (30, 600)

    # Usuarios com geracao em andamento
    _in_progress: set[str] = set()

    def __init__(
        self,
        provider: BaseAIProvider,
        image_generator: ImageGenerator | None = None,
        usage_tracker: Any = None,
        prompt_engine: QuizPromptEngine | None = None,
        max_attempts: int | None = None,
        min_success_ratio: float | None = None,
    ):
        self.provider = provider
        self.image_generator = image_generator
        self.usage_tracker = usage_tracker
        self.prompt_engine = prompt_engine or QuizPromptEngine()
        self.max_attempts = max_attempts or self.MAX_ATTEMPTS
        self.min_success_ratio = (
            min_success_ratio if min_success_ratio is not None else self.MIN_SUCCESS_RATIO
        )

    @classmethod
    def is_generating(cls, user_id: str) -> bool:
        return user_id in cls._in_progress

    # =========================================================================
    # ENTRADA
    # =========================================================================

    async def generate(
        self,
        content: str,
        config: QuizConfig,
        user_id: str | None = None,
        focus_areas: list[str] | None = None,
    ) -> GenerationResult:
        """Gera exatamente config.question_count questoes.

        Args:
            content: Conteudo de origem
            config: Configuracao validada
            user_id: Usuario (ativa o controle de uma geracao por vez)
            focus_areas: Areas fracas; a primeira tentativa usa o prompt de reforco

        Returns:
            GenerationResult com questoes, fallbacks e avisos

        Raises:
            ValidationError: Configuracao invalida
            GenerationInProgressError: Usuario ja possui geracao ativa
            QuizGenerationError: Nenhuma questao ou abaixo do minimo aceitavel
        """
        validation = QuizValidator.validate_config(config)
        if not validation.valid:
            raise ValidationError("Invalid quiz configuration", errors=validation.errors)

        if user_id is not None:
            if user_id in self._in_progress:
                raise GenerationInProgressError(
                    "A quiz generation is already in progress for this user",
                    {"user_id": user_id},
                )
            self._in_progress.add(user_id)

        try:
            return await self._generate(
                QuizValidator.sanitize_content(content), config, user_id, focus_areas or []
            )
        finally:
            if user_id is not None:
                self._in_progress.discard(user_id)

    async def _generate(
        self, content: str, config: QuizConfig, user_id: str | None, focus_areas: list[str]
    ) -> GenerationResult:
        target = config.question_count
        questions: list[Question] = []
        warnings: list[str] = []
        attempts = 0
        last_error: Exception | None = None

        logger.info(
            f"Gerando quiz: count={target}, types={[t.value for t in config.question_types]}, "
            f"provider={self.provider.name.value}"
        )

        while len(questions) < target and attempts < self.max_attempts:
            attempts += 1
            remaining = target - len(questions)

            if attempts == 1 and focus_areas:
                prompt = self.prompt_engine.build_follow_up_prompt(
                    content, focus_areas, count=remaining
                )
                max_tokens = self.FIRST_ATTEMPT_MAX_TOKENS
            elif attempts == 1:
                prompt = self.prompt_engine.build_prompt(content, config)
                max_tokens = self.FIRST_ATTEMPT_MAX_TOKENS
            else:
                prompt = self.prompt_engine.build_supplementary_prompt(
                    content, config, questions, remaining
                )
                max_tokens = self.RETRY_MAX_TOKENS

            try:
                raw_items = await self._request_items(prompt, max_tokens, user_id)
            except (AIError, ValueError) as e:
                last_error = e
                kind = self._failure_kind(e)
                logger.warning(
                    f"Tentativa {attempts}/{self.max_attempts} falhou ({kind}): {e}"
                )
                if attempts >= self.max_attempts and not questions:
                    raise QuizGenerationError(
                        f"Failed to generate quiz: {e}",
                        {"failure_kind": kind, "attempts": attempts},
                    ) from e
                continue

            accepted = 0
            for raw in raw_items:
                if len(questions) >= target:
                    break
                question = await self._transform(raw, len(questions), config, warnings)
                if question is None:
                    continue
                result = QuizValidator.validate_question(
                    question, require_explanation=config.include_explanations
                )
                if not result.valid:
                    logger.debug(f"Questao descartada: {result.errors}")
                    continue
                unique_id = self._unique_id(question.id, {q.id for q in questions})
                if unique_id != question.id:
                    question = question.model_copy(update={"id": unique_id})
                questions.append(question)
                accepted += 1

            logger.info(
                f"Tentativa {attempts}: {accepted}/{len(raw_items)} questoes aceitas "
                f"({len(questions)}/{target})"
            )

        generated = len(questions)
        if generated == 0:
            raise QuizGenerationError(
                "No valid questions could be generated from the provided content",
                {"attempts": attempts, "last_error": str(last_error) if last_error else None},
            )

        minimum = max(1, math.floor(target * self.min_success_ratio))
        if generated < minimum:
            raise QuizGenerationError(
                f"Only {generated} of {target} questions could be generated",
                {"generated": generated, "requested": target, "minimum": minimum},
            )

        fallback_count = 0
        if generated < target:
            fallback_count = target - generated
            logger.warning(f"Completando com {fallback_count} questoes de fallback")
            questions.extend(self.create_fallback_questions(fallback_count))

        if len(questions) > target:
            questions = questions[:target]

        questions = QuizValidator.standardize_answer_formats(questions)
        warnings.extend(QuizValidator.validate_question_count(questions, target).warnings)

        distribution = QuizValidator.validate_question_distribution(questions, config)
        warnings.extend(distribution.warnings)

        return GenerationResult(
            questions=questions,
            fallback_count=fallback_count,
            attempts=attempts,
            warnings=warnings,
            provider=self.provider.name.value,
            model=self.provider.model,
        )

    # =========================================================================
    # LLM
    # =========================================================================

    async def _request_items(
        self, prompt: str, max_tokens: int, user_id: str | None
    ) -> list[dict]:
        try:
            response = await self.provider.generate(
                prompt,
                system_prompt=QUIZ_SYSTEM_PROMPT,
                max_tokens=max_tokens,
                temperature=self.TEMPERATURE,
            )
        except AIError as e:
            await self._track(user_id, success=False, error=str(e))
            raise

        await self._track(
            user_id,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )
        return extract_questions(parse_ai_json(response.content))

    async def _track(self, user_id: str | None, success: bool = True, **kwargs: Any) -> None:
        if self.usage_tracker is None:
            return
        await self.usage_tracker.track(
            user_id=user_id or "anonymous",
            provider=self.provider.name.value,
            model=self.provider.model,
            operation="quiz_generation",
            success=success,
            **kwargs,
        )

    @staticmethod
    def _failure_kind(error: Exception) -> str:
        if isinstance(error, AIError):
            if error.code == AIErrorCode.API_ERROR and "No content" in error.message:
                return "empty_response"
            return "provider_error"
        if "vazia" in str(error).lower():
            return "empty_response"
        return "malformed_json"

    # =========================================================================
    # TRANSFORMACAO
    # =========================================================================

    @staticmethod
    def _pick(raw: dict, *keys: str) -> Any:
        for key in keys:
            if raw.get(key) is not None:
                return raw[key]
        return None

    @staticmethod
    def _clamp(value: Any, bounds: tuple[int, int], default: int) -> int:
        try:
            number = int(value) if value else default
        except (TypeError, ValueError):
            number = default
        low, high = bounds
        return max(low, min(high, number))

    @staticmethod
    def _unique_id(question_id: str, taken: set[str]) -> str:
        """Sufixo _2, _3... quando a IA repete um id ja usado no quiz."""
        candidate, suffix = question_id, 2
        while candidate in taken:
            candidate = f"{question_id}_{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _letter_options(options: list[Any]) -> list[str]:
        """Garante prefixo "A) " nas alternativas."""
        lettered = []
        for index, option in enumerate(options):
            text = str(option).strip()
            if not _OPTION_HAS_LETTER.match(text) and index < 26:
                text = f"{chr(ord('A') + index)}) {text}"
            lettered.append(text)
        return lettered

    def _metadata(self, raw: dict, config: QuizConfig) -> QuestionMetadata:
        meta = raw.get("metadata") if isinstance(raw.get("metadata"), dict) else {}
        categories = meta.get("categories")
        if not isinstance(categories, list) or not categories:
            categories = list(config.categories) or ["General"]
        return QuestionMetadata(
            difficulty=self._clamp(meta.get("difficulty"), self.DIFFICULTY_RANGE, 3),
            categories=[str(c) for c in categories],
            estimated_time=self._clamp(
                self._pick(meta, "estimated_time", "estimatedTime"),
                self.ESTIMATED_TIME_RANGE,
                120,
            ),
            learning_objective=str(
                self._pick(meta, "learning_objective", "learningObjective")
                or "General understanding"
            ),
        )

    async def _transform(
        self, raw: Any, index: int, config: QuizConfig, warnings: list[str]
    ) -> Question | None:
        """Converte item bruto da IA em Question canonica (None se invalido)."""
        if not isinstance(raw, dict):
            return None
        text = raw.get("question")
        if not isinstance(text, str) or not text.strip():
            logger.warning("Questao sem enunciado descartada")
            return None

        try:
            qtype = QuestionType(raw.get("type"))
        except ValueError:
            qtype = config.question_types[0]
        if qtype not in config.question_types:
            qtype = config.question_types[0]

        correct = self._pick(raw, "correct_answer", "correctAnswer")
        options = raw.get("options") if isinstance(raw.get("options"), list) else None

        if qtype == QuestionType.MULTIPLE_CHOICE_EXTENDED:
            if not options or len(options) < 2:
                logger.warning("Multipla escolha com alternativas insuficientes descartada")
                return None
            options = self._letter_options(options)
            if isinstance(correct, str):
                match = _LETTER_PREFIX.match(correct.strip())
                if match:
                    correct = match.group(1)

        if qtype == QuestionType.TRUE_FALSE_EXPLAINED:
            correct = AnswerNormalizer.normalize_answer(correct, qtype)
            if correct is None:
                logger.warning("Verdadeiro/falso sem resposta booleana reconhecivel descartada")
                return None

        sub_questions = None
        raw_subs = self._pick(raw, "sub_questions", "subQuestions")
        if isinstance(raw_subs, list):
            sub_questions = [
                SubQuestion(
                    id=str(s.get("id")) if s.get("id") is not None else None,
                    question=str(s.get("question", "")),
                    correct_answer=self._pick(s, "correct_answer", "correctAnswer"),
                )
                for s in raw_subs
                if isinstance(s, dict)
            ]

        visual = None
        if qtype.is_visual:
            visual = await self._generate_visual(qtype, text.strip(), config, warnings)

        explanation = raw.get("explanation")
        return Question(
            id=str(raw.get("id") or f"adv_q_{int(time.time() * 1000)}_{index}"),
            type=qtype,
            question=text.strip(),
            options=options,
            correct_answer=correct,
            explanation=explanation.strip()
            if isinstance(explanation, str) and explanation.strip()
            else "No explanation provided",
            visual=visual,
            sub_questions=sub_questions,
            metadata=self._metadata(raw, config),
        )

    async def _generate_visual(
        self, qtype: QuestionType, question_text: str, config: QuizConfig, warnings: list[str]
    ) -> VisualContent | None:
        """Gera imagem para tipos visuais; falha degrada para texto."""
        if self.image_generator is None:
            message = "Image generation unavailable; visual questions are text-only"
            if message not in warnings:
                warnings.append(message)
            return None

        context = config.categories[0] if config.categories else "General"
        prompt = self.prompt_engine.build_visual_prompt(qtype, question_text, context)
        try:
            data = await self.image_generator.generate(prompt)
        except AIError as e:
            logger.warning(f"Geracao de imagem falhou, usando apenas texto: {e}")
            warnings.append(f"Visual content unavailable for a {qtype.value} question: {e}")
            return None

        return VisualContent(
            type=VisualType.CHART if qtype == QuestionType.CHART_ANALYSIS else VisualType.DIAGRAM,
            data=data,
            description=VISUAL_DESCRIPTIONS.get(qtype, "Generated visual content"),
        )

    # =========================================================================
    # FALLBACK
    # =========================================================================

    @staticmethod
    def create_fallback_questions(count: int) -> list[Question]:
        """Questoes genericas de preenchimento, marcadas como fallback."""
        timestamp = int(time.time() * 1000)
        return [
            Question(
                id=f"fallback_q_{timestamp}_{i}",
                type=QuestionType.MULTIPLE_CHOICE_EXTENDED,
                question=FALLBACK_QUESTION_TEXT.format(number=i + 1),
                options=list(FALLBACK_OPTIONS),
                correct_answer="A",
                explanation=FALLBACK_EXPLANATION,
                metadata=QuestionMetadata(
                    difficulty=2,
                    categories=["General"],
                    estimated_time=90,
                    learning_objective=FALLBACK_LEARNING_OBJECTIVE,
                ),
                is_fallback=True,
            )
            for i in range(count)
        ]

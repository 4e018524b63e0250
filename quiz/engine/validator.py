"""Quiz Validator - Regras estaticas para config, questoes e sessoes.

Todas as funcoes de validacao retornam ValidationResult e nunca levantam
excecao: entrada malformada vira mensagem de erro.
"""

import base64
import binascii
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from ..models.enums import VISUAL_QUESTION_TYPES, QuestionType, VisualType
from ..models.schemas import Question, QuizConfig
from .answer_normalizer import AnswerNormalizer

logger = logging.getLogger(__name__)

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_IFRAME_TAG = re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE)
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
# Preserva \t \n \r
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

VALID_QUESTION_TYPES = {t.value for t in QuestionType}
VALID_VISUAL_TYPES = {t.value for t in VisualType}


@dataclass
class ValidationResult:
    """Resultado de validacao."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors, "warnings": self.warnings}


def _as_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, dict):
        return obj
    return {}


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class QuizValidator:
    """Validacao de configuracao, questoes geradas e sessoes.

    Limites:
        - question_count: 1-50
        - categorias: ate 10
        - palavras-chave: ate 20
        - enunciado >= 10 caracteres, explicacao >= 20
        - metadata: dificuldade 1-5, tempo 10-600s, objetivo >= 5 caracteres
    """

    MIN_QUESTIONS = 1
    MAX_QUESTIONS = 50
    MAX_CATEGORIES = 10
    MAX_KEYWORDS = 20
    MIN_QUESTION_LENGTH = 10
    MIN_EXPLANATION_LENGTH = 20
    MIN_MC_OPTIONS = 3
    MIN_SUB_QUESTIONS = 2
    MIN_VISUAL_DESCRIPTION = 10
    MIN_OBJECTIVE_LENGTH = 5
    ESTIMATED_TIME_RANGE = (10, 600)
    DIFFICULTY_RANGE = (1, 5)

    # Abaixo desta fracao de questoes reais o quiz e considerado insuficiente
    ACCEPTABLE_COUNT_RATIO = 0.8

    # =========================================================================
    # CONFIG
    # =========================================================================

    @classmethod
    def validate_config(cls, config: QuizConfig | dict[str, Any]) -> ValidationResult:
        """Valida configuracao antes da geracao."""
        data = _as_dict(config)
        errors: list[str] = []

        count = data.get("question_count")
        if isinstance(count, bool) or not isinstance(count, int):
            errors.append("Question count must be an integer")
        elif count < cls.MIN_QUESTIONS or count > cls.MAX_QUESTIONS:
            errors.append(
                f"Question count must be between {cls.MIN_QUESTIONS} and {cls.MAX_QUESTIONS}"
            )

        types = data.get("question_types") or []
        if not isinstance(types, list) or len(types) == 0:
            errors.append("At least one question type must be selected")
        else:
            invalid = [str(_enum_value(t)) for t in types if _enum_value(t) not in VALID_QUESTION_TYPES]
            if invalid:
                errors.append(f"Invalid question types: {', '.join(invalid)}")

        categories = data.get("categories") or []
        if len(categories) > cls.MAX_CATEGORIES:
            errors.append(f"Maximum {cls.MAX_CATEGORIES} categories allowed")

        keywords = data.get("custom_keywords") or []
        if len(keywords) > cls.MAX_KEYWORDS:
            errors.append(f"Maximum {cls.MAX_KEYWORDS} custom keywords allowed")

        return ValidationResult(valid=not errors, errors=errors)

    # =========================================================================
    # QUESTION
    # =========================================================================

    @classmethod
    def validate_question(
        cls, question: Question | dict[str, Any], require_explanation: bool = True
    ) -> ValidationResult:
        """Valida estrutura de uma questao gerada.

        Args:
            question: Questao (modelo ou dict)
            require_explanation: Exigir explicacao com tamanho minimo
        """
        data = _as_dict(question)
        errors: list[str] = []
        warnings: list[str] = []

        text = data.get("question")
        if not isinstance(text, str) or len(text.strip()) < cls.MIN_QUESTION_LENGTH:
            errors.append(f"Question text must be at least {cls.MIN_QUESTION_LENGTH} characters")
            text = text if isinstance(text, str) else ""

        explanation = data.get("explanation")
        if require_explanation and (
            not isinstance(explanation, str) or len(explanation.strip()) < cls.MIN_EXPLANATION_LENGTH
        ):
            errors.append(
                f"Explanation must be at least {cls.MIN_EXPLANATION_LENGTH} characters"
            )

        qtype = _enum_value(data.get("type"))
        correct = data.get("correct_answer")

        if qtype not in VALID_QUESTION_TYPES:
            errors.append(f"Invalid question type: {qtype}")

        elif qtype == QuestionType.MULTIPLE_CHOICE_EXTENDED.value:
            options = data.get("options") or []
            if len(options) < cls.MIN_MC_OPTIONS:
                errors.append(
                    f"Multiple choice questions must have at least {cls.MIN_MC_OPTIONS} options"
                )
            if correct is None or correct == "":
                errors.append("Multiple choice questions must have a correct answer")
            elif options and not cls._answer_in_options(correct, options):
                errors.append("Correct answer must match one of the provided options")

        elif qtype == QuestionType.TRUE_FALSE_EXPLAINED.value:
            if not isinstance(correct, bool):
                errors.append("True/false questions must have a boolean correct answer")

        elif qtype == QuestionType.MULTI_PART.value:
            subs = data.get("sub_questions") or []
            if len(subs) < cls.MIN_SUB_QUESTIONS:
                errors.append(
                    f"Multi-part questions must have at least {cls.MIN_SUB_QUESTIONS} sub-questions"
                )

        elif qtype in {t.value for t in VISUAL_QUESTION_TYPES}:
            visual = data.get("visual")
            if visual:
                visual_errors = cls.validate_visual_content(visual)
                errors.extend(visual_errors)
            elif "described" not in text and "mentioned" not in text:
                warnings.append(f"Visual question type {qtype} without visual content")

        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            errors.append("Question metadata is required")
        else:
            errors.extend(cls._metadata_errors(metadata))

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    @staticmethod
    def _answer_in_options(correct: Any, options: list[str]) -> bool:
        mc = QuestionType.MULTIPLE_CHOICE_EXTENDED
        normalized = AnswerNormalizer.normalize_answer(correct, mc)
        return any(AnswerNormalizer.normalize_answer(opt, mc) == normalized for opt in options)

    @classmethod
    def _metadata_errors(cls, metadata: dict[str, Any]) -> list[str]:
        errors = []
        low, high = cls.DIFFICULTY_RANGE
        difficulty = metadata.get("difficulty")
        if not isinstance(difficulty, (int, float)) or not low <= difficulty <= high:
            errors.append(f"Difficulty must be between {low} and {high}")

        low, high = cls.ESTIMATED_TIME_RANGE
        estimated = metadata.get("estimated_time")
        if not isinstance(estimated, (int, float)) or not low <= estimated <= high:
            errors.append(f"Estimated time must be between {low} and {high} seconds")

        if not metadata.get("categories"):
            errors.append("At least one category must be specified in metadata")

        objective = metadata.get("learning_objective")
        if not isinstance(objective, str) or len(objective.strip()) < cls.MIN_OBJECTIVE_LENGTH:
            errors.append("Learning objective must be specified and meaningful")
        return errors

    @classmethod
    def validate_visual_content(cls, visual: Any) -> list[str]:
        """Retorna erros do payload visual (lista vazia se valido)."""
        data = _as_dict(visual)
        if not data:
            return ["Invalid visual content format"]

        errors = []
        if _enum_value(data.get("type")) not in VALID_VISUAL_TYPES:
            errors.append(f"Invalid visual content type: {data.get('type')}")

        payload = data.get("data")
        if payload:
            if not isinstance(payload, str) or not cls.is_valid_base64(payload):
                errors.append("Visual content data must be valid base64")

        description = data.get("description")
        if not isinstance(description, str) or len(description) < cls.MIN_VISUAL_DESCRIPTION:
            errors.append("Visual content must have a description of at least 10 characters")
        return errors

    @staticmethod
    def is_valid_base64(value: str) -> bool:
        """Verifica base64 puro ou data URL (data:image/...;base64,...)."""
        if value.startswith("data:image/"):
            _, _, value = value.partition(",")
            if not value:
                return False
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            return False
        return base64.b64encode(decoded).decode("ascii") == value

    # =========================================================================
    # SESSION
    # =========================================================================

    @classmethod
    def validate_quiz_session(
        cls, questions: list[Question], answers: list[Any]
    ) -> ValidationResult:
        """Valida correspondencia 1:1 entre questoes e respostas."""
        errors: list[str] = []
        if len(questions) != len(answers):
            errors.append("Number of questions and answers must match")

        for index, (question, answer) in enumerate(zip(questions, answers)):
            if answer is None:
                continue
            position = index + 1

            if question.type == QuestionType.MULTIPLE_CHOICE_EXTENDED and question.options:
                if not cls._answer_in_options(answer, question.options):
                    errors.append(f"Invalid answer for question {position}: {answer}")

            elif question.type == QuestionType.TRUE_FALSE_EXPLAINED:
                if AnswerNormalizer.normalize_answer(answer, question.type) is None:
                    errors.append(
                        f"True/false answer must be boolean or boolean string for question {position}"
                    )

            elif question.type == QuestionType.MULTI_PART:
                expected = len(question.sub_questions or [])
                if not isinstance(answer, list) or len(answer) != expected:
                    errors.append(
                        "Multi-part answer must be an array matching sub-question count "
                        f"for question {position}"
                    )

        return ValidationResult(valid=not errors, errors=errors)

    @classmethod
    def validate_question_count(cls, questions: list[Question], requested: int) -> ValidationResult:
        """Confere quantidade final e proporcao de questoes reais."""
        errors: list[str] = []
        warnings: list[str] = []

        if len(questions) != requested:
            errors.append(f"Expected {requested} questions, got {len(questions)}")

        real = sum(1 for q in questions if not q.is_fallback)
        if requested > 0 and real < requested:
            if real / requested >= cls.ACCEPTABLE_COUNT_RATIO:
                warnings.append(
                    f"Generated {real} questions instead of {requested} due to content limitations; "
                    f"added {requested - real} fallback question(s)"
                )
            else:
                warnings.append(
                    f"Only generated {real} out of {requested} requested questions; "
                    f"{requested - real} fallback questions were added"
                )

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    @staticmethod
    def validate_question_distribution(
        questions: list[Question], config: QuizConfig
    ) -> ValidationResult:
        """Avisa sobre tipos ausentes ou distribuicao desbalanceada."""
        warnings: list[str] = []
        distribution: dict[str, int] = {}
        for q in questions:
            if q.is_fallback:
                continue
            distribution[q.type.value] = distribution.get(q.type.value, 0) + 1

        requested = [t.value for t in config.question_types]
        missing = [t for t in requested if t not in distribution]
        if missing:
            warnings.append(f"Missing question types: {', '.join(missing)}")

        if requested and distribution:
            average = sum(distribution.values()) / len(requested)
            tolerance = math.ceil(average * 0.5)
            uneven = [t for t, c in distribution.items() if abs(c - average) > tolerance]
            if uneven:
                warnings.append(f"Uneven distribution detected for types: {', '.join(uneven)}")

        return ValidationResult(valid=not warnings, warnings=warnings)

    # =========================================================================
    # UTILITARIOS
    # =========================================================================

    @staticmethod
    def sanitize_content(content: str) -> str:
        """Remove script/iframe, 'javascript:' e caracteres de controle."""
        cleaned = _SCRIPT_TAG.sub("", content)
        cleaned = _IFRAME_TAG.sub("", cleaned)
        cleaned = _JS_PROTOCOL.sub("", cleaned)
        cleaned = _CONTROL.sub("", cleaned)
        return cleaned.strip()

    @staticmethod
    def standardize_answer_formats(questions: list[Question]) -> list[Question]:
        """Reduz a resposta correta de multipla escolha para a letra da opcao."""
        mc = QuestionType.MULTIPLE_CHOICE_EXTENDED
        standardized = []
        for question in questions:
            if question.type == mc and question.options and question.correct_answer is not None:
                normalized = AnswerNormalizer.normalize_answer(question.correct_answer, mc)
                if any(AnswerNormalizer.normalize_answer(o, mc) == normalized for o in question.options):
                    question = question.model_copy(update={"correct_answer": normalized})
            standardized.append(question)
        return standardized

    @staticmethod
    def log_validation(component: str, result: ValidationResult) -> None:
        if not result.valid and result.errors:
            logger.error(f"Validacao falhou para {component}: {result.errors}")
        elif result.warnings:
            logger.warning(f"Avisos de validacao para {component}: {result.warnings}")
        else:
            logger.debug(f"Validacao ok para {component}")

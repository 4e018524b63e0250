"""Prompt Engine - Monta prompts de geracao a partir da configuracao.

Funcoes puras: mesma entrada, mesmo prompt.
"""

import logging
from collections.abc import Sequence

from ..models.enums import VISUAL_QUESTION_TYPES, ContentType, Difficulty, QuestionDepth, QuestionType
from ..models.schemas import Question, QuizConfig
from .templates import (
    ADVANCED_QUIZ_PROMPT,
    DEPTH_MODIFIERS,
    DIFFICULTY_MODIFIERS,
    FOLLOW_UP_PROMPT,
    MAIN_CONTENT_LIMIT,
    QUESTION_TYPE_INSTRUCTIONS,
    RESPONSE_SCHEMA_EXAMPLE,
    SUPPLEMENTARY_CONTENT_LIMIT,
    SUPPLEMENTARY_PROMPT,
    TEXT_CONTENT_VISUAL_INSTRUCTIONS,
    TRUNCATION_NOTICE,
    VISUAL_IMAGE_PROMPTS,
    VISUAL_TEXT_GUIDANCE,
)

logger = logging.getLogger(__name__)


class QuizPromptEngine:
    """Gera prompts estruturados para o LLM.

    Example:
        >>> engine = QuizPromptEngine()
        >>> prompt = engine.build_prompt(content, config)
        >>> "EXACTLY 5 questions" in prompt
        True
    """

    def __init__(self, content_limit: int = MAIN_CONTENT_LIMIT):
        self.content_limit = content_limit

    # =========================================================================
    # BLOCOS
    # =========================================================================

    @staticmethod
    def type_instruction(question_type: QuestionType, content_type: ContentType) -> str:
        """Instrucao do tipo (tipos visuais tem variante para conteudo texto)."""
        if content_type == ContentType.TEXT and question_type in TEXT_CONTENT_VISUAL_INSTRUCTIONS:
            return TEXT_CONTENT_VISUAL_INSTRUCTIONS[question_type]
        return QUESTION_TYPE_INSTRUCTIONS[question_type]

    @classmethod
    def type_instructions(cls, config: QuizConfig) -> str:
        lines = []
        for qtype in dict.fromkeys(config.question_types):
            label = qtype.value.replace("_", " ").upper()
            lines.append(f"- {label}: {cls.type_instruction(qtype, config.content_type)}")
        return "\n".join(lines)

    @staticmethod
    def difficulty_modifier(difficulty: Difficulty | str) -> str:
        try:
            return DIFFICULTY_MODIFIERS[Difficulty(difficulty)]
        except ValueError:
            return DIFFICULTY_MODIFIERS[Difficulty.INTERMEDIATE]

    @staticmethod
    def depth_modifier(depth: QuestionDepth | str) -> str:
        try:
            return DEPTH_MODIFIERS[QuestionDepth(depth)]
        except ValueError:
            return DEPTH_MODIFIERS[QuestionDepth.MEDIUM]

    @staticmethod
    def category_prompt(categories: Sequence[str]) -> str:
        if not categories:
            return ""
        return (
            f"Focus questions on these specific categories: {', '.join(categories)}. "
            "Ensure questions align with these learning objectives. "
        )

    @staticmethod
    def keyword_prompt(keywords: Sequence[str]) -> str:
        if not keywords:
            return ""
        return (
            f"Incorporate these specific keywords/concepts where relevant: {', '.join(keywords)}. "
            "Make sure these terms are featured in questions. "
        )

    @staticmethod
    def visual_guidance(config: QuizConfig) -> str:
        """Orientacao extra quando ha tipos visuais e o conteudo e texto."""
        has_visual = any(t in VISUAL_QUESTION_TYPES for t in config.question_types)
        if has_visual and config.content_type == ContentType.TEXT:
            return VISUAL_TEXT_GUIDANCE
        return ""

    @staticmethod
    def requirements(config: QuizConfig) -> str:
        lines = [
            "- Each question MUST include a detailed explanation (minimum 2-3 sentences)",
            "- Questions should test understanding and application, not just recall",
            "- Include metadata for difficulty estimation and learning objectives",
            "- Use varied question formats to maintain engagement",
        ]
        if config.enable_multi_part:
            lines.append("- Include multi-part questions where appropriate")
        if config.include_explanations:
            lines.append("- Provide comprehensive explanations for all answers")
        lines.extend(
            [
                '- For multiple choice: Use format "A) Option text", "B) Option text", etc.',
                "- For true/false: Provide boolean values (true/false)",
                "- Ensure questions are directly based on the provided content",
            ]
        )
        return "\n".join(lines)

    @staticmethod
    def truncate(content: str, limit: int, notice: bool = True) -> str:
        """Corta o conteudo no limite, com aviso opcional."""
        if len(content) <= limit:
            return content
        return content[:limit] + (TRUNCATION_NOTICE if notice else "")

    # =========================================================================
    # PROMPTS
    # =========================================================================

    def build_prompt(
        self, content: str, config: QuizConfig, remaining_count: int | None = None
    ) -> str:
        """Prompt principal de geracao.

        Args:
            content: Conteudo de origem
            config: Configuracao do quiz
            remaining_count: Quantidade a pedir (padrao: config.question_count)

        Returns:
            Prompt completo
        """
        count = remaining_count if remaining_count is not None else config.question_count
        logger.debug(f"Montando prompt principal: count={count}, content_length={len(content)}")

        steering = self.category_prompt(config.categories) + self.keyword_prompt(
            config.custom_keywords
        )

        return ADVANCED_QUIZ_PROMPT.format(
            count=count,
            type_instructions=self.type_instructions(config),
            difficulty=config.difficulty.value.upper(),
            difficulty_modifier=self.difficulty_modifier(config.difficulty),
            depth=config.question_depth.value.upper(),
            depth_modifier=self.depth_modifier(config.question_depth),
            steering=steering,
            visual_guidance=self.visual_guidance(config),
            requirements=self.requirements(config),
            schema=RESPONSE_SCHEMA_EXAMPLE,
            content=self.truncate(content, self.content_limit),
        )

    @staticmethod
    def summarize_existing(questions: Sequence[Question]) -> str:
        """Topicos ja cobertos (objetivo ou inicio do enunciado)."""
        topics = []
        for q in questions:
            objective = q.metadata.learning_objective if q.metadata else ""
            topics.append(objective or q.question[:50])
        return ", ".join(topics)

    def build_supplementary_prompt(
        self,
        content: str,
        config: QuizConfig,
        existing_questions: Sequence[Question],
        additional_count: int,
    ) -> str:
        """Prompt de retry pedindo apenas as questoes que faltam."""
        return SUPPLEMENTARY_PROMPT.format(
            count=additional_count,
            existing_topics=self.summarize_existing(existing_questions) or "none",
            difficulty=config.difficulty.value,
            question_types=", ".join(t.value for t in config.question_types),
            categories=", ".join(config.categories),
            content_type=config.content_type.value,
            visual_guidance=self.visual_guidance(config),
            content=self.truncate(content, SUPPLEMENTARY_CONTENT_LIMIT, notice=False),
            schema=RESPONSE_SCHEMA_EXAMPLE,
        )

    def build_follow_up_prompt(
        self,
        content: str,
        weak_areas: Sequence[str],
        previous_questions: Sequence[Question] = (),
        count: int = 5,
    ) -> str:
        """Prompt de reforco para areas fracas."""
        previous = ", ".join(
            (q.metadata.learning_objective if q.metadata else "") or "General"
            for q in previous_questions
        )
        return FOLLOW_UP_PROMPT.format(
            count=count,
            weak_areas=", ".join(weak_areas),
            previous_topics=previous or "General",
            content=self.truncate(content, SUPPLEMENTARY_CONTENT_LIMIT, notice=False),
            schema=RESPONSE_SCHEMA_EXAMPLE,
        )

    @staticmethod
    def build_visual_prompt(question_type: QuestionType, question_text: str, context: str) -> str:
        """Prompt para o gerador de imagens."""
        template = VISUAL_IMAGE_PROMPTS.get(
            question_type, VISUAL_IMAGE_PROMPTS[QuestionType.VISUAL_INTERPRETATION]
        )
        return template.format(question=question_text[:300], context=context[:500])

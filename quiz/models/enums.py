"""Quiz Enums - Tipos de questao, dificuldade e profundidade."""

from enum import Enum


class QuestionType(str, Enum):
    """Os nove tipos de questao avancada."""

    MULTIPLE_CHOICE_EXTENDED = "multiple_choice_extended"
    TRUE_FALSE_EXPLAINED = "true_false_explained"
    SCENARIO_BASED = "scenario_based"
    VISUAL_INTERPRETATION = "visual_interpretation"
    MULTI_PART = "multi_part"
    DIAGRAM_LABELING = "diagram_labeling"
    CHART_ANALYSIS = "chart_analysis"
    COMPARISON = "comparison"
    ESSAY_SHORT = "essay_short"

    @property
    def is_visual(self) -> bool:
        return self in VISUAL_QUESTION_TYPES

    @property
    def is_free_text(self) -> bool:
        return self in FREE_TEXT_QUESTION_TYPES


# Tipos que disparam geracao de imagem
VISUAL_QUESTION_TYPES = frozenset(
    {
        QuestionType.VISUAL_INTERPRETATION,
        QuestionType.DIAGRAM_LABELING,
        QuestionType.CHART_ANALYSIS,
    }
)

# Tipos comparados por sobreposicao de palavras
FREE_TEXT_QUESTION_TYPES = frozenset(
    {
        QuestionType.ESSAY_SHORT,
        QuestionType.SCENARIO_BASED,
        QuestionType.VISUAL_INTERPRETATION,
        QuestionType.CHART_ANALYSIS,
        QuestionType.COMPARISON,
        QuestionType.DIAGRAM_LABELING,
    }
)


class Difficulty(str, Enum):
    """Nivel de dificuldade do quiz."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class QuestionDepth(str, Enum):
    """Profundidade cognitiva das questoes."""

    SHALLOW = "shallow"  # Recordar fatos
    MEDIUM = "medium"  # Compreender e aplicar
    DEEP = "deep"  # Analisar, avaliar, sintetizar


class ContentType(str, Enum):
    """Tipo do conteudo de origem."""

    TEXT = "text"
    VISUAL = "visual"
    MIXED = "mixed"


class VisualType(str, Enum):
    """Tipo do payload visual de uma questao."""

    IMAGE = "image"
    CHART = "chart"
    DIAGRAM = "diagram"


class SourceType(str, Enum):
    """Origem do conteudo do quiz."""

    FILE = "file"
    NOTE = "note"
    TEXT = "text"

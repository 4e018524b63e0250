"""Quiz Schemas - Modelos Pydantic para configuracao, questoes e sessoes."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import ContentType, Difficulty, QuestionDepth, QuestionType, SourceType, VisualType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# CONFIG
# =============================================================================


class QuizConfig(BaseModel):
    """Configuracao de geracao (imutavel depois de enviada)."""

    model_config = ConfigDict(frozen=True)

    content_type: ContentType = Field(default=ContentType.TEXT, description="Tipo do conteudo")
    question_types: list[QuestionType] = Field(
        ..., description="Tipos de questao selecionados"
    )
    difficulty: Difficulty = Field(default=Difficulty.INTERMEDIATE, description="Dificuldade")
    question_count: int = Field(default=10, description="Numero de questoes (1-50)")
    question_depth: QuestionDepth = Field(
        default=QuestionDepth.MEDIUM, description="Profundidade cognitiva"
    )
    categories: list[str] = Field(default_factory=list, description="Categorias de foco")
    custom_keywords: list[str] = Field(default_factory=list, description="Palavras-chave")
    include_explanations: bool = Field(default=True, description="Exigir explicacoes")
    enable_multi_part: bool = Field(default=False, description="Permitir multi-parte")
    visual_support: bool = Field(default=False, description="Gerar imagens para tipos visuais")


# =============================================================================
# QUESTION
# =============================================================================


class VisualContent(BaseModel):
    """Payload visual (imagem base64 + descricao)."""

    type: VisualType = Field(..., description="image, chart ou diagram")
    data: str = Field(..., description="Imagem em base64 (data URL aceito)")
    description: str = Field(default="", description="Descricao textual do visual")


class SubQuestion(BaseModel):
    """Parte de uma questao multi-parte."""

    id: str | None = None
    question: str
    correct_answer: Any = None


class QuestionMetadata(BaseModel):
    """Metadados educacionais da questao."""

    difficulty: int = Field(default=3, description="Dificuldade 1-5")
    categories: list[str] = Field(default_factory=lambda: ["General"])
    estimated_time: int = Field(default=120, description="Tempo estimado em segundos")
    learning_objective: str = Field(default="General understanding")


class Question(BaseModel):
    """Questao canonica produzida pelo pipeline de geracao."""

    id: str = Field(..., description="ID da questao")
    type: QuestionType = Field(..., description="Tipo da questao")
    question: str = Field(..., description="Enunciado")
    options: list[str] | None = Field(default=None, description="Alternativas (tipos de escolha)")
    correct_answer: Any = Field(
        default=None, description="Letra, booleano, lista ou texto livre conforme o tipo"
    )
    explanation: str = Field(default="", description="Explicacao da resposta")
    visual: VisualContent | None = Field(default=None, description="Payload visual opcional")
    sub_questions: list[SubQuestion] | None = Field(default=None, description="Partes (multi_part)")
    metadata: QuestionMetadata = Field(default_factory=QuestionMetadata)
    is_fallback: bool = Field(default=False, description="Questao sintetica de preenchimento")


# =============================================================================
# SESSION
# =============================================================================


class QuizSession(BaseModel):
    """Sessao concluida (persistida uma unica vez)."""

    id: str
    user_id: str
    source_type: SourceType = SourceType.TEXT
    source_id: str | None = None
    source_title: str | None = None
    config: QuizConfig
    questions: list[Question]
    answers: list[Any]
    score: float = Field(..., description="Percentual 0-100")
    correct_count: int = 0
    category_scores: dict[str, float] = Field(default_factory=dict)
    time_spent: int = Field(default=0, description="Segundos")
    ai_service: str | None = None
    model_used: str | None = None
    fallback_count: int = 0
    completed_at: datetime = Field(default_factory=_utcnow)


# =============================================================================
# REQUEST / RESPONSE
# =============================================================================


class GenerateQuizRequest(BaseModel):
    """Request para geracao de quiz avancado."""

    content: str = Field(..., min_length=1, description="Conteudo de origem")
    config: QuizConfig
    provider: str | None = Field(default=None, description="Provedor (openai/anthropic/gemini)")
    model: str | None = Field(default=None, description="Modelo especifico")
    source_type: SourceType = SourceType.TEXT
    source_id: str | None = None


class FollowUpQuizRequest(GenerateQuizRequest):
    """Request para quiz de reforco nas areas fracas."""

    weak_areas: list[str] = Field(
        default_factory=list,
        description="Categorias a reforcar (vazio: topicos recomendados das ultimas sessoes)",
    )


class GenerateQuizResponse(BaseModel):
    """Response com questoes geradas."""

    quiz_id: str
    questions: list[Question]
    total_questions: int
    requested_count: int
    fallback_count: int = Field(default=0, description="Questoes de preenchimento")
    attempts: int = Field(default=1, description="Tentativas usadas")
    warnings: list[str] = Field(default_factory=list)
    ai_service: str | None = None
    model_used: str | None = None


class ValidationResponse(BaseModel):
    """Resultado de validacao."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AnswerCheckRequest(BaseModel):
    """Request para comparar uma resposta com a correta."""

    question: Question
    user_answer: Any = None


class AnswerCheckResponse(BaseModel):
    """Resultado da comparacao normalizada."""

    is_correct: bool
    partial_score: float = Field(..., ge=0, le=1)
    normalized_user_answer: Any = None
    normalized_correct_answer: Any = None
    display_answer: str
    explanation: str = ""


class SubmitSessionRequest(BaseModel):
    """Request para pontuar e salvar uma sessao concluida."""

    quiz_id: str | None = None
    config: QuizConfig
    questions: list[Question]
    answers: list[Any]
    time_spent: int = Field(default=0, ge=0)
    source_type: SourceType = SourceType.TEXT
    source_id: str | None = None
    source_title: str | None = None
    ai_service: str | None = None
    model_used: str | None = None


class QuestionResult(BaseModel):
    """Resultado de uma questao dentro da sessao."""

    question_id: str
    is_correct: bool
    partial_score: float
    user_answer: str
    correct_answer: str


class SubmitSessionResponse(BaseModel):
    """Resultado final da sessao."""

    session_id: str
    score: float
    correct_count: int
    total_questions: int
    category_scores: dict[str, float]
    results: list[QuestionResult]
    fallback_count: int = 0
    saved: bool = Field(..., description="Se a sessao foi persistida")


class PerformanceAnalytics(BaseModel):
    """Analise de desempenho a partir do historico."""

    sessions_analyzed: int
    category_averages: dict[str, float]
    strengths: list[str]
    weaknesses: list[str]
    recommended_topics: list[str]
    overall_progress: float

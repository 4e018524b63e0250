"""Quiz Router - Endpoints FastAPI de geracao, correcao e progresso."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query

import app_state
from agents.usage_tracker import UsageTracker
from core.config import get_config
from core.exceptions import StorageError, ValidationError
from history import HistoryFeature, HistoryPreferenceService
from providers.image_generator import ImageGenerator
from utils.validators import validate_record_id

from .engine.answer_normalizer import AnswerNormalizer
from .engine.generator import AdvancedQuizGenerator
from .engine.scoring_engine import QuizScoringEngine
from .engine.validator import QuizValidator
from .models.schemas import (
    AnswerCheckRequest,
    AnswerCheckResponse,
    FollowUpQuizRequest,
    GenerateQuizRequest,
    GenerateQuizResponse,
    PerformanceAnalytics,
    QuizSession,
    SubmitSessionRequest,
    SubmitSessionResponse,
    ValidationResponse,
)
from .models.state import QuizProgress
from .prompts import QuizPromptEngine
from .storage.quiz_store import QuizStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["Quiz"])


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================


async def get_quiz_store() -> QuizStore:
    """Dependency para obter QuizStore configurado."""
    return await app_state.get_quiz_store()


async def get_scoring_engine() -> QuizScoringEngine:
    """Dependency para obter ScoringEngine."""
    return QuizScoringEngine()


async def get_image_generator() -> ImageGenerator | None:
    """Gerador de imagens (None se desabilitado ou sem chave OpenAI)."""
    return ImageGenerator.from_settings()


# =============================================================================
# GERACAO
# =============================================================================


async def _run_generation(
    request: GenerateQuizRequest,
    user_id: str,
    image_generator: ImageGenerator | None,
    usage_tracker: UsageTracker,
    focus_areas: list[str] | None = None,
) -> GenerateQuizResponse:
    settings = get_config()
    provider = await app_state.resolve_provider(user_id, request.provider, request.model)
    generator = AdvancedQuizGenerator(
        provider,
        image_generator=image_generator if request.config.visual_support else None,
        usage_tracker=usage_tracker,
        prompt_engine=QuizPromptEngine(content_limit=settings.quiz_content_limit),
        max_attempts=settings.quiz_max_attempts,
        min_success_ratio=settings.quiz_min_success_ratio,
    )
    result = await generator.generate(
        request.content, request.config, user_id=user_id, focus_areas=focus_areas
    )

    quiz_id = str(uuid.uuid4())
    logger.info(
        f"Quiz {quiz_id} gerado: {len(result.questions)} questoes "
        f"({result.fallback_count} fallback, {result.attempts} tentativas)"
    )
    return GenerateQuizResponse(
        quiz_id=quiz_id,
        questions=result.questions,
        total_questions=len(result.questions),
        requested_count=request.config.question_count,
        fallback_count=result.fallback_count,
        attempts=result.attempts,
        warnings=result.warnings,
        ai_service=result.provider,
        model_used=result.model,
    )


@router.post("/generate", response_model=GenerateQuizResponse)
async def generate_quiz(
    request: GenerateQuizRequest,
    user_id: str = Depends(app_state.get_user_id),
    image_generator: ImageGenerator | None = Depends(get_image_generator),
    usage_tracker: UsageTracker = Depends(app_state.get_usage_tracker),
):
    """Gera um quiz avancado a partir do conteudo enviado.

    - Ate 3 tentativas no provedor (retries com prompt suplementar)
    - Questoes faltantes completadas com fallback (fallback_count)
    - Menos de 50% do pedido -> 422 QUIZ_GENERATION_FAILED
    - Tipos visuais sem imagem seguem apenas com texto (warning)
    """
    return await _run_generation(request, user_id, image_generator, usage_tracker)


@router.post("/follow-up", response_model=GenerateQuizResponse)
async def generate_follow_up_quiz(
    request: FollowUpQuizRequest,
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
    scoring: QuizScoringEngine = Depends(get_scoring_engine),
    image_generator: ImageGenerator | None = Depends(get_image_generator),
    usage_tracker: UsageTracker = Depends(app_state.get_usage_tracker),
):
    """Quiz de reforco focado nas areas fracas.

    Sem weak_areas no corpo, usa os topicos recomendados das ultimas sessoes.
    """
    weak_areas = [a.strip() for a in request.weak_areas if a.strip()]
    if not weak_areas:
        sessions = await store.get_history(user_id, limit=10)
        weak_areas = scoring.analyze_performance(sessions)["recommended_topics"]
    if not weak_areas:
        raise HTTPException(status_code=400, detail="No weak areas to review")

    return await _run_generation(
        request, user_id, image_generator, usage_tracker, focus_areas=weak_areas
    )


@router.post("/validate-config", response_model=ValidationResponse)
async def validate_config(config: dict[str, Any] = Body(...)):
    """Valida uma configuracao de quiz sem gerar nada."""
    result = QuizValidator.validate_config(config)
    QuizValidator.log_validation("quiz_config", result)
    return ValidationResponse(**result.to_dict())


# =============================================================================
# CORRECAO
# =============================================================================


@router.post("/answer", response_model=AnswerCheckResponse)
async def check_answer(
    request: AnswerCheckRequest,
    scoring: QuizScoringEngine = Depends(get_scoring_engine),
):
    """Compara a resposta do usuario com a correta (com credito parcial)."""
    question = request.question
    result = scoring.evaluate_answer(question, request.user_answer)
    return AnswerCheckResponse(
        is_correct=result.is_correct,
        partial_score=result.partial_score,
        normalized_user_answer=AnswerNormalizer.normalize_answer(request.user_answer, question.type),
        normalized_correct_answer=AnswerNormalizer.normalize_answer(
            question.correct_answer, question.type
        ),
        display_answer=result.user_answer,
        explanation=question.explanation,
    )


@router.post("/sessions", response_model=SubmitSessionResponse)
async def submit_session(
    request: SubmitSessionRequest,
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
    scoring: QuizScoringEngine = Depends(get_scoring_engine),
    preferences: HistoryPreferenceService = Depends(app_state.get_history_preferences),
):
    """Pontua e persiste uma sessao concluida.

    Respostas incompativeis com as questoes -> 400. quiz_id ja salvo -> 409.
    Outras falhas de persistencia nao escondem o resultado: retorna saved=false.
    """
    if request.quiz_id:
        validate_record_id(request.quiz_id)

    validation = QuizValidator.validate_quiz_session(request.questions, request.answers)
    if not validation.valid:
        QuizValidator.log_validation("quiz_session", validation)
        raise ValidationError("Invalid quiz session", errors=validation.errors)

    try:
        score = scoring.score_session(request.questions, request.answers)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = QuizSession(
        id=request.quiz_id or str(uuid.uuid4()),
        user_id=user_id,
        source_type=request.source_type,
        source_id=request.source_id,
        source_title=request.source_title,
        config=request.config,
        questions=request.questions,
        answers=request.answers,
        score=score.score,
        correct_count=score.correct_count,
        category_scores=score.category_scores,
        time_spent=request.time_spent,
        ai_service=request.ai_service,
        model_used=request.model_used,
        fallback_count=score.fallback_count,
    )

    saved = False
    try:
        if await preferences.is_enabled(user_id, HistoryFeature.QUIZ):
            await store.save_session(session)
            saved = True
        else:
            logger.info(f"Historico de quiz desabilitado para {user_id}; sessao nao salva")
    except (StorageError, ValueError) as e:
        logger.error(f"Erro ao salvar sessao {session.id}: {e}")

    if saved:
        await store.clear_progress(user_id, session.id)

    return SubmitSessionResponse(
        session_id=session.id,
        score=score.score,
        correct_count=score.correct_count,
        total_questions=score.total_questions,
        category_scores=score.category_scores,
        results=score.results,
        fallback_count=score.fallback_count,
        saved=saved,
    )


@router.get("/sessions")
async def list_sessions(
    limit: int = Query(default=10, ge=1, le=100),
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
):
    """Historico de sessoes concluidas, mais recentes primeiro."""
    sessions = await store.get_history(user_id, limit=limit)
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/analytics", response_model=PerformanceAnalytics)
async def get_analytics(
    limit: int = Query(default=10, ge=1, le=100),
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
    scoring: QuizScoringEngine = Depends(get_scoring_engine),
):
    """Analise de desempenho por categoria das ultimas sessoes."""
    sessions = await store.get_history(user_id, limit=limit)
    return PerformanceAnalytics(**scoring.analyze_performance(sessions))


# =============================================================================
# PROGRESSO (quiz em andamento)
# =============================================================================


@router.get("/progress")
async def list_progress(
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
):
    """IDs dos quizzes em andamento."""
    return {"quiz_ids": await store.list_progress(user_id)}


@router.get("/progress/{quiz_id}")
async def get_progress(
    quiz_id: str,
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
):
    """Snapshot retomavel de um quiz."""
    validate_record_id(quiz_id)
    progress = await store.load_progress(user_id, quiz_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="Quiz progress not found")
    return {
        **progress.to_dict(),
        "answered_count": progress.answered_count,
        "is_complete": progress.is_complete,
    }


@router.put("/progress/{quiz_id}")
async def save_progress(
    quiz_id: str,
    payload: dict[str, Any] = Body(...),
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
):
    """Salva snapshot do quiz em andamento."""
    validate_record_id(quiz_id)
    try:
        progress = QuizProgress.from_dict({**payload, "quiz_id": quiz_id})
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid quiz progress: {e}")

    progress = await store.save_progress(user_id, progress)
    return {"success": True, "quiz_id": quiz_id, "last_saved": progress.last_saved}


@router.delete("/progress/{quiz_id}")
async def clear_progress(
    quiz_id: str,
    user_id: str = Depends(app_state.get_user_id),
    store: QuizStore = Depends(get_quiz_store),
):
    """Remove snapshot (quiz concluido ou descartado)."""
    validate_record_id(quiz_id)
    cleared = await store.clear_progress(user_id, quiz_id)
    return {"success": True, "cleared": cleared}

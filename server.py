"""
Study Platform Server - AI quiz generation and study assistant

FastAPI server with:
- Advanced quiz generation (OpenAI, Anthropic, Gemini)
- Study chat with SSE streaming and cancellation
- AI history browse, export and cleanup
- Per-user preferences persisted in AgentFS
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app_state
from core.config import get_config
from core.exceptions import StudyPlatformError
from core.logger import configure_logging, get_logger, set_request_id
from providers import AIProviderFactory
from routers import (
    chat_router,
    history_router,
    preferences_router,
    providers_router,
    quiz_router,
)

logger = get_logger("server")


# =============================================================================
# FASTAPI APP
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    logger.info(
        "Iniciando Study Platform",
        environment=config.environment,
        default_provider=config.default_provider,
    )
    yield
    await app_state.cleanup()
    logger.info("Study Platform encerrado")


app = FastAPI(
    title="Study Platform",
    description="AI-assisted quizzes, study chat and learning history",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Propaga X-Request-Id para os logs e para a resposta."""
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(StudyPlatformError)
async def study_platform_error_handler(request: Request, exc: StudyPlatformError):
    if exc.status_code >= 500:
        logger.error("Erro na requisição", path=request.url.path, error=exc.message)
    else:
        logger.warning("Requisição rejeitada", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(quiz_router)
app.include_router(chat_router)
app.include_router(history_router)
app.include_router(providers_router)
app.include_router(preferences_router)


# =============================================================================
# HEALTH ENDPOINTS
# =============================================================================


@app.get("/")
async def root():
    return {"status": "ok", "message": "Study Platform API"}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    config = get_config()
    return {
        "status": "healthy",
        "environment": config.environment,
        "agentfs_open": app_state.agentfs is not None,
        "providers_configured": AIProviderFactory.available_providers(config),
        "image_generation": config.image_generation_enabled and bool(config.openai_api_key),
    }


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)

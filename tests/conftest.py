# =============================================================================
# CONFTEST - Fixtures compartilhadas para todos os testes
# =============================================================================
# Centraliza mocks, fixtures e configurações comuns
# =============================================================================

import json
import os
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


# =============================================================================
# FIXTURES DE AMBIENTE
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Configura ambiente de testes globalmente."""
    env_vars = {
        "OPENAI_API_KEY": "sk-test-openai-key",
        "ANTHROPIC_API_KEY": "test-key-123",
        "DEFAULT_AI_PROVIDER": "openai",
        "IMAGE_GENERATION_ENABLED": "false",
        "AGENTFS_ID": "study-platform-test",
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "ERROR",  # Reduzir logs em testes
    }
    with patch.dict(os.environ, env_vars):
        yield


@pytest.fixture(autouse=True)
def fresh_config():
    """Relê o ambiente antes de cada teste."""
    from core.config import reload_config

    reload_config()
    yield
    reload_config()


@pytest.fixture
def clean_env():
    """Limpa variáveis de ambiente para testes isolados."""
    with patch.dict(os.environ, {}, clear=True):
        yield


# =============================================================================
# FIXTURES DO AGENTFS
# =============================================================================


@pytest.fixture
def mock_agentfs():
    """Mock completo do AgentFS."""
    mock = MagicMock()

    # KV Store
    mock.kv = AsyncMock()
    mock.kv.get = AsyncMock(return_value=None)
    mock.kv.set = AsyncMock()
    mock.kv.delete = AsyncMock()
    mock.kv.list = AsyncMock(return_value=[])

    # Lifecycle
    mock.close = AsyncMock()

    return mock


@pytest.fixture
def mock_agentfs_with_data():
    """Mock do AgentFS com KV em memória."""
    mock = MagicMock()
    _storage = {}

    async def mock_get(key):
        return _storage.get(key)

    async def mock_set(key, value):
        _storage[key] = value

    async def mock_delete(key):
        _storage.pop(key, None)

    async def mock_list(prefix=""):
        return [{"key": k} for k in _storage if k.startswith(prefix)]

    mock.kv = AsyncMock()
    mock.kv.get = mock_get
    mock.kv.set = mock_set
    mock.kv.delete = mock_delete
    mock.kv.list = mock_list
    mock._storage = _storage

    mock.close = AsyncMock()

    return mock


@pytest.fixture
def record_store(mock_agentfs_with_data):
    """RecordStore sobre o KV em memória."""
    from storage import RecordStore

    return RecordStore(mock_agentfs_with_data)


# =============================================================================
# FIXTURES DE PROVEDOR DE IA
# =============================================================================


@pytest.fixture
def scripted_provider():
    """Fábrica de provedores com respostas pré-definidas.

    Cada item de `responses` é o texto devolvido por uma chamada a
    generate/chat, ou uma exceção a levantar. `stream_chunks` alimenta
    stream(); um callable na lista é executado (útil para cancelar).
    """
    from core.exceptions import AIError, AIErrorCode
    from providers.base import AIProviderName, AIResponse, BaseAIProvider, ProviderConfig

    class ScriptedProvider(BaseAIProvider):
        name = AIProviderName.OPENAI

        def __init__(self, responses=None, stream_chunks=None, model="gpt-4o-mini"):
            super().__init__(
                ProviderConfig(provider=AIProviderName.OPENAI, api_key="sk-test", model=model)
            )
            self.responses = list(responses or [])
            self.stream_chunks = list(stream_chunks or [])
            self.calls = []

        async def _complete(self, messages, system_prompt, max_tokens, temperature):
            self.calls.append(
                {"messages": messages, "system_prompt": system_prompt, "max_tokens": max_tokens}
            )
            if not self.responses:
                raise AIError("No scripted response left", AIErrorCode.API_ERROR)
            item = self.responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return AIResponse(
                content=item,
                provider="openai",
                model=self.model,
                input_tokens=100,
                output_tokens=200,
            )

        async def _stream(self, messages, system_prompt, max_tokens, temperature) -> AsyncIterator[str]:
            self.calls.append({"messages": messages, "system_prompt": system_prompt})
            for chunk in self.stream_chunks:
                if isinstance(chunk, Exception):
                    raise chunk
                if callable(chunk):
                    chunk()
                    continue
                yield chunk

        async def _check_key(self) -> None:
            return None

    return ScriptedProvider


# =============================================================================
# FIXTURES DE QUIZ
# =============================================================================


def _mc_item(index: int, category: str = "Biology") -> dict:
    return {
        "id": f"q{index}",
        "type": "multiple_choice_extended",
        "question": f"Which statement about photosynthesis number {index} is correct?",
        "options": ["Plants absorb light", "Plants eat soil", "Plants sleep", "None"],
        "correct_answer": "A",
        "explanation": "Chlorophyll absorbs light energy to drive photosynthesis.",
        "metadata": {
            "difficulty": 3,
            "categories": [category],
            "estimated_time": 90,
            "learning_objective": "Understand photosynthesis",
        },
    }


@pytest.fixture
def quiz_items():
    """Fábrica de itens de questão no formato bruto da IA."""

    def make(count: int, start: int = 0, category: str = "Biology") -> list[dict]:
        return [_mc_item(start + i, category) for i in range(count)]

    return make


@pytest.fixture
def quiz_response(quiz_items):
    """Fábrica de respostas JSON {"questions": [...]} como a IA devolve."""

    def make(count: int, start: int = 0, fenced: bool = False) -> str:
        text = json.dumps({"questions": quiz_items(count, start)})
        return f"Here is your quiz:\n```json\n{text}\n```" if fenced else text

    return make


@pytest.fixture
def sample_config():
    """QuizConfig com 4 questões de múltipla escolha."""
    from quiz.models import QuestionType, QuizConfig

    return QuizConfig(
        question_types=[QuestionType.MULTIPLE_CHOICE_EXTENDED],
        question_count=4,
        categories=["Biology"],
    )


@pytest.fixture
def sample_questions():
    """Três questões de tipos diferentes e categorias distintas."""
    from quiz.models import Question, QuestionType
    from quiz.models.schemas import QuestionMetadata

    return [
        Question(
            id="q1",
            type=QuestionType.MULTIPLE_CHOICE_EXTENDED,
            question="What is the powerhouse of the cell?",
            options=["A) Nucleus", "B) Mitochondria", "C) Ribosome"],
            correct_answer="B",
            explanation="Mitochondria produce most of the cell's ATP.",
            metadata=QuestionMetadata(categories=["Biology"]),
        ),
        Question(
            id="q2",
            type=QuestionType.TRUE_FALSE_EXPLAINED,
            question="Water boils at 100 degrees Celsius at sea level.",
            correct_answer=True,
            explanation="At 1 atm the boiling point of water is 100 C.",
            metadata=QuestionMetadata(categories=["Chemistry"]),
        ),
        Question(
            id="q3",
            type=QuestionType.ESSAY_SHORT,
            question="Explain what photosynthesis produces.",
            correct_answer="glucose oxygen energy",
            explanation="Photosynthesis converts light into chemical energy.",
            metadata=QuestionMetadata(categories=["Biology"]),
        ),
    ]


# =============================================================================
# FIXTURES DO FASTAPI
# =============================================================================


@pytest.fixture
def app_storage(mock_agentfs_with_data):
    """Injeta o AgentFS em memória no estado da aplicação."""
    import app_state

    app_state.set_agentfs(mock_agentfs_with_data)
    yield mock_agentfs_with_data
    app_state.set_agentfs(None)


@pytest.fixture
def client(app_storage):
    """Cliente de teste FastAPI."""
    from fastapi.testclient import TestClient
    from server import app

    return TestClient(app)


@pytest.fixture
def async_client(app_storage):
    """Cliente assíncrono para testes async."""
    from httpx import ASGITransport, AsyncClient
    from server import app

    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


# =============================================================================
# FIXTURES DE LOG
# =============================================================================


@pytest.fixture
def capture_logs():
    """Captura registros do namespace 'study'."""
    import logging

    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = ListHandler()
    root = logging.getLogger("study")
    previous = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    yield records
    root.removeHandler(handler)
    root.setLevel(previous)

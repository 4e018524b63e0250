# =============================================================================
# TESTES - Provedores de IA
# =============================================================================
# OpenAI, Anthropic e Gemini sobre httpx.MockTransport; erros e factory
# =============================================================================

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from core.exceptions import AIError, AIErrorCode
from providers import (
    AIProviderFactory,
    AIProviderName,
    AnthropicProvider,
    GeminiProvider,
    ImageGenerator,
    OpenAIProvider,
    ProviderConfig,
    mask_api_key,
    with_retry,
)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _sse(*events):
    lines = [f"data: {json.dumps(e)}" for e in events] + ["data: [DONE]", ""]
    return "\n\n".join(lines).encode()


class TestOpenAIProvider:
    """Chat completions."""

    @pytest.mark.asyncio
    async def test_generate(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "gpt-4o-mini",
                "choices": [{"message": {"content": "Hello"}}],
                "usage": {"prompt_tokens": 12, "completion_tokens": 3},
            })

        provider = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-key"), http_client=_client(handler)
        )

        response = await provider.generate("Hi", system_prompt="Be brief", max_tokens=50)

        assert response.content == "Hello"
        assert response.total_tokens == 15
        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-key"
        assert seen["body"]["messages"][0] == {"role": "system", "content": "Be brief"}
        assert seen["body"]["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_stream(self):
        body = _sse(
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": [{"delta": {"content": "Hel"}}]},
            {"choices": [{"delta": {"content": "lo"}}]},
        )
        provider = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-key"),
            http_client=_client(lambda r: httpx.Response(200, content=body)),
        )

        parts = [p async for p in provider.stream([{"role": "user", "content": "Hi"}])]

        assert parts == ["Hel", "lo"]

    @pytest.mark.asyncio
    async def test_empty_content(self):
        provider = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-key"),
            http_client=_client(
                lambda r: httpx.Response(200, json={"choices": [{"message": {"content": ""}}]})
            ),
        )

        with pytest.raises(AIError) as exc:
            await provider.generate("Hi")

        assert exc.value.message == "No content received from AI service"

    @pytest.mark.asyncio
    async def test_missing_key(self):
        provider = OpenAIProvider(ProviderConfig(provider="openai"))

        with pytest.raises(AIError) as exc:
            await provider.generate("Hi")

        assert exc.value.code == AIErrorCode.NO_API_KEY


class TestAnthropicProvider:
    """Messages API."""

    @pytest.mark.asyncio
    async def test_generate_moves_system_prompt(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "content": [{"type": "text", "text": "Hola"}, {"type": "tool_use"}],
                "usage": {"input_tokens": 5, "output_tokens": 2},
            })

        provider = AnthropicProvider(
            ProviderConfig(provider="anthropic", api_key="ak", temperature=1.5),
            http_client=_client(handler),
        )

        response = await provider.chat(
            [{"role": "system", "content": "x"}, {"role": "user", "content": "Hi"}],
            system_prompt="Tutor",
        )

        assert response.content == "Hola"
        assert seen["headers"]["x-api-key"] == "ak"
        assert seen["headers"]["anthropic-version"] == "2023-06-01"
        assert seen["body"]["system"] == "Tutor"
        assert seen["body"]["messages"] == [{"role": "user", "content": "Hi"}]
        assert seen["body"]["temperature"] == 1.0

    @pytest.mark.asyncio
    async def test_stream_text_deltas(self):
        body = _sse(
            {"type": "message_start"},
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "A"}},
            {"type": "content_block_delta", "delta": {"type": "input_json_delta"}},
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "B"}},
        )
        provider = AnthropicProvider(
            ProviderConfig(provider="anthropic", api_key="ak"),
            http_client=_client(lambda r: httpx.Response(200, content=body)),
        )

        parts = [p async for p in provider.stream([{"role": "user", "content": "Hi"}])]

        assert parts == ["A", "B"]


class TestGeminiProvider:
    """generateContent."""

    @pytest.mark.asyncio
    async def test_generate(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": "Bon"}, {"text": "jour"}]}}],
                "usageMetadata": {"promptTokenCount": 4, "candidatesTokenCount": 2},
            })

        provider = GeminiProvider(
            ProviderConfig(provider="gemini", api_key="gk"), http_client=_client(handler)
        )

        response = await provider.chat(
            [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Yo"}],
            system_prompt="Tutor",
        )

        assert response.content == "Bonjour"
        assert seen["url"].path.endswith("/models/gemini-1.5-flash:generateContent")
        assert seen["url"].params["key"] == "gk"
        assert [c["role"] for c in seen["body"]["contents"]] == ["user", "model"]
        assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Tutor"}]}

    @pytest.mark.asyncio
    async def test_no_candidates_is_empty(self):
        provider = GeminiProvider(
            ProviderConfig(provider="gemini", api_key="gk"),
            http_client=_client(lambda r: httpx.Response(200, json={"candidates": []})),
        )

        with pytest.raises(AIError):
            await provider.generate("Hi")


class TestErrorMapping:
    """Status HTTP -> AIErrorCode."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,message,code",
        [
            (401, "bad key", AIErrorCode.NO_API_KEY),
            (429, "Rate limited", AIErrorCode.RATE_LIMIT),
            (429, "You exceeded your current quota", AIErrorCode.QUOTA_EXCEEDED),
            (400, "bad request", AIErrorCode.INVALID_REQUEST),
            (503, "overloaded", AIErrorCode.SERVICE_UNAVAILABLE),
            (404, "no such model", AIErrorCode.API_ERROR),
        ],
    )
    async def test_http_status(self, status, message, code):
        provider = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-key"),
            http_client=_client(
                lambda r: httpx.Response(status, json={"error": {"message": message}})
            ),
        )

        with pytest.raises(AIError) as exc:
            await provider.generate("Hi")

        assert exc.value.code == code

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        provider = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-key"), http_client=_client(handler)
        )

        with pytest.raises(AIError) as exc:
            await provider.generate("Hi")

        assert exc.value.code == AIErrorCode.SERVICE_UNAVAILABLE
        assert exc.value.status_code == 503

    def test_from_exception(self):
        assert AIError.from_exception(RuntimeError("Invalid API key")).code == AIErrorCode.NO_API_KEY
        assert AIError.from_exception(RuntimeError("quota hit")).code == AIErrorCode.QUOTA_EXCEEDED
        assert AIError.from_exception(RuntimeError("boom")).code == AIErrorCode.API_ERROR


class TestValidateKey:
    """validate_api_key."""

    @pytest.mark.asyncio
    async def test_valid_and_invalid(self):
        ok = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-key"),
            http_client=_client(lambda r: httpx.Response(200, json={"data": []})),
        )
        rejected = OpenAIProvider(
            ProviderConfig(provider="openai", api_key="sk-bad"),
            http_client=_client(lambda r: httpx.Response(401, json={"error": {"message": "no"}})),
        )

        assert await ok.validate_api_key() is True
        assert await rejected.validate_api_key() is False
        assert await OpenAIProvider(ProviderConfig(provider="openai")).validate_api_key() is False

    @pytest.mark.asyncio
    async def test_outage_propagates(self):
        provider = GeminiProvider(
            ProviderConfig(provider="gemini", api_key="gk"),
            http_client=_client(lambda r: httpx.Response(500, text="down")),
        )

        with pytest.raises(AIError):
            await provider.validate_api_key()


class TestRetry:
    """Backoff exponencial."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("providers.base.asyncio.sleep", sleep)
        operation = AsyncMock(side_effect=[AIError("down", AIErrorCode.SERVICE_UNAVAILABLE), "ok"])

        assert await with_retry(operation, max_retries=3, base_delay=0.5) == "ok"
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_non_retryable(self, monkeypatch):
        monkeypatch.setattr("providers.base.asyncio.sleep", AsyncMock())
        operation = AsyncMock(side_effect=AIError("bad", AIErrorCode.INVALID_REQUEST))

        with pytest.raises(AIError):
            await with_retry(operation, max_retries=3)

        assert operation.await_count == 1


class TestImageGenerator:
    """Images API."""

    @pytest.mark.asyncio
    async def test_returns_data_url(self):
        generator = ImageGenerator(
            api_key="sk-key",
            http_client=_client(lambda r: httpx.Response(200, json={"data": [{"b64_json": "aGk="}]})),
        )

        assert await generator.generate("a cell diagram") == "data:image/png;base64,aGk="

    @pytest.mark.asyncio
    async def test_missing_data(self):
        generator = ImageGenerator(
            api_key="sk-key",
            http_client=_client(lambda r: httpx.Response(200, json={"data": []})),
            max_retries=1,
        )

        with pytest.raises(AIError):
            await generator.generate("a cell diagram")

    def test_from_settings_disabled(self):
        assert ImageGenerator.from_settings() is None


class TestFactory:
    """Criação de provedores."""

    def test_from_settings_default(self):
        provider = AIProviderFactory.from_settings()

        assert isinstance(provider, OpenAIProvider)
        assert provider.config.api_key == "sk-test-openai-key"

    def test_parse_name(self):
        assert AIProviderFactory.parse_name(" Gemini ") == AIProviderName.GEMINI
        with pytest.raises(AIError) as exc:
            AIProviderFactory.parse_name("mistral")
        assert exc.value.details["supported"] == ["openai", "anthropic", "gemini"]

    def test_available_providers(self, monkeypatch):
        from core.config import reload_config

        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        reload_config()

        assert AIProviderFactory.available_providers() == ["openai", "anthropic"]

    def test_mask_api_key(self):
        assert mask_api_key("sk-1234567890abcd") == "sk-...abcd"
        assert mask_api_key("short") == "****"
        assert mask_api_key(None) is None

    def test_public_dict(self):
        data = ProviderConfig(provider="anthropic", api_key="sk-ant-secret-9999").public_dict()

        assert data["api_key"] == "sk-...9999"
        assert data["model"] == "claude-3-haiku-20240307"

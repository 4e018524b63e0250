"""Provedor Google Gemini (generateContent)."""

from __future__ import annotations

from collections.abc import AsyncIterator

from .base import AIProviderName, AIResponse, BaseAIProvider


class GeminiProvider(BaseAIProvider):
    """Cliente da API generativelanguage v1beta."""

    name = AIProviderName.GEMINI
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    @staticmethod
    def _contents(messages: list[dict[str, str]]) -> list[dict]:
        # Gemini usa "model" no lugar de "assistant"
        return [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] in ("user", "assistant")
        ]

    def _payload(self, messages, system_prompt, max_tokens, temperature) -> dict:
        payload = {
            "contents": self._contents(messages),
            "generationConfig": {"maxOutputTokens": max_tokens, "temperature": temperature},
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    @staticmethod
    def _candidate_text(data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    async def _complete(self, messages, system_prompt, max_tokens, temperature) -> AIResponse:
        data = await self._post_json(
            f"{self.BASE_URL}/models/{self.model}:generateContent",
            self._payload(messages, system_prompt, max_tokens, temperature),
            params={"key": self._require_key()},
        )
        usage = data.get("usageMetadata") or {}
        return AIResponse(
            content=self._candidate_text(data),
            provider=self.name.value,
            model=self.model,
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
            raw=data,
        )

    async def _stream(self, messages, system_prompt, max_tokens, temperature) -> AsyncIterator[str]:
        async for event in self._stream_lines(
            f"{self.BASE_URL}/models/{self.model}:streamGenerateContent",
            self._payload(messages, system_prompt, max_tokens, temperature),
            params={"key": self._require_key(), "alt": "sse"},
        ):
            text = self._candidate_text(event)
            if text:
                yield text

    async def _check_key(self) -> None:
        async with self._client() as client:
            response = await client.get(
                f"{self.BASE_URL}/models", params={"key": self._require_key()}
            )
        self._raise_for_response(response)

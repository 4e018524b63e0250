"""Provedor OpenAI (chat completions)."""

from __future__ import annotations

from collections.abc import AsyncIterator

from core.exceptions import AIError, AIErrorCode

from .base import AIProviderName, AIResponse, BaseAIProvider


class OpenAIProvider(BaseAIProvider):
    """Cliente do endpoint /v1/chat/completions."""

    name = AIProviderName.OPENAI
    BASE_URL = "https://api.openai.com/v1"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._require_key()}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _build_messages(
        messages: list[dict[str, str]], system_prompt: str | None
    ) -> list[dict[str, str]]:
        result = []
        if system_prompt:
            result.append({"role": "system", "content": system_prompt})
        result.extend({"role": m["role"], "content": m["content"]} for m in messages)
        return result

    async def _complete(self, messages, system_prompt, max_tokens, temperature) -> AIResponse:
        data = await self._post_json(
            f"{self.BASE_URL}/chat/completions",
            {
                "model": self.model,
                "messages": self._build_messages(messages, system_prompt),
                "max_tokens": max_tokens,
                "temperature": temperature,
            },
            headers=self._headers(),
        )

        choices = data.get("choices") or []
        if not choices:
            raise AIError("No choices returned by OpenAI", AIErrorCode.API_ERROR)

        usage = data.get("usage") or {}
        return AIResponse(
            content=(choices[0].get("message") or {}).get("content") or "",
            provider=self.name.value,
            model=data.get("model", self.model),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            raw=data,
        )

    async def _stream(self, messages, system_prompt, max_tokens, temperature) -> AsyncIterator[str]:
        payload = {
            "model": self.model,
            "messages": self._build_messages(messages, system_prompt),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": True,
        }
        async for event in self._stream_lines(
            f"{self.BASE_URL}/chat/completions", payload, headers=self._headers()
        ):
            for choice in event.get("choices") or []:
                delta = (choice.get("delta") or {}).get("content")
                if delta:
                    yield delta

    async def _check_key(self) -> None:
        async with self._client() as client:
            response = await client.get(f"{self.BASE_URL}/models", headers=self._headers())
        self._raise_for_response(response)

"""Provedor Anthropic (Messages API)."""

from __future__ import annotations

from collections.abc import AsyncIterator

from .base import AIProviderName, AIResponse, BaseAIProvider


class AnthropicProvider(BaseAIProvider):
    """Cliente do endpoint /v1/messages."""

    name = AIProviderName.ANTHROPIC
    BASE_URL = "https://api.anthropic.com/v1"
    API_VERSION = "2023-06-01"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._require_key(),
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }

    def _payload(self, messages, system_prompt, max_tokens, temperature) -> dict:
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": min(temperature, 1.0),
            # Anthropic não aceita role=system dentro de messages
            "messages": [
                {"role": m["role"], "content": m["content"]}
                for m in messages
                if m["role"] in ("user", "assistant")
            ],
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def _complete(self, messages, system_prompt, max_tokens, temperature) -> AIResponse:
        data = await self._post_json(
            f"{self.BASE_URL}/messages",
            self._payload(messages, system_prompt, max_tokens, temperature),
            headers=self._headers(),
        )

        text = "".join(
            block.get("text", "") for block in data.get("content") or [] if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        return AIResponse(
            content=text,
            provider=self.name.value,
            model=data.get("model", self.model),
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            raw=data,
        )

    async def _stream(self, messages, system_prompt, max_tokens, temperature) -> AsyncIterator[str]:
        payload = self._payload(messages, system_prompt, max_tokens, temperature)
        payload["stream"] = True
        async for event in self._stream_lines(
            f"{self.BASE_URL}/messages", payload, headers=self._headers()
        ):
            if event.get("type") != "content_block_delta":
                continue
            delta = event.get("delta") or {}
            if delta.get("type") == "text_delta" and delta.get("text"):
                yield delta["text"]

    async def _check_key(self) -> None:
        # Chamada mínima: 1 token
        await self._post_json(
            f"{self.BASE_URL}/messages",
            {
                "model": self.model,
                "max_tokens": 1,
                "messages": [{"role": "user", "content": "ping"}],
            },
            headers=self._headers(),
        )

"""Gerador de imagens educacionais (OpenAI Images API)."""

from __future__ import annotations

import httpx

from core.config import StudyConfig, get_config
from core.exceptions import AIError, AIErrorCode
from core.logger import get_logger

from .base import with_retry

logger = get_logger("image_generator")


class ImageGenerator:
    """Gera imagens em base64 para questões visuais.

    Retorna data URLs prontas para o campo visual.data:
        data:image/png;base64,<...>
    """

    ENDPOINT = "https://api.openai.com/v1/images/generations"
    SIZE = "1024x1024"
    DATA_URL_PREFIX = "data:image/png;base64,"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
        max_retries: int = 2,
    ):
        settings = get_config()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.image_model
        self.timeout = timeout or settings.ai_request_timeout
        self._http_client = http_client
        self.max_retries = max_retries

    @classmethod
    def from_settings(cls, settings: StudyConfig | None = None) -> "ImageGenerator | None":
        """Cria gerador se habilitado e com chave; None caso contrário."""
        settings = settings or get_config()
        if not settings.image_generation_enabled or not settings.openai_api_key:
            return None
        return cls(api_key=settings.openai_api_key, model=settings.image_model)

    async def _request(self, prompt: str) -> str:
        if not self.api_key:
            raise AIError("OpenAI API key required for image generation", AIErrorCode.NO_API_KEY)

        payload = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": self.SIZE,
            "response_format": "b64_json",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.ENDPOINT, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.ENDPOINT, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise AIError(f"Image service unreachable: {e}", AIErrorCode.SERVICE_UNAVAILABLE) from e

        if response.status_code >= 400:
            raise AIError.from_http_status(
                response.status_code, response.text[:300], {"service": "images"}
            )

        items = response.json().get("data") or []
        b64 = items[0].get("b64_json") if items else None
        if not b64:
            raise AIError("No image data received", AIErrorCode.API_ERROR)
        return self.DATA_URL_PREFIX + b64

    async def generate(self, prompt: str) -> str:
        """Gera imagem e retorna data URL.

        Raises:
            AIError: Falha após retries
        """
        logger.debug("Gerando imagem", model=self.model, prompt_length=len(prompt))
        return await with_retry(
            lambda: self._request(prompt),
            max_retries=self.max_retries,
            base_delay=1.0,
            operation_name="image_generation",
        )

"""AI provider endpoints - configurações por usuário, validação de chave e uso."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

import app_state
from agents.usage_tracker import UsageTracker
from core.config import get_config
from core.logger import get_logger
from providers import DEFAULT_MODELS, AIProviderFactory, AIProviderName, ProviderConfig
from storage import ProviderConfigStore

router = APIRouter(prefix="/providers", tags=["Providers"])
logger = get_logger("providers_router")


class ProviderConfigBody(BaseModel):
    api_key: Optional[str] = Field(default=None, description="Chave da API (nunca retornada)")
    model: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4000, ge=1, le=32000)
    is_active: bool = True


class ValidateKeyBody(BaseModel):
    provider: AIProviderName
    api_key: str = Field(..., min_length=1)
    model: Optional[str] = None


@router.get("")
async def list_providers():
    """Provedores suportados, modelos padrão e quais têm chave no ambiente."""
    available = AIProviderFactory.available_providers()
    return {
        "default_provider": get_config().default_provider,
        "providers": [
            {
                "name": name.value,
                "default_model": DEFAULT_MODELS[name],
                "configured": name.value in available,
            }
            for name in AIProviderName
        ],
    }


@router.get("/configs")
async def list_configs(
    user_id: str = Depends(app_state.get_user_id),
    configs: ProviderConfigStore = Depends(app_state.get_provider_configs),
):
    """Configurações salvas do usuário (chave mascarada)."""
    return {"configs": await configs.list_public(user_id)}


@router.put("/configs/{provider}")
async def save_config(
    provider: str,
    body: ProviderConfigBody,
    user_id: str = Depends(app_state.get_user_id),
    configs: ProviderConfigStore = Depends(app_state.get_provider_configs),
):
    name = AIProviderFactory.parse_name(provider)
    config = ProviderConfig(provider=name, **body.model_dump())
    return {"success": True, "config": await configs.save(user_id, config)}


@router.delete("/configs/{provider}")
async def delete_config(
    provider: str,
    user_id: str = Depends(app_state.get_user_id),
    configs: ProviderConfigStore = Depends(app_state.get_provider_configs),
):
    if not await configs.delete(user_id, provider):
        raise HTTPException(status_code=404, detail=f"No saved config for {provider}")
    return {"success": True, "provider": provider}


@router.post("/validate")
async def validate_key(body: ValidateKeyBody):
    """Testa uma chave contra o provedor sem salvá-la."""
    provider = AIProviderFactory.create(
        ProviderConfig(provider=body.provider, api_key=body.api_key, model=body.model)
    )
    valid = await provider.validate_api_key()
    logger.info("Chave validada", provider=body.provider.value, valid=valid)
    return {"provider": body.provider.value, "valid": valid}


@router.get("/usage")
async def usage_stats(
    days: int = Query(default=30, ge=1, le=365),
    user_id: str = Depends(app_state.get_user_id),
    tracker: UsageTracker = Depends(app_state.get_usage_tracker),
):
    """Uso agregado (requisições, tokens, custo estimado) dos últimos `days` dias."""
    return await tracker.get_stats(user_id, days=days)

"""Client preference endpoints - citações favoritas e provedor preferido."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

import app_state
from storage import FavoriteQuote, PreferencesStore, ProviderPreference
from utils.validators import validate_record_id

router = APIRouter(prefix="/preferences", tags=["Preferences"])


class QuoteBody(BaseModel):
    text: str = Field(..., min_length=1, description="Texto da citação")
    author: Optional[str] = None
    category: Optional[str] = None


# =============================================================================
# CITAÇÕES FAVORITAS
# =============================================================================


@router.get("/quotes")
async def list_quotes(
    user_id: str = Depends(app_state.get_user_id),
    store: PreferencesStore = Depends(app_state.get_preferences_store),
):
    quotes = await store.list_quotes(user_id)
    return {"quotes": [q.model_dump() for q in quotes], "count": len(quotes)}


@router.post("/quotes")
async def add_quote(
    body: QuoteBody,
    user_id: str = Depends(app_state.get_user_id),
    store: PreferencesStore = Depends(app_state.get_preferences_store),
):
    """Favorita uma citação; texto repetido retorna a existente (added=false)."""
    quote, added = await store.add_quote(
        user_id, FavoriteQuote(text=body.text.strip(), author=body.author, category=body.category)
    )
    return {"success": True, "added": added, "quote": quote.model_dump()}


@router.delete("/quotes/{quote_id}")
async def remove_quote(
    quote_id: str,
    user_id: str = Depends(app_state.get_user_id),
    store: PreferencesStore = Depends(app_state.get_preferences_store),
):
    validate_record_id(quote_id)
    if not await store.remove_quote(user_id, quote_id):
        raise HTTPException(status_code=404, detail="Quote not found")
    return {"success": True, "quote_id": quote_id}


@router.delete("/quotes")
async def clear_quotes(
    user_id: str = Depends(app_state.get_user_id),
    store: PreferencesStore = Depends(app_state.get_preferences_store),
):
    await store.clear_quotes(user_id)
    return {"success": True}


# =============================================================================
# PROVEDOR PREFERIDO
# =============================================================================


@router.get("/provider")
async def get_provider_preference(
    user_id: str = Depends(app_state.get_user_id),
    store: PreferencesStore = Depends(app_state.get_preferences_store),
):
    """Provedor preferido (null se nunca definido)."""
    preference = await store.get_provider(user_id)
    return {"preference": preference.model_dump(mode="json") if preference else None}


@router.put("/provider")
async def set_provider_preference(
    body: ProviderPreference,
    user_id: str = Depends(app_state.get_user_id),
    store: PreferencesStore = Depends(app_state.get_preferences_store),
):
    """Define provedor/modelo padrão; provedores desconhecidos são rejeitados (422)."""
    preference = await store.set_provider(user_id, body)
    return {"success": True, "preference": preference.model_dump(mode="json")}

"""Storage - Persistência sobre AgentFS."""

from .record_store import Collection, RecordStore, to_jsonable, utcnow_iso
from .preferences_store import FavoriteQuote, PreferencesStore, ProviderPreference
from .provider_config_store import ProviderConfigStore

__all__ = [
    "Collection",
    "RecordStore",
    "to_jsonable",
    "utcnow_iso",
    "FavoriteQuote",
    "ProviderPreference",
    "PreferencesStore",
    "ProviderConfigStore",
]

"""History - Navegação, exportação, limpeza e preferências do histórico de IA."""

from .export import ExportFile, ExportFormat, build_export, export_filename
from .filters import HistoryFilter, HistoryKind, apply_filters
from .normalizer import QuizDataNormalizer
from .preferences import HistoryFeature, HistoryPreference, HistoryPreferenceService
from .service import HistoryService

__all__ = [
    "HistoryKind",
    "HistoryFilter",
    "apply_filters",
    "ExportFormat",
    "ExportFile",
    "build_export",
    "export_filename",
    "QuizDataNormalizer",
    "HistoryFeature",
    "HistoryPreference",
    "HistoryPreferenceService",
    "HistoryService",
]

"""Parser de respostas de IA - extrai JSON de texto não confiável."""

import json
import re
from typing import Any

from core.logger import get_logger

logger = get_logger("response_parser")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")


def _from_fence(text: str) -> str | None:
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0]
    if text.count("```") >= 2:
        return text.split("```", 1)[1].split("```", 1)[0]
    return None


def _from_braces(text: str) -> str | None:
    match = re.search(r"\{[\s\S]*\}", text) or re.search(r"\[[\s\S]*\]", text)
    return match.group(0) if match else None


def repair_json(text: str) -> str:
    """Corrige problemas comuns: caracteres de controle, vírgulas finais, chaves sem aspas."""
    fixed = _CONTROL_CHARS.sub("", text)
    fixed = _TRAILING_COMMA.sub(r"\1", fixed)
    fixed = _UNQUOTED_KEY.sub(r'\1"\2"\3', fixed)
    return fixed


def parse_ai_json(text: str) -> Any:
    """Extrai o primeiro JSON válido de uma resposta de IA.

    Ordem: JSON direto, bloco ```json```, primeiro {...}/[...], e por
    último o mesmo trecho após repair_json.

    Raises:
        ValueError: Se nenhuma estratégia produzir JSON válido
    """
    if not text or not text.strip():
        raise ValueError("Resposta vazia")

    stripped = text.strip()
    candidates = [stripped, _from_fence(stripped), _from_braces(stripped)]

    for candidate in candidates:
        if not candidate:
            continue
        try:
            return json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue

    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = json.loads(repair_json(candidate.strip()))
            logger.debug("JSON recuperado após reparo", length=len(candidate))
            return parsed
        except json.JSONDecodeError:
            continue

    raise ValueError(f"Não foi possível extrair JSON da resposta: {stripped[:200]}")


def extract_questions(parsed: Any) -> list[dict]:
    """Retorna a lista de questões de uma resposta já parseada.

    Aceita {"questions": [...]}, {"data": [...]} ou uma lista direta.

    Raises:
        ValueError: Se o formato não contiver uma lista de questões
    """
    if isinstance(parsed, list):
        items = parsed
    elif isinstance(parsed, dict):
        items = parsed.get("questions")
        if items is None:
            items = parsed.get("data")
        if isinstance(items, dict) and isinstance(items.get("questions"), list):
            items = items["questions"]
    else:
        items = None

    if not isinstance(items, list):
        raise ValueError("Formato de resposta inválido: lista de questões ausente")

    return [item for item in items if isinstance(item, dict)]

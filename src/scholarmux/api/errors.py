"""Error payloads shared by the API endpoints."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.models.response import ErrorResponse

SEARCH_ERROR = "Erro ao buscar artigos"
ARTICLE_ERROR = "Erro ao buscar artigo"
NOT_FOUND = "Artigo não encontrado"
MISSING_KEY = "API key não configurada"
UNKNOWN_ERROR = "Erro desconhecido"


def error_response(status_code: int, error: str, message: str | None = None, *, search: bool = False) -> JSONResponse:
    """JSON error body; search endpoints also carry an empty ``articles`` list."""
    body = ErrorResponse(error=error, message=message, articles=[] if search else None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def missing_key_response(adapter: SourceAdapter, *, search: bool = False) -> JSONResponse:
    return error_response(
        401,
        MISSING_KEY,
        f"A API do {adapter.source_name} requer uma chave de API válida",
        search=search,
    )

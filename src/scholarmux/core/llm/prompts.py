"""Prompt templates for AI search and AI article details.

Prompts are written in Portuguese, the language of the product's users.
Each template has a Gemini variant that adds a strict-JSON clause, since
that model more often returns malformed output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scholarmux.models.article import ArticleInfo
    from scholarmux.models.query import SearchRequest

# ═══════════════════════════════════════════════════════════════════════════════
# Shared
# ═══════════════════════════════════════════════════════════════════════════════

SYSTEM_PROMPT = """\
Você é um assistente especializado em literatura científica. Responda apenas \
com JSON válido, sem texto adicional."""

STRICT_JSON_CLAUSE = """\
IMPORTANTE: Certifique-se de que o JSON retornado seja ESTRITAMENTE VÁLIDO. \
Não inclua comentários, explicações ou texto adicional antes ou depois do JSON. \
Verifique se todas as aspas, vírgulas e chaves estão corretamente formatadas.
"""

_LANGUAGE_NAMES = {"en": "inglês", "pt": "português", "es": "espanhol"}
_TYPE_CLAUSES = {"title": "no título", "author": "do autor", "journal": "da revista"}

# ═══════════════════════════════════════════════════════════════════════════════
# AI search
# ═══════════════════════════════════════════════════════════════════════════════

SEARCH_FORMAT = """\
Retorne exatamente {limit} resultados no seguinte formato JSON:
[
  {{
    "title": "Título completo do artigo",
    "authors": "Lista de autores principais",
    "journal": "Nome da revista ou jornal",
    "year": "Ano de publicação",
    "abstract": "Resumo do artigo (2-3 frases)",
    "url": "URL direta para o artigo",
    "doi": "DOI do artigo, se disponível",
    "language": "Idioma do artigo (Inglês, Português ou Espanhol)"
  }}
]
"""

SEARCH_GUIDANCE = """\
É EXTREMAMENTE IMPORTANTE que você forneça URLs válidas e diretas para os artigos originais.
Priorize links para o artigo completo em PDF ou HTML no site da revista ou repositório oficial.
Se o artigo tiver um DOI, inclua-o e também forneça a URL direta baseada no DOI.
Não invente informações. Se não encontrar artigos suficientes, retorne apenas os que encontrou.
"""


def build_search_prompt(request: SearchRequest, *, model: str, limit: int) -> str:
    """Build the AI search prompt for ``request``.

    ``request.specific_sources`` restricts the journals the model may cite;
    without it the prompt steers towards well-known journals.
    """
    parts = [f'Busque artigos científicos médicos sobre "{request.query}". ']
    if request.language_filter:
        name = _LANGUAGE_NAMES.get(request.language_filter, request.language_filter)
        parts.append(f"Apenas artigos em {name}. ")
    if request.is_older:
        parts.append("Apenas artigos publicados antes de 2018. ")
    elif request.year_filter:
        parts.append(f"Apenas artigos publicados em {request.year_filter}. ")
    if request.type != "keyword":
        parts.append(f'Busque por "{request.query}" {_TYPE_CLAUSES.get(request.type, "")}. ')

    if request.specific_sources:
        parts.append(
            f"\nBusque APENAS em artigos das seguintes fontes/revistas: {', '.join(request.specific_sources)}. "
            "É MUITO IMPORTANTE que você retorne APENAS artigos dessas fontes específicas. "
        )
    else:
        parts.append(
            "\nInclua artigos de revistas conceituadas como The Lancet, Nature, Science, JAMA, "
            "New England Journal of Medicine, etc. "
        )

    parts.append("\n\n" + SEARCH_FORMAT.format(limit=limit))
    if model == "gemini":
        parts.append("\n" + STRICT_JSON_CLAUSE)
    parts.append("\n" + SEARCH_GUIDANCE)
    return "".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# AI article details
# ═══════════════════════════════════════════════════════════════════════════════

DETAILS_FORMAT = """\
Forneça informações completas sobre este artigo no seguinte formato JSON:
{
  "title": "Título completo do artigo",
  "authors": "Lista completa de autores",
  "journal": "Nome completo da revista ou jornal",
  "year": "Ano de publicação",
  "abstract": "Resumo completo do artigo",
  "content": "Conteúdo principal do artigo em formato HTML, com tags <h2> para seções e <p> para parágrafos",
  "keywords": ["palavra-chave1", "palavra-chave2", "palavra-chave3", "palavra-chave4", "palavra-chave5"],
  "references": ["Referência 1", "Referência 2", "Referência 3", "..."],
  "doi": "DOI do artigo, se disponível",
  "url": "URL direta para o artigo",
  "language": "Idioma do artigo (Inglês, Português ou Espanhol)"
}
"""

DETAILS_GUIDANCE = """\
É EXTREMAMENTE IMPORTANTE que você forneça uma URL válida e direta para o artigo original.
Priorize links para o artigo completo em PDF ou HTML no site da revista ou repositório oficial.
Se o artigo tiver um DOI, inclua-o e também forneça a URL direta baseada no DOI.
Certifique-se de que as informações sejam precisas e completas. Não invente informações que não puder encontrar.
Para o campo 'content', forneça o conteúdo principal do artigo em formato HTML, com tags <h2> para seções e <p> para parágrafos.
"""

_DETAIL_LABELS = (
    ("title", "Título"),
    ("authors", "Autores"),
    ("journal", "Revista"),
    ("year", "Ano"),
    ("doi", "DOI"),
    ("url", "URL"),
)


def build_details_prompt(info: ArticleInfo, *, model: str) -> str:
    lines = ["Busque informações detalhadas sobre o seguinte artigo científico:\n"]
    for field_name, label in _DETAIL_LABELS:
        value = getattr(info, field_name)
        if value:
            lines.append(f"{label}: {value}")
    prompt = "\n".join(lines) + "\n\n" + DETAILS_FORMAT
    if model == "gemini":
        prompt += "\n" + STRICT_JSON_CLAUSE
    return prompt + "\n" + DETAILS_GUIDANCE

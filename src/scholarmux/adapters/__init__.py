"""Source adapter layer — one connector per bibliographic upstream.

Built-in adapters:
  - pubmed: NCBI E-utilities (esearch / esummary / efetch)
  - arxiv: arXiv Atom API
  - scielo: SciELO search page (link-out only)
  - core: CORE v3 works API
  - europepmc: Europe PMC REST API
  - scopus: Elsevier Scopus search API
  - ieee: IEEE Xplore metadata API
  - springer: Springer Nature metadata API
  - doaj: DOAJ search page (link-out only)
  - crossref: Crossref REST API
  - openalex: OpenAlex works API
  - semantic_scholar: Semantic Scholar Graph API
  - lancet: The Lancet via Elsevier ScienceDirect search
  - ai: language-model generated results

Implement ``SourceAdapter`` to connect another upstream.
"""

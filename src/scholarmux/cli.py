"""CLI entry point — run the ScholarMux server or a one-off search."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from scholarmux import __version__
from scholarmux.config.settings import Settings


def _load_settings(config: str | None) -> Settings:
    from scholarmux.api.app import load_settings

    if not config:
        return load_settings()
    config_path = Path(config)
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)
    return Settings.from_yaml(config_path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scholarmux",
        description="ScholarMux — academic article search aggregator",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"ScholarMux {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Start the HTTP API server")
    serve.add_argument("--host", type=str, default=None, help="Server bind address (overrides config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Server port (overrides config)")
    serve.add_argument("--workers", "-w", type=int, default=None, help="Number of worker processes")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    search = sub.add_parser("search", help="Run one aggregate search and print the results")
    search.add_argument("query", help="Search text")
    search.add_argument(
        "--source",
        "-s",
        action="append",
        dest="sources",
        default=None,
        help="Source to search (repeatable; defaults to the configured set)",
    )
    search.add_argument("--year", default="all", help="Exact year, 'older' or 'all'")
    search.add_argument("--lang", default="all", help="Language filter: all, en, pt, es")
    search.add_argument("--sort", choices=["relevance", "date_desc", "date_asc"], default="relevance")
    search.add_argument("--type", choices=["keyword", "title", "author", "journal"], default="keyword")
    search.add_argument("--ai-model", choices=["openai", "gemini"], default="openai")
    search.add_argument("--json", action="store_true", help="Print the raw JSON result")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = _load_settings(args.config)
    if args.log_level:
        settings.observability.log_level = args.log_level

    if args.command == "serve":
        _serve(args, settings)
    else:
        sys.exit(asyncio.run(_search(args, settings)))


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    import uvicorn

    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers

    log_level = settings.observability.log_level.lower()
    if args.reload or settings.server.workers > 1:
        # Reload and multi-worker modes re-import the app, so it is built from env/YAML.
        uvicorn.run(
            "scholarmux.api.app:create_app",
            factory=True,
            host=settings.server.host,
            port=settings.server.port,
            workers=settings.server.workers if not args.reload else 1,
            reload=args.reload,
            log_level=log_level,
        )
        return

    from scholarmux.api.app import create_app

    uvicorn.run(create_app(settings), host=settings.server.host, port=settings.server.port, log_level=log_level)


async def _search(args: argparse.Namespace, settings: Settings) -> int:
    import httpx

    from scholarmux.adapters.base.adapter import USER_AGENT
    from scholarmux.adapters.base.registry import AdapterRegistry
    from scholarmux.api.app import register_adapters
    from scholarmux.cache.manager import ResultCache
    from scholarmux.core.aggregator import Aggregator
    from scholarmux.core.limiter import ConcurrencyLimiter
    from scholarmux.models.query import SearchRequest
    from scholarmux.observability.logging import setup_logging

    if not args.log_level:
        settings.observability.log_level = "warning"
    settings.observability.log_format = "console"
    setup_logging(settings.observability)

    request = SearchRequest(
        query=args.query,
        type=args.type,
        language=args.lang,
        year=args.year,
        sort=args.sort,
        sources=args.sources or [],
        ai_model=args.ai_model,
    )
    if args.sources:
        settings.sources.enabled = [s for s in settings.sources.enabled if s in args.sources]

    registry = AdapterRegistry()
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(settings.sources.request_timeout),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    ) as client:
        await register_adapters(
            registry,
            settings,
            client=client,
            cache=ResultCache(ttl_seconds=settings.cache.ttl_seconds),
            limiter=ConcurrencyLimiter(settings.sources.max_concurrent),
        )
        try:
            aggregator = Aggregator(registry, settings.sources.default_sources, dedupe=settings.sources.dedupe_by_doi)
            result = await aggregator.search(request)
        finally:
            await registry.shutdown_all()

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
    else:
        for i, article in enumerate(result.articles, 1):
            marker = " [link]" if article.is_redirect else ""
            print(f"{i:3d}. {article.title}{marker}")
            print(f"     {article.authors} | {article.journal} | {article.year} | {article.source}")
            if article.url:
                print(f"     {article.url}")
        for source, message in result.source_errors.items():
            print(f"warning: {source}: {message}", file=sys.stderr)
        if not result.articles:
            print("No articles found.", file=sys.stderr)
    return 0 if result.articles or not result.source_errors else 1


if __name__ == "__main__":
    main()

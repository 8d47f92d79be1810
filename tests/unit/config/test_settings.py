"""Tests for environment and YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from scholarmux.config.settings import Settings


class TestSourceLists:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.sources.default_sources == ["ai"]
        assert "pubmed" in settings.sources.enabled

    def test_comma_separated_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHOLARMUX_SOURCES__DEFAULT_SOURCES", "pubmed, arxiv")
        monkeypatch.setenv("SCHOLARMUX_SOURCES__ENABLED", "pubmed,arxiv,ai")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.sources.default_sources == ["pubmed", "arxiv"]
        assert settings.sources.enabled == ["pubmed", "arxiv", "ai"]

    def test_json_array_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHOLARMUX_SOURCES__DEFAULT_SOURCES", '["crossref", "openalex"]')
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.sources.default_sources == ["crossref", "openalex"]

    def test_nested_scalar_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHOLARMUX_SOURCES__MAX_CONCURRENT", "4")
        assert Settings(_env_file=None).sources.max_concurrent == 4  # type: ignore[call-arg]


class TestYaml:
    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "scholarmux-config.yaml"
        path.write_text("sources:\n  default_sources: pubmed,scielo\n  page_size: 5\ncache:\n  ttl_seconds: 60\n")
        settings = Settings.from_yaml(path)
        assert settings.sources.default_sources == ["pubmed", "scielo"]
        assert settings.sources.page_size == 5
        assert settings.cache.ttl_seconds == 60

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "absent.yaml")

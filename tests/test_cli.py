from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from raidsearch import cli
from raidsearch.services.search import SearchOrchestrator
from conftest import StubEndpoint, make_record

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("RAIDSEARCH_DOWNLOAD_DIR", str(tmp_path / "downloads"))
    monkeypatch.setenv("RAIDSEARCH_LOG_LEVEL", "WARNING")


def test_config_json_flag(tmp_path, monkeypatch):
    monkeypatch.setenv("RAIDSEARCH_ENDPOINTS", "https://a.example.org/dois, https://b.example.org/dois")
    monkeypatch.setenv("RAIDSEARCH_PACING_DELAY", "2.5")
    monkeypatch.setenv("RAIDSEARCH_RESET_PER_SEARCH", "yes")

    result = runner.invoke(cli.app, ["config", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout.strip())
    assert payload["endpoints"] == ["https://a.example.org/dois", "https://b.example.org/dois"]
    assert payload["pacing_delay"] == 2.5
    assert payload["reset_artifacts_per_search"] is True
    assert payload["namespace_domain"] == "raid.org.au"
    assert Path(payload["download_dir"]) == tmp_path / "downloads"


def test_search_without_terms_fails():
    result = runner.invoke(cli.app, ["search"])

    assert result.exit_code == 1
    assert "at least one search term" in result.stdout


def test_search_rejects_unknown_operator():
    result = runner.invoke(cli.app, ["search", "--title", "x", "--operator", "XOR"])

    assert result.exit_code != 0


def test_search_prints_results_and_writes_html(tmp_path, monkeypatch):
    endpoint = StubEndpoint("stub", [make_record("10.1/a")])
    monkeypatch.setattr(
        cli, "build_orchestrator", lambda client, settings: SearchOrchestrator([endpoint])
    )
    html_path = tmp_path / "out" / "results.html"

    result = runner.invoke(cli.app, ["search", "--title", "Ocean", "--html", str(html_path)])

    assert result.exit_code == 0
    assert "Ocean" in result.stdout
    assert endpoint.calls[0].clauses == ("titles.title:*Ocean*",)
    assert "<mark>Ocean</mark>" in html_path.read_text(encoding="utf-8")


def test_search_reports_no_results(monkeypatch):
    endpoint = StubEndpoint("stub", error=RuntimeError("down"))
    monkeypatch.setattr(
        cli, "build_orchestrator", lambda client, settings: SearchOrchestrator([endpoint])
    )

    result = runner.invoke(cli.app, ["search", "--creator", "Hopper"])

    assert result.exit_code == 0
    assert "stub failed" in result.stdout
    assert "No results found" in result.stdout


def test_search_reports_unexpected_failures_without_traceback(tmp_path, monkeypatch):
    endpoint = StubEndpoint("stub", [make_record("10.1/a")])
    monkeypatch.setattr(
        cli, "build_orchestrator", lambda client, settings: SearchOrchestrator([endpoint])
    )
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    result = runner.invoke(
        cli.app, ["search", "--title", "Ocean", "--html", str(blocker / "results.html")]
    )

    assert result.exit_code == 1
    assert "Error fetching results. Please try again." in result.stdout
    assert not isinstance(result.exception, OSError)

"""Tests for ``lwcli lql``."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from lwcli.app import app
from lwcli.client import LaceworkClient
from lwcli.exceptions import ServerError

SOURCES = ["CloudTrailRawEvents", "LW_CFG_AWS_EC2_INSTANCES"]


def _fake_api(monkeypatch: pytest.MonkeyPatch, sources_response: httpx.Response) -> list[httpx.Request]:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/access/tokens"):
            return httpx.Response(200, json={"data": [{"token": "_TOKEN"}]})
        if request.url.path.endswith("/lql/data_sources"):
            return sources_response
        return httpx.Response(404, json={"ok": False, "message": "Not found"})

    monkeypatch.setenv("LW_ACCOUNT", "example")
    monkeypatch.setenv("LW_API_KEY", "KEY")
    monkeypatch.setenv("LW_API_SECRET", "_secret")
    monkeypatch.setattr(
        "lwcli.client.LaceworkClient",
        lambda profile: LaceworkClient(profile, transport=httpx.MockTransport(handler)),
    )
    return requests


@pytest.fixture
def api(monkeypatch: pytest.MonkeyPatch, isolated_config: Path) -> list[httpx.Request]:
    return _fake_api(monkeypatch, httpx.Response(200, json={"ok": True, "data": SOURCES}))


class TestListSources:
    def test_plain(self, cli_runner: CliRunner, api: list[httpx.Request]) -> None:
        result = cli_runner.invoke(app, ["--plain", "--quiet", "lql", "list-sources"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["Data Source", *SOURCES]
        assert api[-1].url.path == "/api/v1/external/lql/data_sources"

    def test_json_is_the_source_list(self, cli_runner: CliRunner, api: list[httpx.Request]) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "lql", "list-sources"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == SOURCES

    def test_sources_alias(self, cli_runner: CliRunner, api: list[httpx.Request]) -> None:
        result = cli_runner.invoke(app, ["--csv", "--quiet", "lql", "sources"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[0] == "Data Source"

    def test_none_found(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch, isolated_config: Path
    ) -> None:
        _fake_api(monkeypatch, httpx.Response(200, json={"ok": True, "data": []}))

        result = cli_runner.invoke(app, ["--plain", "--no-color", "lql", "list-sources"])

        assert result.exit_code == 0, result.output
        assert "There were no data sources found." in result.output

    def test_server_error(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch, isolated_config: Path
    ) -> None:
        _fake_api(monkeypatch, httpx.Response(500, json={"ok": False, "message": "boom"}))

        result = cli_runner.invoke(app, ["lql", "list-sources"])

        assert isinstance(result.exception, ServerError)

"""Fixtures shared by every lwcli test module."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from lwcli.models import Profile, RequestConfig
from lwcli.output import OutputFormat, OutputManager, reset_output, set_output

# Environment variables that feed profile and prompt resolution.
LW_ENV = (
    "LW_PROFILE",
    "LW_ACCOUNT",
    "LW_SUBACCOUNT",
    "LW_API_KEY",
    "LW_API_SECRET",
    "LW_NONINTERACTIVE",
)


@pytest.fixture(autouse=True)
def _fresh_output_manager() -> None:
    # The manager holds the streams it was built with, and CliRunner closes
    # its replacements when an invocation ends.
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _no_update_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    """Never reach GitHub from a test unless the test opts back in."""
    monkeypatch.setenv("LW_UPDATES_DISABLE", "1")


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test in *tmp_path* with no trace of the user's lwcli state.

    ``HOME`` (and so ``~/lacework``) becomes ``tmp_path/home`` and the XDG
    config, data and cache homes become siblings of it. ``LW_*`` overrides
    are cleared.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for xdg_var, dirname in (
        ("XDG_CONFIG_HOME", "config"),
        ("XDG_DATA_HOME", "data"),
        ("XDG_CACHE_HOME", "cache"),
    ):
        monkeypatch.setenv(xdg_var, str(tmp_path / dirname))
    monkeypatch.setattr("lwcli.config._is_xdg_platform", lambda: True)

    for var in LW_ENV:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_profile() -> Profile:
    return Profile(
        name="test",
        account="example",
        api_key="EXAMPLE_1234567890ABCDEF",
        api_secret="_secret",
        request=RequestConfig(timeout=5),
    )


@pytest.fixture
def quiet_output() -> OutputManager:
    """A plain, quiet manager for tests that only care about side effects."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()

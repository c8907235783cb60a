"""
Test cases for the eps2img command-line interface.
"""

import pytest
from click.testing import CliRunner

from eps2img.cli import cli


@pytest.fixture()
def cli_runner():
    return CliRunner()


@pytest.fixture()
def fake_tools(monkeypatch, runner):
    monkeypatch.setattr("eps2img.converter.SubprocessRunner", lambda timeout=None: runner)
    return runner


def test_bare_invocation_prints_help(cli_runner):
    result = cli_runner.invoke(cli, [])

    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "--fmt" in result.output


def test_version_option(cli_runner):
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "1.2.0" in result.output


def test_unknown_format_is_usage_error(cli_runner):
    result = cli_runner.invoke(cli, ["tiger.eps", "--fmt=gif", "--nopause"])

    assert result.exit_code == 2
    assert "unknown output format" in result.output


def test_all_in_empty_directory(cli_runner, tmp_path, monkeypatch, fake_tools):
    monkeypatch.chdir(tmp_path)

    result = cli_runner.invoke(cli, ["-a", "--nopause"])

    assert result.exit_code == 0
    assert "Nothing to convert" in result.output
    assert fake_tools.commands == []


def test_full_run_exits_zero_despite_failures(cli_runner, tmp_path, monkeypatch, eps_factory, fake_tools):
    monkeypatch.chdir(tmp_path)
    eps_factory("tiger.eps")
    eps_factory("doc.ps", pages=2)
    fake_tools.returncodes["jpeg"] = 1

    result = cli_runner.invoke(
        cli, ["-a", "--fmt=png,jpg,pdf", "--gs=gs", "--inkscape=inkscape", "--nopause"]
    )

    assert result.exit_code == 0
    assert "Conversion Summary" in result.output
    assert "Failures:" in result.output
    assert "Elapsed real time" in result.output
    assert (tmp_path / "tiger.png").exists()
    assert (tmp_path / "doc.pdf").exists()
    assert len(fake_tools.by_device("jpeg")) == 2


def test_pause_waits_for_enter(cli_runner, tmp_path, monkeypatch, fake_tools):
    monkeypatch.chdir(tmp_path)
    pauses = []
    monkeypatch.setattr("eps2img.cli.click.pause", lambda *args, **kwargs: pauses.append(args))

    result = cli_runner.invoke(cli, ["-a"])

    assert result.exit_code == 0
    assert len(pauses) == 1


def test_bare_invocation_closes_like_a_run(cli_runner, monkeypatch):
    pauses = []
    monkeypatch.setattr("eps2img.cli.click.pause", lambda *args, **kwargs: pauses.append(args))

    result = cli_runner.invoke(cli, [])

    assert result.exit_code == 0
    assert result.output.index("Usage:") < result.output.index("Elapsed real time")
    assert len(pauses) == 1

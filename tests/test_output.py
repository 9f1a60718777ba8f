"""Tests for authgrant.output -- format resolution and stream discipline."""

from __future__ import annotations

import json

import pytest

from authgrant.output import (
    OutputFormat,
    OutputManager,
    get_output,
    reset_output,
    set_output,
    warning,
)


@pytest.fixture
def non_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("authgrant.output._is_tty", lambda: False)


@pytest.fixture
def tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("authgrant.output._is_tty", lambda: True)


class TestFormatResolution:
    def test_auto_resolves_to_plain_when_piped(self, non_tty: None) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_on_tty(
        self, tty: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_env_forces_plain(
        self, tty: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_term_dumb_forces_plain(
        self, tty: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_json(self, tty: None) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestStreams:
    def test_json_response_goes_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({"access_token": "abc"})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"access_token": "abc"}
        assert captured.err == ""

    def test_plain_response_is_tab_separated(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response(
            {"access_token": "abc", "expires_in": 3600}
        )
        assert capsys.readouterr().out == "access_token\tabc\nexpires_in\t3600\n"

    def test_diagnostics_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        out = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        out.info("hello")
        out.error("boom")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err
        assert "Error: boom" in captured.err

    def test_quiet_suppresses_info_not_errors(self, capsys: pytest.CaptureFixture[str]) -> None:
        out = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        out.info("hidden")
        out.success("hidden too")
        out.warning("shown")
        out.error("shown too")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Warning: shown" in err
        assert "Error: shown too" in err

    def test_module_helpers_use_installed_manager(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True))
        warning("invalid_grant")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Warning: invalid_grant" in captured.err


class TestGlobalInstance:
    def test_lazy_default(self) -> None:
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self) -> None:
        manager = OutputManager(format=OutputFormat.JSON)
        set_output(manager)
        assert get_output() is manager
        reset_output()
        assert get_output() is not manager

"""Tests for the command-line entry point."""

import json
import logging
from dataclasses import replace
from logging.handlers import TimedRotatingFileHandler
from unittest.mock import MagicMock

import pytest
from selenium.common.exceptions import SessionNotCreatedException

from profile_export import main as cli
from profile_export.errors import PreconditionError
from profile_export.pipeline import ExportPipeline
from profile_export.schemas import RunReport, TargetOutcome, TargetResult


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("profile_export")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True


@pytest.fixture
def patched(monkeypatch, settings):
    """Route main() to the test settings and a mocked pipeline."""
    monkeypatch.setattr(cli, "Settings", MagicMock(from_env=MagicMock(return_value=settings)))
    pipeline_cls = MagicMock()
    monkeypatch.setattr(cli, "ExportPipeline", pipeline_cls)
    return pipeline_cls


class TestApplyOverrides:

    def test_flags_win(self, settings, tmp_path):
        args = cli.build_parser().parse_args([
            "--targets", str(tmp_path / "t.csv"),
            "--download-dir", str(tmp_path / "out"),
            "--headless",
            "--log-level", "debug",
        ])

        result = cli.apply_overrides(settings, args)

        assert result.targets_file == tmp_path / "t.csv"
        assert result.download_dir == tmp_path / "out"
        assert result.cookies_file == settings.cookies_file
        assert result.headless is True
        assert result.log_level == "DEBUG"

    def test_no_flags_keep_environment_values(self, settings):
        headless_settings = replace(settings, headless=True)

        result = cli.apply_overrides(headless_settings, cli.build_parser().parse_args([]))

        assert result == headless_settings


class TestExitCodes:

    def test_success(self, patched, settings):
        patched.return_value.run.return_value = RunReport(
            authenticated=True,
            download_dir=str(settings.download_dir),
            results=[
                TargetResult(position=1, url="u", identifier="jane", outcome=TargetOutcome.EXPORTED,
                             artifact_path=str(settings.download_dir / "jane.pdf")),
                TargetResult(position=2, url="bad", outcome=TargetOutcome.SKIPPED_UNRESOLVABLE),
            ],
        )

        assert cli.main([]) == cli.EXIT_OK
        patched.assert_called_once_with(settings)

    def test_precondition(self, patched):
        patched.return_value.run.side_effect = PreconditionError("Missing LINKEDIN_EMAIL")

        assert cli.main([]) == cli.EXIT_PRECONDITION

    def test_unreadable_target_list(self, monkeypatch, settings):
        settings.targets_file.write_bytes(b"https://www.linkedin.com/in/caf\xe9\n")
        monkeypatch.setattr(cli, "Settings", MagicMock(from_env=MagicMock(return_value=settings)))
        factory = MagicMock()
        monkeypatch.setattr(
            cli, "ExportPipeline", lambda s: ExportPipeline(s, driver_factory=factory)
        )

        assert cli.main([]) == cli.EXIT_PRECONDITION
        factory.assert_not_called()

    def test_login_failed(self, patched, settings):
        patched.return_value.run.return_value = RunReport(
            authenticated=False, download_dir=str(settings.download_dir), error="bad password"
        )

        assert cli.main([]) == cli.EXIT_LOGIN_FAILED

    def test_browser_did_not_start(self, patched):
        patched.return_value.run.side_effect = SessionNotCreatedException("no chrome")

        assert cli.main([]) == cli.EXIT_LOGIN_FAILED


class TestSetupLogging:

    def test_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"

        logger = cli.setup_logging(log_file, "warning")

        console, json_file, errors = logger.handlers
        assert console.level == logging.WARNING
        assert isinstance(json_file, TimedRotatingFileHandler)
        assert errors.level == logging.ERROR
        assert errors.baseFilename == str(tmp_path / "logs" / "run.error.log")
        assert logger.propagate is False

    def test_json_file_and_error_file(self, tmp_path):
        log_file = tmp_path / "run.log"
        cli.setup_logging(log_file, "CRITICAL")

        logging.getLogger("profile_export.pipeline").info("[PIPELINE] hello")
        logging.getLogger("profile_export.pipeline").error("[PIPELINE] boom")
        for handler in logging.getLogger("profile_export").handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert [r["message"] for r in records] == ["[PIPELINE] hello", "[PIPELINE] boom"]
        assert records[1]["level"] == "ERROR"
        assert "boom" in (tmp_path / "run.error.log").read_text()
        assert "hello" not in (tmp_path / "run.error.log").read_text()

    def test_repeated_setup_does_not_stack_handlers(self, tmp_path):
        cli.setup_logging(tmp_path / "a.log")
        logger = cli.setup_logging(tmp_path / "a.log")

        assert len(logger.handlers) == 3

"""
Profile Export: Command-Line Entry Point

Exports a PDF of every profile listed in the target file:
1. Restores (or re-creates) a logged-in Chrome session
2. Triggers "Save to PDF" on each profile
3. Renames each downloaded PDF to <profile-id>.pdf

Run with: profile-export [--targets FILE] [--download-dir DIR] [--headless]
Or: python main.py
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import List, Optional

from pythonjsonlogger import jsonlogger
from selenium.common.exceptions import WebDriverException

from .config import Settings
from .errors import PreconditionError
from .pipeline import ExportPipeline

EXIT_OK = 0
EXIT_LOGIN_FAILED = 1
EXIT_PRECONDITION = 2

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        # Work on a copy so the file handlers still see plain text
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        record.msg = f"{color}{record.getMessage()}{self.RESET}"
        record.args = None
        return super().format(record)


def setup_logging(
    log_file: Path = Path("profile_export.log"),
    console_level: str = "INFO",
) -> logging.Logger:
    """Setup console, JSON file and error-file logging for the package."""

    logger = logging.getLogger("profile_export")
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    # Console handler with colors for readability
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
    console_handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)s | [%(name)s] %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    # Rotating file handler for structured JSON logs
    # Rotates daily, keeps 7 days of logs.
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = TimedRotatingFileHandler(
        log_file, when="midnight", interval=1, backupCount=7, encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s %(lineno)d %(funcName)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    ))
    logger.addHandler(file_handler)

    # Separate, non-JSON error log
    error_handler = logging.FileHandler(
        log_file.with_name(f"{log_file.stem}.error.log"), mode='a', encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(error_handler)

    logger.propagate = False
    return logger


# ============================================================================
# COMMAND LINE
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profile-export",
        description="Export profile PDFs for a list of profile URLs",
    )
    parser.add_argument("--targets", type=Path, help="Target list (URLs separated by newlines/commas)")
    parser.add_argument("--download-dir", type=Path, help="Directory the PDFs are saved and renamed in")
    parser.add_argument("--cookies", type=Path, help="Cookie file used to persist the session")
    parser.add_argument("--headless", action="store_true", default=None, help="Run Chrome without a window")
    parser.add_argument("--log-level", help="Console log level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Let command-line flags win over environment values."""
    overrides = {
        "targets_file": args.targets,
        "download_dir": args.download_dir,
        "cookies_file": args.cookies,
        "headless": args.headless,
        "log_level": args.log_level.upper() if args.log_level else None,
    }
    return dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = apply_overrides(Settings.from_env(), args)
    logger = setup_logging(settings.log_file, settings.log_level)

    try:
        report = ExportPipeline(settings).run()
    except PreconditionError as e:
        logger.error(f"[MAIN] {e}")
        return EXIT_PRECONDITION
    except WebDriverException as e:
        logger.error(f"[MAIN] Failed to start browser: {e.msg or e}")
        return EXIT_LOGIN_FAILED

    if not report.authenticated:
        logger.error("[MAIN] Login failed, no profiles processed")
        return EXIT_LOGIN_FAILED

    for result in report.results:
        logger.info(
            f"[MAIN] {result.position:>3}. {result.outcome.value:<26} "
            f"{result.identifier or result.url}"
            + (f" -> {result.artifact_path}" if result.artifact_path else "")
        )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

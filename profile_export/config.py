"""
Configuration: Paths and Credentials from the Environment

Values come from process environment variables, with a `.env` file in the
working directory loaded first. Credentials are never read from a config
file checked into the repo.

Environment variables:
    LINKEDIN_EMAIL, LINKEDIN_PASSWORD   account credentials (required)
    PROFILE_EXPORT_DATA_DIR             base directory (default: ./linkedin)
    PROFILE_EXPORT_TARGETS_FILE         target list (default: <data>/profiles.csv)
    PROFILE_EXPORT_COOKIES_FILE         cookie file (default: <data>/cookies.json)
    PROFILE_EXPORT_DOWNLOAD_DIR         output directory (default: <data>/pdfs)
    PROFILE_EXPORT_BASE_URL             service root (default: https://www.linkedin.com)
    PROFILE_EXPORT_HEADLESS             "1"/"true" to hide the browser
    PROFILE_EXPORT_LOG_FILE             JSON log file (default: profile_export.log)
    PROFILE_EXPORT_LOG_LEVEL            console log level (default: INFO)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os

from dotenv import load_dotenv

from .errors import PreconditionError

DEFAULT_BASE_URL = "https://www.linkedin.com"
DEFAULT_DATA_DIR = "linkedin"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for one pipeline run.

    Attributes:
        email: Account identifier used for credential login
        password: Account secret used for credential login
        base_url: Root URL of the remote service
        targets_file: Text file listing target profile URLs
        cookies_file: JSON file holding the persisted cookie set
        download_dir: Directory Chrome downloads into and artifacts are claimed in
        headless: Run Chrome without a window
        log_file: Path of the rotating JSON log
        log_level: Console log level name
    """
    email: Optional[str]
    password: Optional[str]
    base_url: str
    targets_file: Path
    cookies_file: Path
    download_dir: Path
    headless: bool = False
    log_file: Path = Path("profile_export.log")
    log_level: str = "INFO"

    @staticmethod
    def from_env(
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Path] = None,
    ) -> "Settings":
        """
        Build settings from the environment.

        Args:
            env: Mapping to read instead of os.environ (used by tests; skips .env)
            dotenv_path: Explicit .env file to load before reading os.environ

        Returns:
            Settings with defaults filled in
        """
        if env is None:
            load_dotenv(dotenv_path, override=False)
            env = os.environ

        data_dir = Path(env.get("PROFILE_EXPORT_DATA_DIR") or DEFAULT_DATA_DIR)

        def _path(key: str, default: Path) -> Path:
            raw = (env.get(key) or "").strip()
            return Path(os.path.expanduser(raw)) if raw else default

        return Settings(
            email=(env.get("LINKEDIN_EMAIL") or "").strip() or None,
            password=env.get("LINKEDIN_PASSWORD") or None,
            base_url=(env.get("PROFILE_EXPORT_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            targets_file=_path("PROFILE_EXPORT_TARGETS_FILE", data_dir / "profiles.csv"),
            cookies_file=_path("PROFILE_EXPORT_COOKIES_FILE", data_dir / "cookies.json"),
            download_dir=_path("PROFILE_EXPORT_DOWNLOAD_DIR", data_dir / "pdfs"),
            headless=(env.get("PROFILE_EXPORT_HEADLESS") or "").strip().lower() in _TRUTHY,
            log_file=_path("PROFILE_EXPORT_LOG_FILE", Path("profile_export.log")),
            log_level=(env.get("PROFILE_EXPORT_LOG_LEVEL") or "INFO").strip().upper(),
        )

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/login"

    @property
    def landing_url(self) -> str:
        return f"{self.base_url}/feed/"

    def require_credentials(self) -> None:
        """Raise PreconditionError unless both credentials are set."""
        missing = [
            name for name, value in (
                ("LINKEDIN_EMAIL", self.email),
                ("LINKEDIN_PASSWORD", self.password),
            ) if not value
        ]
        if missing:
            raise PreconditionError(f"Missing required environment variables: {', '.join(missing)}")

    def require_targets_file(self) -> None:
        if not self.targets_file.is_file():
            raise PreconditionError(f"Target list not found: {self.targets_file}")

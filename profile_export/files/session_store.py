"""
Session Store: Persisted Browser Cookies

This module persists the cookie set of an authenticated browser session
so later runs can skip the credential login.

File format: a JSON array of cookie objects, exactly as Selenium's
get_cookies() returns them (name, value, domain, path, secure, httpOnly,
expiry, sameSite).

RULES:
- The file is always replaced wholesale, never edited in place
- A file that does not validate as a whole is corrupt; nothing from it is applied
- A corrupt or missing file simply forces a fresh credential login
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence
import json
import logging
import os
import tempfile

from pydantic import ValidationError

from ..errors import CorruptDataError, NotFoundError, PersistenceError
from ..schemas import COOKIE_LIST, CookieRecord

logger = logging.getLogger(__name__)


class SessionStore:
    """
    JSON-file cookie store.

    Usage:
        store = SessionStore(Path("linkedin/cookies.json"))
        store.save([CookieRecord.from_webdriver(c) for c in driver.get_cookies()])
        cookies = store.load()
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, cookies: Sequence[CookieRecord]) -> int:
        """
        Write the cookie set, replacing any previous file.

        Written to a temp file in the same directory and renamed over the
        target, so a crash mid-write never leaves a half-written store.

        Args:
            cookies: Full cookie set of the session

        Returns:
            Number of cookies written

        Raises:
            PersistenceError: If the directory or file cannot be written
        """
        payload = [c.model_dump(by_alias=True, exclude_none=True) for c in cookies]
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=self.path.parent, suffix=".tmp"
            ) as tmp_file:
                tmp_path = tmp_file.name
                json.dump(payload, tmp_file, indent=2)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise PersistenceError(f"Could not write cookie file {self.path}: {e}") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.info(f"[SESSION] Saved {len(payload)} cookies to {self.path}")
        return len(payload)

    def load(self) -> List[CookieRecord]:
        """
        Read the saved cookie set.

        Raises:
            NotFoundError: If no cookie file exists
            CorruptDataError: If the file cannot be read or validated
        """
        if not self.exists():
            raise NotFoundError(f"No cookie file at {self.path}")

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise CorruptDataError(f"Could not read cookie file {self.path}: {e}") from e

        try:
            cookies = COOKIE_LIST.validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(
                f"Cookie file {self.path} is not a valid cookie list ({e.error_count()} errors)"
            ) from e

        logger.info(f"[SESSION] Loaded {len(cookies)} cookies from {self.path}")
        return cookies

    def clear(self) -> bool:
        """Delete the cookie file. Returns True if a file was removed."""
        if not self.exists():
            return False
        self.path.unlink()
        logger.info(f"[SESSION] Cleared {self.path}")
        return True

    def __repr__(self) -> str:
        return f"SessionStore(path='{self.path}', exists={self.exists()})"

"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from selenium.common.exceptions import (
    ElementClickInterceptedException,
    InvalidCookieDomainException,
    NoSuchElementException,
)

from profile_export.config import Settings
from profile_export.locators import (
    EXPORT_MENU_ITEM_STRATEGIES,
    OVERFLOW_ACTIONS,
    PASSWORD_FIELD,
    SUBMIT_BUTTON,
    USERNAME_FIELD,
)
from profile_export.timing import Delay, Timeouts, WaitPolicy

BASE_URL = "https://www.linkedin.com"
PRIMARY_MENU_ITEM = EXPORT_MENU_ITEM_STRATEGIES[0].locator
FALLBACK_MENU_ITEM = EXPORT_MENU_ITEM_STRATEGIES[1].locator


# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Clock that only moves when something sleeps."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = 0.0
        self.start_ms = start_ms
        self.sleeps: List[float] = []
        self.on_sleep: Optional[Callable[[float], None]] = None

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep:
            self.on_sleep(self.now)

    def time_ms(self) -> int:
        return self.start_ms + int(self.now * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_timeouts() -> Timeouts:
    """Timeouts short enough for WebDriverWait's real sleeps."""
    quick = lambda name: WaitPolicy(name, 0.05, poll_s=0.01)
    return Timeouts(
        login_form_probe=quick("login_form_probe"),
        credential_fields=quick("credential_fields"),
        post_login_redirect=quick("post_login_redirect"),
        post_login_settle=Delay("post_login_settle", 3.0),
        page_settle=Delay("page_settle", 3.0),
        menu_settle=Delay("menu_settle", 1.0),
        download=WaitPolicy("download", 30.0, poll_s=0.5),
        download_settle=Delay("download_settle", 2.0),
        pre_batch_settle=Delay("pre_batch_settle", 3.0),
    )


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    targets = tmp_path / "profiles.csv"
    targets.write_text("")
    return Settings(
        email="user@example.com",
        password="s3cret",
        base_url=BASE_URL,
        targets_file=targets,
        cookies_file=tmp_path / "cookies.json",
        download_dir=tmp_path / "pdfs",
        log_file=tmp_path / "logs" / "profile_export.log",
    )


# ============================================================================
# Fake WebDriver
# ============================================================================


@dataclass
class ProfilePage:
    """How a fake profile page behaves."""
    overflow_buttons: int = 2
    primary_item: bool = True
    fallback_item: bool = True
    more_click_fails: bool = False
    primary_click_fails: bool = False
    # Called when the export menu item is clicked (writes the download)
    on_export: Optional[Callable[[], None]] = None
    exports: int = 0


@dataclass
class FakeDriver:
    """
    Minimal stand-in for selenium's WebDriver.

    The login form is shown on /login, and on any page while the session
    is not authenticated. Submitting the form redirects to /feed/ when
    login_succeeds is set.
    """
    session_valid_cookies: bool = False
    login_succeeds: bool = True
    login_form_renders: bool = True
    rejected_cookies: set = field(default_factory=set)
    profiles: Dict[str, ProfilePage] = field(default_factory=dict)
    issued_cookies: List[dict] = field(default_factory=lambda: [
        {"name": "li_at", "value": "token", "domain": ".linkedin.com", "path": "/",
         "secure": True, "httpOnly": True, "expiry": 1893456000.0, "sameSite": "None"},
        {"name": "JSESSIONID", "value": "ajax:1", "domain": ".www.linkedin.com", "path": "/"},
    ])

    current_url: str = ""
    visited: List[str] = field(default_factory=list)
    cookies: List[dict] = field(default_factory=list)
    logged_in: bool = False
    quit_called: bool = False
    scripts: List[tuple] = field(default_factory=list)
    typed: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.username_el = MagicMock(name="username")
        self.username_el.send_keys.side_effect = lambda v: self.typed.__setitem__("username", v)
        self.password_el = MagicMock(name="password")
        self.password_el.send_keys.side_effect = lambda v: self.typed.__setitem__("password", v)
        self.submit_el = MagicMock(name="submit")
        self.submit_el.click.side_effect = self._submit
        self.primary_el = MagicMock(name="primary-menu-item")
        self.fallback_el = MagicMock(name="fallback-menu-item")

    # navigation -------------------------------------------------------------

    def get(self, url: str) -> None:
        self.visited.append(url)
        self.current_url = url

    def refresh(self) -> None:
        if self.session_valid_cookies and self.cookies:
            self.logged_in = True

    def quit(self) -> None:
        self.quit_called = True

    # cookies ----------------------------------------------------------------

    def add_cookie(self, cookie: dict) -> None:
        if cookie["name"] in self.rejected_cookies:
            raise InvalidCookieDomainException("invalid cookie domain")
        self.cookies.append(cookie)

    def get_cookies(self) -> List[dict]:
        return [dict(c) for c in self.issued_cookies]

    # elements ---------------------------------------------------------------

    @property
    def page(self) -> Optional[ProfilePage]:
        return self.profiles.get(self.current_url)

    def _login_form_visible(self) -> bool:
        if self.current_url.endswith("/login"):
            return self.login_form_renders
        return not self.logged_in

    def find_element(self, by, value):
        locator = (by, value)
        if locator in (USERNAME_FIELD, PASSWORD_FIELD, SUBMIT_BUTTON):
            if not self._login_form_visible():
                raise NoSuchElementException(f"no {value}")
            return {
                USERNAME_FIELD: self.username_el,
                PASSWORD_FIELD: self.password_el,
                SUBMIT_BUTTON: self.submit_el,
            }[locator]
        page = self.page
        if page and locator == PRIMARY_MENU_ITEM and page.primary_item:
            return self.primary_el
        if page and locator == FALLBACK_MENU_ITEM and page.fallback_item:
            return self.fallback_el
        raise NoSuchElementException(f"no {value}")

    def find_elements(self, by, value):
        page = self.page
        if (by, value) != OVERFLOW_ACTIONS or page is None:
            return []
        buttons = [MagicMock(name=f"overflow-{i}") for i in range(page.overflow_buttons)]
        if page.more_click_fails:
            for button in buttons:
                button.click.side_effect = ElementClickInterceptedException("covered")
        return buttons

    def execute_script(self, script, *args):
        self.scripts.append((script, args))
        page = self.page
        element = args[0] if args else None
        if page is None or element not in (self.primary_el, self.fallback_el):
            return None
        if element is self.primary_el and page.primary_click_fails:
            raise ElementClickInterceptedException("menu item covered")
        page.exports += 1
        if page.on_export:
            page.on_export()
        return None

    def _submit(self):
        if self.login_succeeds:
            self.logged_in = True
            self.current_url = f"{BASE_URL}/feed/"
        else:
            self.current_url = f"{BASE_URL}/checkpoint/challenge"


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


def write_pdf(directory: Path, name: str = "Profile.pdf", mtime: Optional[float] = None) -> Path:
    """Create a finished download, optionally with an explicit mtime."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"%PDF-1.4 " + name.encode())
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path

"""
Authenticator: Restore or Establish a Logged-In Browser Session

Sessions degrade silently (cookies expire or get revoked), so every run
verifies a restored session instead of assuming it works, with exactly
one fallback: a full credential login.

State machine:

    UNAUTHENTICATED -> SESSION_RESTORING -> SESSION_VALIDATING -> AUTHENTICATED
                             |                     |
                             +---> CREDENTIAL_LOGIN <---+
                                         |
                                         +-> AUTHENTICATED | LOGIN_FAILED

A login form on the landing page means the restored cookies are no good.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional
import logging

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .config import Settings
from .errors import (
    CorruptDataError,
    ElementNotFoundError,
    LoginFailedError,
    NotFoundError,
    PersistenceError,
)
from .files.session_store import SessionStore
from .locators import PASSWORD_FIELD, POST_LOGIN_MARKERS, SUBMIT_BUTTON, USERNAME_FIELD
from .schemas import CookieRecord
from .timing import Clock, SystemClock, Timeouts, WaitPolicy

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    SESSION_RESTORING = "session-restoring"
    SESSION_VALIDATING = "session-validating"
    CREDENTIAL_LOGIN = "credential-login"
    AUTHENTICATED = "authenticated"
    LOGIN_FAILED = "login-failed"


def _wait(driver: Any, policy: WaitPolicy) -> WebDriverWait:
    return WebDriverWait(driver, policy.timeout_s, poll_frequency=policy.poll_s)


class Authenticator:
    """
    Owns the browser session while it is being authenticated.

    Usage:
        auth = Authenticator(driver, SessionStore(settings.cookies_file), settings)
        auth.authenticate()  # raises on failure
    """

    def __init__(
        self,
        driver: Any,
        store: SessionStore,
        settings: Settings,
        timeouts: Optional[Timeouts] = None,
        clock: Optional[Clock] = None,
    ):
        self.driver = driver
        self.store = store
        self.settings = settings
        self.timeouts = timeouts or Timeouts()
        self.clock = clock or SystemClock()
        self.state = AuthState.UNAUTHENTICATED
        self.history: List[AuthState] = [self.state]

    def _transition(self, state: AuthState) -> AuthState:
        logger.debug(f"[AUTH] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)
        return state

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED

    def authenticate(self) -> AuthState:
        """
        Run the full state machine.

        Returns:
            AuthState.AUTHENTICATED

        Raises:
            LoginFailedError: If credential login does not complete
            ElementNotFoundError: If the login form never appears
        """
        if self.restore_session() == AuthState.SESSION_VALIDATING:
            self.validate_session()

        if self.state == AuthState.CREDENTIAL_LOGIN:
            self.credential_login()

        logger.info("[AUTH] Login successful!")
        return self.state

    def restore_session(self) -> AuthState:
        """
        Apply persisted cookies to the browser.

        Returns:
            SESSION_VALIDATING if cookies were applied, CREDENTIAL_LOGIN if
            there was nothing usable to restore
        """
        self._transition(AuthState.SESSION_RESTORING)
        try:
            cookies = self.store.load()
        except NotFoundError:
            logger.info("[AUTH] No saved cookies, logging in with credentials")
            return self._transition(AuthState.CREDENTIAL_LOGIN)
        except CorruptDataError as e:
            logger.warning(f"[AUTH] Saved cookies unusable ({e}), logging in with credentials")
            return self._transition(AuthState.CREDENTIAL_LOGIN)

        # Cookies can only be set for the domain currently loaded
        self.driver.get(self.settings.base_url)

        applied = 0
        for cookie in cookies:
            try:
                self.driver.add_cookie(cookie.to_webdriver())
                applied += 1
            except WebDriverException as e:
                logger.warning(f"[AUTH] Could not add cookie {cookie.name}: {e.msg or e}")

        logger.info(f"[AUTH] Cookies loaded ({applied}/{len(cookies)})")
        self.driver.refresh()
        self.driver.get(self.settings.landing_url)
        return self._transition(AuthState.SESSION_VALIDATING)

    def validate_session(self) -> AuthState:
        """
        Decide whether the restored session is live.

        The login form showing up within the probe window means it is not.
        """
        policy = self.timeouts.login_form_probe
        try:
            _wait(self.driver, policy).until(EC.presence_of_element_located(USERNAME_FIELD))
        except TimeoutException:
            logger.info("[AUTH] Login input not found, session restored")
            return self._transition(AuthState.AUTHENTICATED)

        logger.info("[AUTH] Saved session expired, logging in again...")
        try:
            self.store.clear()
        except OSError as e:
            logger.warning(f"[AUTH] Could not remove stale cookie file: {e}")
        return self._transition(AuthState.CREDENTIAL_LOGIN)

    def credential_login(self) -> AuthState:
        """
        Log in with the configured credentials and persist the new cookies.

        Raises:
            ElementNotFoundError: If the username field does not appear
            LoginFailedError: If no post-login page is reached in time
        """
        if self.state != AuthState.CREDENTIAL_LOGIN:
            self._transition(AuthState.CREDENTIAL_LOGIN)

        logger.info(f"[AUTH] Opening login page: {self.settings.login_url}")
        self.driver.get(self.settings.login_url)

        policy = self.timeouts.credential_fields
        try:
            user_el = _wait(self.driver, policy).until(EC.presence_of_element_located(USERNAME_FIELD))
        except TimeoutException as e:
            self._transition(AuthState.LOGIN_FAILED)
            raise ElementNotFoundError("username field", policy.timeout_s) from e

        logger.info("[AUTH] Entering credentials...")
        user_el.send_keys(self.settings.email)
        self.driver.find_element(*PASSWORD_FIELD).send_keys(self.settings.password)
        self.driver.find_element(*SUBMIT_BUTTON).click()

        logger.info("[AUTH] Logging in...")
        redirect = self.timeouts.post_login_redirect
        try:
            _wait(self.driver, redirect).until(
                lambda d: any(marker in (d.current_url or "") for marker in POST_LOGIN_MARKERS)
            )
        except TimeoutException as e:
            self._transition(AuthState.LOGIN_FAILED)
            raise LoginFailedError(
                f"Login did not reach a post-login page within {redirect.timeout_s:g}s "
                f"(current url: {self.driver.current_url})"
            ) from e

        self._persist_cookies()
        self.timeouts.post_login_settle.apply(self.clock)
        return self._transition(AuthState.AUTHENTICATED)

    def _persist_cookies(self) -> None:
        cookies = [CookieRecord.from_webdriver(c) for c in self.driver.get_cookies()]
        try:
            self.store.save(cookies)
        except PersistenceError as e:
            # The live session is still good; only the next run loses the shortcut
            logger.error(f"[AUTH] {e}")

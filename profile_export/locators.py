"""
Locators: UI Selectors and Ordered Locator Strategies

The remote UI's DOM is not a stable contract, so each element we need is
described by one or more LocatorStrategy entries tried in order. Adding a
third fallback is a matter of appending to the list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple
import logging

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

logger = logging.getLogger(__name__)

# =========================================================================
# LOGIN FORM
# =========================================================================

USERNAME_FIELD = (By.ID, "username")
PASSWORD_FIELD = (By.ID, "password")
SUBMIT_BUTTON = (By.CSS_SELECTOR, 'button[type="submit"]')

# URL fragments that mean the login went through
POST_LOGIN_MARKERS: Tuple[str, ...] = (
    "linkedin.com/feed",
    "linkedin.com/check/add-phone",
)

# =========================================================================
# PROFILE PAGE
# =========================================================================

OVERFLOW_ACTIONS = (By.XPATH, '//button[contains(@id, "profile-overflow-action")]')

# Positional rule: the first overflow button on a profile page belongs to a
# different action; the second opens the "More" menu. Replace with a
# label-based lookup if the page grows a stable aria-label for it.
OVERFLOW_ACTION_INDEX = 1

EXPORT_LABEL = "Save to PDF"


@dataclass(frozen=True)
class LocatorStrategy:
    """One way of finding an element."""
    name: str
    by: str
    value: str

    @property
    def locator(self) -> Tuple[str, str]:
        return (self.by, self.value)


EXPORT_MENU_ITEM_STRATEGIES: Tuple[LocatorStrategy, ...] = (
    LocatorStrategy(
        "menu-item",
        By.XPATH,
        f'//div[@role="button" and contains(., "{EXPORT_LABEL}")]',
    ),
    LocatorStrategy(
        "any-text",
        By.XPATH,
        f'//*[contains(text(), "{EXPORT_LABEL}")]',
    ),
)


def script_click(driver: Any, element: Any) -> None:
    """Click through JavaScript; works when the element is covered or off-screen."""
    driver.execute_script("arguments[0].click();", element)


def click_first_match(
    driver: Any,
    strategies: Sequence[LocatorStrategy],
    click: Callable[[Any, Any], None] = script_click,
) -> Optional[LocatorStrategy]:
    """
    Try each strategy in order: locate the element, then click it.

    Args:
        driver: WebDriver instance
        strategies: Strategies in priority order
        click: Click function applied to (driver, element)

    Returns:
        The strategy that succeeded, or None if all failed
    """
    for strategy in strategies:
        try:
            element = driver.find_element(*strategy.locator)
            click(driver, element)
        except WebDriverException as e:
            logger.info(f"[LOCATOR] '{strategy.name}' failed: {e.__class__.__name__}: {e.msg or e}")
            continue
        logger.info(f"[LOCATOR] Clicked via '{strategy.name}'")
        return strategy
    return None

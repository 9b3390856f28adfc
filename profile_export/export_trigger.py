"""
Export Trigger: Ask the Remote Service to Generate a Profile PDF

For one target this drives the profile page's "More" menu and clicks its
"Save to PDF" item. It only starts the export; waiting for the file is the
Artifact Resolver's job.

Steps:
1. Open the profile and let it render (fixed settle delay)
2. Pick the second overflow-action button (see locators.OVERFLOW_ACTION_INDEX)
3. Open its menu and let the animation finish (fixed settle delay)
4. Let the caller snapshot the download directory
5. Click the export menu item via script, trying each locator strategy in order
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Sequence
import logging

from selenium.common.exceptions import WebDriverException

from .locators import (
    EXPORT_MENU_ITEM_STRATEGIES,
    OVERFLOW_ACTION_INDEX,
    OVERFLOW_ACTIONS,
    LocatorStrategy,
    click_first_match,
)
from .targets import Target
from .timing import Clock, SystemClock, Timeouts

logger = logging.getLogger(__name__)


class TriggerResult(str, Enum):
    TRIGGERED = "triggered"
    NO_ACTION_ELEMENT = "no-action-element"
    FAILED = "failed"

    @property
    def triggered(self) -> bool:
        return self is TriggerResult.TRIGGERED


class ExportTrigger:
    """Drives the export UI sequence on a ready, authenticated driver."""

    def __init__(
        self,
        driver: Any,
        timeouts: Optional[Timeouts] = None,
        clock: Optional[Clock] = None,
        menu_item_strategies: Sequence[LocatorStrategy] = EXPORT_MENU_ITEM_STRATEGIES,
    ):
        self.driver = driver
        self.timeouts = timeouts or Timeouts()
        self.clock = clock or SystemClock()
        self.menu_item_strategies = tuple(menu_item_strategies)

    def find_action_button(self) -> Optional[Any]:
        buttons = self.driver.find_elements(*OVERFLOW_ACTIONS)
        if len(buttons) <= OVERFLOW_ACTION_INDEX:
            return None
        return buttons[OVERFLOW_ACTION_INDEX]

    def trigger(
        self,
        target: Target,
        before_export: Optional[Callable[[], None]] = None,
    ) -> TriggerResult:
        """
        Start the export for one target.

        Navigation errors propagate; the orchestrator records them as a
        failed trigger.

        Args:
            target: Target with a resolvable identifier
            before_export: Called once the menu is open, immediately before
                the export item is clicked

        Returns:
            TriggerResult describing how far the sequence got
        """
        self.driver.get(target.url)
        self.timeouts.page_settle.apply(self.clock)

        button = self.find_action_button()
        if button is None:
            logger.info("[TRIGGER] Could not find second overflow action, skipping...")
            return TriggerResult.NO_ACTION_ELEMENT

        logger.info("[TRIGGER] Clicking More button...")
        try:
            button.click()
        except WebDriverException as e:
            # The menu item may still be in the DOM; let the strategies decide
            logger.warning(f"[TRIGGER] More button click rejected: {e.msg or e}")
        self.timeouts.menu_settle.apply(self.clock)

        if before_export is not None:
            before_export()

        strategy = click_first_match(self.driver, self.menu_item_strategies)
        if strategy is None:
            logger.warning(f"[TRIGGER] All export locators failed for {target.identifier}")
            return TriggerResult.FAILED

        logger.info(f"[TRIGGER] PDF download initiated ({strategy.name})")
        return TriggerResult.TRIGGERED

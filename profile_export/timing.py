"""
Timing: Named Waits and Settle Delays

The remote UI exposes no completion events, so every wait in the pipeline is
either a bounded poll (WaitPolicy) or a fixed settle delay (Delay). All of them
live in one Timeouts object so they can be tuned from one place and shortened
in tests, and all sleeping goes through a Clock so tests can use a fake one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, TypeVar
import logging
import time

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Clock(Protocol):
    """Time source used by every wait in the pipeline."""

    def monotonic(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...

    def time_ms(self) -> int:
        """Wall-clock epoch milliseconds."""
        ...


class SystemClock:
    """Real clock backed by the time module."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def time_ms(self) -> int:
        return int(time.time() * 1000)


@dataclass(frozen=True)
class Delay:
    """A fixed settle delay standing in for a missing "ready" signal."""
    name: str
    seconds: float

    def apply(self, clock: Clock) -> None:
        if self.seconds > 0:
            logger.debug(f"[WAIT] settle '{self.name}' for {self.seconds:g}s")
            clock.sleep(self.seconds)


@dataclass(frozen=True)
class WaitPolicy:
    """
    A bounded poll.

    Attributes:
        name: Label used in log messages
        timeout_s: Give up after this many seconds
        poll_s: Interval between checks
    """
    name: str
    timeout_s: float
    poll_s: float = 0.5


def poll_until(
    probe: Callable[[], Optional[T]],
    policy: WaitPolicy,
    clock: Clock,
) -> Optional[T]:
    """
    Call probe until it returns a truthy value or the policy times out.

    The probe is always called at least once, and once more after the
    deadline passes, so a result that lands during the last sleep is seen.

    Returns:
        The first truthy probe result, or None on timeout
    """
    deadline = clock.monotonic() + policy.timeout_s
    while True:
        result = probe()
        if result:
            return result
        if clock.monotonic() >= deadline:
            logger.debug(f"[WAIT] '{policy.name}' timed out after {policy.timeout_s:g}s")
            return None
        clock.sleep(policy.poll_s)


@dataclass(frozen=True)
class Timeouts:
    """Every wait the pipeline performs, by name."""

    # Authenticator
    login_form_probe: WaitPolicy = field(default_factory=lambda: WaitPolicy("login_form_probe", 10.0))
    credential_fields: WaitPolicy = field(default_factory=lambda: WaitPolicy("credential_fields", 10.0))
    post_login_redirect: WaitPolicy = field(default_factory=lambda: WaitPolicy("post_login_redirect", 15.0))
    post_login_settle: Delay = field(default_factory=lambda: Delay("post_login_settle", 3.0))

    # Export trigger
    page_settle: Delay = field(default_factory=lambda: Delay("page_settle", 3.0))
    menu_settle: Delay = field(default_factory=lambda: Delay("menu_settle", 1.0))

    # Artifact resolver
    download: WaitPolicy = field(default_factory=lambda: WaitPolicy("download", 30.0, poll_s=0.5))
    download_settle: Delay = field(default_factory=lambda: Delay("download_settle", 2.0))

    # Orchestrator
    pre_batch_settle: Delay = field(default_factory=lambda: Delay("pre_batch_settle", 3.0))

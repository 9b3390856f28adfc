"""
Pipeline: Authenticate Once, Then Export Every Target

This module orchestrates a full run:

1. PRECONDITIONS (before any browser opens)
   - Credentials present, target list file present

2. AUTHENTICATION (run-fatal)
   - Restore saved cookies, verify them, fall back to credential login

3. PER-TARGET EXPORT (failures isolated)
   - Resolve identifier -> trigger export (snapshotting the download dir
     just before the click) -> wait for the file -> settle -> claim it
     under the identifier

Targets are processed strictly one at a time: the shared download directory
has no other way to tell which new file belongs to which target.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
import logging

from selenium.common.exceptions import WebDriverException

from .authenticator import Authenticator
from .browser_driver import make_driver
from .config import Settings
from .errors import DownloadTimeoutError, ProfileExportError
from .export_trigger import ExportTrigger, TriggerResult
from .files.artifact_resolver import ArtifactResolver, Snapshot
from .files.session_store import SessionStore
from .schemas import RunReport, TargetOutcome, TargetResult
from .targets import Target, read_targets
from .timing import Clock, SystemClock, Timeouts

logger = logging.getLogger(__name__)

DriverFactory = Callable[..., Any]

_TRIGGER_OUTCOMES = {
    TriggerResult.NO_ACTION_ELEMENT: TargetOutcome.SKIPPED_NO_ACTION_ELEMENT,
    TriggerResult.FAILED: TargetOutcome.FAILED_TRIGGER,
}


class ExportPipeline:
    """
    Runs the export for every target in the settings' target list.

    Usage:
        settings = Settings.from_env()
        report = ExportPipeline(settings).run()
        for result in report.results:
            print(result.identifier, result.outcome.value)
    """

    def __init__(
        self,
        settings: Settings,
        *,
        driver_factory: DriverFactory = make_driver,
        timeouts: Optional[Timeouts] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings
        self.driver_factory = driver_factory
        self.timeouts = timeouts or Timeouts()
        self.clock = clock or SystemClock()
        self.store = SessionStore(settings.cookies_file)
        self.resolver = ArtifactResolver(settings.download_dir, clock=self.clock)

    def run(self) -> RunReport:
        """
        Execute one full run.

        Returns:
            RunReport with one entry per non-blank target (empty if
            authentication failed)

        Raises:
            PreconditionError: If credentials are missing or the target list
                cannot be read
        """
        self.settings.require_credentials()
        self.settings.require_targets_file()

        self.resolver.ensure_directory()
        logger.info(f"[PIPELINE] Download folder: {self.settings.download_dir}")
        targets = read_targets(self.settings.targets_file)

        report = RunReport(download_dir=str(self.settings.download_dir))
        driver = self.driver_factory(self.settings.download_dir, headless=self.settings.headless)
        try:
            auth = Authenticator(driver, self.store, self.settings, self.timeouts, self.clock)
            try:
                auth.authenticate()
            except (ProfileExportError, WebDriverException) as e:
                logger.error(f"[PIPELINE] Login failed: {e}")
                report.error = str(e)
                return report

            report.authenticated = True
            self.timeouts.pre_batch_settle.apply(self.clock)

            trigger = ExportTrigger(driver, self.timeouts, self.clock)
            for target in targets:
                result = self.process_target(trigger, target, len(targets))
                report.results.append(result)

            self._log_summary(report)
            return report
        finally:
            self._quit(driver)

    def process_target(self, trigger: ExportTrigger, target: Target, total: int) -> TargetResult:
        """
        Export one target. Never raises.

        Args:
            trigger: ExportTrigger bound to the authenticated driver
            target: Target to export
            total: Number of targets in the run (for progress messages)

        Returns:
            TargetResult for this target
        """
        progress = f"[{target.position}/{total}]"
        if not target.resolvable:
            logger.warning(f"{progress} Could not extract profile ID from: {target.url}")
            return TargetResult(
                position=target.position,
                url=target.url,
                outcome=TargetOutcome.SKIPPED_UNRESOLVABLE,
            )

        logger.info(f"{progress} Processing: {target.identifier} ({target.url})")

        def result(outcome: TargetOutcome, **kwargs: Any) -> TargetResult:
            return TargetResult(
                position=target.position,
                url=target.url,
                identifier=target.identifier,
                outcome=outcome,
                **kwargs,
            )

        try:
            # Taken right before the export click, so a late download from
            # the previous target is already part of it
            baseline: Snapshot = {}
            triggered = trigger.trigger(
                target, before_export=lambda: baseline.update(self.resolver.snapshot())
            )
            if not triggered.triggered:
                return result(_TRIGGER_OUTCOMES[triggered])

            try:
                self.resolver.require_artifact(self.timeouts.download, baseline)
            except DownloadTimeoutError as e:
                logger.warning(f"{progress} Download timeout - file may not have been saved")
                return result(TargetOutcome.FAILED_DOWNLOAD_TIMEOUT, error=str(e))

            # Chrome drops the temp suffix before the OS has necessarily flushed the file
            self.timeouts.download_settle.apply(self.clock)

            claim = self.resolver.claim(target.identifier, baseline, source_url=target.url)
            if not claim.ok:
                return result(TargetOutcome.FAILED_CLAIM, error=claim.error)

            return result(
                TargetOutcome.EXPORTED,
                artifact_path=str(claim.destination),
                provenance=claim.provenance.to_dict() if claim.provenance else None,
            )
        except Exception as e:
            logger.error(f"{progress} Error processing profile {target.identifier}: {e}")
            return result(TargetOutcome.FAILED_TRIGGER, error=str(e))

    def _log_summary(self, report: RunReport) -> None:
        counts = {k: v for k, v in report.counts().items() if v}
        summary = ", ".join(f"{k}={v}" for k, v in counts.items()) or "no targets"
        logger.info(f"[PIPELINE] All profiles processed! ({summary})")
        logger.info(f"[PIPELINE] PDFs saved in: {report.download_dir}")

    @staticmethod
    def _quit(driver: Any) -> None:
        try:
            driver.quit()
        except Exception as e:
            logger.warning(f"[PIPELINE] Error closing browser: {e}")

"""
Artifact Resolver: Detect and Claim Downloaded Exports

The remote service produces the export asynchronously and Chrome writes it
into the download directory under a name we do not control (usually
"Profile.pdf"). This module:

1. Snapshots the directory before an export is triggered
2. Polls until a new, fully-written file appears
3. Renames ("claims") the newest such file to <identifier>.pdf

Incomplete downloads are recognized by their temp suffix (.crdownload for
Chrome, .tmp / .part for others). Claims never overwrite an existing file:
on a name collision a millisecond timestamp is appended.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging
import os

from ..errors import DownloadTimeoutError
from ..provenance import Provenance
from ..timing import Clock, SystemClock, WaitPolicy, poll_until

logger = logging.getLogger(__name__)

INCOMPLETE_SUFFIXES: Tuple[str, ...] = (".crdownload", ".tmp", ".part")

# name -> mtime_ns
Snapshot = Dict[str, int]


@dataclass(frozen=True)
class ArtifactCandidate:
    """A finished file in the download directory."""
    path: Path
    mtime_ns: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ClaimResult:
    """
    Result of a claim attempt.

    Attributes:
        ok: True if the artifact was renamed
        source: Path of the artifact before the rename
        destination: Path after the rename (or the intended one on failure)
        collided: True if the plain <identifier> name was taken
        provenance: Provenance of the claimed file
        error: Error message if the claim failed
    """
    ok: bool
    source: Optional[Path] = None
    destination: Optional[Path] = None
    collided: bool = False
    provenance: Optional[Provenance] = None
    error: Optional[str] = None


class ArtifactResolver:
    """
    Watches one download directory for finished artifacts.

    Usage:
        resolver = ArtifactResolver(Path("linkedin/pdfs"))
        baseline = resolver.snapshot()
        ...  # trigger the export
        if resolver.wait_for_artifact(timeouts.download, baseline):
            result = resolver.claim("jane-smith", baseline, source_url=url)
    """

    def __init__(
        self,
        directory: Path,
        extension: str = ".pdf",
        incomplete_suffixes: Tuple[str, ...] = INCOMPLETE_SUFFIXES,
        clock: Optional[Clock] = None,
    ):
        self.directory = Path(directory)
        self.extension = extension if extension.startswith(".") else f".{extension}"
        self.incomplete_suffixes = incomplete_suffixes
        self.clock = clock or SystemClock()

    def ensure_directory(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def qualifies(self, name: str) -> bool:
        """True if the name is a finished artifact of the expected type."""
        lowered = name.lower()
        if any(lowered.endswith(suffix) for suffix in self.incomplete_suffixes):
            return False
        return lowered.endswith(self.extension.lower())

    def candidates(self, baseline: Optional[Snapshot] = None) -> List[ArtifactCandidate]:
        """
        List finished artifacts, newest first.

        Files present in the baseline with an unchanged mtime are excluded.
        A missing directory yields an empty list.
        """
        try:
            entries = list(os.scandir(self.directory))
        except FileNotFoundError:
            return []

        found: List[ArtifactCandidate] = []
        for entry in entries:
            if not self.qualifies(entry.name):
                continue
            try:
                if not entry.is_file():
                    continue
                mtime_ns = entry.stat().st_mtime_ns
            except FileNotFoundError:
                # Renamed away by the browser between scandir and stat
                continue
            if baseline is not None and baseline.get(entry.name) == mtime_ns:
                continue
            found.append(ArtifactCandidate(path=Path(entry.path), mtime_ns=mtime_ns))

        found.sort(key=lambda c: c.mtime_ns, reverse=True)
        return found

    def snapshot(self) -> Snapshot:
        """Record the finished artifacts currently in the directory."""
        return {c.name: c.mtime_ns for c in self.candidates()}

    def latest(self, baseline: Optional[Snapshot] = None) -> Optional[ArtifactCandidate]:
        found = self.candidates(baseline)
        return found[0] if found else None

    def wait_for_artifact(
        self,
        policy: WaitPolicy,
        baseline: Optional[Snapshot] = None,
    ) -> Optional[ArtifactCandidate]:
        """
        Poll until a finished artifact appears.

        Args:
            policy: Timeout and poll interval
            baseline: Snapshot taken before the export was triggered

        Returns:
            The newest qualifying artifact, or None on timeout
        """
        found = poll_until(lambda: self.latest(baseline), policy, self.clock)
        if found:
            logger.info(f"[ARTIFACT] Download completed: {found.name}")
        else:
            logger.warning(f"[ARTIFACT] No artifact in {self.directory} after {policy.timeout_s:g}s")
        return found

    def require_artifact(
        self,
        policy: WaitPolicy,
        baseline: Optional[Snapshot] = None,
    ) -> ArtifactCandidate:
        """Like wait_for_artifact, but raises DownloadTimeoutError on timeout."""
        found = self.wait_for_artifact(policy, baseline)
        if found is None:
            raise DownloadTimeoutError(
                f"No finished {self.extension} file in {self.directory} within {policy.timeout_s:g}s"
            )
        return found

    def destination_for(self, identifier: str) -> Tuple[Path, bool]:
        """
        Pick a free destination path for an identifier.

        Returns:
            (path, collided) where collided is True if <identifier><ext> was taken
        """
        plain = self.directory / f"{identifier}{self.extension}"
        if not plain.exists():
            return plain, False

        stamp = self.clock.time_ms()
        while True:
            candidate = self.directory / f"{identifier}_{stamp}{self.extension}"
            if not candidate.exists():
                return candidate, True
            stamp += 1

    def claim(
        self,
        identifier: str,
        baseline: Optional[Snapshot] = None,
        source_url: str = "",
    ) -> ClaimResult:
        """
        Rename the newest finished artifact to <identifier><ext>.

        Exactly one rename is attempted; on failure the file is left where
        it is and the error is returned.

        Args:
            identifier: Target identifier used as the new name stem
            baseline: Snapshot taken before the export was triggered
            source_url: Target URL, recorded in the provenance

        Returns:
            ClaimResult with the outcome
        """
        artifact = self.latest(baseline)
        if artifact is None:
            logger.warning("[ARTIFACT] No artifact found to claim")
            return ClaimResult(ok=False, error="no artifact to claim")

        destination, collided = self.destination_for(identifier)
        if collided:
            logger.info(f"[ARTIFACT] {identifier}{self.extension} already exists, adding timestamp...")

        try:
            artifact.path.rename(destination)
        except OSError as e:
            logger.error(f"[ARTIFACT] Error renaming {artifact.name} -> {destination.name}: {e}")
            return ClaimResult(
                ok=False,
                source=artifact.path,
                destination=destination,
                collided=collided,
                error=str(e),
            )

        logger.info(f"[ARTIFACT] Renamed to: {destination.name}")
        provenance = Provenance.for_claim(
            source_url=source_url,
            identifier=identifier,
            original_filename=artifact.name,
            claimed_path=destination,
            collided=collided,
        )
        return ClaimResult(
            ok=True,
            source=artifact.path,
            destination=destination,
            collided=collided,
            provenance=provenance,
        )

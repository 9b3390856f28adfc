"""
Provenance: Traceability for Claimed Artifacts

Every artifact the pipeline claims gets an immutable provenance record:
- When it was claimed
- Which target URL triggered it
- The file name the remote service gave it
- A SHA-256 hash of the file contents

This lets a renamed PDF always be traced back to the profile it was
exported from, even after the download directory has been reorganized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import hashlib


def sha256_file(path: Path, chunk_size: int = 65536) -> str:
    """Compute SHA-256 hash of a file without loading it whole."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


@dataclass(frozen=True)
class Provenance:
    """
    Traceability object attached to a claimed artifact.

    Attributes:
        claimed_at: ISO 8601 timestamp of the rename
        source_url: Target URL whose export produced the artifact
        identifier: Target identifier the artifact was claimed under
        original_filename: Name the file had when it appeared in the download directory
        artifact_hash: SHA-256 hash over the file bytes
        size_bytes: File size at claim time
        meta: Additional metadata dictionary
    """
    claimed_at: str  # ISO 8601
    source_url: str
    identifier: str
    original_filename: str
    artifact_hash: Optional[str] = None
    size_bytes: Optional[int] = None

    meta: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def for_claim(
        source_url: str,
        identifier: str,
        original_filename: str,
        claimed_path: Path,
        **meta: Any,
    ) -> "Provenance":
        """
        Create a Provenance for a file that has just been claimed.

        Args:
            source_url: The target URL
            identifier: Target identifier used for the new name
            original_filename: Name before the rename
            claimed_path: Path after the rename (hashed here)
            **meta: Extra fields stored under meta

        Returns:
            Provenance object with current UTC timestamp
        """
        return Provenance(
            claimed_at=datetime.now(timezone.utc).isoformat(),
            source_url=source_url,
            identifier=identifier,
            original_filename=original_filename,
            artifact_hash=sha256_file(claimed_path),
            size_bytes=claimed_path.stat().st_size,
            meta=dict(meta),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "claimed_at": self.claimed_at,
            "source_url": self.source_url,
            "identifier": self.identifier,
            "original_filename": self.original_filename,
            "artifact_hash": self.artifact_hash,
            "size_bytes": self.size_bytes,
            "meta": self.meta,
        }

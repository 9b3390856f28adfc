"""Target list parsing and profile identifier extraction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import logging
import re

from .errors import PreconditionError

logger = logging.getLogger(__name__)

# https://www.linkedin.com/in/john-doe-123456/ -> john-doe-123456
_PROFILE_PATH = re.compile(r"/in/([^/?#]+)")
_SEPARATORS = re.compile(r"[\n,]+")


@dataclass(frozen=True)
class Target:
    """One entry of the target list."""
    position: int  # 1-based, in input order
    url: str
    identifier: Optional[str]

    @property
    def resolvable(self) -> bool:
        return self.identifier is not None


def extract_identifier(url: Optional[str]) -> Optional[str]:
    """
    Return the profile identifier from a profile URL, or None.

    Never raises: anything that is not a string with an `/in/<id>` segment
    is unresolvable.
    """
    if not isinstance(url, str):
        return None
    match = _PROFILE_PATH.search(url)
    if not match:
        return None
    identifier = match.group(1).strip()
    return identifier or None


def split_targets(raw: str) -> List[str]:
    """Split newline/comma separated text into trimmed, non-blank URLs."""
    return [part.strip() for part in _SEPARATORS.split(raw or "") if part.strip()]


def parse_targets(raw: str) -> List[Target]:
    return [
        Target(position=i, url=url, identifier=extract_identifier(url))
        for i, url in enumerate(split_targets(raw), start=1)
    ]


def read_targets(path: Path) -> List[Target]:
    """
    Read and parse the target list file.

    Raises:
        PreconditionError: If the file cannot be read or is not UTF-8 text
    """
    try:
        raw = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise PreconditionError(f"Could not read target list {path}: {e}") from e
    targets = parse_targets(raw)
    logger.info(f"[TARGETS] Found {len(targets)} target(s) in {path}")
    return targets

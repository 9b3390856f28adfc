"""
Files Module: Session Cookies and Downloaded Artifacts

Components:
- SessionStore: Persists the authenticated cookie set between runs
- ArtifactResolver: Detects finished downloads and claims them under a target identifier

Design Philosophy:
1. Wholesale: the cookie file is replaced, never patched
2. No overwrite: a claim never replaces an existing artifact
3. Provenance: every claimed artifact can be traced to its source URL
"""

from .session_store import SessionStore
from .artifact_resolver import (
    ArtifactCandidate,
    ArtifactResolver,
    ClaimResult,
    INCOMPLETE_SUFFIXES,
)

__all__ = [
    "SessionStore",
    "ArtifactCandidate",
    "ArtifactResolver",
    "ClaimResult",
    "INCOMPLETE_SUFFIXES",
]

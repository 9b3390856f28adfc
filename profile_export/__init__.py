"""
Profile Export: Session-Persistent Profile PDF Exporter

Logs a Chrome session into the remote service (reusing saved cookies when
they still work), triggers "Save to PDF" for each target profile, and
renames every downloaded PDF after the profile it came from.
"""

from .config import Settings
from .pipeline import ExportPipeline
from .schemas import RunReport, TargetOutcome, TargetResult

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "ExportPipeline",
    "RunReport",
    "TargetOutcome",
    "TargetResult",
]

"""
Pydantic schemas for data validation.
Defines the cookie records persisted between runs and the per-target run report.
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing import Any, Dict, List, Optional
from enum import Enum


class TargetOutcome(str, Enum):
    EXPORTED = "exported"
    SKIPPED_UNRESOLVABLE = "skipped-unresolvable"
    SKIPPED_NO_ACTION_ELEMENT = "skipped-no-action-element"
    FAILED_TRIGGER = "failed-trigger"
    FAILED_DOWNLOAD_TIMEOUT = "failed-download-timeout"
    FAILED_CLAIM = "failed-claim"


class CookieRecord(BaseModel):
    """One browser cookie, in the shape Selenium's get_cookies() returns."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: str
    domain: Optional[str] = None
    path: Optional[str] = None
    secure: Optional[bool] = None
    http_only: Optional[bool] = Field(default=None, alias="httpOnly")
    expiry: Optional[int] = None
    same_site: Optional[str] = Field(default=None, alias="sameSite")

    @classmethod
    def from_webdriver(cls, cookie: Dict[str, Any]) -> "CookieRecord":
        data = dict(cookie)
        # Some drivers report expiry as a float
        if isinstance(data.get("expiry"), float):
            data["expiry"] = int(data["expiry"])
        return cls.model_validate(data)

    def to_webdriver(self) -> Dict[str, Any]:
        """Dict accepted by WebDriver.add_cookie()."""
        return self.model_dump(by_alias=True, exclude_none=True)


COOKIE_LIST = TypeAdapter(List[CookieRecord])


class TargetResult(BaseModel):
    """Outcome of processing one entry of the target list."""
    position: int
    url: str
    identifier: Optional[str] = None
    outcome: TargetOutcome
    artifact_path: Optional[str] = None
    provenance: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class RunReport(BaseModel):
    """Everything one pipeline run produced, in input order."""
    authenticated: bool = False
    download_dir: str
    results: List[TargetResult] = []
    error: Optional[str] = None

    def counts(self) -> Dict[str, int]:
        tally = {outcome.value: 0 for outcome in TargetOutcome}
        for result in self.results:
            tally[result.outcome.value] += 1
        return tally

    @property
    def exported(self) -> List[TargetResult]:
        return [r for r in self.results if r.outcome == TargetOutcome.EXPORTED]

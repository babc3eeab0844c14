# -------------------------------------------------------------------
# appsettings/schemas/binding_report.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **per-field outcome schema** of one bind call.
#
# AppSettingsLoader.bind returns a BindingReport listing, in discovery
# order, what happened to every eligible field:
#
#   - assigned            value fetched, converted and assigned
#   - connection_strings  connection-string mapping assigned verbatim
#   - missing             no value in the source; field left untouched
#   - not_writable        field cannot be assigned; skipped
#   - failed              fetch / conversion / assignment raised
#
# Only "failed" entries count as errors. AppSettingsLoader.load turns a
# report with failures into one SettingsLoadError.
#
# The report is plain data (no exception objects) so it can be logged or
# dumped as JSON for operators via model_dump().
# -------------------------------------------------------------------

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FieldStatus = Literal["assigned", "connection_strings", "missing", "not_writable", "failed"]


class FieldBindingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    member_name: str
    key: str
    status: FieldStatus
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class BindingReport(BaseModel):
    """
    Ordered results of one bind call.
    """

    target_type: str
    results: List[FieldBindingResult] = Field(default_factory=list)

    @property
    def failures(self) -> List[FieldBindingResult]:
        return [r for r in self.results if r.failed]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def keys_with_status(self, status: FieldStatus) -> List[str]:
        return [r.key for r in self.results if r.status == status]

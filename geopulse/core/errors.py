# geopulse/core/errors.py
# -----------------------------------------------------------------------------
# Error taxonomy for the analytics pipeline
# - MalformedRecord : one raw record failed validation (dropped, never fatal)
# - UpstreamFailure : one upstream source failed (replaced by an empty source)
# - ParseError      : value kept per dropped record so bad input stays auditable
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass


class GeopulseError(Exception):
    """Base class for service errors."""


class MalformedRecord(GeopulseError):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UpstreamFailure(GeopulseError):
    def __init__(self, source: str, detail: str):
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.detail = detail


@dataclass(frozen=True, slots=True)
class ParseError:
    source: str
    index: int
    reason: str

    def as_dict(self) -> dict:
        return {"source": self.source, "index": self.index, "reason": self.reason}

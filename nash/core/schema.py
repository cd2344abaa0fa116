"""
Record types shared across the knowledge store, credentials and pipeline.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class QAPair:
    question: str
    answer: str


@dataclass(frozen=True)
class ApiKey:
    token: str
    expires_at: datetime  # timezone-aware UTC

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class ResolutionSource(str, Enum):
    MATCHER = "matcher"
    TEMPORAL = "temporal"
    FUZZY = "fuzzy"
    NONE = "none"


@dataclass(frozen=True)
class ResolutionResult:
    text: str
    source: ResolutionSource


@dataclass(frozen=True)
class TeachOutcome:
    created: bool
    question: str
    answer: str

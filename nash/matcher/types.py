"""
Value types returned by the matcher.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Document:
    """A trained utterance and the answers registered for it."""

    text: str
    """Normalized utterance text"""

    answers: Tuple[str, ...]
    """Registered answers, oldest first"""


@dataclass(frozen=True)
class MatchResult:
    """Best accepted match for an utterance."""

    answer: str
    confidence: float
    """Cosine similarity between utterance and document (0-1)"""

    document: str

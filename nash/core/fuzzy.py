"""
Fuzzy fallback index over every known question.
The question list is loaded lazily from the knowledge store and cached until invalidated.
"""

import threading
from typing import Callable, List, Optional

from rapidfuzz import fuzz, process, utils

# rapidfuzz ratio (0-100) a question must reach to be offered as "did you mean"
FUZZY_SCORE_CUTOFF = 70


class FuzzyIndex:
    """Approximate string index; `loader` returns the current distinct questions."""

    def __init__(self, loader: Callable[[], List[str]]):
        self._loader = loader
        self._questions: Optional[List[str]] = None
        self._lock = threading.Lock()

    def invalidate(self):
        """Drop the cached questions so the next search reloads them."""
        with self._lock:
            self._questions = None

    def _get_questions(self) -> List[str]:
        with self._lock:
            if self._questions is None:
                # Storage errors propagate to the caller and leave the cache empty
                self._questions = list(self._loader())
            return self._questions

    def search(self, text: str) -> Optional[str]:
        """Return the closest known question above the cutoff, or None."""
        if not text or not text.strip():
            return None

        questions = self._get_questions()
        if not questions:
            return None

        match = process.extractOne(
            text,
            questions,
            scorer=fuzz.ratio,
            processor=utils.default_process,
            score_cutoff=FUZZY_SCORE_CUTOFF,
        )
        if match is None:
            return None
        return match[0]

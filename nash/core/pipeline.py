"""
Query resolution pipeline.

Stages run in fixed priority and the first success wins:
matcher -> temporal expression -> fuzzy "did you mean" -> default reply.
"""

from datetime import datetime
from typing import Callable, Optional

from .fuzzy import FuzzyIndex
from .schema import ResolutionResult, ResolutionSource
from .temporal import extract_time_query, render_time
from ..matcher.trainer import TrainableMatcher
from ..util.logging import logger

DEFAULT_RESPONSE = "I'm not sure how to respond to that. Ask something else."


def did_you_mean(question: str) -> str:
    return f'Did you mean: "{question}"?'


class ResolutionPipeline:
    """Routes a prompt through the resolution stages."""

    def __init__(self, matcher: TrainableMatcher, fuzzy_index: FuzzyIndex, clock: Optional[Callable[[], datetime]] = None):
        self.matcher = matcher
        self.fuzzy_index = fuzzy_index
        self.clock = clock

    def _resolve(self, language: str, text: str) -> ResolutionResult:
        match = self.matcher.resolve(language, text)
        if match is not None:
            return ResolutionResult(text=match.answer, source=ResolutionSource.MATCHER)

        location = extract_time_query(text)
        if location is not None:
            now = self.clock() if self.clock else None
            return ResolutionResult(text=render_time(location, now=now), source=ResolutionSource.TEMPORAL)

        # StorageError from loading questions propagates to the caller
        question = self.fuzzy_index.search(text)
        if question is not None:
            return ResolutionResult(text=did_you_mean(question), source=ResolutionSource.FUZZY)

        return ResolutionResult(text=DEFAULT_RESPONSE, source=ResolutionSource.NONE)

    def resolve(self, language: str, text: str) -> ResolutionResult:
        result = self._resolve(language, text)
        logger.log_resolution(language, text, result.source.value)
        return result

"""
Learning paths for the matcher: teach, startup bootstrap and periodic reconciliation.
"""

import pickle
from typing import Any, Dict, List, Tuple

from .errors import StorageError
from .fuzzy import FuzzyIndex
from .knowledge import KnowledgeStore
from .schema import TeachOutcome
from ..matcher.text import normalize_text
from ..matcher.trainer import TrainableMatcher
from ..util.logging import logger, truncate


def is_learnable(question: str) -> bool:
    """True if the question keeps some text after normalization."""
    return bool(normalize_text(question))


class LearningService:
    """Keeps the knowledge store, matcher and fuzzy index in step."""

    def __init__(self, knowledge: KnowledgeStore, matcher: TrainableMatcher, fuzzy_index: FuzzyIndex, model_path: str = None):
        self.knowledge = knowledge
        self.matcher = matcher
        self.fuzzy_index = fuzzy_index
        self.model_path = model_path

    def _train_and_save(self):
        self.matcher.train()
        try:
            self.matcher.save(self.model_path)
        except (OSError, pickle.PicklingError) as e:
            logger.error(f"Failed to save matcher snapshot: {e}")
            raise StorageError("save_model", e)

    def _register_stored(self) -> Tuple[Dict[str, List[str]], int]:
        """Register every stored answer per question; returns the grouping and how many were new."""
        grouped = self.knowledge.answers_by_question()

        added = 0
        for question, answers in grouped.items():
            if not is_learnable(question):
                logger.warning(f"Skipping stored question with no matchable text: {truncate(question)!r}")
                continue
            for answer in answers:
                if self.matcher.register_pair(question, answer):
                    added += 1
        return grouped, added

    def teach(self, question: str, answer: str) -> TeachOutcome:
        """
        Store a new pair and fold it into the live matcher.

        An exact duplicate is reported with created=False and triggers no retraining.

        Raises:
            ValueError: the question has no matchable text; nothing is stored
        """
        if not is_learnable(question):
            logger.log_teach(question, answer, status="rejected")
            raise ValueError("Question has no matchable text")

        if not self.knowledge.add_pair(question, answer):
            logger.log_teach(question, answer, status="duplicate")
            return TeachOutcome(created=False, question=question, answer=answer)

        self.matcher.register_pair(question, answer)
        self.fuzzy_index.invalidate()
        self._train_and_save()

        logger.log_teach(question, answer, status="created")
        return TeachOutcome(created=True, question=question, answer=answer)

    def bootstrap(self):
        """
        Restore the matcher snapshot and fold in any stored pair it is missing.

        Without a usable snapshot the matcher is trained from every stored pair.
        The snapshot is only rewritten when the registry changed.
        """
        self.knowledge.initialize()

        loaded = False
        try:
            self.matcher.load(self.model_path)
            loaded = True
        except FileNotFoundError:
            logger.info("No matcher snapshot found, training from knowledge store")
        except (ValueError, KeyError, pickle.UnpicklingError, EOFError) as e:
            logger.warning(f"Matcher snapshot unusable ({e}), training from knowledge store")

        _, added = self._register_stored()
        logger.log_operation("learning.bootstrap", "success", {
            "snapshot_loaded": loaded,
            "newly_registered": added
        })

        if loaded and not added:
            return
        self._train_and_save()

    def reconcile(self) -> Dict[str, Any]:
        """
        Re-register every distinct answer per question, then retrain.

        Surfaces pairs that reached the store without reaching the live model.
        """
        grouped, added = self._register_stored()

        self.fuzzy_index.invalidate()
        self._train_and_save()

        report = {
            "questions": len(grouped),
            "answers": sum(len(answers) for answers in grouped.values()),
            "newly_registered": added
        }
        logger.log_operation("learning.reconcile", "success", report)
        return report

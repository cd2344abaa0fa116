"""
Service wiring shared by the HTTP app and the maintenance scripts.
"""

from dataclasses import dataclass

from . import config
from .credentials import CredentialManager
from .fuzzy import FuzzyIndex
from .heartbeat import Heartbeat
from .knowledge import KnowledgeStore
from .learning import LearningService
from .pipeline import ResolutionPipeline
from ..matcher.trainer import TrainableMatcher

SWEEP_TASK = "credential_sweep"
AUTOLEARN_TASK = "auto_learn"


@dataclass
class NashServices:
    knowledge: KnowledgeStore
    credentials: CredentialManager
    matcher: TrainableMatcher
    fuzzy_index: FuzzyIndex
    pipeline: ResolutionPipeline
    learning: LearningService
    heartbeat: Heartbeat

    def register_background_tasks(self):
        self.heartbeat.register_task(SWEEP_TASK, config.SWEEP_INTERVAL_SEC, self.credentials.sweep)
        self.heartbeat.register_task(AUTOLEARN_TASK, config.AUTOLEARN_INTERVAL_SEC, self.learning.reconcile)

    def start(self):
        """Load or train the matcher and start background jobs."""
        self.learning.bootstrap()
        self.register_background_tasks()
        self.heartbeat.start_background()

    def shutdown(self):
        self.heartbeat.stop()


def build_services(db_path: str = None, model_path: str = None, matcher: TrainableMatcher = None) -> NashServices:
    db_path = db_path or config.DB_PATH
    model_path = model_path or config.MODEL_PATH

    knowledge = KnowledgeStore(db_path)
    credentials = CredentialManager(db_path)
    matcher = matcher or TrainableMatcher()
    fuzzy_index = FuzzyIndex(knowledge.list_questions)

    return NashServices(
        knowledge=knowledge,
        credentials=credentials,
        matcher=matcher,
        fuzzy_index=fuzzy_index,
        pipeline=ResolutionPipeline(matcher, fuzzy_index),
        learning=LearningService(knowledge, matcher, fuzzy_index, model_path),
        heartbeat=Heartbeat()
    )

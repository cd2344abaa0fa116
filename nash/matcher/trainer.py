"""
Trainable intent matcher.

Questions are registered as documents with one or more answers per
language. `train()` builds a fresh TrainedModel from the registry and
publishes it with a single reference assignment, so `resolve()` always sees
either the previous model or the new one in full.
"""

import os
import pickle
import tempfile
import threading
import time
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..core import config
from ..util.logging import logger
from .embeddings import IEmbeddingProvider
from .index import DocumentIndex
from .text import normalize_text
from .types import Document, MatchResult

SNAPSHOT_VERSION = 1


class TrainedModel:
    """Immutable per-language document indexes produced by one training run."""

    def __init__(self, indexes: Dict[str, DocumentIndex], provider_signature: str):
        self.indexes = indexes
        self.provider_signature = provider_signature
        self.trained_at = time.time()

    @classmethod
    def empty(cls, languages: Iterable[str], provider_signature: str) -> "TrainedModel":
        indexes = {
            lang: DocumentIndex([], np.zeros((0, 0), dtype=np.float32))
            for lang in languages
        }
        return cls(indexes, provider_signature)

    def document_count(self) -> int:
        return sum(len(index) for index in self.indexes.values())


class TrainableMatcher:
    """Per-language classifier mapping utterances to learned answers."""

    def __init__(self, embedding_provider: IEmbeddingProvider = None, languages: Iterable[str] = None, threshold: float = None):
        self.embedding_provider = embedding_provider or config.get_embedding_provider()
        self.languages = tuple(languages or config.LANGUAGES)
        self.threshold = config.MATCHER_THRESHOLD if threshold is None else threshold

        # language -> normalized question -> answers (oldest first)
        self._registry: Dict[str, "OrderedDict[str, List[str]]"] = {
            lang: OrderedDict() for lang in self.languages
        }
        self._registry_lock = threading.Lock()
        self._train_lock = threading.Lock()

        # Embeddings are deterministic, so vectors survive across training runs
        self._vector_cache: Dict[str, np.ndarray] = {}

        self._model = TrainedModel.empty(self.languages, self.embedding_provider.signature)

    def _resolve_language(self, language: str) -> str:
        if language in self.languages:
            return language
        return config.DEFAULT_LANGUAGE

    def _register_locked(self, language: str, question: str, answer: str) -> bool:
        document = normalize_text(question)
        if not document:
            raise ValueError("Cannot register an empty question")

        answers = self._registry[language].setdefault(document, [])
        if answer in answers:
            return False
        answers.append(answer)
        return True

    def register(self, language: str, question: str, answer: str) -> bool:
        """
        Register `question` as a document with `answer` as one of its responses.

        Returns:
            True if the registry changed, False if the triple was already known.
        """
        if language not in self.languages:
            raise ValueError(f"Unsupported language: {language}")

        with self._registry_lock:
            return self._register_locked(language, question, answer)

    def register_pair(self, question: str, answer: str) -> bool:
        """Register a pair in every supported language as one step."""
        with self._registry_lock:
            changed = False
            for language in self.languages:
                changed = self._register_locked(language, question, answer) or changed
            return changed

    def _embed_documents(self, texts: List[str]) -> np.ndarray:
        missing = [text for text in texts if text not in self._vector_cache]
        if missing:
            vectors = self.embedding_provider.embed_texts(missing)
            for text, vector in zip(missing, vectors):
                self._vector_cache[text] = vector

        if not texts:
            return np.zeros((0, self.embedding_provider.get_dimension()), dtype=np.float32)
        return np.vstack([self._vector_cache[text] for text in texts])

    def train(self) -> TrainedModel:
        """Rebuild every language index from the registry and publish it."""
        with self._train_lock:
            with self._registry_lock:
                snapshot = {
                    lang: [Document(text=doc, answers=tuple(answers)) for doc, answers in docs.items()]
                    for lang, docs in self._registry.items()
                }

            start_time = time.monotonic()
            indexes = {}
            for language, documents in snapshot.items():
                vectors = self._embed_documents([doc.text for doc in documents])
                indexes[language] = DocumentIndex(documents, vectors)

            model = TrainedModel(indexes, self.embedding_provider.signature)
            self._model = model
            end_time = time.monotonic()

            logger.log_training(start_time, end_time, model.document_count(), details={
                "languages": list(indexes.keys())
            })
            return model

    def current_model(self) -> TrainedModel:
        """Return the published model; it is never mutated after publication."""
        return self._model

    def resolve(self, language: str, text: str, model: TrainedModel = None) -> Optional[MatchResult]:
        """
        Score `text` against the trained documents for `language`.

        Returns:
            The best match if its confidence reaches the threshold, else None.
            When a document has several answers the most recent one wins.
        """
        model = model or self._model
        index = model.indexes.get(self._resolve_language(language))
        if index is None or not len(index) or not normalize_text(text):
            return None

        hit = index.search(self.embedding_provider.embed_text(text))
        if hit is None:
            return None

        document, score = hit
        if score < self.threshold:
            return None

        return MatchResult(answer=document.answers[-1], confidence=score, document=document.text)

    def registered_pairs(self, language: str = None) -> int:
        """Count registered (document, answer) pairs for one or all languages."""
        with self._registry_lock:
            languages = [language] if language else list(self.languages)
            return sum(
                len(answers)
                for lang in languages
                for answers in self._registry[lang].values()
            )

    def save(self, path: str = None):
        """Write the registry and published model to a pickle snapshot."""
        path = path or config.MODEL_PATH
        config.ensure_data_directory(path)

        with self._train_lock:
            with self._registry_lock:
                registry = {
                    lang: OrderedDict((doc, list(answers)) for doc, answers in docs.items())
                    for lang, docs in self._registry.items()
                }
            state = {
                "version": SNAPSHOT_VERSION,
                "languages": self.languages,
                "provider": self.embedding_provider.signature,
                "registry": registry,
                "model": self._model,
            }

            # Write to a temp file first so readers never see a partial snapshot
            directory = os.path.dirname(os.path.abspath(path))
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    pickle.dump(state, f)
                os.replace(tmp_path, path)
            except Exception:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

        logger.log_operation("matcher.save", "success", {
            "path": path,
            "documents": state["model"].document_count()
        })

    def load(self, path: str = None):
        """
        Restore registry and model from a snapshot written by `save`.

        Raises:
            FileNotFoundError: no snapshot at `path`
            ValueError: snapshot was written with other languages or another embedding provider
        """
        path = path or config.MODEL_PATH
        with open(path, "rb") as f:
            state = pickle.load(f)

        if state.get("version") != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {state.get('version')}")
        if tuple(state["languages"]) != self.languages:
            raise ValueError(f"Snapshot languages {state['languages']} do not match {self.languages}")
        if state["provider"] != self.embedding_provider.signature:
            raise ValueError(f"Snapshot embedding provider {state['provider']} does not match {self.embedding_provider.signature}")

        with self._train_lock:
            with self._registry_lock:
                self._registry = {
                    lang: OrderedDict(state["registry"][lang]) for lang in self.languages
                }
            self._model = state["model"]

        logger.log_operation("matcher.load", "success", {
            "path": path,
            "documents": self._model.document_count()
        })

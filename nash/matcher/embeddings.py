"""
Embedding providers for the trainable matcher.
The hashed bag-of-words provider is deterministic and dependency-light;
sentence-transformers can be selected for semantic matching.
"""

from abc import ABC, abstractmethod
import hashlib
import numpy as np

from .text import normalize_text, tokenize


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> np.ndarray:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass

    @property
    @abstractmethod
    def signature(self) -> str:
        """Identifies the provider and its settings in model snapshots."""
        pass

    def embed_texts(self, texts: list[str]) -> np.ndarray:
        """
        Embed multiple texts into vectors.

        Returns:
            Numpy array of shape (len(texts), embedding_dim)
        """
        if not texts:
            return np.zeros((0, self.get_dimension()), dtype=np.float32)
        return np.vstack([self.embed_text(text) for text in texts]).astype(np.float32)


class HashedBagOfWordsEmbedding(IEmbeddingProvider):
    """Deterministic term-count embedding using hashed word buckets.

    Each token is hashed with md5 into one of `dimension` buckets, so the
    same text always produces the same vector across processes.
    """

    def __init__(self, dimension: int = 2048):
        self.dimension = dimension

    def _bucket(self, token: str) -> int:
        digest = hashlib.md5(token.encode("utf-8")).hexdigest()
        return int(digest[:8], 16) % self.dimension

    def embed_text(self, text: str) -> np.ndarray:
        """Generate a term-count vector for the text."""
        vector = np.zeros(self.dimension, dtype=np.float32)
        for token in tokenize(text):
            vector[self._bucket(token)] += 1.0
        return vector

    def get_dimension(self) -> int:
        return self.dimension

    @property
    def signature(self) -> str:
        return f"hash-bow:{self.dimension}"


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> np.ndarray:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(normalize_text(text), convert_to_numpy=True)
        return np.asarray(embedding, dtype=np.float32)

    def get_dimension(self) -> int:
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension

    @property
    def signature(self) -> str:
        return f"sentence-transformers:{self.model_name}"

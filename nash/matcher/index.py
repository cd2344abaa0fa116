"""
Per-language document index scored by cosine similarity.
An index is built once by training and never mutated afterwards.
"""

from typing import List, Optional, Tuple
import numpy as np

from .types import Document


class DocumentIndex:
    """Immutable matrix of normalized document vectors for one language."""

    def __init__(self, documents: List[Document], vectors: np.ndarray):
        if len(documents) != len(vectors):
            raise ValueError(f"Got {len(documents)} documents but {len(vectors)} vectors")

        self.documents = tuple(documents)

        # Store normalized rows so a dot product is the cosine similarity
        matrix = np.asarray(vectors, dtype=np.float32)
        if matrix.size:
            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            norms[norms == 0] = 1.0
            matrix = matrix / norms
        self._matrix = matrix

    def __len__(self) -> int:
        return len(self.documents)

    def search(self, query_vector: np.ndarray) -> Optional[Tuple[Document, float]]:
        """Return the most similar document and its score, or None."""
        if not self.documents:
            return None

        norm = np.linalg.norm(query_vector)
        if norm == 0:
            return None

        normalized_query = np.asarray(query_vector, dtype=np.float32) / norm
        similarities = self._matrix @ normalized_query

        # argmax picks the earliest document on ties
        best = int(np.argmax(similarities))
        return self.documents[best], float(similarities[best])

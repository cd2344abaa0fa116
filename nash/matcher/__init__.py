"""
Trainable matcher - learned question documents scored per language.
"""

from .embeddings import IEmbeddingProvider, HashedBagOfWordsEmbedding, SentenceTransformerEmbedding
from .index import DocumentIndex
from .trainer import TrainableMatcher, TrainedModel
from .types import Document, MatchResult

__all__ = [
    'IEmbeddingProvider',
    'HashedBagOfWordsEmbedding',
    'SentenceTransformerEmbedding',
    'DocumentIndex',
    'TrainableMatcher',
    'TrainedModel',
    'Document',
    'MatchResult'
]

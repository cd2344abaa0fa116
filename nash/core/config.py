"""
Runtime configuration for the Nash query service.
All settings are read from the environment; defaults suit local development.
"""

import os
from pathlib import Path

# Storage locations
DB_PATH = os.getenv("DB_PATH", "./data/nash.db")
MODEL_PATH = os.getenv("MODEL_PATH", "./data/model.pkl")

DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Matcher configuration
LANGUAGES = ("en", "tl", "es", "fr")
DEFAULT_LANGUAGE = "en"
MATCHER_THRESHOLD = float(os.getenv("MATCHER_THRESHOLD", "0.8"))
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence-transformers
EMBED_DIMENSION = int(os.getenv("EMBED_DIMENSION", "2048"))
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")

# Credential configuration
API_KEY_PREFIX = "nsh-"
API_KEY_EXPIRY_DAYS = int(os.getenv("API_KEY_EXPIRY_DAYS", "7"))

# Background jobs (default: once a day)
HEARTBEAT_ENABLED = os.getenv("HEARTBEAT_ENABLED", "true").lower() == "true"
SWEEP_INTERVAL_SEC = int(os.getenv("SWEEP_INTERVAL_SEC", "86400"))
AUTOLEARN_INTERVAL_SEC = int(os.getenv("AUTOLEARN_INTERVAL_SEC", "86400"))

VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def is_heartbeat_enabled():
    """Check if background jobs should run."""
    return HEARTBEAT_ENABLED


def ensure_data_directory(path: str = None):
    """Ensure the parent directory of a data file exists."""
    Path(path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def get_embedding_provider():
    """Get the configured embedding provider for the matcher."""
    if EMBED_PROVIDER == "sentence-transformers":
        from ..matcher.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(EMBED_MODEL_NAME)

    from ..matcher.embeddings import HashedBagOfWordsEmbedding
    return HashedBagOfWordsEmbedding(EMBED_DIMENSION)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if EMBED_PROVIDER not in ["hash", "sentence-transformers"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if not 0.0 < MATCHER_THRESHOLD <= 1.0:
        issues.append("MATCHER_THRESHOLD must be in (0, 1]")

    if EMBED_DIMENSION < 16:
        issues.append("EMBED_DIMENSION must be >= 16")

    if API_KEY_EXPIRY_DAYS < 1:
        issues.append("API_KEY_EXPIRY_DAYS must be >= 1")

    if SWEEP_INTERVAL_SEC < 1 or AUTOLEARN_INTERVAL_SEC < 1:
        issues.append("Background job intervals must be >= 1 second")

    return issues

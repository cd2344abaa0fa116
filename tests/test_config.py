"""
Configuration defaults and validation.
"""

from unittest.mock import patch

from nash.core import config
from nash.matcher.embeddings import HashedBagOfWordsEmbedding


def test_defaults_are_valid():
    assert config.validate_config() == []


def test_supported_languages():
    assert config.LANGUAGES == ("en", "tl", "es", "fr")
    assert config.DEFAULT_LANGUAGE == "en"


def test_invalid_threshold_reported():
    with patch.object(config, "MATCHER_THRESHOLD", 1.5):
        assert "MATCHER_THRESHOLD must be in (0, 1]" in config.validate_config()


def test_invalid_embed_provider_reported():
    with patch.object(config, "EMBED_PROVIDER", "word2vec"):
        assert any("EMBED_PROVIDER" in issue for issue in config.validate_config())


def test_hash_provider_by_default():
    with patch.object(config, "EMBED_PROVIDER", "hash"), patch.object(config, "EMBED_DIMENSION", 256):
        provider = config.get_embedding_provider()

    assert isinstance(provider, HashedBagOfWordsEmbedding)
    assert provider.get_dimension() == 256


def test_ensure_data_directory(tmp_path):
    target = tmp_path / "nested" / "dir" / "nash.db"

    config.ensure_data_directory(str(target))

    assert target.parent.is_dir()

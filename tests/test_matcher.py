"""
Trainable matcher: registration, training, thresholds, atomic publication and snapshots.
"""

import threading

import pytest

from nash.matcher.embeddings import HashedBagOfWordsEmbedding
from nash.matcher.trainer import TrainableMatcher

LANGUAGES = ("en", "tl", "es", "fr")


class TestRegistration:

    def test_register_is_idempotent(self, matcher):
        assert matcher.register("en", "hello there", "hi") is True
        assert matcher.register("en", "hello there", "hi") is False

        assert matcher.registered_pairs("en") == 1

    def test_register_normalizes_document(self, matcher):
        """Case and spacing variants are the same document."""
        matcher.register("en", "Hello  There", "hi")
        assert matcher.register("en", "hello there", "hi") is False

    def test_register_unknown_language(self, matcher):
        with pytest.raises(ValueError, match="Unsupported language"):
            matcher.register("de", "hallo", "hi")

    def test_register_empty_question(self, matcher):
        with pytest.raises(ValueError):
            matcher.register("en", "   ", "hi")

    def test_register_pair_covers_all_languages(self, matcher):
        assert matcher.register_pair("hello there", "hi") is True
        assert matcher.register_pair("hello there", "hi") is False

        for language in LANGUAGES:
            assert matcher.registered_pairs(language) == 1


class TestResolution:

    def test_untrained_registration_is_not_visible(self, matcher):
        """resolve only sees documents once train() has published them."""
        matcher.register_pair("what is your name", "Nash")

        assert matcher.resolve("en", "what is your name") is None

        matcher.train()
        result = matcher.resolve("en", "what is your name")
        assert result is not None
        assert result.answer == "Nash"
        assert result.confidence == pytest.approx(1.0, abs=1e-5)

    def test_resolve_ignores_case_and_accents(self, matcher):
        matcher.register_pair("Qué hora es", "Es hora de aprender")
        matcher.train()

        result = matcher.resolve("es", "que HORA es")
        assert result is not None
        assert result.answer == "Es hora de aprender"

    def test_resolve_below_threshold(self, matcher):
        """One changed word in four gives 0.75 similarity, under the 0.8 threshold."""
        matcher.register_pair("what is your name", "Nash")
        matcher.train()

        assert matcher.resolve("en", "what is your nane") is None

    def test_resolve_empty_text(self, matcher):
        matcher.register_pair("hello there", "hi")
        matcher.train()

        assert matcher.resolve("en", "") is None
        assert matcher.resolve("en", "   ") is None

    def test_unknown_language_falls_back_to_english(self, matcher):
        matcher.register("en", "hello there", "hi")
        matcher.train()

        result = matcher.resolve("de", "hello there")
        assert result is not None
        assert result.answer == "hi"

    def test_language_isolation(self, matcher):
        matcher.register("fr", "bonjour", "salut")
        matcher.train()

        assert matcher.resolve("fr", "bonjour").answer == "salut"
        assert matcher.resolve("en", "bonjour") is None

    def test_most_recent_answer_wins(self, matcher):
        matcher.register_pair("how are you", "fine")
        matcher.register_pair("how are you", "great")
        matcher.train()

        assert matcher.resolve("en", "how are you").answer == "great"

    def test_best_document_is_selected(self, matcher):
        matcher.register_pair("what is your name", "Nash")
        matcher.register_pair("how are you", "fine")
        matcher.train()

        assert matcher.resolve("tl", "how are you").answer == "fine"
        assert matcher.resolve("tl", "What is your name?").answer == "Nash"


class TestTrainAtomicity:

    def test_register_pair_effects_visible_all_or_nothing(self, matcher):
        """
        Concurrent teach-style register_pair + train calls never publish a model
        where a pair is visible in some languages but not others.
        """
        pairs = [(f"question number {i} alpha", f"answer {i}") for i in range(40)]
        errors = []
        stop = threading.Event()

        def writer(chunk):
            for question, answer in chunk:
                matcher.register_pair(question, answer)
                matcher.train()

        def reader():
            while not stop.is_set():
                model = matcher.current_model()
                for question, answer in pairs:
                    seen = [
                        matcher.resolve(lang, question, model=model) is not None
                        for lang in LANGUAGES
                    ]
                    if any(seen) and not all(seen):
                        errors.append((question, seen))

        writers = [threading.Thread(target=writer, args=(pairs[i::4],)) for i in range(4)]
        readers = [threading.Thread(target=reader) for _ in range(2)]

        for thread in readers + writers:
            thread.start()
        for thread in writers:
            thread.join()
        stop.set()
        for thread in readers:
            thread.join()

        assert errors == []

        # Every pair is visible once all writers have finished
        for question, answer in pairs:
            assert matcher.resolve("en", question).answer == answer

    def test_published_model_is_not_mutated_by_training(self, matcher):
        matcher.register_pair("hello there", "hi")
        before = matcher.train()

        matcher.register_pair("how are you", "fine")
        after = matcher.train()

        assert before is not after
        assert before.document_count() == 4
        assert after.document_count() == 8
        assert matcher.resolve("en", "how are you", model=before) is None


class TestSnapshot:

    QUERIES = [
        "what is your name",
        "What is your name?",
        "how are you",
        "what is your nane",
        "current time in London please",
        "something unrelated entirely",
    ]

    def _trained(self, matcher):
        matcher.register_pair("what is your name", "Nash")
        matcher.register_pair("how are you", "fine")
        matcher.register_pair("how are you", "great")
        matcher.register_pair("current time in London please", "A")
        matcher.train()
        return matcher

    def test_save_and_load_round_trip(self, matcher, model_path):
        trained = self._trained(matcher)
        trained.save(model_path)

        restored = TrainableMatcher(
            embedding_provider=HashedBagOfWordsEmbedding(2048),
            languages=LANGUAGES,
            threshold=0.8
        )
        restored.load(model_path)

        for language in LANGUAGES:
            for query in self.QUERIES:
                assert restored.resolve(language, query) == trained.resolve(language, query)

        assert restored.registered_pairs() == trained.registered_pairs()

    def test_restored_matcher_keeps_learning(self, matcher, model_path):
        self._trained(matcher).save(model_path)

        restored = TrainableMatcher(embedding_provider=HashedBagOfWordsEmbedding(2048), languages=LANGUAGES)
        restored.load(model_path)
        restored.register_pair("good morning", "morning!")
        restored.train()

        assert restored.resolve("en", "good morning").answer == "morning!"
        assert restored.resolve("en", "what is your name").answer == "Nash"

    def test_load_missing_snapshot(self, matcher, tmp_path):
        with pytest.raises(FileNotFoundError):
            matcher.load(str(tmp_path / "missing.pkl"))

    def test_load_rejects_other_embedding_provider(self, matcher, model_path):
        self._trained(matcher).save(model_path)

        other = TrainableMatcher(embedding_provider=HashedBagOfWordsEmbedding(512), languages=LANGUAGES)
        with pytest.raises(ValueError, match="embedding provider"):
            other.load(model_path)

    def test_save_leaves_no_temp_files(self, matcher, tmp_path, model_path):
        self._trained(matcher).save(model_path)

        assert [p.name for p in tmp_path.iterdir()] == ["model.pkl"]

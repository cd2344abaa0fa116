#!/usr/bin/env python3
"""
Matcher snapshot rebuild utility.
Retrains the matcher from the canonical responses table and overwrites the snapshot,
for use after the snapshot is lost or the embedding settings change.
"""

import sys
from pathlib import Path

import dotenv

dotenv.load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from nash.core import config
from nash.core.errors import StorageError
from nash.core.knowledge import KnowledgeStore
from nash.core.learning import is_learnable
from nash.matcher.trainer import TrainableMatcher


def rebuild(db_path: str = None, model_path: str = None) -> int:
    """Train a fresh matcher from every stored pair and save it. Returns the pair count."""
    knowledge = KnowledgeStore(db_path or config.DB_PATH)
    knowledge.initialize()

    matcher = TrainableMatcher()
    pairs = knowledge.list_pairs()
    for pair in pairs:
        if is_learnable(pair.question):
            matcher.register_pair(pair.question, pair.answer)

    matcher.train()
    matcher.save(model_path or config.MODEL_PATH)
    return len(pairs)


def main():
    """Rebuild matcher snapshot from SQLite."""
    print("Starting matcher rebuild...")

    try:
        count = rebuild()
    except StorageError as e:
        print(f"ERROR: Could not read knowledge store: {e}")
        sys.exit(1)

    print(f"✓ Trained on {count} question/answer pairs")
    print(f"✓ Snapshot written to {config.MODEL_PATH}")


if __name__ == "__main__":
    main()

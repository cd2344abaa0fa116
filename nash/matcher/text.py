"""
Utterance normalization shared by training and resolution.
"""

import re
import unicodedata
from typing import List

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def normalize_text(text: str) -> str:
    """Lower-case, strip accents and collapse whitespace."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def tokenize(text: str) -> List[str]:
    """Split normalized text into word tokens."""
    return _TOKEN_RE.findall(normalize_text(text))

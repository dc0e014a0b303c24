"""
Plant name normalization for comparison.

Free-text listing names ("Fresh Tomato Plant!", "tomato  crop") and
provider names are reduced to the same canonical form before scoring.
"""

import re
from typing import Iterable, Optional

from plantmatch.core.config import NAME_STOPWORDS

# Anything that is not a letter, digit or whitespace. "_" counts as \w in
# Python regexes, so it is listed explicitly.
_PUNCTUATION = re.compile(r"[^\w\s]|_")


class NameNormalizer:
    """
    Canonicalizes plant names.

    Steps: lowercase, strip punctuation, collapse whitespace, drop generic
    botanical words as whole tokens, trim. The result is idempotent:
    normalize(normalize(x)) == normalize(x).
    """

    def __init__(self, stopwords: Optional[Iterable[str]] = None):
        self.stopwords = frozenset(
            word.lower() for word in (NAME_STOPWORDS if stopwords is None else stopwords)
        )

    def normalize(self, name: Optional[str]) -> str:
        if not name:
            return ""

        name = name.lower()
        name = _PUNCTUATION.sub("", name)

        # split() collapses whitespace runs and trims
        tokens = [token for token in name.split() if token not in self.stopwords]
        return " ".join(tokens)


_default_normalizer = NameNormalizer()


def normalize_name(name: Optional[str]) -> str:
    """Normalize a plant name with the default stoplist."""
    return _default_normalizer.normalize(name)

"""Deterministic lexical embeddings used when the remote model is unavailable.

The vector mixes character, word and word-pair hashes with a few length and
punctuation statistics and a small keyword table, then normalizes to unit
length. Texts sharing vocabulary land close together under cosine similarity,
which keeps semantic search usable without a model.

Layout of the 384 dimensions:
  [0, 128)    character hashes of the first 500 characters
  [128, 256)  content word hashes
  [256, 320)  adjacent word pair hashes
  320 - 324   text statistics
  [325, 384)  keyword boosts
"""

import math
import re

CHAR_FEATURE_LIMIT = 500

STOPWORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "and", "or", "but", "if", "then", "else", "when", "where", "what", "which",
    "this", "that", "these", "those", "it", "its", "in", "on", "at", "to", "for",
})

KEYWORD_DIMENSIONS = {
    "machine": (325, 330), "learning": (326, 331), "neural": (327, 332),
    "network": (328, 333), "data": (329, 334), "model": (330, 335),
    "algorithm": (331, 336), "train": (332, 337), "predict": (333, 338),
    "deep": (334, 339), "artificial": (335, 340), "intelligence": (336, 341),
    "computer": (337, 342), "science": (338, 343), "software": (339, 344),
    "code": (340, 345), "program": (341, 346), "function": (342, 347),
    "database": (343, 348), "server": (344, 349), "api": (345, 350),
    "user": (346, 351), "system": (347, 352), "application": (348, 353),
}
KEYWORD_BOOST = 0.8
PAIR_WEIGHT = 0.5

SENTENCE_PUNCTUATION = re.compile(r"[.!?]")
CLAUSE_PUNCTUATION = re.compile(r"[,;:]")


def string_hash(value: str) -> int:
    """32-bit signed rolling hash (h * 31 + code), stable across processes unlike hash()."""
    h = 0
    for char in value:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def l2_normalize(vector: list[float]) -> list[float]:
    """Scale vector to unit length. A zero vector is returned unchanged."""
    magnitude = math.sqrt(sum(value * value for value in vector))
    if magnitude == 0:
        return list(vector)
    return [value / magnitude for value in vector]


class LexicalEmbedder:
    def __init__(self, dimension: int = 384) -> None:
        self.dimension = dimension

    def _add(self, vector: list[float], index: int, value: float) -> None:
        if index < self.dimension:
            vector[index] += value

    def embed(self, text: str) -> list[float]:
        """Embed text into a unit-length vector, or a zero vector for blank text."""
        vector = [0.0] * self.dimension
        normalized = text.lower().strip()
        if not normalized:
            return vector
        words = normalized.split()

        for i, char in enumerate(normalized[:CHAR_FEATURE_LIMIT]):
            code = ord(char)
            self._add(vector, (i * 7 + code) % 128, math.sin(code * 0.1) / (i + 1))

        for i, word in enumerate(words):
            if word not in STOPWORDS and len(word) > 2:
                self._add(vector, 128 + abs(string_hash(word)) % 128, 1.0 / math.sqrt(i + 1))

        for first, second in zip(words, words[1:]):
            self._add(vector, 256 + abs(string_hash(f"{first}_{second}")) % 64, PAIR_WEIGHT)

        statistics = (
            math.log(len(normalized) + 1) / 10,
            math.log(len(words) + 1) / 5,
            sum(len(word) for word in words) / len(words) / 10,
            len(SENTENCE_PUNCTUATION.findall(normalized)) / 10,
            len(CLAUSE_PUNCTUATION.findall(normalized)) / 10,
        )
        for offset, value in enumerate(statistics):
            self._add(vector, 320 + offset, value)

        for word in words:
            for index in KEYWORD_DIMENSIONS.get(word, ()):
                self._add(vector, index, KEYWORD_BOOST)

        return l2_normalize(vector)

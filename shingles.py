"""Shingling - текст письма в последовательность 32-битных отпечатков."""

import zlib
from enum import Enum
from typing import List, Sequence, TypeVar

from documents import InvalidDocument

NGRAM_SIZE = 3

T = TypeVar("T")


class TailPolicy(str, Enum):
    """Что делать с короткими окнами в конце текста."""

    DROP = "drop"  # хешируются только полные окна
    KEEP = "keep"  # хвостовые окна тоже становятся шинглами


def make_ngrams(values: Sequence[T], length: int) -> List[List[T]]:
    """Окно длины length от каждого индекса; хвостовые окна короче.

    Example: make_ngrams([1, 2, 3, 4], 3) -> [[1, 2, 3], [2, 3, 4], [3, 4], [4]]
    """
    if length < 1:
        raise ValueError(f"ngram length must be positive, got {length}")
    return [list(values[i:i + length]) for i in range(len(values))]


def tokenize(text: str) -> List[str]:
    # Только одиночный пробел: "a  b" дает пустой токен, как в эталоне
    return text.lower().split(" ")


def make_word_ngrams(text: str, length: int = NGRAM_SIZE) -> List[List[str]]:
    return make_ngrams(tokenize(text), length)


def fingerprint(ngram: Sequence[str]) -> int:
    """CRC-32 окна, склеенного через пробел (всегда unsigned)."""
    return zlib.crc32(" ".join(ngram).encode("utf-8")) & 0xFFFFFFFF


def make_shingles(content: str, length: int = NGRAM_SIZE,
                  tail_policy: TailPolicy = TailPolicy.DROP,
                  deduplicate: bool = False) -> List[int]:
    """
    Shingles for a document.

    'I write code in ES 6' gives windows 'i write code', 'write code in',
    'code in es', 'in es 6' (plus 'es 6' and '6' under TailPolicy.KEEP),
    each hashed to a 32-bit fingerprint.

    Repeated fingerprints are kept unless deduplicate is set, in which case
    the first occurrence of each survives in its original position.
    """
    if not isinstance(content, str):
        raise InvalidDocument(f"Content must be a string, got {type(content).__name__}")
    if not content:
        return []

    policy = TailPolicy(tail_policy)
    shingles = [
        fingerprint(ngram)
        for ngram in make_word_ngrams(content, length)
        if len(ngram) == length or policy is TailPolicy.KEEP
    ]
    if deduplicate:
        shingles = list(dict.fromkeys(shingles))
    return shingles

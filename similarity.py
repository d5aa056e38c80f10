"""Оценка попарной схожести документов по MinHash-сигнатурам."""

import numpy as np
from typing import Iterator, Sequence, Tuple


def positional_match_count(first: Sequence, second):
    """
    Number of positions holding equal elements. Similar to set intersection
    but takes position into account; only the common prefix is compared.

    second may be a matrix of signatures: one count per row is returned.
    """
    left = np.asarray(first)
    right = np.asarray(second)
    size = min(left.shape[-1], right.shape[-1])
    counts = np.count_nonzero(left[:size] == right[..., :size], axis=-1)
    return int(counts) if np.ndim(counts) == 0 else counts


def calculate_similarities(signatures) -> np.ndarray:
    """
    Pairwise similarity matrix for an n x k signature matrix.

    Entry (i, j), i < j, is the fraction of the k positions where both
    signatures agree: the MinHash estimate of the Jaccard similarity.
    Diagonal and lower triangle stay 0.
    """
    if len(signatures) == 0:
        return np.zeros((0, 0), dtype=np.float64)
    lengths = {len(signature) for signature in signatures}
    if len(lengths) != 1:
        raise ValueError(f"Signatures have different lengths: {sorted(lengths)}")
    k = lengths.pop()
    if k == 0:
        raise ValueError("Signatures must not be empty")

    sigs = np.asarray(signatures)
    n = sigs.shape[0]
    similarities = np.zeros((n, n), dtype=np.float64)
    for i in range(n - 1):
        matches = positional_match_count(sigs[i], sigs[i + 1:])
        similarities[i, i + 1:] = matches / k
    return similarities


def iter_pairs(similarities: np.ndarray) -> Iterator[Tuple[int, int, float]]:
    """(i, j, s) для всех пар i < j в порядке обхода строк."""
    n = similarities.shape[0]
    for i in range(n - 1):
        for j in range(i + 1, n):
            yield i, j, float(similarities[i, j])


def jaccard(first, second) -> float:
    """Точный Jaccard |A ∩ B| / |A ∪ B| (0 для двух пустых множеств)."""
    a, b = set(first), set(second)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)

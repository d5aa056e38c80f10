"""Рейтинг подозрительности писем по матрице схожести."""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence
from loguru import logger
from documents import validate_ids

# Порог подозрительной схожести (сравнение строгое: s > threshold)
SUSPICIOUS_COLLISION_THRESHOLD = 0.4
# Множитель для пар писем с одного адреса
SAME_ADDRESS_COEFF = 2
PAIR_BONUS = 0.1


@dataclass
class SuspiciousPair:
    first_id: str
    second_id: str
    similarity: float
    multiplier: float
    score: float


@dataclass
class RatingResult:
    ratings: Dict[str, float]
    average_rating: Optional[float]  # None: в корпусе нет ни одной пары
    pairs: List[SuspiciousPair] = field(default_factory=list)


def same_sender(first: Optional[str], second: Optional[str]) -> bool:
    # Неизвестный отправитель не совпадает ни с кем
    return first is not None and first == second


def aggregate_ratings(similarities: np.ndarray, ids: Sequence[str],
                      senders: Mapping[str, Optional[str]],
                      threshold: float = SUSPICIOUS_COLLISION_THRESHOLD,
                      same_address_coeff: float = SAME_ADDRESS_COEFF,
                      pair_bonus: float = PAIR_BONUS) -> RatingResult:
    """
    Suspicion rating per document. The bigger the rating, the higher the
    chance the mail is spam.

    Every pair (i, j), i < j, with similarity strictly above threshold adds
    similarity * multiplier + pair_bonus to both documents, where the
    multiplier is same_address_coeff for mails from one sender, else 1.
    The average is taken over all documents, zero ratings included.
    """
    ids = validate_ids(ids)
    n = len(ids)
    similarities = np.asarray(similarities, dtype=np.float64)
    if similarities.shape != (n, n):
        raise ValueError(
            f"Similarity matrix shape {similarities.shape} does not match {n} ids")

    totals = np.zeros(n, dtype=np.float64)
    pairs = []
    # Только пары i < j; triu_indices идет по строкам, как двойной цикл
    rows, cols = np.triu_indices(n, k=1)
    suspicious = similarities[rows, cols] > threshold
    for i, j in zip(rows[suspicious].tolist(), cols[suspicious].tolist()):
        similarity = float(similarities[i, j])
        first_id, second_id = ids[i], ids[j]
        multiplier = (same_address_coeff
                      if same_sender(senders.get(first_id), senders.get(second_id))
                      else 1)
        score = similarity * multiplier + pair_bonus
        totals[i] += score
        totals[j] += score
        pairs.append(SuspiciousPair(first_id, second_id, similarity, multiplier, score))

    ratings = {doc_id: float(total) for doc_id, total in zip(ids, totals)}
    average = float(totals.mean()) if n >= 2 else None
    logger.debug("{} suspicious pair(s) among {} documents", len(pairs), n)
    return RatingResult(ratings=ratings, average_rating=average, pairs=pairs)

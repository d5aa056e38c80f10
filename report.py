"""Вывод результатов: список пар, рейтинги, матрица, JSON."""

import json
import numpy as np
from typing import List, Optional, Sequence

from similarity import iter_pairs


def format_pairs(similarities: np.ndarray, ids: Sequence[str],
                 threshold: float) -> List[str]:
    """Все пары; '!' отмечает пары выше порога."""
    lines = []
    for i, j, estimate in iter_pairs(similarities):
        warn_sign = "!" if estimate > threshold else ""
        lines.append(f"{ids[i]} & {ids[j]}: {estimate:.2f}      {warn_sign}".rstrip())
    return lines


def format_ratings(ratings: dict, average_rating: Optional[float]) -> List[str]:
    if average_rating is None:
        lines = ["Average rating: n/a (no pairs)"]
    else:
        lines = [f"Average rating: {average_rating}"]
    lines.append("Emails rating: ")
    lines.extend(f"{doc_id}: {rating}" for doc_id, rating in ratings.items())
    return lines


def format_matrix(similarities: np.ndarray, precision: int = 2) -> str:
    return np.array2string(similarities, precision=precision, suppress_small=True)


def to_json(result: dict) -> str:
    """JSON вида {"averageRating": ..., "ratings": {...}}."""
    return json.dumps(result, indent=2)

"""MinHash - сжатие набора шинглов в сигнатуру фиксированной длины."""

import numpy as np
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
from loguru import logger

NUM_HASHES = 25
MAX_SHINGLE_ID = 2**32 - 1
# Ближайшее простое число больше 2^32 - 1
NEXT_PRIME = 4294967311
# Запас попыток на слот, умножается на ожидаемое число попыток
MAX_RESAMPLE_ATTEMPTS = 1000


def generate_random_coeffs(size: int, max_id: int,
                           rng: np.random.Generator) -> np.ndarray:
    """Массив из size уникальных случайных чисел в [0, max_id)."""
    if size > max_id:
        raise ValueError(f"Cannot draw {size} unique values from [0, {max_id})")

    coeffs = np.empty(size, dtype=np.uint64)
    seen = set()
    for i in range(size):
        attempts = MAX_RESAMPLE_ATTEMPTS * -(-max_id // (max_id - len(seen)))
        for _ in range(attempts):
            value = int(rng.integers(0, max_id))
            if value not in seen:
                break
        else:
            raise RuntimeError(
                f"No unique coefficient after {attempts} draws")
        seen.add(value)
        coeffs[i] = value
    return coeffs


def _as_shingle_array(shingles: Iterable[int]) -> np.ndarray:
    values = np.fromiter(shingles, dtype=np.int64)
    if values.size and (values.min() < 0 or values.max() > MAX_SHINGLE_ID):
        # a * x + b помещается в uint64 только для x < 2^32
        raise ValueError("Shingles must be in [0, 2^32 - 1]")
    return values.astype(np.uint64)


@dataclass(frozen=True, eq=False)
class HashFamily:
    """
    Universal hash functions h_i(x) = (a[i] * x + b[i]) mod prime.

    One family is shared by every document of a corpus: only then are the
    per-position minima of two signatures comparable.
    """
    a: np.ndarray
    b: np.ndarray
    prime: int = NEXT_PRIME

    def __post_init__(self):
        object.__setattr__(self, "a", np.asarray(self.a, dtype=np.uint64))
        object.__setattr__(self, "b", np.asarray(self.b, dtype=np.uint64))
        if self.a.shape != self.b.shape or self.a.ndim != 1:
            raise ValueError("Coefficient arrays must be 1-D and of equal length")
        if self.a.size and max(int(self.a.max()), int(self.b.max())) > MAX_SHINGLE_ID:
            raise ValueError("Coefficients must be below 2^32")
        if self.prime <= MAX_SHINGLE_ID:
            raise ValueError(f"Prime must exceed {MAX_SHINGLE_ID}")

    @classmethod
    def generate(cls, num_hashes: int = NUM_HASHES,
                 max_shingle_id: int = MAX_SHINGLE_ID,
                 rng: Optional[np.random.Generator] = None) -> 'HashFamily':
        if num_hashes < 1:
            raise ValueError(f"num_hashes must be positive, got {num_hashes}")
        if not 0 < max_shingle_id <= MAX_SHINGLE_ID:
            raise ValueError(f"max_shingle_id must be in (0, {MAX_SHINGLE_ID}]")
        rng = rng if rng is not None else np.random.default_rng()
        a = generate_random_coeffs(num_hashes, max_shingle_id, rng)
        b = generate_random_coeffs(num_hashes, max_shingle_id, rng)
        logger.debug("Generated hash family: {} functions, ids < {}",
                     num_hashes, max_shingle_id)
        return cls(a, b)

    @property
    def size(self) -> int:
        return int(self.a.size)

    @property
    def sentinel(self) -> int:
        """Больше любого хеша: минимум по пустому набору."""
        return self.prime + 1

    def hash_codes(self, shingles: Iterable[int]) -> np.ndarray:
        """Матрица k x m: строка i - h_i от каждого шингла."""
        x = _as_shingle_array(shingles)
        return (self.a[:, None] * x[None, :] + self.b[:, None]) % np.uint64(self.prime)

    def signature(self, shingles: Iterable[int]) -> np.ndarray:
        codes = self.hash_codes(shingles)
        if codes.shape[1] == 0:
            return np.full(self.size, self.sentinel, dtype=np.uint64)
        return codes.min(axis=1)


def generate_signatures(shingle_sets: Sequence[Sequence[int]],
                        hash_count: int = NUM_HASHES,
                        max_shingle_id: int = MAX_SHINGLE_ID,
                        rng: Optional[np.random.Generator] = None,
                        family: Optional[HashFamily] = None) -> np.ndarray:
    """
    Signatures for all documents, one row per document.

    A fresh family is drawn from rng unless one is passed in; with a fixed
    family the result depends on the shingles only.
    """
    if family is None:
        family = HashFamily.generate(hash_count, max_shingle_id, rng)

    signatures = np.empty((len(shingle_sets), family.size), dtype=np.uint64)
    degenerate = 0
    for row, shingles in enumerate(shingle_sets):
        signatures[row] = family.signature(shingles)
        if len(shingles) == 0:
            degenerate += 1

    logger.debug("Signature matrix {}", signatures.shape)
    if degenerate:
        logger.debug("{} document(s) without shingles got sentinel signatures",
                     degenerate)
    return signatures

"""Эксперименты: точность MinHash-оценки в зависимости от длины сигнатуры."""

import numpy as np
import matplotlib.pyplot as plt
from typing import List, Optional, Tuple
from scipy import stats

from minhash import generate_signatures
from shingles import make_shingles
from similarity import calculate_similarities, jaccard


def generate_document_pair(size: int, shared: int,
                           rng: Optional[np.random.Generator] = None) -> Tuple[str, str]:
    """
    Два текста по size слов; первые shared слов общие, остальные
    гарантированно не пересекаются (разные префиксы).
    """
    rng = rng if rng is not None else np.random.default_rng()
    salt = int(rng.integers(0, 10**6))
    common = [f"w{salt}_{i}" for i in range(shared)]
    first = common + [f"a{salt}_{i}" for i in range(size - shared)]
    second = common + [f"b{salt}_{i}" for i in range(size - shared)]
    return " ".join(first), " ".join(second)


def estimate_pair(first: str, second: str, k: int,
                  rng: np.random.Generator) -> Tuple[float, float]:
    """(оценка MinHash, точный Jaccard) для пары текстов."""
    shingle_sets = [make_shingles(first), make_shingles(second)]
    signatures = generate_signatures(shingle_sets, hash_count=k, rng=rng)
    estimate = calculate_similarities(signatures)[0, 1]
    return float(estimate), jaccard(*shingle_sets)


def measure_error_by_k(k_values: List[int], size: int = 200, shared: int = 100,
                       trials: int = 50, seed: Optional[int] = None) -> np.ndarray:
    """Стандартное отклонение (оценка - Jaccard) для каждого k."""
    rng = np.random.default_rng(seed)
    first, second = generate_document_pair(size, shared, rng)
    stds = np.zeros(len(k_values))
    for idx, k in enumerate(k_values):
        errors = []
        for _ in range(trials):
            estimate, real = estimate_pair(first, second, k, rng)
            errors.append(estimate - real)
        stds[idx] = np.std(errors)
    return stds


def error_slope(k_values: List[int], stds: np.ndarray) -> float:
    """Наклон log(std) от log(k); теория: -0.5."""
    result = stats.linregress(np.log(k_values), np.log(stds))
    return float(result.slope)


def plot_error_vs_k(k_values: List[int], stds: np.ndarray, real: float):
    theory = [np.sqrt(real * (1 - real) / k) for k in k_values]
    plt.figure(figsize=(8, 6))
    plt.plot(k_values, stds, 'o-', color='steelblue', label='Реальная ошибка')
    plt.plot(k_values, theory, 's--', color='gray', label='Теор. sqrt(J(1-J)/k)', alpha=0.7)
    plt.xscale('log')
    plt.yscale('log')
    plt.xlabel("k (длина сигнатуры)")
    plt.ylabel("std оценки")
    plt.title("MinHash: ошибка vs k")
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig('minhash_error_vs_k.png', dpi=300)


def plot_estimate_vs_jaccard(k: int = 128, size: int = 200, seed: Optional[int] = None):
    rng = np.random.default_rng(seed)
    overlaps = [0, 10, 25, 50, 75, 90, 100]
    real_j, estimated_j = [], []

    for overlap in overlaps:
        first, second = generate_document_pair(size, size * overlap // 100, rng)
        estimates = []
        for _ in range(5):
            estimate, real = estimate_pair(first, second, k, rng)
            estimates.append(estimate)
        real_j.append(real)
        estimated_j.append(np.mean(estimates))

    plt.figure(figsize=(8, 6))
    plt.plot(overlaps, real_j, 'o--', label='Реальный Jaccard', color='blue')
    plt.plot(overlaps, estimated_j, 's-', label='MinHash оценка', color='red')
    plt.xlabel("Общие слова (%)")
    plt.ylabel("Jaccard similarity")
    plt.title(f"MinHash: оценка vs реальность (k={k})")
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig('minhash_estimate_vs_jaccard.png', dpi=300)


if __name__ == "__main__":
    k_vals = [8, 16, 32, 64, 128, 256]

    print("Running error analysis...")
    stds = measure_error_by_k(k_vals, trials=100, seed=42)
    first, second = generate_document_pair(200, 100, np.random.default_rng(42))
    real = jaccard(make_shingles(first), make_shingles(second))
    print(f"Jaccard={real:.3f}, slope={error_slope(k_vals, stds):.3f} (теория -0.5)")
    plot_error_vs_k(k_vals, stds, real)
    plot_estimate_vs_jaccard(seed=42)
    plt.show()

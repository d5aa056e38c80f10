"""Тесты шинглов, MinHash, оценки схожести и рейтинга."""

import sys
from pathlib import Path

# Добавляем родительскую директорию в путь для импортов
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import zlib
import numpy as np
from shingles import TailPolicy, fingerprint, make_ngrams, make_shingles, make_word_ngrams
from minhash import NEXT_PRIME, HashFamily, generate_random_coeffs, generate_signatures
from similarity import calculate_similarities, iter_pairs, jaccard, positional_match_count
from ratings import aggregate_ratings
from documents import InvalidDocument
from loguru import logger
from analysis import error_slope, generate_document_pair, measure_error_by_k


class TestShingles:
    """Тесты шинглов."""

    def test_make_ngrams_tail_windows(self):
        assert make_ngrams([1, 2, 3, 4, 5, 6], 3) == [
            [1, 2, 3], [2, 3, 4], [3, 4, 5], [4, 5, 6], [5, 6], [6]]

    def test_make_ngrams_empty(self):
        assert make_ngrams([], 3) == []

    def test_make_ngrams_invalid_length(self):
        with pytest.raises(ValueError):
            make_ngrams([1, 2], 0)

    def test_word_ngrams_naive_whitespace(self):
        # двойной пробел дает пустой токен
        assert make_word_ngrams("A  b", 3) == [["a", "", "b"], ["", "b"], ["b"]]

    def test_fingerprint_is_crc32(self):
        assert fingerprint(["i", "write", "code"]) == zlib.crc32(b"i write code")

    def test_lowercase(self):
        assert make_shingles("The Quick Brown fox") == make_shingles("the quick brown FOX")

    def test_tail_windows_dropped_by_default(self):
        shingles = make_shingles("a b c d")
        assert shingles == [fingerprint(["a", "b", "c"]), fingerprint(["b", "c", "d"])]

    def test_tail_windows_kept(self):
        shingles = make_shingles("a b c d", tail_policy=TailPolicy.KEEP)
        assert len(shingles) == 4
        assert shingles[2:] == [fingerprint(["c", "d"]), fingerprint(["d"])]

    def test_short_text_has_no_shingles(self):
        assert make_shingles("two words") == []

    def test_empty_content(self):
        assert make_shingles("") == []
        assert make_shingles("", tail_policy="keep") == []

    def test_duplicates_kept(self):
        shingles = make_shingles("x y z x y z")
        assert len(shingles) == 4
        assert shingles[0] == shingles[3]

    def test_deduplicate(self):
        shingles = make_shingles("x y z x y z", deduplicate=True)
        assert len(shingles) == 3
        assert len(set(shingles)) == 3

    def test_fingerprints_are_u32(self):
        shingles = make_shingles("some text with several different words in it")
        assert all(0 <= s <= 2**32 - 1 for s in shingles)

    def test_non_string_content(self):
        with pytest.raises(InvalidDocument):
            make_shingles(None)
        with pytest.raises(InvalidDocument):
            make_shingles(b"bytes are not text")


class TestHashFamily:
    """Тесты хеш-функций и сигнатур."""

    def test_unique_coefficients(self):
        rng = np.random.default_rng(0)
        coeffs = generate_random_coeffs(50, 60, rng)
        assert len(set(coeffs.tolist())) == 50
        assert coeffs.min() >= 0 and coeffs.max() < 60

    def test_all_values_of_small_range(self):
        coeffs = generate_random_coeffs(10, 10, np.random.default_rng(1))
        assert sorted(coeffs.tolist()) == list(range(10))

    def test_draw_whole_range(self):
        # каждое значение из [0, 3000) ровно один раз
        coeffs = generate_random_coeffs(3000, 3000, np.random.default_rng(0))
        assert sorted(coeffs.tolist()) == list(range(3000))

    def test_too_many_coefficients(self):
        with pytest.raises(ValueError):
            generate_random_coeffs(11, 10, np.random.default_rng(1))

    def test_seeded_family_reproducible(self):
        f1 = HashFamily.generate(20, rng=np.random.default_rng(7))
        f2 = HashFamily.generate(20, rng=np.random.default_rng(7))
        assert np.array_equal(f1.a, f2.a)
        assert np.array_equal(f1.b, f2.b)

    def test_no_overflow_at_max_values(self):
        top = 2**32 - 1
        family = HashFamily(a=[top - 1], b=[top - 1])
        expected = ((top - 1) * top + (top - 1)) % NEXT_PRIME
        assert int(family.signature([top])[0]) == expected

    def test_signature_is_minimum(self):
        family = HashFamily(a=[3, 5], b=[7, 1])
        shingles = [10, 2, 1000]
        expected = [min((a * x + b) % NEXT_PRIME for x in shingles)
                    for a, b in [(3, 7), (5, 1)]]
        assert family.signature(shingles).tolist() == expected

    def test_empty_document_gets_sentinels(self):
        family = HashFamily.generate(5, rng=np.random.default_rng(0))
        signature = family.signature([])
        assert signature.tolist() == [NEXT_PRIME + 1] * 5

    def test_rejects_out_of_range_shingles(self):
        family = HashFamily(a=[1], b=[0])
        with pytest.raises(ValueError):
            family.signature([2**32])
        with pytest.raises(ValueError):
            family.signature([-1])

    def test_rejects_mismatched_coefficients(self):
        with pytest.raises(ValueError):
            HashFamily(a=[1, 2], b=[3])

    def test_signatures_shape(self):
        sigs = generate_signatures([[1, 2], [], [3]], hash_count=7,
                                   rng=np.random.default_rng(0))
        assert sigs.shape == (3, 7)
        assert sigs.dtype == np.uint64

    def test_logs_signature_shape(self):
        messages = []
        handler = logger.add(messages.append, level="DEBUG", format="{message}")
        try:
            generate_signatures([[1, 2], [3]], hash_count=4, rng=np.random.default_rng(0))
        finally:
            logger.remove(handler)
        assert any("Signature matrix (2, 4)" in m for m in messages)

    def test_empty_corpus(self):
        sigs = generate_signatures([], hash_count=4, rng=np.random.default_rng(0))
        assert sigs.shape == (0, 4)

    def test_deterministic_with_fixed_family(self):
        family = HashFamily.generate(16, rng=np.random.default_rng(3))
        docs = [make_shingles("the cat sat on the mat"), make_shingles("a dog sat on a log")]
        first = calculate_similarities(generate_signatures(docs, family=family))
        second = calculate_similarities(generate_signatures(docs, family=family))
        assert np.array_equal(first, second)


class TestSimilarity:
    """Тесты оценки схожести."""

    def test_match_count(self):
        assert positional_match_count([1, 2, 3], [1, 2, 4]) == 2

    def test_match_count_ignores_other_positions(self):
        assert positional_match_count([1, 3, 2], [1, 2, 3]) == 1

    def test_match_count_symmetric(self):
        a, b = [5, 1, 7, 7], [5, 2, 7, 0]
        assert positional_match_count(a, b) == positional_match_count(b, a)
        assert positional_match_count(a, a) == len(a)

    def test_match_count_against_matrix(self):
        counts = positional_match_count([1, 2, 3], [[1, 2, 3], [0, 2, 0], [4, 5, 6]])
        assert counts.tolist() == [3, 1, 0]

    def test_calculate_similarities(self):
        result = calculate_similarities([[1, 2, 3], [1, 4, 3]])
        assert result.tolist() == [[0, 2 / 3], [0, 0]]

    def test_upper_triangle_only(self):
        result = calculate_similarities([[1, 2], [1, 2], [1, 2]])
        assert np.array_equal(np.tril(result), np.zeros((3, 3)))
        assert result[0, 1] == result[0, 2] == result[1, 2] == 1.0

    def test_empty_and_single(self):
        assert calculate_similarities([]).shape == (0, 0)
        assert calculate_similarities([[1, 2, 3]]).tolist() == [[0.0]]

    def test_ragged_signatures(self):
        with pytest.raises(ValueError):
            calculate_similarities([[1, 2], [1]])

    def test_iter_pairs(self):
        sims = calculate_similarities([[1, 2], [1, 3], [4, 3]])
        assert list(iter_pairs(sims)) == [(0, 1, 0.5), (0, 2, 0.0), (1, 2, 0.5)]

    def test_same_document_is_fully_similar(self):
        text = "buy cheap watches now and get a free gift with every order"
        sigs = generate_signatures([make_shingles(text), make_shingles(text)],
                                   hash_count=32, rng=np.random.default_rng(5))
        assert calculate_similarities(sigs)[0, 1] == 1.0

    def test_disjoint_vocabularies(self):
        first, second = generate_document_pair(100, 0, np.random.default_rng(2))
        sigs = generate_signatures([make_shingles(first), make_shingles(second)],
                                   hash_count=64, rng=np.random.default_rng(2))
        assert calculate_similarities(sigs)[0, 1] == 0.0

    def test_degenerate_documents_look_identical(self):
        sigs = generate_signatures([[], []], hash_count=8, rng=np.random.default_rng(0))
        assert calculate_similarities(sigs)[0, 1] == 1.0

    def test_partial_overlap(self):
        first, second = generate_document_pair(200, 100, np.random.default_rng(11))
        shingle_sets = [make_shingles(first), make_shingles(second)]
        sigs = generate_signatures(shingle_sets, hash_count=256,
                                   rng=np.random.default_rng(11))
        real = jaccard(*shingle_sets)
        assert abs(calculate_similarities(sigs)[0, 1] - real) < 0.15

    def test_exact_jaccard(self):
        assert jaccard({1, 2, 3}, {2, 3, 4}) == 0.5
        assert jaccard([], []) == 0.0

    def test_error_shrinks_with_k(self):
        k_values = [16, 64, 256]
        stds = measure_error_by_k(k_values, trials=100, seed=42)
        assert stds[0] > stds[-1]
        assert -0.75 < error_slope(k_values, stds) < -0.25


class TestRatings:
    """Тесты рейтинга подозрительности."""

    def test_at_threshold_contributes_nothing(self):
        sims = np.array([[0.0, 0.4], [0.0, 0.0]])
        result = aggregate_ratings(sims, ["a", "b"], {"a": "x", "b": "x"}, threshold=0.4)
        assert result.ratings == {"a": 0.0, "b": 0.0}
        assert result.average_rating == 0.0
        assert result.pairs == []

    def test_above_threshold_same_sender(self):
        sims = np.array([[0.0, 0.5], [0.0, 0.0]])
        result = aggregate_ratings(sims, ["a", "b"], {"a": "x", "b": "x"}, threshold=0.4)
        assert result.ratings["a"] == pytest.approx(1.1)
        assert result.ratings["b"] == pytest.approx(1.1)
        assert result.average_rating == pytest.approx(1.1)
        assert result.pairs[0].multiplier == 2

    def test_above_threshold_different_senders(self):
        sims = np.array([[0.0, 0.5], [0.0, 0.0]])
        result = aggregate_ratings(sims, ["a", "b"], {"a": "x", "b": "y"}, threshold=0.4)
        assert result.ratings["a"] == pytest.approx(0.6)
        assert result.average_rating == pytest.approx(0.6)

    def test_unknown_senders_not_same(self):
        sims = np.array([[0.0, 0.5], [0.0, 0.0]])
        result = aggregate_ratings(sims, ["a", "b"], {}, threshold=0.4)
        assert result.ratings["a"] == pytest.approx(0.6)

    def test_accumulates_over_pairs(self):
        sims = np.array([[0.0, 0.5, 0.9],
                         [0.0, 0.0, 0.1],
                         [0.0, 0.0, 0.0]])
        result = aggregate_ratings(sims, ["a", "b", "c"], {"a": "x", "b": "y", "c": "z"})
        assert result.ratings["a"] == pytest.approx(0.6 + 1.0)
        assert result.ratings["b"] == pytest.approx(0.6)
        assert result.ratings["c"] == pytest.approx(1.0)
        assert result.average_rating == pytest.approx((1.6 + 0.6 + 1.0) / 3)
        assert [(p.first_id, p.second_id) for p in result.pairs] == [("a", "b"), ("a", "c")]

    def test_lower_triangle_ignored(self):
        sims = np.array([[1.0, 0.0], [1.0, 1.0]])
        result = aggregate_ratings(sims, ["a", "b"], {})
        assert result.ratings == {"a": 0.0, "b": 0.0}

    def test_negative_threshold_counts_only_upper_pairs(self):
        result = aggregate_ratings(np.zeros((2, 2)), ["a", "b"], {}, threshold=-0.1)
        assert [(p.first_id, p.second_id) for p in result.pairs] == [("a", "b")]
        assert result.ratings == {"a": pytest.approx(0.1), "b": pytest.approx(0.1)}

    def test_empty_corpus(self):
        result = aggregate_ratings(np.zeros((0, 0)), [], {})
        assert result.ratings == {}
        assert result.average_rating is None

    def test_single_document(self):
        result = aggregate_ratings(np.zeros((1, 1)), ["a"], {})
        assert result.ratings == {"a": 0.0}
        assert result.average_rating is None

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            aggregate_ratings(np.zeros((2, 2)), ["a", "b", "c"], {})

    def test_duplicate_ids(self):
        with pytest.raises(InvalidDocument):
            aggregate_ratings(np.zeros((2, 2)), ["a", "a"], {})


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])

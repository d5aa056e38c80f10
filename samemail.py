"""
Оценка похожести писем через MinHash и рейтинг подозрительности.

    python samemail.py data/                    # каталог: один файл - одно письмо
    python samemail.py data/mails.train         # файл: '<id> <content>' в строке
    python samemail.py data/ --seed 42 --show-pairs --json
"""

import argparse
import sys
import numpy as np
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
from loguru import logger
from tqdm import tqdm

from documents import Document, InvalidDocument, MailDirectory, read_train_file, validate_ids
from log_setup import configure_logging
from minhash import MAX_SHINGLE_ID, NUM_HASHES, HashFamily, generate_signatures
from ratings import (PAIR_BONUS, SAME_ADDRESS_COEFF, SUSPICIOUS_COLLISION_THRESHOLD,
                     SuspiciousPair, aggregate_ratings)
from report import format_matrix, format_pairs, format_ratings, to_json
from shingles import NGRAM_SIZE, TailPolicy, make_shingles
from similarity import calculate_similarities


@dataclass
class SameMailConfig:
    num_hashes: int = NUM_HASHES
    max_shingle_id: int = MAX_SHINGLE_ID
    ngram_size: int = NGRAM_SIZE
    tail_policy: TailPolicy = TailPolicy.DROP
    deduplicate_shingles: bool = False  # True: настоящее множество вместо мультимножества
    threshold: float = SUSPICIOUS_COLLISION_THRESHOLD
    same_address_coeff: float = SAME_ADDRESS_COEFF
    pair_bonus: float = PAIR_BONUS
    seed: Optional[int] = None

    def __post_init__(self):
        self.tail_policy = TailPolicy(self.tail_policy)
        if self.num_hashes < 1:
            raise ValueError(f"num_hashes must be positive, got {self.num_hashes}")
        if not 0 < self.max_shingle_id <= MAX_SHINGLE_ID:
            raise ValueError(f"max_shingle_id must be in (0, {MAX_SHINGLE_ID}]")
        if self.num_hashes > self.max_shingle_id:
            raise ValueError("num_hashes cannot exceed max_shingle_id")
        if self.ngram_size < 1:
            raise ValueError(f"ngram_size must be positive, got {self.ngram_size}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")
        if self.same_address_coeff < 0 or self.pair_bonus < 0:
            raise ValueError("same_address_coeff and pair_bonus must be non-negative")


@dataclass
class CorpusReport:
    ids: List[str]
    ratings: Dict[str, float]
    average_rating: Optional[float]
    similarities: np.ndarray
    pairs: List[SuspiciousPair] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"averageRating": self.average_rating, "ratings": self.ratings}


Record = Union[Document, Mapping[str, Any]]


def _as_document(doc_id: str, record: Record) -> Document:
    if isinstance(record, Document):
        if record.id != doc_id:
            raise InvalidDocument(f"Provider returned {record.id!r} for {doc_id!r}")
        return record
    if not isinstance(record, Mapping):
        raise InvalidDocument(f"Unsupported record for {doc_id!r}: {type(record).__name__}")
    return Document(id=doc_id, content=record.get("content"),
                    sender=record.get("sender"), topic=record.get("topic"))


def calculate_ratings(ids: Sequence[str], fetch_by_id: Callable[[str], Record],
                      config: Optional[SameMailConfig] = None,
                      rng: Optional[np.random.Generator] = None,
                      family: Optional[HashFamily] = None,
                      progress: bool = False) -> CorpusReport:
    """
    Rate every mail of the corpus.

    ids fixes the row/column order of the similarity matrix. fetch_by_id
    returns a Document or a mapping with 'content' and optional 'sender';
    each record is fetched once. The hash family is drawn from rng, which
    defaults to a generator seeded with config.seed.
    """
    config = config or SameMailConfig()
    ids = validate_ids(ids)
    if rng is None:
        rng = np.random.default_rng(config.seed)

    senders = {}
    shingle_sets = []
    for doc_id in tqdm(ids, desc="shingles", disable=not progress):
        document = _as_document(doc_id, fetch_by_id(doc_id))
        senders[doc_id] = document.sender
        shingle_sets.append(make_shingles(document.content, config.ngram_size,
                                          config.tail_policy,
                                          config.deduplicate_shingles))

    signatures = generate_signatures(shingle_sets, config.num_hashes,
                                     config.max_shingle_id, rng=rng, family=family)
    similarities = calculate_similarities(signatures)
    result = aggregate_ratings(similarities, ids, senders,
                               threshold=config.threshold,
                               same_address_coeff=config.same_address_coeff,
                               pair_bonus=config.pair_bonus)

    logger.info("Rated {} documents: {} suspicious pair(s), average {}",
                len(ids), len(result.pairs), result.average_rating)
    return CorpusReport(ids=ids, ratings=result.ratings,
                        average_rating=result.average_rating,
                        similarities=similarities, pairs=result.pairs)


def _load_corpus(path: Path):
    """(ids, fetch_by_id) для каталога писем или train-файла."""
    if path.is_dir():
        mails = MailDirectory(path)
        return mails.ids(), mails.fetch
    documents = {d.id: d for d in read_train_file(path)}
    return list(documents), documents.__getitem__


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="samemail",
                                description="Near-duplicate mail rating with MinHash")
    p.add_argument("path", type=Path, help="Каталог писем или train-файл")
    p.add_argument("--hashes", type=int, default=NUM_HASHES, help="Длина сигнатуры")
    p.add_argument("--max-shingle-id", type=int, default=MAX_SHINGLE_ID,
                   help="Верхняя граница коэффициентов хеш-функций")
    p.add_argument("--threshold", type=float, default=SUSPICIOUS_COLLISION_THRESHOLD,
                   help="Порог подозрительной схожести (строго больше)")
    p.add_argument("--same-address-coeff", type=float, default=SAME_ADDRESS_COEFF,
                   help="Множитель для писем с одного адреса")
    p.add_argument("--pair-bonus", type=float, default=PAIR_BONUS,
                   help="Добавка за каждую подозрительную пару")
    p.add_argument("--tail", choices=[t.value for t in TailPolicy],
                   default=TailPolicy.DROP.value, help="Хвостовые окна короче 3 слов")
    p.add_argument("--dedupe", action="store_true", help="Удалять повторы шинглов")
    p.add_argument("--seed", type=int, default=None, help="Seed для хеш-функций")
    p.add_argument("--show-pairs", action="store_true", help="Печатать все пары")
    p.add_argument("--show-matrix", action="store_true", help="Печатать матрицу схожести")
    p.add_argument("--json", action="store_true", help="Вывод в JSON")
    p.add_argument("--progress", action="store_true", help="Прогресс-бар")
    p.add_argument("--log-level", default="WARNING", help="Уровень логирования")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = SameMailConfig(num_hashes=args.hashes,
                                max_shingle_id=args.max_shingle_id,
                                tail_policy=args.tail,
                                deduplicate_shingles=args.dedupe,
                                threshold=args.threshold,
                                same_address_coeff=args.same_address_coeff,
                                pair_bonus=args.pair_bonus,
                                seed=args.seed)
        ids, fetch_by_id = _load_corpus(args.path)
        report = calculate_ratings(ids, fetch_by_id, config, progress=args.progress)
    except (InvalidDocument, OSError, ValueError, RuntimeError) as e:
        logger.error("{}", e)
        return 2

    if args.show_pairs:
        for line in format_pairs(report.similarities, report.ids, config.threshold):
            print(line)
        print("------------")
    if args.show_matrix:
        print(format_matrix(report.similarities))
    if args.json:
        print(to_json(report.to_dict()))
    else:
        for line in format_ratings(report.ratings, report.average_rating):
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())

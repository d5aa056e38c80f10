"""Документы (письма) и источники, из которых они читаются."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union


class InvalidDocument(ValueError):
    """Document record the core cannot work with."""


@dataclass(frozen=True)
class Document:
    id: str
    content: str
    sender: Optional[str] = None
    topic: Optional[str] = None  # не влияет на рейтинг

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise InvalidDocument(f"Document id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.content, str):
            raise InvalidDocument(
                f"Content of {self.id!r} must be a string, got {type(self.content).__name__}")


def validate_ids(ids: Iterable[str]) -> List[str]:
    """Список id корпуса; пустые и повторяющиеся id - ошибка."""
    seen = set()
    result = []
    for doc_id in ids:
        if not isinstance(doc_id, str) or not doc_id:
            raise InvalidDocument(f"Document id must be a non-empty string, got {doc_id!r}")
        if doc_id in seen:
            raise InvalidDocument(f"Duplicate document id {doc_id!r}")
        seen.add(doc_id)
        result.append(doc_id)
    return result


def parse_mail(doc_id: str, raw: str) -> Document:
    """
    Mail file layout: a header line, the sender, the topic, then the body.
    """
    parts = raw.split("\n", 3)
    if len(parts) < 4:
        raise InvalidDocument(f"Mail {doc_id!r} has no header/sender/topic lines")
    _, sender, topic, content = parts
    return Document(id=doc_id, sender=sender, topic=topic, content=content)


class MailDirectory:
    """Каталог, где каждый файл - одно письмо, имя файла - его id."""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding
        if not self.path.is_dir():
            raise NotADirectoryError(f"Not a directory: {self.path}")

    def ids(self) -> List[str]:
        return sorted(p.name for p in self.path.iterdir()
                      if p.is_file() and not p.name.startswith("."))

    def fetch(self, doc_id: str) -> Document:
        raw = (self.path / doc_id).read_text(encoding=self.encoding)
        return parse_mail(doc_id, raw)


def read_train_file(path: Union[str, Path], encoding: str = "utf-8") -> List[Document]:
    """Файл, где каждая строка - '<id> <content>'. Пустые строки пропускаются."""
    documents = []
    with open(path, encoding=encoding) as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line:
                continue
            doc_id, sep, content = line.partition(" ")
            if not sep:
                raise InvalidDocument(f"{path}:{lineno}: missing separator after id")
            documents.append(Document(id=doc_id, content=content))
    validate_ids(d.id for d in documents)
    return documents

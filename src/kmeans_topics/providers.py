# src/kmeans_topics/providers.py
"""
Collaborator contracts consumed by the clustering engine.

The engine never tokenizes or weights text itself. It reads the vocabulary
size and term strings from a ``Vocabulary`` and the per-document
(term_id, weight) pairs from ``WeightedDocuments``. Any object with these
methods works; ``InMemoryCorpus`` is a small concrete one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Vocabulary(Protocol):
    def num_terms(self) -> int: ...

    def num_docs(self) -> int: ...

    def term_text(self, term_id: int) -> str: ...


@runtime_checkable
class WeightedDocuments(Protocol):
    def weights(self, doc_id: int) -> Iterable[tuple[int, float]]: ...


@dataclass
class InMemoryCorpus:
    """Vocabulary and weighted documents held in plain Python containers."""

    terms: Sequence[str]
    docs: Sequence[Mapping[int, float]] = field(default_factory=list)

    def num_terms(self) -> int:
        return len(self.terms)

    def num_docs(self) -> int:
        return len(self.docs)

    def term_text(self, term_id: int) -> str:
        return self.terms[term_id]

    def weights(self, doc_id: int) -> Iterable[tuple[int, float]]:
        return self.docs[doc_id].items()

    @classmethod
    def from_rows(cls, terms: Sequence[str], rows) -> InMemoryCorpus:
        # rows: dense per-document weights, zeros dropped
        docs = [
            {t_id: float(w) for t_id, w in enumerate(row) if w != 0}
            for row in rows
        ]
        return cls(terms=list(terms), docs=docs)

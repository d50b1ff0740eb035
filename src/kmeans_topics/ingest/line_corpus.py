# src/kmeans_topics/ingest/line_corpus.py
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy import sparse
from sklearn.feature_extraction.text import TfidfVectorizer


def basic_clean(text: str) -> str:
    text = text.lower()
    text = re.sub(r"http\S+", " ", text)  # remove urls
    text = re.sub(r"[^a-z\s]", " ", text)  # keep only letters
    text = re.sub(r"\s+", " ", text).strip()  # remove extra spaces
    return text


def build_tfidf(
    texts: Sequence[str],
    min_df: int = 1,
    max_df: float = 1.0,
    max_features: Optional[int] = None,
    stop_words: Optional[str] = "english",
) -> tuple[sparse.csr_matrix, TfidfVectorizer]:
    vec = TfidfVectorizer(
        min_df=min_df,
        max_df=max_df,
        max_features=max_features,
        stop_words=stop_words,
        norm="l2",
        sublinear_tf=True,
    )
    X = vec.fit_transform(texts)
    return X.tocsr(), vec


class LineCorpus:
    """
    A corpus stored one document per line, weighted with TF-IDF.

    Serves both collaborator roles the clustering model needs: vocabulary
    (``num_terms``, ``num_docs``, ``term_text``) and weighted documents
    (``weights``). Empty lines are kept as empty documents so that line
    numbers stay aligned with document ids.
    """

    def __init__(self, texts: Sequence[str], **tfidf_kwargs):
        self.texts = [basic_clean(t) for t in texts]
        self.matrix, self.vectorizer = build_tfidf(self.texts, **tfidf_kwargs)
        self._terms = self.vectorizer.get_feature_names_out()

    @classmethod
    def from_file(cls, path, **tfidf_kwargs) -> "LineCorpus":
        with open(Path(path), encoding="utf-8") as f:
            lines = [line.rstrip("\n") for line in f]
        return cls(lines, **tfidf_kwargs)

    def num_terms(self) -> int:
        return len(self._terms)

    def num_docs(self) -> int:
        return self.matrix.shape[0]

    def term_text(self, term_id: int) -> str:
        return str(self._terms[term_id])

    def weights(self, doc_id: int) -> Iterable[tuple[int, float]]:
        start, end = self.matrix.indptr[doc_id], self.matrix.indptr[doc_id + 1]
        cols = self.matrix.indices[start:end]
        vals = self.matrix.data[start:end]
        return zip(cols.tolist(), np.asarray(vals, dtype=float).tolist())

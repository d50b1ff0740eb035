# src/kmeans_topics/pipeline/features.py
import logging

import numpy as np
from scipy import sparse
from tqdm import tqdm

from kmeans_topics.errors import InvalidConfiguration, TermOutOfRange
from kmeans_topics.providers import Vocabulary, WeightedDocuments

logger = logging.getLogger(__name__)

REPRESENTATIONS = ("dense", "sparse")


def _checked_pairs(doc_id: int, pairs, num_terms: int):
    for t_id, weight in pairs:
        t_id = int(t_id)
        if t_id < 0 or t_id >= num_terms:
            raise TermOutOfRange(doc_id, t_id, num_terms)
        yield t_id, float(weight)


def build_dense(
    num_docs: int,
    num_terms: int,
    weighted: WeightedDocuments,
    verbose: bool = False,
):
    """
    Materialize every document as a dense row of ``num_terms`` weights.

    Allocates the full num_docs x num_terms float64 matrix up front, which is
    the dominant memory cost of a run. Use ``build_sparse`` for large
    vocabularies.
    """
    docs = np.zeros((num_docs, num_terms), dtype=np.float64)
    for d_id in tqdm(range(num_docs), desc="tf-idf vectors", disable=not verbose):
        pairs = _checked_pairs(d_id, weighted.weights(d_id), num_terms)
        for t_id, weight in pairs:
            docs[d_id, t_id] = weight
    return docs


def build_sparse(
    num_docs: int,
    num_terms: int,
    weighted: WeightedDocuments,
    verbose: bool = False,
):
    # duplicate (doc, term) pairs keep the last weight, as the dense builder does
    cells: dict[tuple[int, int], float] = {}
    for d_id in tqdm(range(num_docs), desc="tf-idf vectors", disable=not verbose):
        pairs = _checked_pairs(d_id, weighted.weights(d_id), num_terms)
        for t_id, weight in pairs:
            cells[d_id, t_id] = weight
    rows = np.asarray([r for r, _ in cells], dtype=np.int64)
    cols = np.asarray([c for _, c in cells], dtype=np.int64)
    vals = list(cells.values())
    return sparse.csr_matrix(
        (np.asarray(vals, dtype=np.float64), (rows, cols)),
        shape=(num_docs, num_terms),
    )


def build_documents(
    vocabulary: Vocabulary,
    weighted: WeightedDocuments,
    representation: str = "dense",
    verbose: bool = False,
):
    num_docs, num_terms = vocabulary.num_docs(), vocabulary.num_terms()
    logger.info(
        "Creating tf-idf vectors: %d docs x %d terms (%s)",
        num_docs,
        num_terms,
        representation,
    )
    if representation == "dense":
        return build_dense(num_docs, num_terms, weighted, verbose=verbose)
    if representation == "sparse":
        return build_sparse(num_docs, num_terms, weighted, verbose=verbose)
    raise InvalidConfiguration(
        f"unknown representation {representation!r}; "
        f"expected one of {REPRESENTATIONS}"
    )


def row(documents, d_id: int) -> np.ndarray:
    """One document as a 1-D dense array, whatever the matrix type."""
    if sparse.issparse(documents):
        return documents.getrow(d_id).toarray().ravel()
    return documents[d_id]


def mean_of_rows(documents, d_ids) -> np.ndarray:
    sub = documents[d_ids]
    return np.asarray(sub.mean(axis=0)).ravel()

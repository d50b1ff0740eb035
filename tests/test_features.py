import numpy as np
import pytest
from scipy import sparse

from kmeans_topics.errors import InvalidConfiguration, TermOutOfRange
from kmeans_topics.pipeline.features import build_documents, mean_of_rows, row
from kmeans_topics.providers import InMemoryCorpus


def _corpus():
    return InMemoryCorpus(
        terms=["x", "y", "z"],
        docs=[{0: 0.5, 2: 1.5}, {}, {1: 2.0}],
    )


def test_dense_fills_unlisted_terms_with_zero():
    docs = build_documents(_corpus(), _corpus())
    assert isinstance(docs, np.ndarray)
    assert docs.shape == (3, 3)
    np.testing.assert_array_equal(docs, [[0.5, 0, 1.5], [0, 0, 0], [0, 2.0, 0]])


def test_sparse_matches_dense():
    corpus = _corpus()
    dense = build_documents(corpus, corpus, "dense")
    csr = build_documents(corpus, corpus, "sparse")
    assert sparse.issparse(csr)
    np.testing.assert_array_equal(csr.toarray(), dense)
    for d_id in range(3):
        np.testing.assert_array_equal(row(csr, d_id), dense[d_id])


def test_term_id_outside_vocabulary_is_fatal():
    corpus = InMemoryCorpus(terms=["x"], docs=[{3: 1.0}])
    with pytest.raises(TermOutOfRange) as exc:
        build_documents(corpus, corpus)
    assert exc.value.term_id == 3
    assert isinstance(exc.value, IndexError)


def test_unknown_representation():
    corpus = _corpus()
    with pytest.raises(InvalidConfiguration):
        build_documents(corpus, corpus, "ragged")


@pytest.mark.parametrize("representation", ["dense", "sparse"])
def test_mean_of_rows(representation):
    corpus = _corpus()
    docs = build_documents(corpus, corpus, representation)
    np.testing.assert_allclose(mean_of_rows(docs, np.array([0, 2])), [0.25, 1.0, 0.75])

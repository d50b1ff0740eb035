import numpy as np
import pytest
from scipy import sparse

from kmeans_topics.errors import InvalidConfiguration
from kmeans_topics.pipeline.distance import (
    cosine,
    find_nearest_cluster,
    get_distance,
    squared_euclidean,
)

CENTROIDS = np.array([[0.0, 0.0], [3.0, 4.0], [1.0, 1.0]])


def test_squared_euclidean():
    out = squared_euclidean(np.array([0.0, 0.0]), CENTROIDS)
    np.testing.assert_allclose(out, [0, 25, 2])


def test_sparse_row_same_as_dense():
    vec = np.array([3.0, 0.0])
    as_row = sparse.csr_matrix(vec.reshape(1, -1))
    np.testing.assert_array_equal(
        squared_euclidean(as_row, CENTROIDS), squared_euclidean(vec, CENTROIDS)
    )


def test_nearest_searches_all_by_default():
    assert find_nearest_cluster(np.array([3.0, 3.5]), CENTROIDS) == (1, 0.25)


def test_nearest_limited_to_first_m():
    c_id, dist = find_nearest_cluster(np.array([3.0, 3.5]), CENTROIDS, limit=1)
    assert c_id == 0
    assert dist == pytest.approx(21.25)


def test_ties_go_to_lowest_index():
    centroids = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]])
    c_id, _ = find_nearest_cluster(np.array([0.5, 0.5]), centroids)
    assert c_id == 0
    c_id, _ = find_nearest_cluster(np.array([1.0, 0.0]), centroids)
    assert c_id == 0


@pytest.mark.parametrize("limit", [0, 4])
def test_limit_out_of_range(limit):
    with pytest.raises(ValueError):
        find_nearest_cluster(np.array([0.0, 0.0]), CENTROIDS, limit=limit)


def test_cosine():
    centroids = np.array([[2.0, 0.0], [0.0, 1.0], [0.0, 0.0]])
    out = cosine(np.array([1.0, 0.0]), centroids)
    np.testing.assert_allclose(out, [0.0, 1.0, 1.0])


def test_get_distance():
    assert get_distance("euclidean") is squared_euclidean
    assert get_distance("cosine") is cosine
    with pytest.raises(InvalidConfiguration):
        get_distance("manhattan")

# src/kmeans_topics/pipeline/distance.py
from typing import Callable, Optional

import numpy as np
from scipy import sparse

from kmeans_topics.errors import InvalidConfiguration

# (vector, centroids[m, num_terms]) -> distances[m]
Distance = Callable[[np.ndarray, np.ndarray], np.ndarray]


def _as_dense(vector) -> np.ndarray:
    if sparse.issparse(vector):
        return vector.toarray().ravel()
    return np.asarray(vector, dtype=np.float64).ravel()


def squared_euclidean(vector, centroids: np.ndarray) -> np.ndarray:
    """Sum-of-squares distance from ``vector`` to every row of ``centroids``."""
    diff = centroids - _as_dense(vector)
    return (diff * diff).sum(axis=1)


def cosine(vector, centroids: np.ndarray) -> np.ndarray:
    """1 - cosine similarity; a zero vector on either side is at distance 1."""
    v = _as_dense(vector)
    norm_v = np.linalg.norm(v)
    norms_c = np.linalg.norm(centroids, axis=1)
    out = np.ones(len(centroids), dtype=np.float64)
    ok = (norms_c > 1e-10) & (norm_v > 1e-10)
    out[ok] = 1.0 - (centroids[ok] @ v) / (norms_c[ok] * norm_v)
    # rounding can leave tiny negatives for identical directions
    return np.clip(out, 0.0, None)


DISTANCES: dict[str, Distance] = {
    "euclidean": squared_euclidean,
    "cosine": cosine,
}


def get_distance(name: str) -> Distance:
    try:
        return DISTANCES[name]
    except KeyError:
        raise InvalidConfiguration(
            f"unknown distance {name!r}; expected one of {sorted(DISTANCES)}"
        ) from None


def find_nearest_cluster(
    vector,
    centroids: np.ndarray,
    limit: Optional[int] = None,
    distance: Distance = squared_euclidean,
) -> tuple[int, float]:
    """
    Find the nearest centroid to a document vector.

    Args:
        vector: Dense 1-D array or a 1 x num_terms sparse row
        centroids: Centroid matrix, one row per cluster
        limit: Only search the first ``limit`` centroids (kmeans++ seeding
            measures against the centroids chosen so far); None searches all
        distance: Distance function, squared Euclidean by default

    Returns:
        (cluster index, distance). Ties go to the lowest index.
    """
    m = len(centroids) if limit is None else limit
    if m < 1 or m > len(centroids):
        raise ValueError(f"limit must be in [1, {len(centroids)}], got {m}")
    dists = distance(vector, centroids[:m])
    best = int(np.argmin(dists))
    return best, float(dists[best])

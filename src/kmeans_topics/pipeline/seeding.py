# src/kmeans_topics/pipeline/seeding.py
"""
Initial centroid selection.

Two strategies, chosen by name:

- ``randk``: k document indices drawn uniformly with replacement. Two slots
  can pick the same document and start from identical centroids.
- ``kmeans++``: first centroid uniform, each following one sampled with
  probability proportional to a document's distance to the nearest centroid
  chosen so far.

The random source is always passed in; nothing here touches global state.
"""

import logging

import numpy as np
from tqdm import tqdm

from kmeans_topics.errors import InvalidConfiguration
from kmeans_topics.pipeline.distance import find_nearest_cluster, squared_euclidean
from kmeans_topics.pipeline.features import row

logger = logging.getLogger(__name__)


def random_k(documents, k: int, random_state) -> np.ndarray:
    num_docs = documents.shape[0]
    picks = random_state.randint(0, num_docs, size=k)
    logger.debug("randk picked docs %s", list(picks))
    rows = [row(documents, int(d_id)) for d_id in picks]
    return np.vstack(rows).astype(np.float64)


def seeding_weights(
    documents,
    centroids: np.ndarray,
    count: int,
    distance=squared_euclidean,
) -> np.ndarray:
    """Distance from each document to the nearest of the first ``count`` centroids."""
    num_docs = documents.shape[0]
    weights = np.empty(num_docs, dtype=np.float64)
    for d_id in range(num_docs):
        _, weights[d_id] = find_nearest_cluster(
            row(documents, d_id), centroids, limit=count, distance=distance
        )
    return weights


def kmeans_plus_plus(
    documents,
    k: int,
    random_state,
    distance=squared_euclidean,
    verbose: bool = False,
) -> np.ndarray:
    num_docs, num_terms = documents.shape
    centroids = np.zeros((k, num_terms), dtype=np.float64)
    centroids[0] = row(documents, int(random_state.randint(0, num_docs)))

    for count in tqdm(range(1, k), desc="kmeans++", disable=not verbose):
        weights = seeding_weights(documents, centroids, count, distance=distance)
        total = weights.sum()
        if total > 0:
            d_id = random_state.choice(num_docs, p=weights / total)
        else:
            logger.warning(
                "All documents coincide with the %d chosen centroid(s); "
                "drawing centroid %d uniformly",
                count,
                count,
            )
            d_id = random_state.randint(0, num_docs)
        centroids[count] = row(documents, int(d_id))

    logger.info("Initialized %d centroids", k)
    return centroids


INIT_METHODS = ("randk", "kmeans++")


def init_centroids(
    documents,
    k: int,
    init_method: str,
    random_state,
    distance=squared_euclidean,
    verbose: bool = False,
) -> np.ndarray:
    if init_method == "randk":
        return random_k(documents, k, random_state)
    if init_method == "kmeans++":
        return kmeans_plus_plus(
            documents, k, random_state, distance=distance, verbose=verbose
        )
    raise InvalidConfiguration(
        f"unknown init method {init_method!r}; expected one of {INIT_METHODS}"
    )

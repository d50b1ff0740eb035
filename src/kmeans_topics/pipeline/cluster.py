# src/kmeans_topics/pipeline/cluster.py
import argparse
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import numpy as np
from sklearn.utils import check_random_state
from tqdm import tqdm

from kmeans_topics.config import load_config
from kmeans_topics.errors import EmptyCluster, InvalidConfiguration
from kmeans_topics.ingest.line_corpus import LineCorpus
from kmeans_topics.pipeline.distance import (
    find_nearest_cluster,
    get_distance,
    squared_euclidean,
)
from kmeans_topics.pipeline.features import (
    REPRESENTATIONS,
    build_documents,
    mean_of_rows,
    row,
)
from kmeans_topics.pipeline.report import (
    format_topics,
    save_model,
    top_terms_per_cluster,
    write_report,
)
from kmeans_topics.pipeline.seeding import INIT_METHODS, init_centroids
from kmeans_topics.providers import Vocabulary, WeightedDocuments

logger = logging.getLogger(__name__)

UNASSIGNED = -1


class RunState(str, Enum):
    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"
    FAILED = "failed"  # an EmptyCluster aborted the run


@dataclass
class ClusteringResult:
    """Outcome of one completed ``KMeansModel.run``."""

    assignments: np.ndarray  # doc_id -> cluster_id
    centroids: np.ndarray  # k x num_terms
    state: RunState
    iterations: int  # assignment/update rounds executed
    changes: list[int] = field(default_factory=list)  # changed docs per round
    cluster_sizes: list[int] = field(default_factory=list)
    topics: dict[int, list[tuple[str, float]]] = field(default_factory=dict)

    @property
    def converged(self) -> bool:
        return self.state is RunState.CONVERGED


@runtime_checkable
class TopicModel(Protocol):
    def initialize(self, init_method: str) -> None: ...

    def run(
        self,
        max_iters: int,
        init_method: str,
        output_terms: int = 0,
    ) -> ClusteringResult: ...

    def save(self, prefix) -> dict[str, Path]: ...


def assign_documents(
    documents,
    centroids: np.ndarray,
    assignments: np.ndarray,
    distance=squared_euclidean,
) -> int:
    """Move every document to its nearest centroid; return how many moved."""
    changed = 0
    for d_id in range(documents.shape[0]):
        c_id, _ = find_nearest_cluster(
            row(documents, d_id), centroids, distance=distance
        )
        if c_id != assignments[d_id]:
            assignments[d_id] = c_id
            changed += 1
    return changed


def cluster_members(assignments: np.ndarray, num_topics: int) -> list[np.ndarray]:
    return [np.flatnonzero(assignments == c_id) for c_id in range(num_topics)]


def update_centroids(
    documents,
    assignments: np.ndarray,
    centroids: np.ndarray,
    iteration: Optional[int] = None,
) -> list[int]:
    """
    Overwrite each centroid with the mean of its member documents.

    Raises EmptyCluster before touching any centroid if some cluster has no
    members. Returns the cluster sizes.
    """
    members = cluster_members(assignments, len(centroids))
    for c_id, d_ids in enumerate(members):
        if len(d_ids) == 0:
            raise EmptyCluster(c_id, iteration)

    for c_id, d_ids in enumerate(members):
        logger.debug("Cluster %d contains %d docs", c_id + 1, len(d_ids))
        centroids[c_id] = mean_of_rows(documents, d_ids)
    return [len(d_ids) for d_ids in members]


class KMeansModel:
    """
    K-Means over TF-IDF document vectors.

    Lifecycle: ``run`` builds the document vectors and seeds the centroids
    (INITIALIZING), then alternates assignment and update (ITERATING) until
    an assignment pass moves no document (CONVERGED) or ``max_iters`` rounds
    have run (ITERATION_LIMIT_REACHED). An empty cluster leaves the model
    in FAILED and re-raises.

    Args:
        vocabulary: Provides num_terms(), num_docs() and term_text(term_id)
        weighted: Provides weights(doc_id) -> (term_id, weight) pairs;
            defaults to ``vocabulary`` when one object plays both roles
        num_topics: k, in [1, num_docs]
        distance: "euclidean" (squared) or "cosine"
        representation: "dense" matrix or "sparse" CSR matrix for documents
        random_state: None, an int seed or a numpy RandomState
        verbose: Show tqdm progress bars
    """

    def __init__(
        self,
        vocabulary: Vocabulary,
        weighted: Optional[WeightedDocuments] = None,
        num_topics: int = 2,
        distance: str = "euclidean",
        representation: str = "dense",
        random_state=None,
        verbose: bool = False,
    ):
        self.vocabulary = vocabulary
        self.weighted = weighted if weighted is not None else vocabulary
        self._num_terms = vocabulary.num_terms()
        self._num_docs = vocabulary.num_docs()
        if num_topics < 1 or num_topics > self._num_docs:
            raise InvalidConfiguration(
                f"number of topics must be in [1, {self._num_docs}], got {num_topics}"
            )
        if representation not in REPRESENTATIONS:
            raise InvalidConfiguration(
                f"unknown representation {representation!r}; "
                f"expected one of {REPRESENTATIONS}"
            )
        self._num_topics = num_topics
        self._distance = get_distance(distance)
        self.representation = representation
        self.random_state = check_random_state(random_state)
        self.verbose = verbose

        self.documents = None
        self.centroids: Optional[np.ndarray] = None
        self.assignments = np.full(self._num_docs, UNASSIGNED, dtype=np.int64)
        self.state: Optional[RunState] = None
        self.changes: list[int] = []

    @property
    def num_topics(self) -> int:
        return self._num_topics

    @property
    def num_terms(self) -> int:
        return self._num_terms

    @property
    def num_docs(self) -> int:
        return self._num_docs

    def initialize(self, init_method: str) -> None:
        if init_method not in INIT_METHODS:
            raise InvalidConfiguration(
                f"unknown init method {init_method!r}; expected one of {INIT_METHODS}"
            )
        self.state = RunState.INITIALIZING
        self.documents = build_documents(
            self.vocabulary, self.weighted, self.representation, verbose=self.verbose
        )
        self.centroids = init_centroids(
            self.documents,
            self._num_topics,
            init_method,
            self.random_state,
            distance=self._distance,
            verbose=self.verbose,
        )
        self.assignments.fill(UNASSIGNED)
        self.changes = []

    def run(
        self,
        max_iters: int,
        init_method: str = "kmeans++",
        output_terms: int = 0,
    ) -> ClusteringResult:
        if max_iters < 1:
            raise InvalidConfiguration(f"max_iters must be positive, got {max_iters}")
        if output_terms < 0:
            raise InvalidConfiguration(
                f"output_terms must be >= 0, got {output_terms}"
            )
        self.initialize(init_method)

        self.state = RunState.ITERATING
        sizes: list[int] = []
        for i in tqdm(range(max_iters), desc="k-means", disable=not self.verbose):
            changed = assign_documents(
                self.documents,
                self.centroids,
                self.assignments,
                distance=self._distance,
            )
            try:
                sizes = update_centroids(
                    self.documents, self.assignments, self.centroids, iteration=i + 1
                )
            except EmptyCluster:
                self.state = RunState.FAILED
                raise
            self.changes.append(changed)
            logger.info("Iteration %d, update %d docs", i + 1, changed)
            if changed == 0:
                self.state = RunState.CONVERGED
                break
        else:
            self.state = RunState.ITERATION_LIMIT_REACHED
            logger.warning("Stopped after %d iterations without converging", max_iters)

        topics = self.print_topics(output_terms) if output_terms > 0 else {}
        return ClusteringResult(
            assignments=self.assignments.copy(),
            centroids=self.centroids.copy(),
            state=self.state,
            iterations=len(self.changes),
            changes=list(self.changes),
            cluster_sizes=sizes,
            topics=topics,
        )

    def print_topics(self, num_terms: int) -> dict[int, list[tuple[str, float]]]:
        """Log the ``num_terms`` heaviest centroid terms of every cluster."""
        topics = top_terms_per_cluster(self.centroids, self.vocabulary, num_terms)
        logger.info("Top terms per cluster:\n%s", format_topics(topics))
        return topics

    def save(self, prefix) -> dict[str, Path]:
        if self.documents is None or self.centroids is None:
            raise RuntimeError("Model not initialized. Run the model before saving.")
        return save_model(prefix, self.documents, self.centroids, self.assignments)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Cluster a line corpus into K-Means topics."
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="dotenv file with KMEANS_* settings",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_config(args.env_file)
    logger.info("Config: %s", cfg.to_dict())
    if cfg.corpus_path is None:
        print(
            "Missing KMEANS_CORPUS: path to a corpus with one document per line.",
            file=sys.stderr,
        )
        return 1

    corpus = LineCorpus.from_file(cfg.corpus_path)
    print(
        f"Loaded {corpus.num_docs():,} docs, {corpus.num_terms():,} terms "
        f"from {cfg.corpus_path}"
    )

    model: TopicModel = KMeansModel(
        corpus,
        num_topics=cfg.topics,
        distance=cfg.distance,
        representation=cfg.representation,
        random_state=cfg.random_state,
        verbose=args.verbose,
    )
    result = model.run(cfg.max_iters, cfg.init_method, cfg.output_terms)
    print(f"K-Means {result.state.value} after {result.iterations} iterations")
    if result.topics:
        print(format_topics(result.topics))

    model.save(cfg.model_prefix)
    print(f"Saved {cfg.model_prefix}.docs, .centroids, .clusters")

    if cfg.report_dir:
        report_md = write_report(
            result, corpus, Path(cfg.report_dir), topn=cfg.output_terms or 10
        )
        print(f"Saved {report_md}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

# src/kmeans_topics/errors.py


class KMeansError(Exception):
    """Base class for failures that end a clustering run."""


class InvalidConfiguration(KMeansError, ValueError):
    pass


class EmptyCluster(KMeansError, RuntimeError):
    def __init__(self, cluster_id: int, iteration: int | None = None):
        self.cluster_id = cluster_id
        self.iteration = iteration
        where = f" at iteration {iteration}" if iteration is not None else ""
        super().__init__(f"cluster {cluster_id} has no documents{where}")


class TermOutOfRange(KMeansError, IndexError):
    def __init__(self, doc_id: int, term_id: int, num_terms: int):
        self.doc_id = doc_id
        self.term_id = term_id
        super().__init__(
            f"doc {doc_id}: term id {term_id} outside vocabulary of {num_terms}"
        )

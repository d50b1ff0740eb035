# src/kmeans_topics/pipeline/report.py
import heapq
import logging
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from kmeans_topics.pipeline.features import row
from kmeans_topics.providers import Vocabulary

logger = logging.getLogger(__name__)

DOCS_SUFFIX = ".docs"
CENTROIDS_SUFFIX = ".centroids"
CLUSTERS_SUFFIX = ".clusters"


def top_terms(
    centroid: np.ndarray,
    vocabulary: Vocabulary,
    topn: int,
) -> list[tuple[str, float]]:
    # bounded max-heap over (weight, term_id); equal weights favour the higher id
    pairs = ((float(w), t_id) for t_id, w in enumerate(centroid))
    best = heapq.nlargest(topn, pairs)
    return [(vocabulary.term_text(t_id), w) for w, t_id in best]


def top_terms_per_cluster(
    centroids: np.ndarray,
    vocabulary: Vocabulary,
    topn: int,
) -> dict[int, list[tuple[str, float]]]:
    return {c_id: top_terms(c, vocabulary, topn) for c_id, c in enumerate(centroids)}


def format_topics(topics: dict[int, list[tuple[str, float]]]) -> str:
    lines = []
    for c_id in sorted(topics):
        lines.append(f"Cluster {c_id + 1}")
        lines.extend(f"{term}\t{weight:g}" for term, weight in topics[c_id])
        lines.append("")
    return "\n".join(lines)


def _format_row(values) -> str:
    # repr() of a Python float round-trips exactly
    return " ".join(repr(float(v)) for v in values)


def save_documents(path, documents) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for d_id in range(documents.shape[0]):
            f.write(_format_row(row(documents, d_id)) + "\n")


def save_centroids(path, centroids: np.ndarray) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for centroid in centroids:
            f.write(_format_row(centroid) + "\n")


def save_clusters(path, assignments: np.ndarray) -> None:
    rows = pd.DataFrame(
        {
            "doc_id": np.arange(len(assignments), dtype=int),
            "cluster_id": np.asarray(assignments, dtype=int),
        }
    )
    rows.to_csv(path, sep=" ", header=False, index=False, lineterminator="\n")


def save_model(
    prefix,
    documents,
    centroids: np.ndarray,
    assignments: np.ndarray,
) -> dict[str, Path]:
    """Write ``<prefix>.docs``, ``<prefix>.centroids`` and ``<prefix>.clusters``."""
    prefix = str(prefix)
    paths = {
        "docs": Path(prefix + DOCS_SUFFIX),
        "centroids": Path(prefix + CENTROIDS_SUFFIX),
        "clusters": Path(prefix + CLUSTERS_SUFFIX),
    }
    paths["docs"].parent.mkdir(parents=True, exist_ok=True)
    save_documents(paths["docs"], documents)
    save_centroids(paths["centroids"], centroids)
    save_clusters(paths["clusters"], assignments)
    logger.info("Saved model to %s.{docs,centroids,clusters}", prefix)
    return paths


def load_centroids(path) -> np.ndarray:
    return np.loadtxt(path, dtype=np.float64, ndmin=2)


def load_clusters(path) -> np.ndarray:
    rows = pd.read_csv(path, sep=" ", header=None, names=["doc_id", "cluster_id"])
    return rows.sort_values("doc_id")["cluster_id"].to_numpy()


def plot_cluster_sizes(assignments, path_png: Path, num_topics: int | None = None):
    counts = pd.Series(assignments).value_counts().sort_index()
    if num_topics is not None:
        counts = counts.reindex(range(num_topics), fill_value=0)
    plt.figure(figsize=(10, 5))
    counts.plot(kind="bar")
    plt.title("Cluster sizes")
    plt.xlabel("Cluster")
    plt.ylabel("Docs")
    plt.tight_layout()
    plt.savefig(path_png, dpi=160)
    plt.close()


def write_report(
    result,
    vocabulary: Vocabulary,
    out_dir: Path,
    topn: int = 10,
) -> Path:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    plot_path = out_dir / "cluster_sizes.png"
    plot_cluster_sizes(result.assignments, plot_path, num_topics=len(result.centroids))

    topics = result.topics or top_terms_per_cluster(result.centroids, vocabulary, topn)
    md_lines = ["# K-Means Topics Report\n"]
    md_lines.append(
        f"- Documents: **{len(result.assignments):,}**  \n"
        f"- Clusters: **{len(result.centroids)}**  \n"
        f"- Iterations: **{result.iterations}** ({result.state.value})\n"
    )
    md_lines.append(f"![cluster sizes]({plot_path.name})\n")
    md_lines.append("## Top Terms by Cluster\n")
    for c_id in sorted(topics):
        md_lines.append(f"### Cluster {c_id + 1} ({result.cluster_sizes[c_id]} docs)\n")
        md_lines.append("`" + "`, `".join(term for term, _ in topics[c_id]) + "`\n")

    report_md = out_dir / "topics_report.md"
    report_md.write_text("\n".join(md_lines), encoding="utf-8")
    return report_md

# src/kmeans_topics/config.py
"""
Run parameters for the K-Means topic tool.

Values come from ``KMEANS_*`` environment variables, optionally loaded from
a ``.env`` file first.
"""

import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from kmeans_topics.errors import InvalidConfiguration
from kmeans_topics.pipeline.distance import DISTANCES
from kmeans_topics.pipeline.features import REPRESENTATIONS
from kmeans_topics.pipeline.seeding import INIT_METHODS

ENV_PREFIX = "KMEANS_"


@dataclass
class KMeansConfig:
    max_iters: int = 1000
    topics: int = 2
    init_method: str = "kmeans++"  # or "randk"
    output_terms: int = 8
    model_prefix: str = "kmeans-model"

    corpus_path: Optional[str] = None  # one document per line
    random_state: Optional[int] = None
    representation: str = "dense"
    distance: str = "euclidean"
    report_dir: Optional[str] = None

    def validate(self) -> "KMeansConfig":
        if self.max_iters < 1:
            raise InvalidConfiguration(
                f"max_iters must be positive, got {self.max_iters}"
            )
        if self.topics < 1:
            raise InvalidConfiguration(f"topics must be positive, got {self.topics}")
        if self.output_terms < 0:
            raise InvalidConfiguration(
                f"output_terms must be >= 0, got {self.output_terms}"
            )
        if self.init_method not in INIT_METHODS:
            raise InvalidConfiguration(
                f"unknown init method {self.init_method!r}; "
                f"expected one of {INIT_METHODS}"
            )
        if self.representation not in REPRESENTATIONS:
            raise InvalidConfiguration(
                f"unknown representation {self.representation!r}; "
                f"expected one of {REPRESENTATIONS}"
            )
        if self.distance not in DISTANCES:
            raise InvalidConfiguration(
                f"unknown distance {self.distance!r}; "
                f"expected one of {sorted(DISTANCES)}"
            )
        return self

    def to_dict(self) -> dict:
        return asdict(self)


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidConfiguration(
            f"{ENV_PREFIX + name} must be an integer, got {raw!r}"
        ) from None


def load_config(env_file: Optional[Path] = None) -> KMeansConfig:
    """Build a validated config from the environment (and ``env_file`` if given)."""
    # existing environment variables win over the file
    load_dotenv(dotenv_path=env_file if env_file is not None else Path(".env"))

    defaults = KMeansConfig()
    cfg = KMeansConfig(
        max_iters=_env_int("MAX_ITERS", defaults.max_iters),
        topics=_env_int("TOPICS", defaults.topics),
        init_method=os.getenv(ENV_PREFIX + "INIT_METHOD", defaults.init_method),
        output_terms=_env_int("OUTPUT_TERMS", defaults.output_terms),
        model_prefix=os.getenv(ENV_PREFIX + "MODEL_PREFIX", defaults.model_prefix),
        corpus_path=os.getenv(ENV_PREFIX + "CORPUS") or None,
        random_state=_env_int("RANDOM_STATE", None),
        representation=os.getenv(
            ENV_PREFIX + "REPRESENTATION", defaults.representation
        ),
        distance=os.getenv(ENV_PREFIX + "DISTANCE", defaults.distance),
        report_dir=os.getenv(ENV_PREFIX + "REPORT_DIR") or None,
    )
    return cfg.validate()

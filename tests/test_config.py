import os

import pytest

from kmeans_topics.config import KMeansConfig, load_config
from kmeans_topics.errors import InvalidConfiguration


NAMES = (
    "MAX_ITERS", "TOPICS", "INIT_METHOD", "OUTPUT_TERMS", "MODEL_PREFIX",
    "CORPUS", "RANDOM_STATE", "REPRESENTATION", "DISTANCE", "REPORT_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in NAMES:
        monkeypatch.delenv("KMEANS_" + name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in NAMES:
        os.environ.pop("KMEANS_" + name, None)


def test_defaults():
    cfg = load_config()
    assert cfg == KMeansConfig()
    assert cfg.init_method == "kmeans++"
    assert cfg.corpus_path is None
    assert cfg.to_dict()["init_method"] == "kmeans++"
    assert cfg.to_dict()["max_iters"] == 1000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("KMEANS_TOPICS", "12")
    monkeypatch.setenv("KMEANS_INIT_METHOD", "randk")
    monkeypatch.setenv("KMEANS_RANDOM_STATE", "7")
    monkeypatch.setenv("KMEANS_REPRESENTATION", "sparse")
    cfg = load_config()
    assert cfg.topics == 12
    assert cfg.init_method == "randk"
    assert cfg.random_state == 7
    assert cfg.representation == "sparse"


def test_env_file(tmp_path):
    env = tmp_path / "kmeans.env"
    env.write_text(
        "KMEANS_MAX_ITERS=25\nKMEANS_OUTPUT_TERMS=0\nKMEANS_CORPUS=docs.txt\n"
    )
    cfg = load_config(env)
    assert cfg.max_iters == 25
    assert cfg.output_terms == 0
    assert cfg.corpus_path == "docs.txt"


@pytest.mark.parametrize(
    "name, value",
    [
        ("TOPICS", "many"),
        ("TOPICS", "0"),
        ("MAX_ITERS", "-1"),
        ("OUTPUT_TERMS", "-2"),
        ("INIT_METHOD", "kmeans"),
        ("DISTANCE", "manhattan"),
        ("REPRESENTATION", "ragged"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv("KMEANS_" + name, value)
    with pytest.raises(InvalidConfiguration):
        load_config()

import numpy as np
import pytest

from kmeans_topics.providers import InMemoryCorpus


class FixedPicks(np.random.RandomState):
    """RandomState whose randint() replays a fixed list of document ids."""

    def __init__(self, picks):
        super().__init__(0)
        self._picks = list(picks)

    def randint(self, low, high=None, size=None, dtype=int):
        if size is None:
            return self._picks.pop(0)
        out = np.array(self._picks[:size])
        del self._picks[:size]
        return out


@pytest.fixture
def fixed_picks():
    return FixedPicks


@pytest.fixture
def two_topic_corpus():
    return InMemoryCorpus.from_rows(["a", "b"], [[1, 0], [0, 1], [1, 0], [0, 1]])

import pytest

from minset.codec import pack
from minset.corpus import build_store
from minset.reduce import Trace


def make_sample(coverage: dict[str, set[int]]) -> dict[str, Trace]:
    return {trace_id: Trace(trace_id, len(blocks), pack(blocks)) for trace_id, blocks in coverage.items()}


EXAMPLE_CORPUS = {
    "T1": {1, 2, 3},
    "T2": {3, 4},
    "T3": {4, 5, 6},
    "T4": {1, 2, 3, 4, 5, 6},
}


@pytest.fixture
def example_sample():
    return make_sample(EXAMPLE_CORPUS)


@pytest.fixture
def store():
    """Corpus of 20 traces where trace i covers blocks i..i+4."""
    return build_store({f"id{i:02d}": set(range(i, i + 5)) for i in range(20)})

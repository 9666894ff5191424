import logging
import math
import random

from .errors import InvalidArgument, StoreConsistencyError, TraceNotFound
from .reduce import Sample, Trace
from .store import CorpusStore

logger = logging.getLogger(__name__)


class Sampler:
    def __init__(self, store: CorpusStore, rng: random.Random | None = None):
        self.store = store
        self.rng = rng if rng is not None else random.Random()

    def sample(self, fraction: float) -> Sample:
        """
        Draw floor(total * fraction) distinct traces uniformly without replacement.
        A fraction of exactly 1 returns the whole corpus.
        """
        if not 0 < fraction <= 1:
            raise InvalidArgument(f"fraction must be in (0, 1], got {fraction}")
        total = self.store.total_count()
        ids = self.store.list_ids()
        if len(ids) != total:
            raise StoreConsistencyError(f"store reports {total} traces but lists {len(ids)} ids")
        count = math.floor(total * fraction)
        selected = self.rng.sample(ids, count)
        sample: Sample = {}
        for trace_id in selected:
            try:
                covered = self.store.get_covered_count(trace_id)
                raw = self.store.get_raw_coverage(trace_id)
            except TraceNotFound as e:
                raise StoreConsistencyError(f"corpus corrupted: {e}") from e
            sample[trace_id] = Trace(trace_id, covered, raw)
        logger.debug(f'Sampled {len(sample)} of {total} traces (fraction {fraction})')
        return sample


def sample_fraction(store: CorpusStore, fraction: float, rng: random.Random | None = None) -> Sample:
    return Sampler(store, rng).sample(fraction)

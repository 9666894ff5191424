"""
Compare the reducers over samples of geometrically increasing size.

All samples are drawn up front, so the store is only read while sampling.
Each sample is then reduced greedily, iteratively, and iteratively followed
by a greedy refinement pass.
"""
import json
import logging
import random
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, asdict

from tqdm import tqdm

from .errors import InvalidArgument
from .reduce import Sample, greedy_reduce, iterative_reduce, refine
from .sampler import Sampler
from .store import CorpusStore

logger = logging.getLogger(__name__)

STAGES = ('Greedy', 'Iterative', 'Iterative + Greedy Refine')


@dataclass
class EvaluationRow:
    sample_size: int
    corpus_size: int
    stage: str
    minset_size: int
    coverage_size: int
    elapsed: float


def fractions(start: float) -> list[float]:
    if not 0 < start <= 1:
        raise InvalidArgument(f"start fraction must be in (0, 1], got {start}")
    result = []
    fraction = start
    while fraction <= 1:
        result.append(fraction)
        fraction *= 2
    return result


def run_sample(sample: Sample, corpus_size: int, seed: int | None = None) -> list[EvaluationRow]:
    greedy = greedy_reduce(sample)
    iterative = iterative_reduce(sample, random.Random(seed))
    refined = refine(iterative)
    rows = []
    for stage, result in zip(STAGES, (greedy, iterative, refined)):
        rows.append(EvaluationRow(
            sample_size=len(sample),
            corpus_size=corpus_size,
            stage=stage,
            minset_size=len(result.minset),
            coverage_size=len(result.coverage),
            elapsed=result.elapsed,
        ))
        logger.info(f'{stage}: sample {len(sample)}, minset {len(result.minset)}, '
                    f'covers {len(result.coverage)} ({result.elapsed:.3f}s)')
    return rows


def evaluate(store: CorpusStore, start_fraction: float = 1 / 128, seed: int | None = None,
             jobs: int = 1, progress: bool = False) -> list[EvaluationRow]:
    if jobs < 1:
        raise InvalidArgument(f"jobs must be positive, got {jobs}")
    rng = random.Random(seed)
    corpus_size = store.total_count()
    sampler = Sampler(store, rng)
    samples = [sampler.sample(f) for f in fractions(start_fraction)]
    logger.info(f'Collected {len(samples)} samples, starting work')
    seeds = [rng.randrange(2**32) for _ in samples]

    per_sample: list[list[EvaluationRow]] = [[] for _ in samples]
    if jobs == 1:
        for i, (sample, sample_seed) in enumerate(tqdm(list(zip(samples, seeds)), desc='Reducing',
                                                       disable=not progress)):
            per_sample[i] = run_sample(sample, corpus_size, sample_seed)
    else:
        with ProcessPoolExecutor(max_workers=jobs) as executor:
            futures = {}
            for i, (sample, sample_seed) in enumerate(zip(samples, seeds)):
                futures[executor.submit(run_sample, sample, corpus_size, sample_seed)] = i
            with tqdm(total=len(futures), desc='Reducing', disable=not progress) as bar:
                for future in as_completed(futures):
                    per_sample[futures[future]] = future.result()
                    bar.update()
    return [row for rows in per_sample for row in rows]


def format_report(rows: list[EvaluationRow]) -> list[str]:
    lines = []
    for row in rows:
        if row.stage == STAGES[0]:
            lines.append(f"Random sample of {row.sample_size} from {row.corpus_size}")
        lines.append(f"{row.stage}: This sample Minset {row.minset_size}, covers {row.coverage_size}")
        lines.append(f"Elapsed: {row.elapsed:.6f} secs")
    return lines


def dump_rows(rows: list[EvaluationRow], path: str):
    with open(path, 'w') as f:
        json.dump([asdict(row) for row in rows], f, indent=2)

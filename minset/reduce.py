"""
Set-cover approximations that shrink a sample of traces to a minset.

Both reducers return a ReductionResult holding the chosen traces, the blocks
they cover, and per entry the blocks credited to it: the blocks it added when
the greedy reducer picked it, or its unique blocks for the iterative reducer.
"""
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Mapping

from . import codec
from .errors import InvalidArgument

logger = logging.getLogger(__name__)

ALGORITHMS = ('greedy', 'iterative', 'refine')


@dataclass(frozen=True)
class Trace:
    id: str
    # Block count as declared by the store; only used for ordering.
    covered: int
    raw: bytes = field(repr=False)

    def blocks(self) -> frozenset[int]:
        return codec.unpack(self.raw)


Sample = dict[str, Trace]


@dataclass
class ReductionResult:
    minset: dict[str, Trace] = field(default_factory=dict)
    coverage: set[int] = field(default_factory=set)
    contributions: dict[str, frozenset[int]] = field(default_factory=dict)
    elapsed: float = 0.0

    def as_sample(self) -> Sample:
        return dict(self.minset)

    def _insert(self, trace: Trace, contribution: frozenset[int]):
        self.minset[trace.id] = trace
        self.contributions[trace.id] = contribution
        self.coverage |= contribution


def greedy_reduce(sample: Mapping[str, Trace]) -> ReductionResult:
    """
    Repeatedly take the candidate covering the most blocks not yet covered.

    Candidates are first ordered by their declared count so the largest one
    can be taken without decoding anything else. Every other candidate is then
    decoded exactly once and only its shrinking remainder is kept afterwards.
    Ties are broken arbitrarily.
    """
    start = time.time()
    result = ReductionResult()
    candidates = sorted(sample.values(), key=lambda t: t.covered)

    while candidates:
        best = candidates.pop()
        best_blocks = best.blocks()
        if best_blocks:
            result._insert(best, best_blocks)
            break
        logger.debug(f'Dropping {best.id}: covers no blocks')

    pool = [(trace, trace.blocks() - result.coverage) for trace in candidates]
    while pool:
        pool = [(trace, rest) for trace, rest in pool if rest]
        if not pool:
            break
        pool.sort(key=lambda c: len(c[1]))
        best, gained = pool.pop()
        result._insert(best, gained)
        pool = [(trace, rest - gained) for trace, rest in pool]

    result.elapsed = time.time() - start
    logger.debug(f'Greedy: {len(sample)} candidates -> {len(result.minset)} traces, '
                 f'{len(result.coverage)} blocks')
    return result


class IterativeReducer:
    """
    Single-pass reducer; traces can be offered one at a time as they arrive.

    A trace enters the minset either by adding new blocks, or by covering
    the unique blocks of two or more current entries, which it then replaces.
    """

    def __init__(self):
        self.minset: dict[str, Trace] = {}
        self.unique: dict[str, frozenset[int]] = {}
        self.coverage: set[int] = set()

    def _remove(self, trace_ids: list[str]):
        for trace_id in trace_ids:
            del self.minset[trace_id]
            del self.unique[trace_id]

    def _insert(self, trace: Trace, unique: frozenset[int]):
        self.minset[trace.id] = trace
        self.unique[trace.id] = unique

    def offer(self, trace: Trace) -> bool:
        """Process one trace; returns whether it entered the minset."""
        blocks = trace.blocks()
        unique = blocks - self.coverage
        subsumed = [trace_id for trace_id, their_unique in self.unique.items()
                    if their_unique <= blocks]

        if unique:
            self.coverage |= unique
            # Entries whose unique blocks this trace also covers are
            # replaced; at worst this breaks even. Their blocks are credited
            # to this trace so the unique sets keep partitioning coverage.
            self._replace(subsumed, trace, unique)
            return True

        if len(subsumed) > 1:
            self._replace(subsumed, trace, frozenset())
            logger.debug(f'{trace.id} consolidates {len(subsumed)} entries')
            return True

        return False

    def _replace(self, trace_ids: list[str], trace: Trace, unique: frozenset[int]):
        merged = unique.union(*(self.unique[trace_id] for trace_id in trace_ids))
        self._remove(trace_ids)
        self._insert(trace, merged)

    def result(self) -> ReductionResult:
        return ReductionResult(
            minset=dict(self.minset),
            coverage=set(self.coverage),
            contributions=dict(self.unique),
        )


def iterative_reduce(sample: Mapping[str, Trace], rng: random.Random | None = None,
                     shuffle: bool = True) -> ReductionResult:
    start = time.time()
    candidates = list(sample.values())
    if shuffle:
        (rng if rng is not None else random.Random()).shuffle(candidates)
    reducer = IterativeReducer()
    for trace in candidates:
        reducer.offer(trace)
    result = reducer.result()
    result.elapsed = time.time() - start
    logger.debug(f'Iterative: {len(sample)} candidates -> {len(result.minset)} traces, '
                 f'{len(result.coverage)} blocks')
    return result


def refine(result: ReductionResult) -> ReductionResult:
    """Run the greedy reducer over another reducer's minset."""
    return greedy_reduce(result.as_sample())


def reduce_sample(sample: Mapping[str, Trace], algorithm: str,
                  rng: random.Random | None = None) -> ReductionResult:
    match algorithm:
        case 'greedy':
            return greedy_reduce(sample)
        case 'iterative':
            return iterative_reduce(sample, rng)
        case 'refine':
            first = iterative_reduce(sample, rng)
            refined = refine(first)
            refined.elapsed += first.elapsed
            return refined
        case _:
            raise InvalidArgument(f"unknown algorithm {algorithm!r}, expected one of {', '.join(ALGORITHMS)}")

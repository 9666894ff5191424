from .codec import pack, unpack
from .errors import DecodeError, InvalidArgument, MinsetError, StoreConsistencyError, TraceNotFound
from .reduce import IterativeReducer, ReductionResult, Sample, Trace, greedy_reduce, iterative_reduce, refine
from .sampler import Sampler, sample_fraction
from .store import CorpusStore, JsonCorpusStore, MemoryCorpusStore

__version__ = "0.1.0"

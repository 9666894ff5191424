"""
Build a corpus store from coverage collected by fuzzing tools.

Two inputs are understood: a JSON object mapping each trace id to its list
of blocks, and a directory of afl-showmap output files (one trace per file,
one `block:hitcount` line per covered block).
"""
import json
import logging
import os

from tqdm import tqdm

from . import codec
from .errors import InvalidArgument
from .store import MemoryCorpusStore

logger = logging.getLogger(__name__)


def parse_block(token) -> int:
    if isinstance(token, int) and not isinstance(token, bool):
        block = token
    elif isinstance(token, str):
        # Hit counts are irrelevant for presence coverage
        try:
            block = int(token.split(':')[0].strip())
        except ValueError:
            raise InvalidArgument(f"malformed block entry {token!r}") from None
    else:
        raise InvalidArgument(f"malformed block entry {token!r}")
    if block < 0:
        raise InvalidArgument(f"negative block id {block}")
    return block


def load_coverage_json(path: str) -> dict[str, set[int]]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidArgument(f"{path}: not valid JSON: {e}") from e
    except OSError as e:
        raise InvalidArgument(f"cannot read {path}: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidArgument(f"{path}: expected an object mapping trace ids to block lists")
    coverage: dict[str, set[int]] = {}
    for trace_id, blocks in raw.items():
        if not isinstance(blocks, list):
            raise InvalidArgument(f"{path}: coverage of {trace_id!r} is not a list")
        coverage[trace_id] = set(map(parse_block, blocks))
    return coverage


def load_showmap_dir(path: str, progress: bool = False) -> dict[str, set[int]]:
    coverage: dict[str, set[int]] = {}
    files = sorted(f for f in os.listdir(path) if os.path.isfile(os.path.join(path, f)))
    for filename in tqdm(files, desc='Reading coverage', disable=not progress):
        try:
            with open(os.path.join(path, filename), 'r', encoding='utf-8') as f:
                coverage[filename] = set(parse_block(l) for l in f if l.strip())
        except UnicodeDecodeError as e:
            raise InvalidArgument(f"{filename}: not an afl-showmap text file: {e}") from e
        except OSError as e:
            raise InvalidArgument(f"cannot read {filename}: {e}") from e
    return coverage


def build_store(coverage: dict[str, set[int]], progress: bool = False) -> MemoryCorpusStore:
    store = MemoryCorpusStore()
    empty = 0
    for trace_id, blocks in tqdm(coverage.items(), desc='Packing', disable=not progress):
        raw = codec.pack(blocks)
        store.put(trace_id, raw, codec.count(raw))
        if not blocks:
            empty += 1
    if empty:
        logger.warning(f'{empty} traces cover no blocks')
    logger.info(f'Packed {store.total_count()} traces')
    return store

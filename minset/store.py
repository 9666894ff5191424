import base64
import binascii
import json
import logging
import os
from abc import ABC, abstractmethod

from .errors import StoreConsistencyError, TraceNotFound

logger = logging.getLogger(__name__)

TRACE_PREFIX = "trc:"
COVERED_PREFIX = "blk:"


class CorpusStore(ABC):
    """Read access to a corpus of packed coverage traces."""

    @abstractmethod
    def total_count(self) -> int:
        ...

    @abstractmethod
    def list_ids(self) -> list[str]:
        ...

    @abstractmethod
    def get_covered_count(self, trace_id: str) -> int:
        ...

    @abstractmethod
    def get_raw_coverage(self, trace_id: str) -> bytes:
        ...

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class MemoryCorpusStore(CorpusStore):
    """
    Key-value store with two records per trace:
    `trc:<id>` holds the packed coverage and `blk:<id>` the declared block count.
    """

    def __init__(self, records: dict[str, bytes | int] | None = None):
        self.records: dict[str, bytes | int] = dict(records) if records else {}

    def put(self, trace_id: str, raw: bytes, covered: int):
        self.records[f"{TRACE_PREFIX}{trace_id}"] = raw
        self.records[f"{COVERED_PREFIX}{trace_id}"] = covered

    def total_count(self) -> int:
        return sum(1 for k in self.records if k.startswith(TRACE_PREFIX))

    def list_ids(self) -> list[str]:
        return [k.removeprefix(TRACE_PREFIX) for k in self.records if k.startswith(TRACE_PREFIX)]

    def get_covered_count(self, trace_id: str) -> int:
        try:
            value = self.records[f"{COVERED_PREFIX}{trace_id}"]
        except KeyError:
            raise TraceNotFound(trace_id, "covered count") from None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise StoreConsistencyError(f"covered count of {trace_id!r} is not an integer: {value!r}") from None

    def get_raw_coverage(self, trace_id: str) -> bytes:
        try:
            return self.records[f"{TRACE_PREFIX}{trace_id}"]
        except KeyError:
            raise TraceNotFound(trace_id, "coverage") from None


class JsonCorpusStore(MemoryCorpusStore):
    """MemoryCorpusStore persisted as one JSON object, blobs in base64."""

    def __init__(self, path: str):
        self.path = path
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw_records = json.load(f)
        except FileNotFoundError:
            raise StoreConsistencyError(f"corpus store {path} does not exist") from None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StoreConsistencyError(f"corpus store {path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StoreConsistencyError(f"cannot read corpus store {path}: {e}") from e
        if not isinstance(raw_records, dict):
            raise StoreConsistencyError(f"corpus store {path} must hold a JSON object")
        records: dict[str, bytes | int] = {}
        for key, value in raw_records.items():
            if key.startswith(TRACE_PREFIX):
                try:
                    records[key] = base64.b64decode(value, validate=True)
                except (binascii.Error, TypeError) as e:
                    raise StoreConsistencyError(f"{key} in {path} is not base64: {e}") from e
            else:
                records[key] = value
        super().__init__(records)
        logger.debug(f'Loaded {self.total_count()} traces from {path}')

    @staticmethod
    def save(store: MemoryCorpusStore, path: str):
        serializable = {}
        for key, value in store.records.items():
            if key.startswith(TRACE_PREFIX):
                serializable[key] = base64.b64encode(value).decode('ascii')
            else:
                serializable[key] = value
        tmp_path = f"{path}.tmp"
        with open(tmp_path, 'w') as f:
            json.dump(serializable, f)
        os.replace(tmp_path, path)
        logger.info(f'Saved {store.total_count()} traces to {path}')

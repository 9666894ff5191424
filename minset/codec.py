"""
Sparse encoding of coverage sets.

A packed set is a version byte, a LEB128 varint holding the number of ids,
then one varint per id in ascending order: the first id as-is, every later
one as the gap to its predecessor minus one. Memory is proportional to the
number of covered blocks, not to the largest block id.
"""
from typing import Iterable

from .errors import DecodeError, InvalidArgument

FORMAT_VERSION = 0x01
# 10 groups of 7 bits hold any 64-bit id; anything longer is corrupt.
MAX_VARINT_BYTES = 10


def _write_varint(out: bytearray, value: int):
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)


def _read_varint(data: bytes, pos: int) -> tuple[int, int]:
    value = 0
    shift = 0
    for _ in range(MAX_VARINT_BYTES):
        if pos >= len(data):
            raise DecodeError(f"truncated varint at offset {pos}")
        byte = data[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, pos
        shift += 7
    raise DecodeError(f"varint longer than {MAX_VARINT_BYTES} bytes at offset {pos}")


def pack(blocks: Iterable[int]) -> bytes:
    ids = set(blocks)
    for block in ids:
        if not isinstance(block, int) or isinstance(block, bool) or block < 0:
            raise InvalidArgument(f"block ids must be non-negative integers, got {block!r}")
    ids = sorted(ids)
    out = bytearray([FORMAT_VERSION])
    _write_varint(out, len(ids))
    prev = -1
    for block in ids:
        _write_varint(out, block - prev - 1)
        prev = block
    return bytes(out)


def _header(data: bytes) -> tuple[int, int]:
    if not data:
        raise DecodeError("empty coverage blob")
    if data[0] != FORMAT_VERSION:
        raise DecodeError(f"unknown coverage format version {data[0]:#04x}")
    return _read_varint(data, 1)


def unpack(data: bytes) -> frozenset[int]:
    n, pos = _header(data)
    # Every id takes at least one byte, so a larger count is already truncated.
    if n > len(data) - pos:
        raise DecodeError(f"blob declares {n} ids but holds only {len(data) - pos} bytes")
    ids = []
    prev = -1
    for _ in range(n):
        gap, pos = _read_varint(data, pos)
        prev = prev + gap + 1
        ids.append(prev)
    if pos != len(data):
        raise DecodeError(f"{len(data) - pos} trailing bytes after {n} ids")
    return frozenset(ids)


def count(data: bytes) -> int:
    """Number of ids in a packed set, read from the header only."""
    n, _ = _header(data)
    return n

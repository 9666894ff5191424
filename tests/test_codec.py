"""
Tests for the sparse set codec.
"""

import random

import pytest

from minset.codec import FORMAT_VERSION, count, pack, unpack
from minset.errors import DecodeError, InvalidArgument


class TestRoundTrip:

    @pytest.mark.parametrize("blocks", [
        set(),
        {0},
        {127, 128},
        {1, 2, 3, 1000, 2**40},
        set(range(0, 5000, 7)),
    ])
    def test_round_trip(self, blocks):
        assert unpack(pack(blocks)) == blocks

    def test_random_sets(self):
        rng = random.Random(7)
        for _ in range(50):
            blocks = {rng.randrange(2_000_000) for _ in range(rng.randrange(300))}
            assert unpack(pack(blocks)) == blocks

    def test_unpack_is_immutable(self):
        assert isinstance(unpack(pack({1, 2})), frozenset)

    def test_size_follows_set_not_universe(self):
        # A single huge id costs a handful of bytes, not a bitmap
        assert len(pack({10**12})) < 12

    def test_dense_runs_are_one_byte_per_id(self):
        assert len(pack(range(1000))) == 1 + 2 + 1000

    def test_count_reads_header(self):
        assert count(pack(range(300))) == 300
        assert count(pack([])) == 0


class TestInvalidInput:

    @pytest.mark.parametrize("blocks", [[-1], [1, "2"], [1.5], [True]])
    def test_pack_rejects_non_block_ids(self, blocks):
        with pytest.raises(InvalidArgument):
            pack(blocks)

    def test_empty_blob(self):
        with pytest.raises(DecodeError):
            unpack(b"")

    def test_unknown_version(self):
        with pytest.raises(DecodeError):
            unpack(bytes([FORMAT_VERSION + 1, 0]))

    def test_truncated(self):
        data = pack({5, 300, 70000})
        for end in range(len(data)):
            with pytest.raises(DecodeError):
                unpack(data[:end])

    def test_trailing_bytes(self):
        with pytest.raises(DecodeError):
            unpack(pack({1, 2}) + b"\x00")

    def test_declared_count_too_large(self):
        with pytest.raises(DecodeError):
            unpack(bytes([FORMAT_VERSION, 0x7F, 0x01]))

    def test_overlong_varint(self):
        with pytest.raises(DecodeError):
            unpack(bytes([FORMAT_VERSION, 0x01]) + b"\xff" * 11 + b"\x01")

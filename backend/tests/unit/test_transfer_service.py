"""Tests for TransferService."""

import json

import pytest

from schemas.holding import TransferChunk
from services.transfer_service import TransferError, TransferService

RECORDS = [
    {"code": "7203", "shares": "100", "name": "トヨタ自動車"},
    {"code": "AAPL", "shares": "10", "market": "foreign"},
    {"code": "0331418A", "shares": "10000", "instrument_type": "fund"},
]


class TestSplit:
    def test_chunk_numbering(self):
        chunks = TransferService.split(RECORDS, chunk_size=50)

        assert [c.chunk for c in chunks] == list(range(1, len(chunks) + 1))
        assert all(c.total == len(chunks) for c in chunks)
        assert all(len(c.data) <= 50 for c in chunks)

    def test_single_chunk_when_small(self):
        chunks = TransferService.split(RECORDS)
        assert len(chunks) == 1
        assert json.loads(chunks[0].data) == RECORDS

    def test_empty_list_is_one_chunk(self):
        chunks = TransferService.split([])
        assert [(c.chunk, c.total, c.data) for c in chunks] == [(1, 1, "[]")]

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            TransferService.split(RECORDS, chunk_size=0)


class TestAssemble:
    def test_reassembles_out_of_order(self):
        chunks = TransferService.split(RECORDS, chunk_size=40)
        assert TransferService.assemble(list(reversed(chunks))) == RECORDS

    def test_missing_chunk_named(self):
        chunks = TransferService.split(RECORDS, chunk_size=40)
        with pytest.raises(TransferError, match="Missing chunks: 2"):
            TransferService.assemble([c for c in chunks if c.chunk != 2])

    def test_duplicate_chunk(self):
        chunks = TransferService.split(RECORDS, chunk_size=40)
        with pytest.raises(TransferError, match="Duplicate chunk 1"):
            TransferService.assemble([chunks[0], chunks[0], *chunks[1:]])

    def test_inconsistent_totals(self):
        chunks = [TransferChunk(data="[", chunk=1, total=2), TransferChunk(data="]", chunk=2, total=3)]
        with pytest.raises(TransferError, match="total"):
            TransferService.assemble(chunks)

    def test_chunk_beyond_total(self):
        with pytest.raises(TransferError, match="exceeds total"):
            TransferService.assemble([TransferChunk(data="[]", chunk=2, total=1)])

    def test_no_chunks(self):
        with pytest.raises(TransferError):
            TransferService.assemble([])

    def test_invalid_json(self):
        with pytest.raises(TransferError, match="not valid JSON"):
            TransferService.assemble([TransferChunk(data="[{", chunk=1, total=1)])

    def test_payload_must_be_list(self):
        with pytest.raises(TransferError, match="not a list"):
            TransferService.assemble([TransferChunk(data='{"a": 1}', chunk=1, total=1)])

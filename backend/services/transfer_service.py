"""Chunked transfer encoding of the holdings list.

The export is split into fixed-size text chunks small enough for a QR
code each; the receiving side reassembles them in order.
"""

import json
import logging
import math
from typing import Any

from schemas.holding import TransferChunk

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1000


class TransferError(ValueError):
    """Raised when chunks cannot be reassembled into a holdings list."""


class TransferService:
    @staticmethod
    def split(records: list[dict[str, Any]], chunk_size: int = CHUNK_SIZE) -> list[TransferChunk]:
        """Serialize records and cut the JSON into 1-based chunks."""
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        payload = json.dumps(records, ensure_ascii=False, separators=(",", ":"))
        total = max(1, math.ceil(len(payload) / chunk_size))
        return [
            TransferChunk(
                data=payload[i * chunk_size:(i + 1) * chunk_size],
                chunk=i + 1,
                total=total,
            )
            for i in range(total)
        ]

    @staticmethod
    def assemble(chunks: list[TransferChunk]) -> list[dict[str, Any]]:
        """Join chunks (in any order) back into the record list.

        Raises:
            TransferError: On inconsistent totals, missing or duplicate
                           chunks, or a payload that is not a JSON array.
        """
        if not chunks:
            raise TransferError("No chunks provided")

        totals = {c.total for c in chunks}
        if len(totals) != 1:
            raise TransferError("Chunks disagree on the total count")
        total = totals.pop()

        by_number: dict[int, str] = {}
        for chunk in chunks:
            if chunk.chunk > total:
                raise TransferError(f"Chunk {chunk.chunk} exceeds total {total}")
            if chunk.chunk in by_number:
                raise TransferError(f"Duplicate chunk {chunk.chunk}")
            by_number[chunk.chunk] = chunk.data

        missing = [n for n in range(1, total + 1) if n not in by_number]
        if missing:
            raise TransferError(f"Missing chunks: {', '.join(str(n) for n in missing)}")

        payload = "".join(by_number[n] for n in range(1, total + 1))
        try:
            records = json.loads(payload)
        except ValueError as e:
            raise TransferError("Reassembled data is not valid JSON") from e
        if not isinstance(records, list):
            raise TransferError("Reassembled data is not a list of holdings")

        logger.info("Reassembled %d records from %d chunks", len(records), total)
        return records

from __future__ import annotations

from ._codec import MISSING_TOKEN, EncodeResult, encode_genotype, malformed_token
from ._convert import convert, merge_shards, partition_rows
from ._errors import IncompleteShardError, InvalidGridConfigError, TruncatedGridError
from ._grid import cell_offset, cell_offsets, int_to_char, read_entry, write_grid
from ._tables import ReferenceTables
from ._worker import ConversionWorker, WorkerResult

__all__ = [
    "ConversionWorker",
    "WorkerResult",
    "ReferenceTables",
    "convert",
    "merge_shards",
    "partition_rows",
    "encode_genotype",
    "EncodeResult",
    "malformed_token",
    "MISSING_TOKEN",
    "cell_offset",
    "cell_offsets",
    "read_entry",
    "write_grid",
    "int_to_char",
    "InvalidGridConfigError",
    "TruncatedGridError",
    "IncompleteShardError",
]

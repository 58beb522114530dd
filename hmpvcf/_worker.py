from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from ._codec import MISSING_TOKEN, encode_genotype
from ._errors import InvalidGridConfigError
from ._grid import Codec, cell_offset, int_to_char, read_entry
from ._tables import ReferenceTables


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of one :class:`ConversionWorker` run."""

    start_line: int
    end_line: int
    rows_written: int
    """Number of rows fully written to the shard."""
    n_missing: int = 0
    """Number of blank cells."""
    n_malformed: int = 0
    """Number of cells replaced by the malformed fallback token."""
    error: str | None = None
    """Message of the I/O error that aborted the worker, if any."""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def complete(self) -> bool:
        """Whether the shard holds every row of the range."""
        return self.ok and self.rows_written == self.end_line - self.start_line


class ConversionWorker:
    """Converts a contiguous range of rows of a normalized HapMap grid to VCF genotype lines.

    The output shard holds one line per row: the row's pre-rendered header followed by one
    tab-separated genotype token per sample column. Shards are meant to be concatenated in
    row order once every worker has finished, see :func:`hmpvcf.merge_shards`.
    """

    input_path: Path
    """Path to the normalized grid."""
    output_path: Path
    """Path of the shard this worker writes."""
    start_line: int
    """First row to convert."""
    end_line: int
    """Row to stop at, exclusive."""
    total_columns: int
    """Number of sample columns in every row of the grid."""
    tables: ReferenceTables
    ploidy: int
    """Number of allele characters per cell."""
    codec: Codec
    """Maps raw grid bytes to allele symbols."""
    _partial: list[str]
    """Tokens of the row being converted, rewritten in full for every row."""

    def __init__(
        self,
        input_path: str | Path,
        output_path: str | Path,
        start_line: int,
        end_line: int,
        total_columns: int,
        tables: ReferenceTables,
        ploidy: int,
        codec: Codec = int_to_char,
    ):
        """Create a conversion worker.

        Parameters
        ----------
        input_path
            Path to the normalized grid.
        output_path
            Path of the output shard. Overwritten if it exists.
        start_line
            First row to convert.
        end_line
            Row to stop at, exclusive.
        total_columns
            Number of sample columns in every row of the grid.
        tables
            Allele catalog, strand directions and line headers for every row of the grid.
        ploidy
            Number of allele characters per cell, at least 1.
        codec
            Maps a raw byte of the grid to its allele symbol.
        """
        if ploidy < 1:
            raise InvalidGridConfigError(f"Ploidy must be at least 1, got {ploidy}.")
        if start_line < 0 or end_line < start_line:
            raise InvalidGridConfigError(
                f"Invalid row range [{start_line}, {end_line})."
            )
        if total_columns < 0:
            raise InvalidGridConfigError(
                f"Number of columns must be non-negative, got {total_columns}."
            )
        if end_line > tables.n_rows:
            raise InvalidGridConfigError(
                f"Row range [{start_line}, {end_line}) exceeds the {tables.n_rows} rows of the line header table."
            )

        self.input_path = Path(input_path)
        self.output_path = Path(output_path)
        self.start_line = start_line
        self.end_line = end_line
        self.total_columns = total_columns
        self.tables = tables
        self.ploidy = ploidy
        self.codec = codec
        self._partial = [MISSING_TOKEN] * total_columns

    @property
    def n_rows(self) -> int:
        return self.end_line - self.start_line

    def __call__(self) -> WorkerResult:
        return self.run()

    def run(self) -> WorkerResult:
        """Convert every row in the range and write the shard.

        An I/O error aborts the worker: it is logged, the remaining rows are skipped and the
        shard is left truncated. Check :attr:`WorkerResult.complete` before merging.
        """
        logger.debug(
            f"Converting rows [{self.start_line}, {self.end_line}) of {self.input_path} to {self.output_path}."
        )
        rows_written = 0
        n_missing = 0
        n_malformed = 0
        try:
            with (
                open(self.input_path, "rb") as grid,
                open(self.output_path, "w", encoding="utf-8", newline="") as out,
            ):
                for row in range(self.start_line, self.end_line):
                    strand = self.tables.strand(row)
                    alleles = self.tables.allele(row)
                    for col in range(self.total_columns):
                        offset = cell_offset(row, col, self.total_columns, self.ploidy)
                        entry = read_entry(grid, offset, self.ploidy, self.codec)
                        result = encode_genotype(entry, self.ploidy, strand, alleles)
                        if result.status == "missing":
                            n_missing += 1
                            logger.debug(
                                f"Entry at row {row}, column {col} contained no data."
                            )
                        elif result.status == "malformed":
                            n_malformed += 1
                            logger.warning(
                                f"Skipping entry {entry!r} at row {row}, column {col}. Possible malformed HMP file, "
                                "the entry doesn't match the ploidy or the row is out of range of collected data."
                            )
                        self._partial[col] = result.token

                    out.write(self.tables.header(row))
                    out.write("\t".join(self._partial))
                    out.write("\n")
                    rows_written += 1
        except OSError as e:
            logger.exception(
                f"Error accessing files in conversion worker for rows [{self.start_line}, {self.end_line}) "
                f"after {rows_written} rows: {e}"
            )
            return WorkerResult(
                self.start_line,
                self.end_line,
                rows_written,
                n_missing,
                n_malformed,
                error=f"{type(e).__name__}: {e}",
            )

        logger.debug(
            f"Finished rows [{self.start_line}, {self.end_line}): {n_missing} missing and {n_malformed} malformed entries."
        )
        return WorkerResult(
            self.start_line, self.end_line, rows_written, n_missing, n_malformed
        )

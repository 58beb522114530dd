from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger


@dataclass(frozen=True, init=False)
class ReferenceTables:
    """Per-row reference data shared read-only by every conversion worker.

    All three tables are indexed by row. The number of rows is the length of the
    header table; a catalog or strand table that is shorter than that marks the
    rows it doesn't cover as malformed rather than failing the run.
    """

    alleles: tuple[str, ...]
    """Comma-separated allele symbols per row, e.g. :code:`"A,G"`."""
    strands: tuple[str, ...]
    """Strand flag per row. :code:`+` is read as-is, anything else is reversed."""
    headers: tuple[str, ...]
    """Pre-rendered VCF line header per row, including the separator before the first sample.
    The first entry also carries the file header."""

    def __init__(
        self,
        alleles: Iterable[str],
        strands: Iterable[str],
        headers: Iterable[str],
    ):
        object.__setattr__(self, "alleles", tuple(alleles))
        object.__setattr__(self, "strands", tuple(strands))
        object.__setattr__(self, "headers", tuple(headers))

        if len(self.alleles) < self.n_rows or len(self.strands) < self.n_rows:
            logger.warning(
                f"Reference tables cover {len(self.alleles)} allele and {len(self.strands)} strand rows "
                f"for {self.n_rows} header rows. Uncovered rows will be written as missing."
            )

    @property
    def n_rows(self) -> int:
        return len(self.headers)

    def __len__(self) -> int:
        return self.n_rows

    def allele(self, row: int) -> str | None:
        return self.alleles[row] if 0 <= row < len(self.alleles) else None

    def strand(self, row: int) -> str | None:
        return self.strands[row] if 0 <= row < len(self.strands) else None

    def header(self, row: int) -> str:
        return self.headers[row]

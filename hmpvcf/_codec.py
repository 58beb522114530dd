from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from ._types import MISSING, PLUS_STRAND

MISSING_TOKEN = "./."
"""Token for a blank cell. Always 2 wide regardless of ploidy, unlike :func:`malformed_token`."""

NULL_ALLELES = frozenset({".", "-"})
"""Symbols that always encode as :code:`.` even if the catalog lists them."""

Status = Literal["ok", "missing", "malformed"]


@dataclass(frozen=True)
class EncodeResult:
    token: str
    """The VCF genotype token, e.g. :code:`"0/1"`."""
    status: Status = "ok"
    """:code:`"missing"` for blank cells, :code:`"malformed"` when the cell or the row's
    reference data doesn't fit the configured ploidy."""

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def malformed_token(ploidy: int) -> str:
    """:code:`ploidy` dots joined by :code:`/`, e.g. :code:`"././."` for triploid."""
    return "/".join([MISSING] * ploidy)


def order_call(entry: str, strand: str) -> tuple[str, ...]:
    """Split an entry into single symbols, reversed unless the strand is :code:`+`."""
    if strand == PLUS_STRAND:
        return tuple(entry)
    return tuple(reversed(entry))


def allele_index(symbol: str, catalog: Sequence[str]) -> str:
    """Index of the first catalog allele equal to :code:`symbol` ignoring case, or :code:`.`."""
    symbol = symbol.lower()
    for i, allele in enumerate(catalog):
        if allele.lower() == symbol:
            return str(i)
    return MISSING


def encode_genotype(
    entry: str | None,
    ploidy: int,
    strand: str | None,
    alleles: str | None,
) -> EncodeResult:
    """Encode one raw HapMap cell as a VCF genotype token.

    Parameters
    ----------
    entry
        Decoded characters of the cell, in the order they were read.
    ploidy
        Configured number of allele copies per call.
    strand
        Strand flag of the row, or None if the strand table has no entry for it.
    alleles
        Comma-separated allele catalog of the row, or None if there is none.
        Position in the catalog is the VCF allele index.

    Returns
    -------
        The token and whether the cell was ok, missing or malformed.
    """
    if entry is None or not entry.strip():
        return EncodeResult(MISSING_TOKEN, "missing")

    if len(entry) != ploidy or strand is None or alleles is None:
        return EncodeResult(malformed_token(ploidy), "malformed")

    call = order_call(entry, strand)
    catalog = alleles.split(",")
    codes = [
        MISSING if symbol in NULL_ALLELES else allele_index(symbol, catalog)
        for symbol in call
    ]
    return EncodeResult("/".join(codes))

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._worker import WorkerResult


class InvalidGridConfigError(ValueError): ...


class TruncatedGridError(OSError): ...


class IncompleteShardError(RuntimeError):
    """Raised when one or more workers did not write their whole row range.

    Attributes
    ----------
    results
        The results of every worker, in row order.
    """

    results: list[WorkerResult]

    def __init__(self, message: str, results: list[WorkerResult]):
        super().__init__(message)
        self.results = results

    @property
    def failed(self) -> list[WorkerResult]:
        return [r for r in self.results if not r.complete]

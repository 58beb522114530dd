from __future__ import annotations

import shutil
from pathlib import Path
from tempfile import TemporaryDirectory

import joblib
import numpy as np
from loguru import logger
from natsort import natsorted
from numpy.typing import NDArray
from tqdm.auto import tqdm

from ._errors import IncompleteShardError
from ._grid import Codec, int_to_char
from ._tables import ReferenceTables
from ._worker import ConversionWorker, WorkerResult


def partition_rows(n_rows: int, n_workers: int) -> NDArray[np.int64]:
    """Split :code:`[0, n_rows)` into contiguous, disjoint row ranges.

    Range sizes differ by at most one, larger ranges first. :code:`n_workers` is clamped
    so that every range is non-empty, except when there are no rows at all.

    Returns
    -------
        Shape: :code:`(workers, 2)`. Start and exclusive end row of each range.
    """
    n_workers = max(1, min(n_workers, max(n_rows, 1)))
    lengths = np.full(n_workers, n_rows // n_workers, np.int64)
    lengths[: n_rows % n_workers] += 1
    ends = lengths.cumsum()
    return np.stack([ends - lengths, ends], axis=1)


def merge_shards(
    shard_dir: str | Path, out_path: str | Path, progress: bool = False
) -> int:
    """Concatenate every file in :code:`shard_dir` into :code:`out_path`, in natural sort order
    of their names (i.e. :code:`0, 1, ..., 10` rather than :code:`0, 1, 10, ...`).

    Returns
    -------
        Number of bytes written.
    """
    shards = natsorted((p for p in Path(shard_dir).iterdir() if p.is_file()), key=str)
    written = 0
    with open(out_path, "wb") as out:
        for shard in tqdm(
            shards, desc="Merging shards", unit=" shard", disable=not progress
        ):
            with open(shard, "rb") as f:
                shutil.copyfileobj(f, out)
            written += shard.stat().st_size
    return written


def convert(
    input_path: str | Path,
    output_path: str | Path,
    tables: ReferenceTables,
    total_columns: int,
    ploidy: int,
    n_workers: int | None = None,
    n_jobs: int = -1,
    overwrite: bool = False,
    progress: bool = False,
    codec: Codec = int_to_char,
) -> list[WorkerResult]:
    """Convert a normalized HapMap grid to VCF genotype lines in parallel.

    Parameters
    ----------
    input_path
        Path to the normalized grid.
    output_path
        Path of the merged output.
    tables
        Allele catalog, strand directions and line headers. The number of rows converted is the
        number of line headers.
    total_columns
        Number of sample columns in every row of the grid.
    ploidy
        Number of allele characters per cell.
    n_workers
        Number of row ranges to split the grid into. Defaults to one per CPU, at most one per row.
    n_jobs
        Number of concurrent jobs, passed to :class:`joblib.Parallel`.
    overwrite
        Whether to overwrite an existing output.
    progress
        Whether to show progress bars.
    codec
        Maps a raw byte of the grid to its allele symbol.

    Returns
    -------
        The result of each worker, in row order.

    Raises
    ------
    IncompleteShardError
        If any worker failed to write its whole range. No output is written in that case.
    """
    output_path = Path(output_path)
    if output_path.exists() and not overwrite:
        raise FileExistsError(
            f"Output path {output_path} already exists. Use overwrite=True to overwrite."
        )

    n_rows = tables.n_rows
    if n_workers is None:
        n_workers = min(n_rows, joblib.cpu_count())
    ranges = partition_rows(n_rows, n_workers)
    logger.info(f"Converting {n_rows} rows of {input_path} with {len(ranges)} workers.")

    with TemporaryDirectory() as tempdir:
        tdir = Path(tempdir)
        workers = [
            ConversionWorker(
                input_path,
                tdir / str(i),
                int(start),
                int(end),
                total_columns,
                tables,
                ploidy,
                codec,
            )
            for i, (start, end) in enumerate(ranges)
        ]
        tasks = joblib.Parallel(n_jobs=n_jobs, return_as="generator")(
            joblib.delayed(w.run)() for w in workers
        )
        results: list[WorkerResult] = list(
            tqdm(
                tasks,
                total=len(workers),
                desc="Converting",
                unit=" shard",
                disable=not progress,
            )
        )

        if failed := [r for r in results if not r.complete]:
            ranges_str = ", ".join(f"[{r.start_line}, {r.end_line})" for r in failed)
            raise IncompleteShardError(
                f"{len(failed)} of {len(results)} workers did not complete rows {ranges_str}.",
                results,
            )

        logger.info(f"Merging {len(workers)} shards into {output_path}.")
        merge_shards(tdir, output_path, progress)

    return results

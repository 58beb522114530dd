from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from pytest_cases import fixture, parametrize_with_cases

from hmpvcf import (
    ConversionWorker,
    IncompleteShardError,
    ReferenceTables,
    convert,
    merge_shards,
    partition_rows,
    write_grid,
)

N_ROWS = 7
N_COLS = 3


@fixture  # type: ignore
def tables():
    return ReferenceTables(
        alleles=["A,C,G,T"] * N_ROWS,
        strands=["+", "-"] * (N_ROWS // 2) + ["+"],
        headers=[f"chr2\t{i + 1}\t.\tA\tC,G,T\t.\t.\t.\tGT\t" for i in range(N_ROWS)],
    )


@fixture  # type: ignore
def grid(tmp_path: Path):
    bases = np.array(list("ACGT-"))
    rng = np.random.default_rng(0)
    calls = np.char.add(
        rng.choice(bases, (N_ROWS, N_COLS)), rng.choice(bases, (N_ROWS, N_COLS))
    )
    return write_grid(tmp_path / "grid.bin", calls, 2)


def ranges_even():
    n_rows, n_workers = 6, 3
    desired = np.array([[0, 2], [2, 4], [4, 6]])
    return n_rows, n_workers, desired


def ranges_remainder():
    n_rows, n_workers = 7, 3
    desired = np.array([[0, 3], [3, 5], [5, 7]])
    return n_rows, n_workers, desired


def ranges_more_workers_than_rows():
    n_rows, n_workers = 2, 8
    desired = np.array([[0, 1], [1, 2]])
    return n_rows, n_workers, desired


def ranges_no_rows():
    n_rows, n_workers = 0, 4
    desired = np.array([[0, 0]])
    return n_rows, n_workers, desired


@parametrize_with_cases("n_rows, n_workers, desired", cases=".", prefix="ranges_")
def test_partition_rows(n_rows: int, n_workers: int, desired: np.ndarray):
    ranges = partition_rows(n_rows, n_workers)
    np.testing.assert_equal(ranges, desired)
    assert ranges[0, 0] == 0
    assert ranges[-1, 1] == n_rows
    # contiguous and disjoint
    np.testing.assert_equal(ranges[1:, 0], ranges[:-1, 1])


def test_merge_shards_natural_order(tmp_path: Path):
    shard_dir = tmp_path / "shards"
    shard_dir.mkdir()
    for i in range(12):
        (shard_dir / str(i)).write_text(f"{i}\n")

    out = tmp_path / "merged"
    written = merge_shards(shard_dir, out)
    assert out.read_text() == "".join(f"{i}\n" for i in range(12))
    assert written == out.stat().st_size


@pytest.mark.parametrize("n_workers", [1, 2, 3, N_ROWS])
def test_convert_matches_single_worker(
    tmp_path: Path, grid: Path, tables: ReferenceTables, n_workers: int
):
    single = tmp_path / "single.vcf"
    assert ConversionWorker(grid, single, 0, N_ROWS, N_COLS, tables, 2).run().complete

    out = tmp_path / "out.vcf"
    results = convert(grid, out, tables, N_COLS, 2, n_workers=n_workers, n_jobs=1)

    assert len(results) == n_workers
    assert all(r.complete for r in results)
    assert sum(r.rows_written for r in results) == N_ROWS
    assert out.read_text() == single.read_text()


def test_convert_parallel(tmp_path: Path, grid: Path, tables: ReferenceTables):
    out = tmp_path / "out.vcf"
    results = convert(grid, out, tables, N_COLS, 2, n_workers=3, n_jobs=2)
    assert [(r.start_line, r.end_line) for r in results] == [(0, 3), (3, 5), (5, 7)]
    assert len(out.read_text().splitlines()) == N_ROWS


def test_convert_existing_output(tmp_path: Path, grid: Path, tables: ReferenceTables):
    out = tmp_path / "out.vcf"
    out.write_text("keep me")
    with pytest.raises(FileExistsError):
        convert(grid, out, tables, N_COLS, 2, n_jobs=1)
    assert out.read_text() == "keep me"

    convert(grid, out, tables, N_COLS, 2, n_jobs=1, overwrite=True)
    assert len(out.read_text().splitlines()) == N_ROWS


def test_convert_incomplete_shard(tmp_path: Path, tables: ReferenceTables):
    # only 4 of the 7 rows exist in the grid
    grid = write_grid(tmp_path / "grid.bin", [["AC"] * N_COLS] * 4, 2)
    out = tmp_path / "out.vcf"

    with pytest.raises(IncompleteShardError) as e:
        convert(grid, out, tables, N_COLS, 2, n_workers=3, n_jobs=1)

    assert not out.exists()
    assert [(r.start_line, r.end_line) for r in e.value.failed] == [(3, 5), (5, 7)]
    assert e.value.results[0].complete
    assert e.value.failed[0].rows_written == 1
    assert e.value.failed[1].rows_written == 0

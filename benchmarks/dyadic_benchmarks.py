"""Time the dyadic structural operations; optionally compare the search cases without the jax fast paths."""

from __future__ import annotations

import argparse
import json
import math
import os
import platform
import subprocess
import sys
import tempfile
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable

import jax

from cowarray import (
    drop,
    find,
    index_of,
    keep,
    member,
    num,
    pick,
    progressive_index_of,
    reshape,
    rotate,
    search,
    select,
    take,
    undrop,
    unselect,
    untake,
    windows,
    with_fill,
)


@dataclass(frozen=True)
class Case:
    name: str
    build: Callable[[int], Callable[[], object]]
    repeats: int
    searches: bool = False


@dataclass(frozen=True)
class Row:
    name: str
    n: int
    vectorized: bool
    mean_ms: float
    p50_ms: float
    p95_ms: float
    min_ms: float
    max_ms: float
    repeats: int
    samples: int


def _percentile(values: list[float], q: float) -> float:
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    pos = (len(ordered) - 1) * q
    lo = int(math.floor(pos))
    hi = int(math.ceil(pos))
    if lo == hi:
        return ordered[lo]
    alpha = pos - lo
    return ordered[lo] * (1.0 - alpha) + ordered[hi] * alpha


def _host_metadata() -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax": getattr(jax, "__version__", "unknown"),
        "backend": jax.default_backend(),
        "cpu_count": os.cpu_count(),
    }


def _vector(n: int):
    return num([float(i % 97) for i in range(n)])


def _matrix(n: int):
    side = max(1, int(math.isqrt(n)))
    return num([float(i % 31) for i in range(side * side)], (side, side))


def _cases() -> list[Case]:
    zero = with_fill(0)
    return [
        Case("reshape_cycle", lambda n: (lambda x=_vector(n): reshape([2 * n], x)), repeats=50),
        Case("keep_boolean", lambda n: (lambda x=_vector(n): keep([i % 2 for i in range(n)], x)), repeats=50),
        Case("rotate_matrix", lambda n: (lambda x=_matrix(n): rotate([1, -1], x)), repeats=50),
        Case("rotate_fill", lambda n: (lambda x=_vector(n): rotate([3], x, fill=zero)), repeats=50),
        Case("windows_pairs", lambda n: (lambda x=_vector(n): windows([2], x)), repeats=20),
        Case("take_drop", lambda n: (lambda x=_matrix(n): (take([2, -2], x), drop([1, 1], x))), repeats=50),
        Case("select_rows", lambda n: (lambda x=_vector(n): select([i * 7 % n for i in range(n)], x)), repeats=50),
        Case("pick_points", lambda n: (lambda x=_matrix(n): pick([[0, 0], [-1, -1]], x)), repeats=200),
        Case(
            "untake_undrop",
            lambda n: (lambda x=_vector(n): (untake(take([2], x), [2], x), undrop(drop([2], x), [2], x))),
            repeats=50,
        ),
        Case("unselect_rows", lambda n: (lambda x=_vector(n): unselect(select([0, -1], x), [0, -1], x)), repeats=50),
        Case("find_vector", lambda n: (lambda x=_vector(n): find([1, 2, 3], x)), repeats=10, searches=True),
        Case("member_vector", lambda n: (lambda x=_vector(n): member(x, x)), repeats=10, searches=True),
        Case("index_of_rows", lambda n: (lambda x=_matrix(n): index_of(x, x)), repeats=10, searches=True),
        Case(
            "progressive_index_of",
            lambda n: (lambda x=_vector(n): progressive_index_of(x, x)),
            repeats=5,
            searches=True,
        ),
    ]


def _run_case(case: Case, n: int, *, samples: int) -> Row:
    fn = case.build(n)
    fn()
    rows: list[float] = []
    for _ in range(samples):
        start = time.perf_counter()
        for _ in range(case.repeats):
            fn()
        end = time.perf_counter()
        rows.append((end - start) * 1e3 / case.repeats)
    return Row(
        name=case.name,
        n=n,
        vectorized=case.searches and search._USE_JAX_FAST_PATHS,
        mean_ms=sum(rows) / len(rows),
        p50_ms=_percentile(rows, 0.50),
        p95_ms=_percentile(rows, 0.95),
        min_ms=min(rows),
        max_ms=max(rows),
        repeats=case.repeats,
        samples=samples,
    )


def _print_row(row: Row) -> None:
    label = row.name
    if any(case.name == row.name and case.searches for case in _cases()):
        label = f"{row.name}[{'jax' if row.vectorized else 'py'}]"
    print(f"{label:26} n={row.n:6d} mean={row.mean_ms:9.3f}ms p95={row.p95_ms:9.3f}ms")


def _run_generic_search(ns: list[int], samples: int, only: set[str]) -> list[Row]:
    """Re-run the search cases in a child process with the jax fast paths disabled."""
    names = [case.name for case in _cases() if case.searches and (not only or case.name in only)]
    if not names:
        return []
    with tempfile.TemporaryDirectory() as tmp:
        outpath = Path(tmp) / "generic.json"
        env = dict(os.environ, COWARRAY_DISABLE_JAX_FAST_PATHS="1")
        proc = subprocess.run(
            [
                sys.executable,
                str(Path(__file__).resolve()),
                "--ns",
                ",".join(str(n) for n in ns),
                "--samples",
                str(samples),
                "--only",
                ",".join(names),
                "--quiet",
                "--json-out",
                str(outpath),
            ],
            check=False,
            capture_output=True,
            text=True,
            env=env,
        )
        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            raise RuntimeError(stderr or f"generic search run exited with status {proc.returncode}")
        payload = json.loads(outpath.read_text(encoding="utf-8"))
    return [Row(**row) for row in payload["rows"]]


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--ns", default="64,1024,16384", help="comma-separated sizes")
    parser.add_argument("--samples", type=int, default=3, help="timing samples")
    parser.add_argument("--only", default="", help="comma-separated case names to run")
    parser.add_argument(
        "--compare-generic",
        action="store_true",
        help="also time the search cases in a child process with COWARRAY_DISABLE_JAX_FAST_PATHS=1",
    )
    parser.add_argument("--quiet", action="store_true", help="suppress per-case output")
    parser.add_argument("--json-out", default="", help="optional output JSON")
    args = parser.parse_args()

    ns = [int(x.strip()) for x in args.ns.split(",") if x.strip()]
    only = {x.strip() for x in args.only.split(",") if x.strip()}
    cases = [case for case in _cases() if not only or case.name in only]

    rows: list[Row] = []
    if not args.quiet:
        print("Dyadic structural benchmark")
        print(
            f"host: backend={jax.default_backend()}, jax={getattr(jax, '__version__', 'unknown')}, "
            f"jax_fast_paths={search._USE_JAX_FAST_PATHS}"
        )
    for n in ns:
        for case in cases:
            row = _run_case(case, n, samples=args.samples)
            rows.append(row)
            if not args.quiet:
                _print_row(row)

    if args.compare_generic and search._USE_JAX_FAST_PATHS:
        generic_rows = _run_generic_search(ns, args.samples, only)
        for row in generic_rows:
            _print_row(row)
        rows.extend(generic_rows)

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "timestamp_utc": datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ"),
            "sizes": ns,
            "samples": args.samples,
            "host": _host_metadata(),
            "rows": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        if not args.quiet:
            print(f"Wrote JSON: {outpath}")


if __name__ == "__main__":
    main()

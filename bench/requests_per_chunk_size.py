"""Request-count benchmark for the ranged record reader.

Reads one generated object through the local store at several chunk sizes and
prints how many range requests and bytes each pass needed.
Meant for manual runs, not CI.
"""

import asyncio
import sys
import tempfile
import time
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rangelines import RangedRecordReader, AsyncRangedRecordReader
from rangelines.io import LocalObjectStore, LocalAsyncObjectStore

CHUNK_SIZES = [1024, 16 * 1024, 128 * 1024, 1024 * 1024]


def _make_object(root: Path, lines: int = 200_000) -> int:
    bucket = root / "bench"
    bucket.mkdir()
    data = "".join(f"{i},record number {i}\n" for i in range(lines)).encode()
    (bucket / "records.csv").write_bytes(data)
    return len(data)


def bench_sync(root: Path, size: int):
    """Sync reader over the local store."""
    for chunk_size in CHUNK_SIZES:
        store = LocalObjectStore(root)
        reader = RangedRecordReader(store, "bench", "records.csv", chunk_size=chunk_size)
        started = time.perf_counter()
        count = sum(1 for _ in reader)
        elapsed = time.perf_counter() - started
        print(f"sync  chunk={chunk_size:>8}  records={count}  requests={reader.requests_made:>6}  "
              f"bytes={reader.bytes_fetched}/{size}  {elapsed:.3f}s")


async def bench_async(root: Path, size: int):
    """Async reader over the local store."""
    for chunk_size in CHUNK_SIZES:
        store = LocalAsyncObjectStore(root)
        reader = AsyncRangedRecordReader(store, "bench", "records.csv", chunk_size=chunk_size)
        started = time.perf_counter()
        count = 0
        async for _ in reader:
            count += 1
        elapsed = time.perf_counter() - started
        print(f"async chunk={chunk_size:>8}  records={count}  requests={reader.requests_made:>6}  "
              f"bytes={reader.bytes_fetched}/{size}  {elapsed:.3f}s")


if __name__ == "__main__":
    print("rangelines request-count benchmark")
    print("=" * 40)

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        size = _make_object(root)
        bench_sync(root, size)
        print()
        asyncio.run(bench_async(root, size))

    print("\nBenchmark complete!")

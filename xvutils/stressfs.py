"""Concurrent writers and readers of separate files."""

import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

BLOCK = 512
_print_lock = threading.Lock()


def _say(text):
    with _print_lock:
        sys.stdout.write(text)
        sys.stdout.flush()


def _worker(path, index, nblocks):
    _say(f"write {index}\n")
    data = b"a" * BLOCK
    with open(path, "wb") as f:
        for _ in range(nblocks):
            f.write(data)
    _say("read\n")
    with open(path, "rb") as f:
        for _ in range(nblocks):
            f.read(BLOCK)


def stress(directory=".", nprocs=5, nblocks=20):
    """Have ``nprocs`` workers each write then read ``nblocks`` blocks.

    Worker ``i`` uses the file ``stressfs<i>`` in ``directory``; the
    paths are returned in worker order.
    """
    if nprocs < 1:
        raise ValueError("nprocs must be at least 1")
    if nblocks < 0:
        raise ValueError("nblocks must not be negative")
    _say("stressfs starting\n")
    base = Path(directory)
    paths = [base / ("stressfs" + chr(ord("0") + i)) for i in range(nprocs)]
    with ThreadPoolExecutor(max_workers=nprocs) as pool:
        futures = [pool.submit(_worker, path, i, nblocks) for i, path in enumerate(paths)]
        for future in futures:
            future.result()
    return paths


def main(argv=None):
    """Run the stress test in the current directory."""
    stress()
    return 0
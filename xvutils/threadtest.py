"""Two threads incrementing a shared counter under a spin lock."""

import sys
import threading
import time

from .fmt import printf


class SpinLock:
    """A test-and-set lock that busy-waits until it is free."""

    def __init__(self):
        self._flag = threading.Lock()

    @property
    def locked(self):
        """Whether the lock is currently held."""
        return self._flag.locked()

    def acquire(self):
        """Spin until the lock is taken."""
        while not self._flag.acquire(blocking=False):
            time.sleep(0)

    def release(self):
        """Free the lock."""
        self._flag.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, *exc):
        self.release()


def run(iterations=10000):
    """Increment a counter ``iterations`` times in each of two threads; return it."""
    lock = SpinLock()
    counter = 0

    def inc():
        nonlocal counter
        for _ in range(iterations):
            with lock:
                counter += 1

    worker = threading.Thread(target=inc)
    worker.start()
    inc()
    worker.join()
    return counter


def main(argv=None):
    """Run the test and print the final count."""
    printf("%d\n", run())
    sys.stdout.flush()
    return 0
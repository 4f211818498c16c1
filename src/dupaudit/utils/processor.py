import asyncio
import hashlib
import logging
import multiprocessing
import os
import pathlib
import signal
from multiprocessing.pool import Pool
from typing import Awaitable, Callable

import mmh3

from .profiling import profile_worker

logger = logging.getLogger(__name__)


@profile_worker
def compute_digest_for_path(path: pathlib.Path, algorithm: str) -> str:
    with open(path, "rb") as f:
        # noinspection PyTypeChecker
        return hashlib.file_digest(f, algorithm).hexdigest()


@profile_worker
def compute_sample_for_path(path: pathlib.Path, sample_size: int) -> str:
    """Murmur3 fingerprint over the head and tail of a file.

    Only files of the same size are ever compared by fingerprint, so the
    size itself is left out of the hashed data.
    """
    with open(path, "rb") as f:
        head = f.read(sample_size)
        end = f.seek(0, os.SEEK_END)
        f.seek(max(len(head), end - sample_size))
        tail = f.read(sample_size)
    return format(mmh3.hash128(head + tail, signed=False), '032x')


def _ignore_interrupt():
    # The parent process owns SIGINT and cancels the scan cooperatively.
    signal.signal(signal.SIGINT, signal.SIG_IGN)


class Processor:
    """Pool of worker processes for reading and hashing file content."""

    def __init__(self, concurrency: int | None = None):
        if concurrency is None:
            concurrency = multiprocessing.cpu_count()

        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self._concurrency = concurrency
        self._pool: Pool = Pool(self._concurrency, initializer=_ignore_interrupt)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._pool.close()

    @property
    def concurrency(self):
        return self._concurrency

    def digest(self, path: pathlib.Path, digest_function: Callable[[pathlib.Path], str]) -> Awaitable[str]:
        logger.debug(f"Starting hash computation for: {path}")

        async def log_and_compute():
            result = await self._evaluate(digest_function, path)
            logger.debug(f"Completed hash computation for: {path}")
            return result

        return log_and_compute()

    def sample(self, path: pathlib.Path, sample_size: int) -> Awaitable[str]:
        return self._evaluate(compute_sample_for_path, path, sample_size)

    def _evaluate(self, func, *args):
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        self._pool.apply_async(func, args=args,
                               callback=lambda v: loop.call_soon_threadsafe(future.set_result, v),
                               error_callback=lambda e: loop.call_soon_threadsafe(future.set_exception, e))

        return future

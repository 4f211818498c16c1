import logging
from asyncio import TaskGroup
from pathlib import Path
from typing import Awaitable, Callable, Iterable, NamedTuple

from .grouping import group_by_attribute
from .progress import ProgressReporter
from .records import CandidateGroup, FileRecord, HashedRecord
from .utils.cancellation import Cancellation
from .utils.throttler import Throttler

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 64 * 1024
DEFAULT_SAMPLE_THRESHOLD = 1024 * 1024


class VerifyArgs(NamedTuple):
    """Arguments for content verification."""
    digest: Callable[[Path], Awaitable[str]]  # Full content digest, hex encoded
    concurrency: int  # Maximum number of files read at the same time
    # Head and tail fingerprint used to split large size groups before the full digest
    sample: Callable[[Path], Awaitable[str]] | None = None
    sample_threshold: int = DEFAULT_SAMPLE_THRESHOLD  # Only sizes above this are sampled, 0 disables sampling


class ContentVerifier:
    """Turns groups of same-size files into groups of same-content files.

    Only members of the given groups are ever read. Large groups are first
    split by a cheap sample fingerprint, then every remaining candidate is
    digested in full and regrouped by (size, digest). Buckets left with a
    single file are dropped after each step.

    Files that can no longer be read are skipped, and the results of all
    concurrent reads are gathered by this object alone.
    """

    def __init__(self, args: VerifyArgs, progress: ProgressReporter | None = None,
                 cancellation: Cancellation | None = None):
        self._args = args
        self._progress = progress if progress is not None else ProgressReporter()
        self._cancellation = cancellation if cancellation is not None else Cancellation()

    async def run(self, groups: list[CandidateGroup]) -> list[CandidateGroup]:
        groups = await self._split_by_sample(groups)

        candidates = [record for group in groups for record in group.members]
        total = len(candidates)
        completed = 0

        def count_hashed():
            nonlocal completed
            completed += 1
            self._progress.hashed_file(completed, total)

        logger.info(f"Hashing {total} candidate files in {len(groups)} groups")
        hashed = await self._compute_all(candidates, self._args.digest, count_hashed)

        buckets = group_by_attribute(hashed, lambda h: (h.record.size, h.digest))
        return [CandidateGroup(digest, [h.record for h in members])
                for (_, digest), members in buckets.items()]

    async def _split_by_sample(self, groups: list[CandidateGroup]) -> list[CandidateGroup]:
        threshold = self._args.sample_threshold
        if self._args.sample is None or threshold <= 0:
            return groups

        kept = [group for group in groups if group.members[0].size <= threshold]
        sampled_groups = [group for group in groups if group.members[0].size > threshold]
        if not sampled_groups:
            return kept

        records = [record for group in sampled_groups for record in group.members]
        logger.info(f"Sampling {len(records)} files larger than {threshold} bytes")
        sampled = await self._compute_all(records, self._args.sample)

        buckets = group_by_attribute(sampled, lambda h: (h.record.size, h.digest))
        logger.info(f"{len(buckets)} of {len(sampled_groups)} large size groups survive sampling")
        kept.extend(CandidateGroup(size, [h.record for h in members]) for (size, _), members in buckets.items())
        return kept

    async def _compute_all(self, records: Iterable[FileRecord], calculate: Callable[[Path], Awaitable[str]],
                           on_done: Callable[[], None] | None = None) -> list[HashedRecord]:
        results: list[HashedRecord] = []

        async def compute(record: FileRecord):
            if self._cancellation.cancelled:
                return

            try:
                value = await calculate(record.path)
            except OSError as e:
                logger.info(f"Skipping {record.path}, it could not be read: {e}")
            else:
                results.append(HashedRecord(record, value))

            if on_done is not None:
                on_done()

        async with TaskGroup() as tg:
            throttler = Throttler(tg, self._args.concurrency)
            for record in records:
                if self._cancellation.cancelled:
                    break
                await throttler.schedule(compute(record))

        self._cancellation.check()
        return results


async def do_verify(groups: list[CandidateGroup], args: VerifyArgs, progress: ProgressReporter | None = None,
                    cancellation: Cancellation | None = None) -> list[CandidateGroup]:
    verifier = ContentVerifier(args, progress, cancellation)
    return await verifier.run(groups)

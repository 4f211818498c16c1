import asyncio
import functools
import logging
from enum import StrEnum
from pathlib import Path
from typing import Iterable, Iterator, NamedTuple

from .grouping import candidate_groups
from .modes import CompareMode
from .progress import ProgressReporter
from .records import CandidateGroup, DuplicateGroup, FileRecord
from .report import build_report
from .utils.cancellation import Cancellation
from .utils.processor import Processor
from .utils.walker import WalkPolicy, enumerate_files
from .verifier import DEFAULT_SAMPLE_SIZE, DEFAULT_SAMPLE_THRESHOLD, VerifyArgs, do_verify

logger = logging.getLogger(__name__)


class ScanState(StrEnum):
    IDLE = 'idle'
    ENUMERATING = 'enumerating'
    GROUPING = 'grouping'
    HASH_VERIFYING = 'hash-verifying'
    BUILDING_REPORT = 'building-report'
    DONE = 'done'
    # Early exits, each a successful scan with an empty report
    NO_FILES = 'no-files'
    NO_CANDIDATES = 'no-candidates'
    NO_DUPLICATES = 'no-duplicates'


class ScanResult(NamedTuple):
    state: ScanState
    mode: CompareMode
    files_enumerated: int
    groups: list[CandidateGroup]

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def report(self, max_display: int) -> Iterator[DuplicateGroup]:
        """Fresh single-pass sequence of report entries; call once per consumer."""
        return build_report(self.groups, self.mode, max_display)


def processor_verify_args(processor: Processor, mode: CompareMode, *, sample_size: int = DEFAULT_SAMPLE_SIZE,
                          sample_threshold: int = DEFAULT_SAMPLE_THRESHOLD) -> VerifyArgs:
    """Verification backed by the worker pool of processor."""
    digest_function = mode.digest_function
    if digest_function is None:
        raise ValueError(f"compare mode {mode} does not verify content")

    return VerifyArgs(
        digest=functools.partial(processor.digest, digest_function=digest_function),
        concurrency=processor.concurrency * 2,
        sample=functools.partial(processor.sample, sample_size=sample_size),
        sample_threshold=sample_threshold,
    )


class DuplicateScanner:
    """Runs one duplicate scan from enumeration to verified groups.

    States advance IDLE -> ENUMERATING -> GROUPING -> [HASH_VERIFYING ->]
    BUILDING_REPORT -> DONE. Content verification only happens in hash modes.
    A scan that finds no files, no candidate groups or no verified groups ends
    early in NO_FILES, NO_CANDIDATES or NO_DUPLICATES respectively.

    Each stage completes before the next begins and never looks back at the
    output of an earlier one.
    """

    def __init__(self, mode: CompareMode, verify_args: VerifyArgs | None = None, *,
                 policy: WalkPolicy | None = None, progress: ProgressReporter | None = None,
                 cancellation: Cancellation | None = None):
        """
        Args:
            mode: Compare mode, fixed for the lifetime of the scanner
            verify_args: Content verification backend, required for hash modes
            policy: Exclusion rules for enumeration
            progress: Receives progress events
            cancellation: Checked between files; a cancelled scan raises ScanCancelled

        Raises:
            ValueError: A hash mode is selected without verify_args
        """
        if mode.verifies_content and verify_args is None:
            raise ValueError(f"compare mode {mode} needs a content verification backend")

        self._mode = mode
        self._verify_args = verify_args
        self._policy = policy if policy is not None else WalkPolicy()
        self._progress = progress if progress is not None else ProgressReporter()
        self._cancellation = cancellation if cancellation is not None else Cancellation()
        self._state = ScanState.IDLE

    @property
    def mode(self) -> CompareMode:
        return self._mode

    @property
    def state(self) -> ScanState:
        return self._state

    def _enter(self, state: ScanState):
        logger.debug(f"Scan state {self._state} -> {state}")
        self._state = state

    def _finish(self, state: ScanState, files_enumerated: int, groups: list[CandidateGroup]) -> ScanResult:
        self._enter(state)
        logger.info(f"Scan finished in state {state} with {len(groups)} duplicate groups")
        return ScanResult(state, self._mode, files_enumerated, groups)

    def scan(self, roots: Iterable[Path]) -> ScanResult:
        """Find duplicate groups under roots.

        Raises:
            ScanCancelled: The cancellation token was triggered
        """
        if self._state is not ScanState.IDLE:
            raise RuntimeError("a scanner runs a single scan")

        self._enter(ScanState.ENUMERATING)
        records = list(self._enumerate(roots))
        files_enumerated = len(records)
        if not records:
            return self._finish(ScanState.NO_FILES, 0, [])

        self._enter(ScanState.GROUPING)
        groups = candidate_groups(records, self._mode.key)
        self._progress.grouped_size_classes(len(groups))
        logger.info(f"{len(groups)} candidate groups out of {files_enumerated} files")
        if not groups:
            return self._finish(ScanState.NO_CANDIDATES, files_enumerated, [])

        if self._mode.verifies_content:
            self._enter(ScanState.HASH_VERIFYING)
            groups = asyncio.run(do_verify(groups, self._verify_args, self._progress, self._cancellation))
            if not groups:
                return self._finish(ScanState.NO_DUPLICATES, files_enumerated, [])

        self._enter(ScanState.BUILDING_REPORT)
        return self._finish(ScanState.DONE, files_enumerated, groups)

    def _enumerate(self, roots: Iterable[Path]) -> Iterator[FileRecord]:
        for record in enumerate_files(roots, self._policy, self._cancellation):
            self._progress.enumerated_file(record)
            yield record

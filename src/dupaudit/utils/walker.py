import fnmatch
import logging
import os
import stat
from pathlib import Path
from typing import Generator, Iterable, Iterator

from .cancellation import Cancellation
from ..records import FileRecord

logger = logging.getLogger(__name__)


def walk(path: Path) -> Generator[tuple[Path, os.stat_result], bool | None, None]:
    """Recursively traverse a directory without following symbolic links.

    Yields (child_path, lstat_result) for every entry. Sending False back for a
    directory prunes it. Entries that cannot be listed or stat'ed are skipped.
    """
    try:
        children = sorted(path.iterdir())
    except OSError as e:
        logger.debug(f"Skipping unreadable directory {path}: {e}")
        return

    for child in children:
        try:
            st = child.stat(follow_symlinks=False)
        except OSError as e:
            logger.debug(f"Skipping entry that cannot be stat'ed {child}: {e}")
            continue

        descend = yield child, st

        if descend is False:
            continue

        if stat.S_ISDIR(st.st_mode):
            yield from walk(child)


class WalkPolicy:
    """Exclusion rules applied during traversal.

    A pattern excludes an entry when it matches the entry name or its absolute
    path with fnmatch rules, or when it is an absolute path that contains the
    entry. Absolute patterns are resolved like the walked roots, so a prefix
    reached through a symbolic link still applies. Excluded directories are
    not descended into.
    """

    def __init__(self, excluded_patterns: Iterable[str] = ()):
        self.excluded_patterns: tuple[str, ...] = tuple(excluded_patterns)
        self._excluded_prefixes: tuple[Path, ...] = tuple(
            Path(pattern).expanduser().resolve()
            for pattern in self.excluded_patterns
            if Path(pattern).expanduser().is_absolute()
        )

    def is_excluded(self, path: Path) -> bool:
        for pattern in self.excluded_patterns:
            if fnmatch.fnmatch(path.name, pattern) or fnmatch.fnmatch(str(path), pattern):
                return True

        return any(path.is_relative_to(prefix) for prefix in self._excluded_prefixes)


def walk_with_policy(path: Path, policy: WalkPolicy) -> Iterator[tuple[Path, os.stat_result]]:
    """Walk a tree, pruning what the policy excludes, via the walk() send protocol."""
    gen = walk(path)
    pending = None

    try:
        while True:
            file_path, st = gen.send(pending)
            pending = None

            if policy.is_excluded(file_path):
                pending = False
                continue

            yield file_path, st
    except StopIteration:
        pass


def collapse_roots(roots: Iterable[Path]) -> list[Path]:
    """Absolute roots with nested and repeated roots removed.

    Scanning /data and /data/photos together must not report each photo as a
    duplicate of itself.
    """
    collapsed: list[Path] = []
    for root in sorted({Path(r).resolve() for r in roots}):
        if not any(root.is_relative_to(kept) for kept in collapsed):
            collapsed.append(root)
    return collapsed


def enumerate_files(roots: Iterable[Path], policy: WalkPolicy | None = None,
                    cancellation: Cancellation | None = None) -> Iterator[FileRecord]:
    """Yield a FileRecord for every regular file below the given roots."""
    if policy is None:
        policy = WalkPolicy()

    for root in collapse_roots(roots):
        logger.info(f"Enumerating files under {root}")
        for file_path, st in walk_with_policy(root, policy):
            if cancellation is not None:
                cancellation.check()

            if stat.S_ISREG(st.st_mode):
                yield FileRecord.from_path(file_path, st.st_size)

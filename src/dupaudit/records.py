"""Value types flowing through the duplicate detection pipeline."""

import os
from pathlib import Path
from typing import Any, Hashable, NamedTuple


def printable(text: str) -> str:
    """Text safe to write to a UTF-8 stream.

    Names that are not valid UTF-8 on disk come back from the OS with surrogate
    escapes; their raw bytes are shown as \\xNN escapes instead.
    """
    return os.fsencode(text).decode('utf-8', 'backslashreplace')


class FileRecord(NamedTuple):
    """A regular file found during enumeration.

    Attributes:
        path: Absolute path of the file
        name: Final path component
        size: Size in bytes at enumeration time
    """
    path: Path
    name: str
    size: int

    @classmethod
    def from_path(cls, path: Path, size: int) -> "FileRecord":
        return cls(path, path.name, size)


class CandidateGroup(NamedTuple):
    """Two or more records sharing a group key."""
    key: Hashable
    members: list[FileRecord]


class HashedRecord(NamedTuple):
    record: FileRecord
    digest: str


def size_key(record: FileRecord) -> int:
    return record.size


def name_size_key(record: FileRecord) -> tuple[str, int]:
    """Key for the fast check: case-folded name plus exact size.

    str.casefold() does not depend on the process locale, so two runs on
    different platforms agree on which names are equal.
    """
    return record.name.casefold(), record.size


def path_sort_key(record: FileRecord) -> str:
    return str(record.path)


class DuplicateGroup:
    """A verified set of duplicate files as presented in the report.

    Attributes:
        identity: Hex digest in hash modes, file name in fast mode
        size: Size in bytes shared by every member
        members: All members, sorted by full path
        total_count: Number of members, never affected by display truncation
        max_display: Number of leading members shown in detail
    """

    def __init__(self, identity: str, size: int, members: list[FileRecord], max_display: int):
        if len(members) < 2:
            raise ValueError(f"duplicate group needs at least two members, got {len(members)}")

        self.identity = identity
        self.size = size
        self.members: tuple[FileRecord, ...] = tuple(sorted(members, key=path_sort_key))
        self.max_display = max_display

    @property
    def total_count(self) -> int:
        return len(self.members)

    @property
    def displayed(self) -> tuple[FileRecord, ...]:
        return self.members[:self.max_display]

    @property
    def hidden(self) -> tuple[FileRecord, ...]:
        return self.members[self.max_display:]

    @property
    def is_truncated(self) -> bool:
        return self.total_count > self.max_display

    @property
    def reclaimable_size(self) -> int:
        """Bytes that would be freed by keeping a single copy."""
        return self.size * (self.total_count - 1)

    def hidden_summary(self) -> tuple[int, str, str] | None:
        """Count plus first and last name of the members left out of the display."""
        hidden = self.hidden
        if not hidden:
            return None
        return len(hidden), hidden[0].name, hidden[-1].name

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DuplicateGroup):
            return False
        return (self.identity == other.identity and self.size == other.size and
                self.members == other.members and self.max_display == other.max_display)

    def __repr__(self) -> str:
        return f"DuplicateGroup({self.identity!r}, size={self.size}, total_count={self.total_count})"

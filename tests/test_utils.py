"""Shared test utilities for dupaudit tests."""
import hashlib
from pathlib import Path

from dupaudit import FileRecord, ProgressReporter


def write_file(root: Path, relative: str, content: bytes | str) -> Path:
    """Create root/relative with the given content, creating parent directories."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode('utf-8')
    path.write_bytes(content)
    return path


def record(path: str, size: int) -> FileRecord:
    return FileRecord.from_path(Path(path), size)


class CountingDigest:
    """In-process async SHA-256 that remembers every path it was asked to hash."""

    def __init__(self, failing: set[Path] | None = None):
        self.calls: list[Path] = []
        self._failing = failing or set()

    async def __call__(self, path: Path) -> str:
        self.calls.append(path)
        if path in self._failing:
            raise PermissionError(13, 'Permission denied', str(path))
        return hashlib.sha256(path.read_bytes()).hexdigest()


class CollectingProgress(ProgressReporter):
    def __init__(self):
        self.enumerated: list[FileRecord] = []
        self.size_classes: list[int] = []
        self.hashed: list[tuple[int, int]] = []

    def enumerated_file(self, record: FileRecord) -> None:
        self.enumerated.append(record)

    def grouped_size_classes(self, count: int) -> None:
        self.size_classes.append(count)

    def hashed_file(self, index: int, total: int) -> None:
        self.hashed.append((index, total))

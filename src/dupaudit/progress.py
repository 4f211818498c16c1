"""Progress events emitted while a scan runs."""

import sys
from typing import TextIO

from .records import FileRecord


class ProgressReporter:
    """Receives progress events from the scanner. Every event is a no-op here.

    Subclasses override the events they care about; the scanner never depends
    on how, or whether, progress is shown.
    """

    def enumerated_file(self, record: FileRecord) -> None:
        pass

    def grouped_size_classes(self, count: int) -> None:
        pass

    def hashed_file(self, index: int, total: int) -> None:
        pass


class ConsoleProgress(ProgressReporter):
    """Progress lines for --verbose runs, written to stderr by default."""

    def __init__(self, stream: TextIO | None = None, enumeration_step: int = 1000, percent_step: int = 5):
        self._stream = stream if stream is not None else sys.stderr
        self._enumeration_step = enumeration_step
        self._percent_step = percent_step
        self._enumerated = 0
        self._last_percent = -1

    def enumerated_file(self, record: FileRecord) -> None:
        self._enumerated += 1
        if self._enumerated % self._enumeration_step == 0:
            print(f"Enumerated {self._enumerated} files...", file=self._stream)

    def grouped_size_classes(self, count: int) -> None:
        print(f"Enumerated {self._enumerated} files in total; {count} candidate groups with more than one file",
              file=self._stream)

    def hashed_file(self, index: int, total: int) -> None:
        percent = index * 100 // total if total else 100
        bucket = percent - percent % self._percent_step
        if bucket > self._last_percent or index == total:
            self._last_percent = bucket
            print(f"Hashing: {index}/{total} files ({percent}%)", file=self._stream)

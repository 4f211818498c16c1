import sys
from typing import Iterable, TextIO

from .records import DuplicateGroup, printable


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"

    value = size / 1024
    for unit in ['KB', 'MB', 'GB']:
        if value < 1024:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} TB"


class ReportRenderer:
    """Prints duplicate groups for a human reader."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream if stream is not None else sys.stdout

    def _print(self, line: str = ''):
        print(line, file=self._stream)

    def render(self, groups: Iterable[DuplicateGroup]) -> tuple[int, int, int]:
        """Print every group followed by a summary line.

        Returns:
            (group count, file count, reclaimable bytes)
        """
        group_count = 0
        file_count = 0
        reclaimable = 0

        for group in groups:
            group_count += 1
            file_count += group.total_count
            reclaimable += group.reclaimable_size

            identity = printable(str(group.identity))
            self._print(f"[{group_count}] {identity} ({format_size(group.size)}, {group.total_count} files)")
            for record in group.displayed:
                self._print(f"    {printable(str(record.path))}")

            summary = group.hidden_summary()
            if summary is not None:
                hidden_count, first, last = summary
                self._print(f"    ... and {hidden_count} more ({printable(first)} .. {printable(last)})")
            self._print()

        if group_count == 0:
            self._print("No duplicate files found.")
        else:
            self._print(f"Found {group_count} duplicate groups with {file_count} files; "
                        f"{format_size(reclaimable)} could be reclaimed.")

        return group_count, file_count, reclaimable

    def no_files(self):
        self._print("No files found under the given paths.")

    def no_candidates(self, attribute: str):
        self._print(f"No two files share the same {attribute}; nothing can be a duplicate.")

    def no_duplicates(self):
        self._print("Some files share the same size, but none have identical content.")

"""CSV export of duplicate reports."""

import csv
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

from .modes import CompareMode
from .records import DuplicateGroup, printable

logger = logging.getLogger(__name__)

FAST_MODE_LABEL = 'NameAndSize'

FAST_MODE_HEADER = ['Name', 'SizeBytes', 'Path', 'Mode']
HASH_MODE_HEADER = ['Hash', 'FilePath', 'SizeBytes', 'Algorithm']


def export_header(mode: CompareMode) -> list[str]:
    return HASH_MODE_HEADER if mode.verifies_content else FAST_MODE_HEADER


def export_rows(groups: Iterable[DuplicateGroup], mode: CompareMode) -> Iterator[list[str]]:
    """One row per member of every group, display truncation notwithstanding."""
    for group in groups:
        for record in group.members:
            path = printable(str(record.path))
            if mode.verifies_content:
                yield [group.identity, path, str(record.size), mode.algorithm_label]
            else:
                yield [printable(record.name), str(record.size), path, FAST_MODE_LABEL]


def export_csv(path: Path, groups: Iterable[DuplicateGroup], mode: CompareMode) -> int:
    """Write the report to path as UTF-8 CSV with a header row.

    Rows go to a temporary file next to path, which replaces path only once
    every row is written. A failed export leaves no file behind.

    Returns:
        Number of data rows written
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        count = 0
        with open(fd, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(export_header(mode))
            for row in export_rows(groups, mode):
                writer.writerow(row)
                count += 1

        os.replace(temp_name, path)
    except BaseException:
        os.unlink(temp_name)
        raise

    logger.info(f"Exported {count} rows to {path}")
    return count

"""Compare modes selectable from the command line."""

import functools
from enum import StrEnum
from pathlib import Path
from typing import Callable, Hashable

from .records import FileRecord, name_size_key, size_key
from .utils.processor import compute_digest_for_path


class CompareMode(StrEnum):
    """How two files are decided to be duplicates.

    The fast check only compares case-folded name and size and never reads
    file content. The hash modes group by size first and then confirm
    content equality with a cryptographic digest.
    """
    HASH_SHA256 = 'sha256'
    HASH_SHA1 = 'sha1'
    HASH_MD5 = 'md5'
    FAST_NAME_SIZE = 'name+size'

    @classmethod
    def parse(cls, value: str) -> "CompareMode":
        try:
            return cls(value.lower())
        except ValueError:
            choices = ', '.join(mode.value for mode in cls)
            raise ValueError(f"unknown compare mode {value!r}, expected one of: {choices}") from None

    @property
    def verifies_content(self) -> bool:
        return self is not CompareMode.FAST_NAME_SIZE

    @property
    def key(self) -> Callable[[FileRecord], Hashable]:
        if self is CompareMode.FAST_NAME_SIZE:
            return name_size_key
        return size_key

    @property
    def algorithm_label(self) -> str | None:
        """Algorithm name as written to the export, e.g. 'SHA256'."""
        if not self.verifies_content:
            return None
        return self.value.upper()

    @property
    def digest_function(self) -> Callable[[Path], str] | None:
        """Picklable digest function for worker processes, None for the fast check."""
        if not self.verifies_content:
            return None
        return functools.partial(compute_digest_for_path, algorithm=self.value)


DEFAULT_COMPARE_MODE = CompareMode.HASH_SHA256

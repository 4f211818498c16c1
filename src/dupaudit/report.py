"""Assembly of verified groups into report entries."""

from typing import Iterable, Iterator

from .modes import CompareMode
from .records import CandidateGroup, DuplicateGroup, path_sort_key


def build_report(groups: Iterable[CandidateGroup], mode: CompareMode, max_display: int) -> Iterator[DuplicateGroup]:
    """Yield one DuplicateGroup per verified group.

    Members are ordered by full path and groups by the path of their first
    member, so two runs over the same tree produce the same report. The
    generator is single-pass; call build_report again for a second consumer.

    Args:
        groups: Groups that survived grouping and, in hash modes, verification
        mode: Compare mode the groups were produced with
        max_display: Number of members per group shown in detail; the rest are
                     only summarized, but stay part of the group
    """
    if max_display < 1:
        raise ValueError(f"max_display must be at least 1, got {max_display}")

    ordered = [(sorted(group.members, key=path_sort_key), group.key) for group in groups
               if len(group.members) >= 2]
    ordered.sort(key=lambda entry: path_sort_key(entry[0][0]))

    for members, key in ordered:
        if mode.verifies_content:
            identity = key
        else:
            identity = members[0].name
        yield DuplicateGroup(identity, members[0].size, members, max_display)

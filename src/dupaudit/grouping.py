from typing import Callable, Hashable, Iterable, TypeVar

from .records import CandidateGroup, FileRecord

T = TypeVar('T')
K = TypeVar('K', bound=Hashable)


def group_by_attribute(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Partition items by key in a single pass, keeping only buckets of two or more.

    Items keep their input order inside a bucket, and buckets keep the order in
    which their key was first seen.
    """
    buckets: dict[K, list[T]] = {}
    for item in items:
        buckets.setdefault(key(item), []).append(item)

    return {k: members for k, members in buckets.items() if len(members) >= 2}


def candidate_groups(records: Iterable[FileRecord],
                     key: Callable[[FileRecord], Hashable]) -> list[CandidateGroup]:
    return [CandidateGroup(k, members) for k, members in group_by_attribute(records, key).items()]

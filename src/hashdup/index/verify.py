"""Byte-level confirmation of fingerprint groups.

Fingerprints are truncated digests, so files with different content can land in the
same group. verify_duplicates() splits each group into classes of files whose content
is actually equal, comparing every path against the first member of each class found
so far.
"""
import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .duplicate_index import DuplicateIndex
from ..utils.processor import compare_file_content

logger = logging.getLogger(__name__)


def _place(path: Path, classes: list[list[Path]], compare: Callable[[Path, Path], bool]):
    i = 0
    while i < len(classes):
        members = classes[i]
        try:
            equal = compare(path, members[0])
        except OSError as e:
            # The representative itself may be the unreadable side
            if e.filename is None or Path(e.filename) != members[0]:
                raise
            logger.warning(f"Cannot read {members[0]}, leaving it out of verified duplicates: {e}")
            del members[0]
            if not members:
                del classes[i]
            continue

        if equal:
            members.append(path)
            return
        i += 1

    classes.append([path])


def split_by_content(paths: Iterable[Path], compare: Callable[[Path, Path], bool] = compare_file_content) \
        -> list[list[Path]]:
    """Partition paths into classes of equal content, keeping the input order within each class.

    Paths that cannot be compared are logged and left out. When the first member of a
    class turns out to be unreadable, the next member takes its place.
    """
    classes: list[list[Path]] = []

    for path in paths:
        try:
            _place(path, classes, compare)
        except OSError as e:
            logger.warning(f"Cannot compare {path}, leaving it out of verified duplicates: {e}")

    return classes



def verify_duplicates(index: DuplicateIndex, compare: Callable[[Path, Path], bool] = compare_file_content) \
        -> Iterator[tuple[str, list[Path]]]:
    """Yield (fingerprint, paths) for every set of two or more files with identical content.

    A fingerprint is yielded once per content class, so a group whose members only
    collide on the fingerprint may produce several entries or none.
    """
    for fingerprint, paths in index.duplicates():
        classes = split_by_content(paths, compare)
        if len(classes) > 1:
            logger.info(f"Fingerprint {fingerprint} covers {len(classes)} distinct contents")

        for members in classes:
            if len(members) > 1:
                yield fingerprint, members

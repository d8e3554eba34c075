"""Records flowing through the scan pipeline and the index they are collected into."""
from collections import Counter
from enum import StrEnum
from pathlib import Path
from typing import Iterator, NamedTuple


class FileRecord(NamedTuple):
    """A successfully fingerprinted file."""
    fingerprint: str
    path: Path


class SkipReason(StrEnum):
    EMPTY = 'empty'
    TOO_LARGE = 'too_large'
    OPEN_ERROR = 'open_error'
    STAT_ERROR = 'stat_error'
    READ_ERROR = 'read_error'
    WALK_ERROR = 'walk_error'
    NOT_REGULAR = 'not_regular'


class SkipRecord(NamedTuple):
    """A path that was excluded from the index, with the reason and an optional error description."""
    path: Path
    reason: SkipReason
    detail: str | None = None


class DuplicateIndex:
    """Mapping from fingerprint to the paths that produced it, in arrival order.

    The index is written by exactly one owner (the scan collector) while a scan is
    running, and is frozen once the pipeline has drained. Singleton groups are kept
    so the index accounts for every processed file; duplicates() filters them out.

    Attributes:
        skipped: SkipRecords in arrival order
        processed: Number of FileRecords added
    """

    def __init__(self):
        self._groups: dict[str, list[Path]] = {}
        self._frozen = False
        self.skipped: list[SkipRecord] = []
        self.processed = 0

    def add(self, record: FileRecord | SkipRecord):
        if self._frozen:
            raise RuntimeError("index is frozen")

        if isinstance(record, SkipRecord):
            self.skipped.append(record)
            return

        self._groups.setdefault(record.fingerprint, []).append(record.path)
        self.processed += 1

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __getitem__(self, fingerprint: str) -> list[Path]:
        return self._groups[fingerprint]

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._groups

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def items(self) -> Iterator[tuple[str, list[Path]]]:
        yield from self._groups.items()

    def duplicates(self) -> Iterator[tuple[str, list[Path]]]:
        """Yield (fingerprint, paths) for every group holding two or more paths."""
        for fingerprint, paths in self._groups.items():
            if len(paths) > 1:
                yield fingerprint, paths

    def skip_counts(self) -> Counter:
        return Counter(record.reason for record in self.skipped)

    def __repr__(self):
        return f"DuplicateIndex(groups={len(self._groups)}, processed={self.processed}, skipped={len(self.skipped)})"

"""Content fingerprints used as the grouping key for duplicate detection.

A fingerprint is the hex digest of a file's full content, optionally truncated
to a short prefix. Truncated fingerprints are collision-tolerant: two different
files may share one, so a group of paths under the same fingerprint is a
candidate set rather than a proof of identical content (see index.verify).
"""
import hashlib
from typing import BinaryIO

import mmh3

CHUNK_SIZE = 1024 * 1024


def _new_mmh3():
    return mmh3.mmh3_x64_128(seed=0)


# name -> (hasher factory, full digest length in hex characters)
ALGORITHMS = {
    'md5': (hashlib.md5, 32),
    'sha256': (hashlib.sha256, 64),
    'mmh3': (_new_mmh3, 32),
}

DEFAULT_ALGORITHM = 'md5'
DEFAULT_LENGTH = 8


class Fingerprinter:
    """Computes fixed-length hex fingerprints with a configurable algorithm.

    Args:
        algorithm: One of ALGORITHMS ('md5', 'sha256' or 'mmh3')
        length: Number of hex characters to keep, or None for the full digest

    Raises:
        ValueError: Unknown algorithm or length out of range
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM, length: int | None = DEFAULT_LENGTH):
        if algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown fingerprint algorithm: {algorithm}")

        self._factory, full_length = ALGORITHMS[algorithm]
        if length is None:
            length = full_length
        if not 1 <= length <= full_length:
            raise ValueError(f"Fingerprint length for {algorithm} must be between 1 and {full_length}, got {length}")

        self._algorithm = algorithm
        self._length = length

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def length(self) -> int:
        return self._length

    def fingerprint(self, data: bytes) -> str:
        hasher = self._factory()
        hasher.update(data)
        return self._finish(hasher)

    def fingerprint_file(self, f: BinaryIO) -> str:
        """Fingerprint the content of a binary file object positioned at its start, reading it in chunks."""
        if self._algorithm in hashlib.algorithms_guaranteed:
            # noinspection PyTypeChecker
            return self._finish(hashlib.file_digest(f, self._factory))

        hasher = self._factory()
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b''):
            hasher.update(chunk)
        return self._finish(hasher)

    def _finish(self, hasher) -> str:
        return hasher.digest().hex()[:self._length]

    def __repr__(self):
        return f"Fingerprinter({self._algorithm!r}, {self._length})"

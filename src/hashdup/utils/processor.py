import filecmp
import logging
import os
import pathlib

from .fingerprint import Fingerprinter
from ..index.duplicate_index import FileRecord, SkipRecord, SkipReason

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 1024 * 1024


def process_file(path: pathlib.Path, max_file_size: int, fingerprinter: Fingerprinter) -> FileRecord | SkipRecord:
    """Fingerprint a single file.

    Empty files and files larger than max_file_size are excluded without being read.
    Errors opening, stat'ing or reading the file are logged and turned into a
    SkipRecord; they never propagate, and no FileRecord is produced for a file whose
    content could not be read completely.

    :return: FileRecord for a fingerprinted file, SkipRecord otherwise."""
    try:
        f = open(path, "rb")
    except OSError as e:
        logger.warning(f"Failed to open file {path}: {e}")
        return SkipRecord(path, SkipReason.OPEN_ERROR, str(e))

    with f:
        try:
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            logger.warning(f"Failed to stat file {path}: {e}")
            return SkipRecord(path, SkipReason.STAT_ERROR, str(e))

        if size == 0:
            logger.debug(f"Skipping empty file: {path}")
            return SkipRecord(path, SkipReason.EMPTY)

        if size > max_file_size:
            logger.debug(f"Skipping file larger than {max_file_size} bytes: {path} ({size} bytes)")
            return SkipRecord(path, SkipReason.TOO_LARGE, f"{size} bytes")

        try:
            fingerprint = fingerprinter.fingerprint_file(f)
        except OSError as e:
            logger.warning(f"Failed to read file {path}: {e}")
            return SkipRecord(path, SkipReason.READ_ERROR, str(e))

    logger.debug(f"Fingerprinted {path}: {fingerprint}")
    return FileRecord(fingerprint, path)


def compare_file_content(a: pathlib.Path, b: pathlib.Path) -> bool:
    """Compare content of two files.

    :return: True if two files are equal, False otherwise."""
    return filecmp.cmp(a, b, shallow=False)

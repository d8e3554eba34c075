import logging
import os
from pathlib import Path
from typing import Iterator

from .commands.scan import ScanOptions, ProgressReporter, do_scan
from .index.duplicate_index import DuplicateIndex
from .index.settings import ScanSettings
from .index.verify import verify_duplicates


class Scanner:
    """Entry point for duplicate scans.

    Scanner ties together the scan options, progress reporting and the optional
    content verification step. Each run() builds a fresh DuplicateIndex; nothing is
    kept between runs.

    Example:
        scanner = Scanner(ScanOptions(worker_count=4))
        index = scanner.run('/data')
        for fingerprint, paths in scanner.duplicates(index, verify=True):
            print(fingerprint, paths)
    """

    def __init__(self, options: ScanOptions = ScanOptions(), reporter: ProgressReporter | None = None):
        self._options = options
        self._reporter = reporter

    @classmethod
    def from_settings(cls, settings: ScanSettings, reporter: ProgressReporter | None = None, **overrides) -> 'Scanner':
        """Create a scanner from settings, with keyword overrides for individual ScanOptions fields.

        Overrides whose value is None are ignored.
        """
        options = settings.to_options()
        options = options._replace(**{k: v for k, v in overrides.items() if v is not None})
        return cls(options, reporter)

    @property
    def options(self) -> ScanOptions:
        return self._options

    def run(self, root: str | os.PathLike) -> DuplicateIndex:
        """Scan root and return the frozen index of fingerprints to paths."""
        return do_scan(Path(root), self._options, self._reporter)

    @staticmethod
    def duplicates(index: DuplicateIndex, verify: bool = False) -> Iterator[tuple[str, list[Path]]]:
        """Duplicate groups of index; with verify, only groups whose content is confirmed byte by byte."""
        if verify:
            return verify_duplicates(index)
        return index.duplicates()


def configure_logging(settings: ScanSettings, log_file: str | None = None, log_level: str | None = None) -> bool:
    """Send log records to a file named on the command line or in the settings.

    Returns:
        True if logging was configured, False otherwise

    Raises:
        ValueError: Unknown log level
    """
    if log_file is None:
        log_file = settings.get('logging.path')
    if log_level is None:
        log_level = settings.get('logging.level', 'INFO')

    if not log_file:
        return False

    level = logging.getLevelNamesMapping().get(str(log_level).upper())
    if level is None:
        raise ValueError(f"Invalid log level: {log_level}")

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        filename=str(log_file),
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return True

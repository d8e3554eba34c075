import logging
import threading
from functools import partial
from pathlib import Path
from typing import NamedTuple

from ..index.duplicate_index import DuplicateIndex, FileRecord, SkipRecord, SkipReason
from ..utils.channel import Channel
from ..utils.fingerprint import DEFAULT_ALGORITHM, DEFAULT_LENGTH, Fingerprinter
from ..utils.processor import DEFAULT_MAX_FILE_SIZE, process_file
from ..utils.walker import walk
from ..utils.worker_pool import DEFAULT_CONCURRENCY, WorkerPool

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 10000
VERBOSE_PROGRESS_INTERVAL = 100


class ScanOptions(NamedTuple):
    """Tunables of a scan."""
    max_file_size: int = DEFAULT_MAX_FILE_SIZE  # Files above this many bytes are skipped
    worker_count: int = DEFAULT_CONCURRENCY  # Number of concurrent file processors
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL  # Fingerprinted files between progress notifications
    queue_size: int | None = None  # Capacity of the path queue, defaults to worker_count
    algorithm: str = DEFAULT_ALGORITHM
    fingerprint_length: int | None = DEFAULT_LENGTH


class ProgressReporter:
    """Receives progress notifications from the collector thread."""

    def progress(self, processed: int, unique: int):
        logger.info(f"Processed approximately {unique} unique hashes ({processed} files)")

    def finished(self, processed: int, skipped: int):
        logger.info(f"Processed {processed} files ({skipped} skipped)")


class Collector:
    """Single consumer of scan results and the only writer of the DuplicateIndex.

    Runs on its own thread. Because no other thread touches the index until join()
    has returned, the index needs no lock.
    """

    def __init__(self, index: DuplicateIndex, progress_interval: int, reporter: ProgressReporter):
        if progress_interval < 1:
            raise ValueError(f"Progress interval must be at least 1, got {progress_interval}")

        self._index = index
        self._progress_interval = progress_interval
        self._reporter = reporter
        self._thread: threading.Thread | None = None
        self._error: Exception | None = None

    def start(self, results: Channel[FileRecord | SkipRecord]):
        self._thread = threading.Thread(target=self._run, args=(results,), name="hashdup-collector", daemon=True)
        self._thread.start()

    def join(self) -> DuplicateIndex:
        """Wait until the result channel is closed and drained, then return the index.

        Raises:
            Exception: Whatever stopped the collector, typically raised by the reporter
        """
        if self._thread is not None:
            self._thread.join()
        if self._error is not None:
            raise self._error
        return self._index

    def _run(self, results: Channel[FileRecord | SkipRecord]):
        index = self._index
        try:
            for record in results:
                index.add(record)
                if isinstance(record, FileRecord) and index.processed % self._progress_interval == 0:
                    self._reporter.progress(index.processed, len(index))

            self._reporter.finished(index.processed, len(index.skipped))
        except Exception as e:
            logger.error(f"Collector stopped: {e}")
            self._error = e
            # Workers block on a full result channel unless somebody keeps reading it
            for _ in results:
                pass


def do_scan(root: Path, options: ScanOptions = ScanOptions(), reporter: ProgressReporter | None = None) -> DuplicateIndex:
    """Fingerprint every regular file under root and group the paths by fingerprint.

    The calling thread walks the tree and feeds a bounded path channel; a pool of worker
    threads fingerprints the files and sends records to a result channel; a collector
    thread builds the index from those records. Per-entry problems end up in
    DuplicateIndex.skipped rather than aborting the scan.

    Raises:
        ValueError: Invalid options
        Exception: Anything unexpected raised while processing a file or by the reporter, after the
                   pipeline has shut down
    """
    if reporter is None:
        reporter = ProgressReporter()

    fingerprinter = Fingerprinter(options.algorithm, options.fingerprint_length)
    queue_size = options.queue_size if options.queue_size is not None else options.worker_count
    if queue_size < 1:
        raise ValueError(f"Queue size must be at least 1, got {queue_size}")

    index = DuplicateIndex()
    paths: Channel[Path] = Channel(queue_size)
    results: Channel[FileRecord | SkipRecord] = Channel(queue_size)

    collector = Collector(index, options.progress_interval, reporter)
    pool = WorkerPool(partial(process_file, max_file_size=options.max_file_size, fingerprinter=fingerprinter),
                      options.worker_count)

    def walk_error(path: Path, error: OSError):
        logger.warning(f"Error walking {path}: {error}")
        results.put(SkipRecord(path, SkipReason.WALK_ERROR, str(error)))

    def not_regular(path: Path, mode: int):
        logger.debug(f"Skipping non-regular entry: {path}")
        results.put(SkipRecord(path, SkipReason.NOT_REGULAR))

    logger.info(f"Scanning {root} with {pool.concurrency} workers using {fingerprinter}")

    collector.start(results)
    pool.start(paths, results)
    try:
        for path in walk(Path(root), on_error=walk_error, on_skip=not_regular):
            paths.put(path)
    finally:
        paths.close()
        try:
            pool.join()
        finally:
            # Only once every worker is done, otherwise in-flight records would be lost
            results.close()
            try:
                collector.join()
            finally:
                index.freeze()

    logger.info(f"Scan of {root} complete: {index.processed} files, {len(index)} unique fingerprints, "
                f"{len(index.skipped)} skipped")
    return index

import logging
import threading
from pathlib import Path
from typing import Callable

from .channel import Channel
from .profiling import profile_worker
from ..index.duplicate_index import FileRecord, SkipRecord

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 16


class WorkerPool:
    """Fixed-size set of threads turning paths into records.

    Each worker takes paths from the path channel, runs the work function on them and
    puts the resulting record into the result channel, until the path channel is closed
    and drained. The channels are the only state the workers share.

    If the work function raises, the failing worker stops processing but keeps draining
    the path channel so the producer is never left blocked on a full channel. join()
    re-raises the first such exception once every worker has stopped.
    """

    def __init__(self, work: Callable[[Path], FileRecord | SkipRecord], concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency < 1:
            raise ValueError(f"Worker count must be at least 1, got {concurrency}")

        self._work = work
        self._concurrency = concurrency
        self._threads: list[threading.Thread] = []
        self._errors: list[Exception] = []
        self._errors_lock = threading.Lock()

    @property
    def concurrency(self):
        return self._concurrency

    def start(self, paths: Channel[Path], results: Channel[FileRecord | SkipRecord]):
        if self._threads:
            raise RuntimeError("worker pool already started")

        for i in range(self._concurrency):
            thread = threading.Thread(
                target=self._run, args=(paths, results), name=f"hashdup-worker-{i}", daemon=True)
            self._threads.append(thread)
            thread.start()

        logger.debug(f"Started {self._concurrency} workers")

    def join(self):
        for thread in self._threads:
            thread.join()

        if self._errors:
            raise self._errors[0]

    def _run(self, paths: Channel[Path], results: Channel[FileRecord | SkipRecord]):
        try:
            _work_loop(self._work, paths, results)
        except Exception as e:
            logger.error(f"Worker {threading.current_thread().name} failed: {e!r}")
            with self._errors_lock:
                self._errors.append(e)
            for _ in paths:
                pass


@profile_worker
def _work_loop(work, paths, results):
    for path in paths:
        results.put(work(path))

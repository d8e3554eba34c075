import queue
import threading
from typing import Generic, Iterator, TypeVar

T = TypeVar('T')


class ChannelClosed(RuntimeError):
    pass


class Channel(Generic[T]):
    """Bounded, closable conduit between producer and consumer threads.

    put() blocks while the channel is full, which gives backpressure to producers.
    close() marks the end of the stream: consumers iterating the channel receive every
    item put before close() and then stop. Any number of consumers may iterate the same
    channel; each item is delivered to exactly one of them. Producers must be
    finished before close() is called.

    Args:
        maxsize: Maximum number of buffered items, or 0 for unbounded
    """

    __END = object()

    def __init__(self, maxsize: int = 0):
        self._queue: queue.Queue = queue.Queue(maxsize)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T):
        if self._closed:
            raise ChannelClosed("put on closed channel")
        self._queue.put(item)

    def close(self):
        """Signal that no more items will be put.

        Raises:
            ChannelClosed: The channel was already closed
        """
        with self._lock:
            if self._closed:
                raise ChannelClosed("channel closed twice")
            self._closed = True

        # Blocks until there is room behind the remaining items
        self._queue.put(Channel.__END)

    def get(self) -> T:
        """Take the next item, blocking until one is available.

        Raises:
            ChannelClosed: The channel is closed and drained
        """
        item = self._queue.get()
        if item is Channel.__END:
            # Hand the end marker on to the next consumer
            self._queue.put(item)
            raise ChannelClosed("channel closed and drained")
        return item

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return

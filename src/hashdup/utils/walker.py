import logging
import stat
from pathlib import Path
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Path, OSError], None]
SkipCallback = Callable[[Path, int], None]


def _log_error(path: Path, error: OSError):
    logger.warning(f"Cannot access {path}: {error}")


def _log_skip(path: Path, mode: int):
    logger.debug(f"Skipping {path}: not a regular file ({stat.filemode(mode)})")


def walk(path: Path, on_error: ErrorCallback | None = None, on_skip: SkipCallback | None = None) -> Iterator[Path]:
    """Yield every regular file under path, depth-first.

    Symbolic links are never followed. Entries that are neither directories nor regular
    files are passed to on_skip with their st_mode. An entry that cannot be stat'ed or a
    directory that cannot be listed is passed to on_error and the walk carries on with
    the remaining entries. Without callbacks, errors are logged as warnings and skips at
    debug level.

    If path is itself a regular file, it is the only path yielded.
    """
    if on_error is None:
        on_error = _log_error
    if on_skip is None:
        on_skip = _log_skip

    try:
        st = path.stat(follow_symlinks=False)
    except OSError as e:
        on_error(path, e)
        return

    yield from _visit(path, st, on_error, on_skip)


def _visit(path: Path, st, on_error: ErrorCallback, on_skip: SkipCallback) -> Iterator[Path]:
    if stat.S_ISREG(st.st_mode):
        yield path
    elif stat.S_ISDIR(st.st_mode):
        yield from _walk_directory(path, on_error, on_skip)
    else:
        on_skip(path, st.st_mode)


def _walk_directory(path: Path, on_error: ErrorCallback, on_skip: SkipCallback) -> Iterator[Path]:
    try:
        children = sorted(path.iterdir())
    except OSError as e:
        on_error(path, e)
        return

    child: Path
    for child in children:
        try:
            st = child.stat(follow_symlinks=False)
        except OSError as e:
            on_error(child, e)
            continue

        yield from _visit(child, st, on_error, on_skip)

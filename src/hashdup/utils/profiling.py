"""Profiling support for hashdup using cProfile.

When the HASHDUP_PROFILE environment variable names a directory, the CLI entry point
and every worker thread loop are profiled. Each run gets its own sub-directory named
{timestamp_ms}_{pid}; every profiled call writes one .prof file into it.
"""
import cProfile
import functools
import itertools
import os
import threading
import time
from pathlib import Path
from typing import Callable, TypeVar, ParamSpec

P = ParamSpec('P')
T = TypeVar('T')

_profile_counter = itertools.count()
_session_lock = threading.Lock()
_session_dir: str | None = None


def get_profile_dir() -> Path | None:
    """Get the directory for this session's profile data, or None if profiling is off."""
    profile_path = os.environ.get('HASHDUP_PROFILE')
    if not profile_path:
        return None
    return Path(profile_path) / _get_session_dir_name()


def _get_session_dir_name() -> str:
    global _session_dir
    with _session_lock:
        if _session_dir is None:
            _session_dir = f"{int(time.time() * 1000)}_{os.getpid()}"
        return _session_dir


def generate_profile_filename(prefix: str = "profile") -> str:
    """Generate a unique filename such as "worker_hashdup-worker-3_7.prof"."""
    return f"{prefix}_{threading.current_thread().name}_{next(_profile_counter)}.prof"


def profile_function(func: Callable[P, T], prefix: str = "profile") -> Callable[P, T]:
    """Wrap func so that each call is profiled if HASHDUP_PROFILE is set."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        profile_dir = get_profile_dir()

        if profile_dir is None:
            return func(*args, **kwargs)

        profile_dir.mkdir(parents=True, exist_ok=True)
        profile_file = profile_dir / generate_profile_filename(prefix)

        # cProfile only observes the thread that enabled it
        profiler = cProfile.Profile()
        try:
            profiler.enable()
            return func(*args, **kwargs)
        finally:
            profiler.disable()
            profiler.dump_stats(str(profile_file))

    return wrapper


def profile_main(func: Callable[P, T]) -> Callable[P, T]:
    return profile_function(func, prefix="main")


def profile_worker(func: Callable[P, T]) -> Callable[P, T]:
    return profile_function(func, prefix="worker")

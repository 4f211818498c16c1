"""Optional cProfile instrumentation.

Set DUPAUDIT_PROFILE to a directory to collect one .prof file per profiled
call. Files of a single run land in a shared {timestamp_ms}_{main_pid}
subdirectory, including those written by pool workers.
"""
import cProfile
import functools
import itertools
import os
import time
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

P = ParamSpec('P')
T = TypeVar('T')

PROFILE_ENV = 'DUPAUDIT_PROFILE'
_SESSION_ENV = '_DUPAUDIT_PROFILE_SESSION_DIR'

_profile_counter = itertools.count()


def _session_dir_name() -> str:
    # Workers inherit the session name from the main process environment.
    session_dir = os.environ.get(_SESSION_ENV)
    if session_dir:
        return session_dir
    return f"{int(time.time() * 1000)}_{os.getpid()}"


def get_profile_dir() -> Path | None:
    profile_path = os.environ.get(PROFILE_ENV)
    if not profile_path:
        return None
    return Path(profile_path) / _session_dir_name()


def profile_function(func: Callable[P, T], prefix: str = "profile") -> Callable[P, T]:
    """Wrap func so each call is profiled while DUPAUDIT_PROFILE is set."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        profile_dir = get_profile_dir()
        if profile_dir is None:
            return func(*args, **kwargs)

        profile_dir.mkdir(parents=True, exist_ok=True)
        profile_file = profile_dir / f"{prefix}_{os.getpid()}_{next(_profile_counter)}.prof"

        profiler = cProfile.Profile()
        try:
            profiler.enable()
            return func(*args, **kwargs)
        finally:
            profiler.disable()
            profiler.dump_stats(str(profile_file))

    return wrapper


def profile_main(func: Callable[P, T]) -> Callable[P, T]:
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        if os.environ.get(PROFILE_ENV):
            os.environ[_SESSION_ENV] = _session_dir_name()
        return profile_function(func, prefix="main")(*args, **kwargs)

    return wrapper


def profile_worker(func: Callable[P, T]) -> Callable[P, T]:
    return profile_function(func, prefix="worker")

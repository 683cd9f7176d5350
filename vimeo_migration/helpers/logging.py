"""Colored step output with timing for the migration run."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Generator, TypeVar

from .formatting import Fore, Style

T = TypeVar("T")

Printer = Callable[[str], None]


def run_step(name: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run ``func`` as a named step, printing its outcome and duration.

    Parameters
    ----------
    name:
        Descriptive name for the step to display.
    func:
        Callable to execute.
    *args, **kwargs:
        Arguments forwarded to ``func``.

    Returns
    -------
    T
        Whatever ``func`` returns.
    """
    with log_timing(name):
        return func(*args, **kwargs)


@contextmanager
def log_timing(name: str, printer: Printer = print) -> Generator[None, None, None]:
    """Print ``name``, then whether the block completed or failed and how long it took."""
    printer(f"{Fore.CYAN}{name}{Style.RESET_ALL}")
    start = time.perf_counter()
    try:
        yield
    except Exception as exc:
        elapsed = time.perf_counter() - start
        printer(
            f"{Fore.RED}  ↳ failed after {Fore.MAGENTA}{elapsed:.2f}s{Fore.RED}: {exc}{Style.RESET_ALL}"
        )
        raise
    else:
        elapsed = time.perf_counter() - start
        printer(
            f"{Fore.GREEN}  ↳ completed in {Fore.MAGENTA}{elapsed:.2f}s{Style.RESET_ALL}"
        )


__all__ = ["log_timing", "run_step"]

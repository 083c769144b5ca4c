"""Decorators shared by the model loading entry points."""

import functools
import logging
import time
from typing import Callable

from .exceptions import BPEReaderError

log = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def log_load_time(func: Callable) -> Callable:
    """Log how long a model load took and how many tokens it produced."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            model = func(*args, **kwargs)
        except BPEReaderError:
            # the failure itself is reported by the caller
            log.debug(f"{func.__name__} failed after {_elapsed_ms(start):.2f} ms")
            raise
        log.info(
            f"{func.__name__} built {model.vocab_size()} tokens "
            f"in {_elapsed_ms(start):.2f} ms"
        )
        return model

    return wrapper

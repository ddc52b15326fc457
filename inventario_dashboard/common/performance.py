"""
Timing helpers for loads and fetches.

Log level follows elapsed time: INFO below one second, WARNING from one
second, ERROR from ten seconds.
"""

from __future__ import annotations

import logging
import time
from typing import Any

logger = logging.getLogger(__name__)

WARN_AFTER_SECONDS = 1.0
ERROR_AFTER_SECONDS = 10.0


def measure_time_context(operation_name: str) -> PerformanceContext:
    """
    Measure a code block (sync ``with`` or inside a coroutine).

    Examples:
        >>> with measure_time_context("inventory load"):
        ...     table = await source.fetch_inventory_lines()
        INFO - inventory load completed in 0.42s
    """
    return PerformanceContext(operation_name)


class PerformanceContext:
    """
    Context manager that logs how long a block took.

    Attributes:
        operation_name: label used in the log lines
        elapsed: seconds spent in the block, set on exit
    """

    def __init__(self, operation_name: str) -> None:
        self.operation_name = operation_name
        self.start_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> PerformanceContext:
        self.start_time = time.perf_counter()
        logger.debug(f"Starting: {self.operation_name}")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time

        if exc_type is not None:
            logger.error(f"{self.operation_name} failed after {self.elapsed:.2f}s")
        elif self.elapsed >= ERROR_AFTER_SECONDS:
            logger.error(
                f"SLOW: {self.operation_name} took {self.elapsed:.2f}s "
                f"(threshold: {ERROR_AFTER_SECONDS:.0f}s)"
            )
        elif self.elapsed >= WARN_AFTER_SECONDS:
            logger.warning(
                f"{self.operation_name} took {self.elapsed:.2f}s "
                f"(threshold: {WARN_AFTER_SECONDS:.0f}s)"
            )
        else:
            logger.info(f"{self.operation_name} completed in {self.elapsed:.2f}s")

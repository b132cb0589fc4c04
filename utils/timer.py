# utils/timer.py
import time
from contextlib import contextmanager

from core.logger import logger


class StepTimer:
    """Collects per-step durations for one request."""

    def __init__(self):
        self.totals = {}

    @contextmanager
    def time(self, step):
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.totals[step] = self.totals.get(step, 0) + elapsed
            logger.debug(f"[TIMER] {step} took {elapsed:.4f}s")

    def log(self):
        logger.debug(f"[PERF] Timing measurements: " +
                     ", ".join(f"{k}={v:.4f}s" for k, v in self.totals.items()))

"""Timing utilities for measuring pipeline stages."""

import time
from typing import Any

from neural_tts.utils.logging import ContextLogger, get_logger

_default_logger = get_logger("system")


class Timer:
    """
    Context manager that logs how long a block took.

    Usage:
        with Timer("model load", logger=logger, log_level="info", model="piper-en-us"):
            session = build_session()

        async with Timer("download") as t:
            await fetch()
        t.elapsed_ms
    """

    def __init__(
        self,
        name: str = "operation",
        log: bool = True,
        log_level: str = "debug",
        logger: ContextLogger | None = None,
        **context: Any,
    ) -> None:
        self.name = name
        self.log = log
        self.log_level = log_level.lower()
        self.logger = logger or _default_logger
        self.context = context
        self.start_time: float = 0
        self.end_time: float = 0
        self.duration: float = 0
        self._running = False

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        self._running = True
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self._running = False

        if not self.log:
            return
        log_fn = getattr(self.logger, self.log_level, self.logger.debug)
        duration_ms = round(self.duration * 1000, 2)
        if exc_type is not None:
            log_fn(f"{self.name} failed", duration_ms=duration_ms, error=str(exc_val), **self.context)
        else:
            log_fn(f"{self.name} completed", duration_ms=duration_ms, **self.context)

    async def __aenter__(self) -> "Timer":
        return self.__enter__()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds (live while running)."""
        if not self._running:
            return self.duration
        return time.perf_counter() - self.start_time

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

"""Reusable worker thread utilities."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Generic, TypeVar

from .shutdown import StopSignal

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueueWorker(threading.Thread, Generic[T]):
    """
    Base class for a queue-consuming worker thread.

    Subclasses implement `handle(item)` and optionally `cleanup()`, which runs once
    after the stop signal is observed.
    """

    def __init__(
        self,
        *,
        name: str,
        stop_signal: StopSignal,
        input_queue: "queue.Queue[T]",
        poll_interval_s: float = 0.1,
        daemon: bool = True,
    ):
        super().__init__(name=name, daemon=daemon)
        self._stop_signal = stop_signal
        self._input_queue = input_queue
        self._poll_interval_s = poll_interval_s

    def run(self) -> None:
        try:
            while not self._stop_signal.is_set():
                try:
                    item = self._input_queue.get(timeout=self._poll_interval_s)
                except queue.Empty:
                    continue

                try:
                    self.handle(item)
                finally:
                    self._input_queue.task_done()
        finally:
            logger.info("%s stopping", self.name)
            self.cleanup()

    def handle(self, item: T) -> None:
        raise NotImplementedError

    def cleanup(self) -> None:
        pass

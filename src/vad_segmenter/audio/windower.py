"""Reshape arbitrary-length PCM chunks into fixed VAD windows."""

from __future__ import annotations

from .types import AnalysisWindow, AudioChunk, BYTES_PER_SAMPLE, WINDOW_SAMPLES


class FrameWindower:
    """
    Buffers incoming chunks and cuts them into WINDOW_SAMPLES-sized windows.

    Leftover samples (always fewer than one window) are carried into the next push.
    """

    def __init__(self, window_samples: int = WINDOW_SAMPLES):
        self._window_bytes = window_samples * BYTES_PER_SAMPLE
        self._carry = b""

    @property
    def pending(self) -> bytes:
        """Samples waiting for the next window."""
        return self._carry

    def push(self, chunk: AudioChunk) -> list[AnalysisWindow]:
        """Validate and consume one chunk; returns the windows it completed."""
        chunk.validate()
        if not chunk.pcm:
            return []

        buffer = self._carry + chunk.pcm
        n_windows = len(buffer) // self._window_bytes
        cut = n_windows * self._window_bytes

        windows = [
            AnalysisWindow(pcm=buffer[i:i + self._window_bytes], sample_rate=chunk.sample_rate)
            for i in range(0, cut, self._window_bytes)
        ]
        self._carry = buffer[cut:]
        return windows

    def restore(self, carry: bytes) -> None:
        """Put back a carry-over captured from `pending` (rollback after a failed push)."""
        self._carry = carry

    def take_remainder(self) -> bytes:
        """Hand out the partial window and clear it."""
        remainder, self._carry = self._carry, b""
        return remainder

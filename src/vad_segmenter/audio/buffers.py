"""Audio buffers owned by the segmenter: pre-speech ring and utterance accumulator."""

from __future__ import annotations

from .types import BYTES_PER_SAMPLE


class PreSpeechRing:
    """
    Fixed-capacity rolling buffer of the most recent audio.

    Appending beyond capacity discards the oldest bytes.
    """

    def __init__(self, capacity_bytes: int):
        if capacity_bytes < 0 or capacity_bytes % BYTES_PER_SAMPLE:
            raise ValueError(f"capacity must be a non-negative whole number of samples, got {capacity_bytes}")
        self._capacity = capacity_bytes
        self._buf = bytearray(capacity_bytes)
        self._start = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def append(self, pcm: bytes) -> None:
        if self._capacity == 0 or not pcm:
            return
        if len(pcm) >= self._capacity:
            self._buf[:] = pcm[-self._capacity:]
            self._start = 0
            self._size = self._capacity
            return

        end = (self._start + self._size) % self._capacity
        first = min(len(pcm), self._capacity - end)
        self._buf[end:end + first] = pcm[:first]
        self._buf[:len(pcm) - first] = pcm[first:]

        overflow = self._size + len(pcm) - self._capacity
        if overflow > 0:
            self._start = (self._start + overflow) % self._capacity
            self._size = self._capacity
        else:
            self._size += len(pcm)

    def drain_as_prefix(self) -> bytes:
        """Return the retained audio oldest-first and empty the ring."""
        tail = self._capacity - self._start
        if self._size <= tail:
            out = bytes(self._buf[self._start:self._start + self._size])
        else:
            out = bytes(self._buf[self._start:]) + bytes(self._buf[:self._size - tail])
        self.clear()
        return out

    def clear(self) -> None:
        self._start = 0
        self._size = 0


class SegmentAccumulator:
    """Growing buffer of the utterance in progress."""

    def __init__(self):
        self._parts: list[bytes] = []
        self._n_bytes = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def __len__(self) -> int:
        return self._n_bytes

    def begin_with_prefix(self, prefix: bytes) -> None:
        if self._active:
            raise RuntimeError("Segment already open")
        self._active = True
        self._parts = [prefix] if prefix else []
        self._n_bytes = len(prefix)

    def append(self, pcm: bytes) -> None:
        if not self._active:
            raise RuntimeError("No open segment to append to")
        self._parts.append(pcm)
        self._n_bytes += len(pcm)

    def take_completed(self) -> bytes:
        """Hand out the utterance bytes; the accumulator is closed afterwards."""
        if not self._active:
            raise RuntimeError("No open segment to complete")
        payload = b"".join(self._parts)
        self.discard()
        return payload

    def discard(self) -> None:
        self._parts = []
        self._n_bytes = 0
        self._active = False

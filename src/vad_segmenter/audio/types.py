"""Segmentation data types and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

import numpy as np

from .errors import InvalidRateError, MalformedAudioError

REQUIRED_SAMPLE_RATE = 16000
BYTES_PER_SAMPLE = 2  # 16-bit signed little-endian
WINDOW_SAMPLES = 512  # Silero v5 window at 16kHz (32ms)


def bytes_per_ms(sample_rate: int = REQUIRED_SAMPLE_RATE) -> float:
    return sample_rate * BYTES_PER_SAMPLE / 1000.0


def ms_to_bytes(ms: float, sample_rate: int = REQUIRED_SAMPLE_RATE) -> int:
    """Convert a duration to a byte count, rounded down to a whole sample."""
    n_bytes = int(ms * bytes_per_ms(sample_rate))
    return n_bytes - (n_bytes % BYTES_PER_SAMPLE)


def bytes_to_ms(n_bytes: int, sample_rate: int = REQUIRED_SAMPLE_RATE) -> float:
    return n_bytes / bytes_per_ms(sample_rate)


class ForceCutPolicy(Enum):
    """What happens to the continuation segment after a max-length cut."""
    CONTINUE = auto()   # keep accumulating silently
    ANNOUNCE = auto()   # fire SentenceBegin again for the continuation


@dataclass(frozen=True)
class AudioChunk:
    """One incoming block of mono 16-bit PCM."""
    pcm: bytes
    sample_rate: int = REQUIRED_SAMPLE_RATE
    frame_ms: int = 20  # nominal, informational only

    def validate(self) -> None:
        if self.sample_rate != REQUIRED_SAMPLE_RATE:
            raise InvalidRateError(
                f"Sample rate must be {REQUIRED_SAMPLE_RATE} Hz, got {self.sample_rate}"
            )
        if len(self.pcm) % BYTES_PER_SAMPLE != 0:
            raise MalformedAudioError(
                f"PCM16 data must have even length, got {len(self.pcm)} bytes"
            )

    @property
    def n_samples(self) -> int:
        return len(self.pcm) // BYTES_PER_SAMPLE


@dataclass(frozen=True)
class AnalysisWindow:
    """Fixed-size slice of samples consumed by exactly one oracle call."""
    pcm: bytes
    sample_rate: int = REQUIRED_SAMPLE_RATE

    @property
    def n_samples(self) -> int:
        return len(self.pcm) // BYTES_PER_SAMPLE

    @property
    def duration_ms(self) -> float:
        return self.n_samples * 1000.0 / self.sample_rate

    def to_float32(self) -> np.ndarray:
        """Samples scaled to [-1, 1)."""
        return np.frombuffer(self.pcm, dtype="<i2").astype(np.float32) / 32768.0


@dataclass(frozen=True)
class SegmenterConfig:
    """Utterance segmentation (VAD + hysteresis) configuration."""
    sample_rate: int = REQUIRED_SAMPLE_RATE
    ms_per_frame: int = 20
    pre_speech_ms: int = 1200
    begin_of_utterance_ms: int = 500
    end_of_utterance_ms: int = 550
    max_speech_length_ms: int = 7000
    speech_threshold: float = 0.5
    force_cut_policy: ForceCutPolicy = ForceCutPolicy.CONTINUE

    def __post_init__(self) -> None:
        if self.sample_rate != REQUIRED_SAMPLE_RATE:
            raise InvalidRateError(
                f"Sample rate must be {REQUIRED_SAMPLE_RATE} Hz, got {self.sample_rate}"
            )
        for name in (
            "ms_per_frame",
            "pre_speech_ms",
            "begin_of_utterance_ms",
            "end_of_utterance_ms",
            "max_speech_length_ms",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 < self.speech_threshold < 1.0:
            raise ValueError(f"speech_threshold must be in (0, 1), got {self.speech_threshold}")

    @property
    def window_ms(self) -> float:
        return WINDOW_SAMPLES * 1000.0 / self.sample_rate

    @property
    def pre_speech_bytes(self) -> int:
        return ms_to_bytes(self.pre_speech_ms, self.sample_rate)

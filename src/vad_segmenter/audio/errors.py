"""Exceptions raised by the speech segmentation pipeline."""


class SegmenterError(Exception):
    """Base class for segmentation errors."""


class InvalidRateError(SegmenterError, ValueError):
    """Raised when audio arrives at a sample rate other than the one required."""


class MalformedAudioError(SegmenterError, ValueError):
    """Raised for PCM data that cannot be 16-bit samples (odd byte length, wrong window size)."""


class OracleFailure(SegmenterError, RuntimeError):
    """Raised when VAD inference fails."""


class ModelLoadError(OracleFailure):
    """Raised when the VAD model cannot be loaded."""

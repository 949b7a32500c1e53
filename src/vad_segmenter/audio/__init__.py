"""Speech segmentation core - windowing, VAD, hysteresis and utterance buffering."""

from __future__ import annotations

from .errors import (
    InvalidRateError,
    MalformedAudioError,
    ModelLoadError,
    OracleFailure,
    SegmenterError,
)
from .types import AnalysisWindow, AudioChunk, ForceCutPolicy, SegmenterConfig
from .windower import FrameWindower
from .vad import OracleState, OracleVerdict, SileroOracle, VadOracle
from .hysteresis import HysteresisDetector, SegmentState, Transition
from .buffers import PreSpeechRing, SegmentAccumulator
from .segmenter import SegmentSink, SpeechSegmenter, UtteranceCollector
from .worker import SegmenterWorker, Utterance


__all__ = [
    "AnalysisWindow",
    "AudioChunk",
    "ForceCutPolicy",
    "FrameWindower",
    "HysteresisDetector",
    "InvalidRateError",
    "MalformedAudioError",
    "ModelLoadError",
    "OracleFailure",
    "OracleState",
    "OracleVerdict",
    "PreSpeechRing",
    "SegmentAccumulator",
    "SegmentSink",
    "SegmentState",
    "SegmenterConfig",
    "SegmenterError",
    "SegmenterWorker",
    "SileroOracle",
    "SpeechSegmenter",
    "Transition",
    "Utterance",
    "UtteranceCollector",
    "VadOracle",
]

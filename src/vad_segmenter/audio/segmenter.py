"""Utterance segmentation: windowing, VAD, hysteresis and buffering per pushed chunk."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .buffers import PreSpeechRing, SegmentAccumulator
from .hysteresis import HysteresisDetector, SegmentState, Transition
from .types import (
    AudioChunk,
    BYTES_PER_SAMPLE,
    ForceCutPolicy,
    REQUIRED_SAMPLE_RATE,
    SegmenterConfig,
    bytes_to_ms,
)
from .vad import SileroOracle, VadOracle
from .windower import FrameWindower

logger = logging.getLogger(__name__)


class SegmentSink(Protocol):
    """Receiver of segmentation events. Called synchronously from push_frame."""

    def on_begin(self) -> None: ...

    def on_completed(self, pcm: bytes) -> None: ...


class UtteranceCollector:
    """Sink that records events so callers can poll for them."""

    def __init__(self):
        self.begins = 0
        self.completed: list[bytes] = []

    def on_begin(self) -> None:
        self.begins += 1

    def on_completed(self, pcm: bytes) -> None:
        self.completed.append(pcm)

    def drain(self) -> list[bytes]:
        """Return completed utterances collected so far and forget them."""
        out, self.completed = self.completed, []
        return out


class SpeechSegmenter:
    """
    Turns a mono 16kHz PCM stream into utterances.

    Not thread-safe: push from a single producer. One instance per audio stream.
    """

    def __init__(
        self,
        cfg: SegmenterConfig,
        sink: SegmentSink,
        oracle: Optional[VadOracle] = None,
    ):
        self._cfg = cfg
        self._sink = sink
        self._oracle = oracle if oracle is not None else SileroOracle(threshold=cfg.speech_threshold)
        self._oracle_state = self._oracle.initial_state()

        self._windower = FrameWindower(self._oracle.window_samples)
        self._detector = HysteresisDetector(cfg)
        self._ring = PreSpeechRing(cfg.pre_speech_bytes)
        self._accumulator = SegmentAccumulator()
        self._samples_seen = 0

    @property
    def state(self) -> SegmentState:
        return self._detector.state

    @property
    def stream_position_ms(self) -> float:
        """Audio time consumed by the VAD so far."""
        return self._samples_seen * 1000.0 / self._cfg.sample_rate

    def push_frame(
        self,
        mono_pcm: bytes,
        sample_rate: int = REQUIRED_SAMPLE_RATE,
        frame_length_ms: int = 20,
    ) -> None:
        """
        Push one block of mono PCM16 audio.

        Args:
            mono_pcm: 16-bit little-endian samples, any length
            sample_rate: Must be 16000
            frame_length_ms: Nominal block length, informational
        """
        self.push_chunk(AudioChunk(pcm=bytes(mono_pcm), sample_rate=sample_rate, frame_ms=frame_length_ms))

    def push_chunk(self, chunk: AudioChunk) -> None:
        carry = self._windower.pending
        windows = self._windower.push(chunk)
        if not windows:
            return

        # Classify against a copy so a failing call leaves every component untouched
        state = self._oracle_state.copy()
        try:
            verdicts = [self._oracle.classify(window, state) for window in windows]
        except Exception:
            logger.error("VAD oracle failed; chunk of %d bytes rejected", len(chunk.pcm))
            self._windower.restore(carry)
            raise
        self._oracle_state = state

        for window, verdict in zip(windows, verdicts):
            self._samples_seen += window.n_samples
            logger.debug("VAD p=%.3f speech=%s at %.0f ms", verdict.probability, verdict.is_speech, self.stream_position_ms)
            transition = self._detector.update(verdict.is_speech, window.duration_ms)
            self._route(window.pcm, transition)

    def _route(self, pcm: bytes, transition: Optional[Transition]) -> None:
        if transition is Transition.ONSET:
            self._accumulator.begin_with_prefix(self._ring.drain_as_prefix())
            self._accumulator.append(pcm)
            logger.info("Speech onset confirmed at %.0f ms", self.stream_position_ms)
            self._sink.on_begin()
            return

        if not self._accumulator.active:
            self._ring.append(pcm)
            return

        self._accumulator.append(pcm)
        if transition is Transition.END:
            self._complete("silence")
        elif transition is Transition.FORCE_CUT:
            self._complete("max length")
            self._accumulator.begin_with_prefix(b"")
            # a continuation that opens in trailing silence is not a new sentence
            if (
                self._cfg.force_cut_policy is ForceCutPolicy.ANNOUNCE
                and self._detector.state is SegmentState.IN_UTTERANCE
            ):
                self._sink.on_begin()

    def _complete(self, reason: str) -> None:
        payload = self._accumulator.take_completed()
        logger.info(
            "Utterance completed (%s) at %.0f ms: %d bytes (%.0f ms)",
            reason,
            self.stream_position_ms,
            len(payload),
            bytes_to_ms(len(payload), self._cfg.sample_rate),
        )
        self._sink.on_completed(payload)

    def flush(self) -> bool:
        """
        End of stream: emit the open utterance, if any, and return to idle.

        Samples still waiting for a full window are appended to the emitted utterance.
        Returns True if an utterance was emitted.
        """
        remainder = self._windower.take_remainder()
        if not self._accumulator.active:
            self._detector.reset()
            self._ring.clear()
            return False

        if remainder:
            self._accumulator.append(remainder)
            self._samples_seen += len(remainder) // BYTES_PER_SAMPLE
        self._detector.reset()
        self._ring.clear()
        self._complete("flush")
        return True

    def reset(self) -> None:
        """Drop all pending audio and VAD state without emitting anything."""
        self._windower.take_remainder()
        self._detector.reset()
        self._ring.clear()
        self._accumulator.discard()
        self._oracle_state = self._oracle.initial_state()

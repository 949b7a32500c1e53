"""Hysteresis over per-window speech verdicts."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Optional

from .types import SegmenterConfig

logger = logging.getLogger(__name__)


class SegmentState(Enum):
    IDLE = auto()
    CONFIRMING = auto()       # candidate onset being timed
    IN_UTTERANCE = auto()
    END_CONFIRMING = auto()   # candidate end being timed


class Transition(Enum):
    ONSET = auto()       # onset confirmed
    END = auto()         # silence-based close
    FORCE_CUT = auto()   # max length reached, continuation opened


class HysteresisDetector:
    """
    Turns a stream of is_speech verdicts into confirmed begin/end transitions.

    Holds durations and the current state only; no audio.
    """

    def __init__(self, cfg: SegmenterConfig):
        self._cfg = cfg
        self._state = SegmentState.IDLE
        self._speech_run_ms = 0.0    # consecutive speech while confirming
        self._silence_run_ms = 0.0   # consecutive silence while end-confirming
        self._utterance_ms = 0.0     # elapsed since the speech run that opened the segment

    @property
    def state(self) -> SegmentState:
        return self._state

    @property
    def in_utterance(self) -> bool:
        return self._state in (SegmentState.IN_UTTERANCE, SegmentState.END_CONFIRMING)

    @property
    def utterance_ms(self) -> float:
        return self._utterance_ms

    def update(self, is_speech: bool, window_ms: float) -> Optional[Transition]:
        """Advance by one window; returns the transition it caused, if any."""
        if self._state is SegmentState.IDLE:
            if not is_speech:
                return None
            self._state = SegmentState.CONFIRMING
            self._speech_run_ms = 0.0

        if self._state is SegmentState.CONFIRMING:
            if not is_speech:
                # any negative verdict drops the candidate
                self.reset()
                return None
            self._speech_run_ms += window_ms
            if self._speech_run_ms >= self._cfg.begin_of_utterance_ms:
                self._state = SegmentState.IN_UTTERANCE
                self._utterance_ms = self._speech_run_ms
                self._silence_run_ms = 0.0
                return Transition.ONSET
            return None

        self._utterance_ms += window_ms
        if is_speech:
            self._state = SegmentState.IN_UTTERANCE
            self._silence_run_ms = 0.0
        else:
            self._state = SegmentState.END_CONFIRMING
            self._silence_run_ms += window_ms
            if self._silence_run_ms >= self._cfg.end_of_utterance_ms:
                self.reset()
                return Transition.END

        if self._utterance_ms >= self._cfg.max_speech_length_ms:
            logger.debug("Max speech length reached after %.0f ms", self._utterance_ms)
            # silence already under way keeps counting toward the end of the continuation
            self._utterance_ms = 0.0
            return Transition.FORCE_CUT
        return None

    def reset(self) -> None:
        self._state = SegmentState.IDLE
        self._speech_run_ms = 0.0
        self._silence_run_ms = 0.0
        self._utterance_ms = 0.0

"""Queue-driven segmentation thread."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import Optional

from ..core.shutdown import StopSignal
from ..core.worker import QueueWorker

from .errors import InvalidRateError, MalformedAudioError
from .segmenter import SpeechSegmenter
from .types import AudioChunk, SegmenterConfig, bytes_to_ms
from .vad import VadOracle

logger = logging.getLogger(__name__)


@dataclass
class Utterance:
    """Complete utterance audio segment."""
    pcm: bytes  # PCM16 mono, includes pre-speech prefix
    sample_rate: int
    started_at_ms: float  # stream time
    ended_at_ms: float


class _QueueSink:
    """Forwards completed utterances into a bounded queue, dropping the oldest when full."""

    def __init__(self, worker: "SegmenterWorker", utterance_queue: "queue.Queue[Utterance]"):
        self._worker = worker
        self._utterance_queue = utterance_queue

    def on_begin(self) -> None:
        logger.debug("Utterance started at %.0f ms", self._worker.stream_position_ms)

    def on_completed(self, pcm: bytes) -> None:
        ended_at = self._worker.stream_position_ms
        sample_rate = self._worker.sample_rate
        utterance = Utterance(
            pcm=pcm,
            sample_rate=sample_rate,
            started_at_ms=max(0.0, ended_at - bytes_to_ms(len(pcm), sample_rate)),
            ended_at_ms=ended_at,
        )
        try:
            self._utterance_queue.put_nowait(utterance)
        except queue.Full:
            logger.warning("Utterance queue full, dropping oldest utterance")
            try:
                self._utterance_queue.get_nowait()
            except queue.Empty:
                pass
            self._utterance_queue.put_nowait(utterance)


class SegmenterWorker(QueueWorker[AudioChunk]):
    """
    Consumes AudioChunk stream and produces Utterance items.
    """

    def __init__(
            self,
            stop_signal: StopSignal,
            cfg: SegmenterConfig,
            chunks_queue: "queue.Queue[AudioChunk]",
            utterance_queue: "queue.Queue[Utterance]",
            oracle: Optional[VadOracle] = None,
    ):
        super().__init__(
            name="SegmenterThread",
            stop_signal=stop_signal,
            input_queue=chunks_queue,
            poll_interval_s=0.1,
        )
        self._cfg = cfg
        self._segmenter = SpeechSegmenter(
            cfg=cfg,
            sink=_QueueSink(self, utterance_queue),
            oracle=oracle,
        )

    @property
    def sample_rate(self) -> int:
        return self._cfg.sample_rate

    @property
    def stream_position_ms(self) -> float:
        return self._segmenter.stream_position_ms

    def handle(self, item: AudioChunk) -> None:
        try:
            self._segmenter.push_chunk(item)
        except (InvalidRateError, MalformedAudioError) as e:
            # rejected chunks leave the segmenter untouched; keep the stream going
            logger.warning("Dropping audio chunk: %s", e)

    def cleanup(self) -> None:
        """Flush any in-progress speech on shutdown."""
        self._segmenter.flush()

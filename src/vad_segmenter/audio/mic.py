"""Microphone audio capture."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Optional

import numpy as np
import sounddevice as sd

from ..core.shutdown import StopSignal

from .types import AudioChunk, REQUIRED_SAMPLE_RATE

logger = logging.getLogger(__name__)


class Mic(threading.Thread):
    """
    Continuously captures microphone audio and pushes PCM16 AudioChunks into chunks_queue.

    Keep the callback lightweight; no VAD here.
    """

    def __init__(
        self,
        stop_signal: StopSignal,
        chunks_queue: "queue.Queue[AudioChunk]",
        frame_ms: int = 20,
        device: Optional[int] = None,
    ):
        super().__init__(name="MicThread", daemon=True)
        self._stop_signal = stop_signal
        self._chunks_queue = chunks_queue
        self._frame_ms = frame_ms
        self._device = device

    def run(self) -> None:
        """Start microphone capture loop."""
        blocksize = int(REQUIRED_SAMPLE_RATE * self._frame_ms / 1000)

        def audio_callback(indata, frames, time_info, status):
            if status:
                logger.warning(f"Audio callback status: {status}")

            # indata shape is (frames, channels); keep the first channel
            pcm = np.ascontiguousarray(indata[:, 0], dtype="<i2").tobytes()
            chunk = AudioChunk(pcm=pcm, sample_rate=REQUIRED_SAMPLE_RATE, frame_ms=self._frame_ms)

            try:
                self._chunks_queue.put_nowait(chunk)
            except queue.Full:
                logger.warning("Chunks queue is full, dropping audio chunk")

        try:
            with sd.InputStream(
                callback=audio_callback,
                samplerate=REQUIRED_SAMPLE_RATE,
                channels=1,
                blocksize=blocksize,
                dtype="int16",
                device=self._device,
            ):
                while not self._stop_signal.is_set():
                    time.sleep(0.1)
        except Exception as e:
            logger.error(f"Error in microphone capture: {e}", exc_info=True)
        finally:
            logger.info("Microphone capture stopped")

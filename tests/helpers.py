"""PCM generators and test doubles shared by the test modules."""

import numpy as np

from vad_segmenter.audio.errors import OracleFailure
from vad_segmenter.audio.types import AudioChunk, WINDOW_SAMPLES
from vad_segmenter.audio.vad import OracleState, OracleVerdict

SAMPLE_RATE = 16000
WINDOW_BYTES = WINDOW_SAMPLES * 2


def speech_pcm(n_samples, frequency=500, amplitude=0.3):
    """Speech-like PCM16 bytes (sine wave in speech frequency range)."""
    t = np.arange(n_samples) / SAMPLE_RATE
    signal = amplitude * np.sin(2 * np.pi * frequency * t)
    return (signal * 32767).astype("<i2").tobytes()


def silence_pcm(n_samples):
    return bytes(n_samples * 2)


def stream(*parts):
    """Build a PCM stream from ("speech" | "silence", n_windows) parts."""
    out = b""
    for kind, n_windows in parts:
        n_samples = n_windows * WINDOW_SAMPLES
        out += speech_pcm(n_samples) if kind == "speech" else silence_pcm(n_samples)
    return out


def chunked(pcm, frame_ms=20):
    """Split a stream into AudioChunks the way a 20ms RTP source delivers it."""
    step = SAMPLE_RATE * frame_ms // 1000 * 2
    return [
        AudioChunk(pcm=pcm[i:i + step], sample_rate=SAMPLE_RATE, frame_ms=frame_ms)
        for i in range(0, len(pcm), step)
    ]


class EnergyOracle:
    """Deterministic stand-in for Silero: probability follows window RMS."""

    window_samples = WINDOW_SAMPLES
    sample_rate = SAMPLE_RATE

    def __init__(self, threshold=0.5, fail_on_call=None):
        self.threshold = threshold
        self.fail_on_call = fail_on_call
        self.calls = 0

    def initial_state(self):
        return OracleState()

    def classify(self, window, state):
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise OracleFailure("inference backend unavailable")
        samples = window.to_float32()
        probability = min(1.0, float(np.sqrt(np.mean(samples ** 2))) * 4)
        state.context = samples[-64:].copy()
        return OracleVerdict(probability=probability, is_speech=probability > self.threshold)


class RecordingSink:
    """Records events with the stream position at which they fired."""

    def __init__(self):
        self.segmenter = None
        self.events = []

    def _position(self):
        return self.segmenter.stream_position_ms if self.segmenter is not None else None

    def on_begin(self):
        self.events.append(("begin", self._position()))

    def on_completed(self, pcm):
        self.events.append(("completed", self._position(), pcm))

    @property
    def begins(self):
        return [e for e in self.events if e[0] == "begin"]

    @property
    def completed(self):
        return [e for e in self.events if e[0] == "completed"]

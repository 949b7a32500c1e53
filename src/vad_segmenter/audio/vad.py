"""Silero VAD oracle: one fixed window in, one speech probability out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

import numpy as np
import onnxruntime as ort

from .errors import InvalidRateError, MalformedAudioError, ModelLoadError, OracleFailure
from .types import AnalysisWindow, REQUIRED_SAMPLE_RATE, WINDOW_SAMPLES

logger = logging.getLogger(__name__)

CONTEXT_SAMPLES = 64  # Silero v5 prepends the tail of the previous window at 16kHz
STATE_SHAPE = (2, 1, 128)

ModelSource = Union[str, Path, bytes]


@dataclass(frozen=True)
class OracleVerdict:
    """Classification of one analysis window."""
    probability: float
    is_speech: bool


@dataclass
class OracleState:
    """Recurrent state carried from one window to the next."""
    rnn: np.ndarray = field(default_factory=lambda: np.zeros(STATE_SHAPE, dtype=np.float32))
    context: np.ndarray = field(default_factory=lambda: np.zeros(CONTEXT_SAMPLES, dtype=np.float32))

    def copy(self) -> "OracleState":
        return OracleState(rnn=self.rnn.copy(), context=self.context.copy())


class VadOracle(Protocol):
    """Anything that can classify a window given an explicit recurrent state."""

    window_samples: int
    sample_rate: int

    def initial_state(self) -> OracleState: ...

    def classify(self, window: AnalysisWindow, state: OracleState) -> OracleVerdict: ...


def bundled_model_path() -> Path:
    """Path of the Silero v5 ONNX model shipped with the silero-vad package."""
    return Path(str(resources.files("silero_vad.data").joinpath("silero_vad.onnx")))


class SileroOracle:
    """
    Silero VAD v5 over onnxruntime.

    The session is stateless; recurrent state lives in the OracleState passed to
    `classify`, which updates it in place on success.
    """

    window_samples = WINDOW_SAMPLES
    sample_rate = REQUIRED_SAMPLE_RATE

    def __init__(
        self,
        model_source: Optional[ModelSource] = None,
        threshold: float = 0.5,
        providers: Optional[Sequence[str]] = None,
    ):
        """
        Load the model; fail fast if it is not available.

        Args:
            model_source: ONNX file path or raw model bytes (default: model bundled with silero-vad)
            threshold: Probability above which a window counts as speech
            providers: onnxruntime execution providers, e.g. ["CUDAExecutionProvider", "CPUExecutionProvider"] (default: CPU only)
        """
        self._threshold = threshold
        self._last_probability = 0.0

        if model_source is None:
            model_source = bundled_model_path()
        if isinstance(model_source, Path):
            model_source = str(model_source)

        opts = ort.SessionOptions()
        opts.inter_op_num_threads = 1
        opts.intra_op_num_threads = 1
        try:
            self._session = ort.InferenceSession(
                model_source,
                sess_options=opts,
                providers=list(providers or ["CPUExecutionProvider"]),
            )
        except Exception as e:
            logger.error("Failed to load Silero VAD model: %s", e)
            raise ModelLoadError(f"Failed to load Silero VAD model: {e}") from e
        logger.info("Silero VAD model loaded (threshold=%.2f)", threshold)

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def last_probability(self) -> float:
        """Probability from the most recent call, for diagnostics."""
        return self._last_probability

    def initial_state(self) -> OracleState:
        return OracleState()

    def classify(self, window: AnalysisWindow, state: OracleState) -> OracleVerdict:
        if window.sample_rate != self.sample_rate:
            raise InvalidRateError(
                f"Sample rate must be {self.sample_rate} Hz, got {window.sample_rate}"
            )
        if window.n_samples != self.window_samples:
            raise MalformedAudioError(
                f"Window must have {self.window_samples} samples, got {window.n_samples}"
            )

        samples = window.to_float32()
        x = np.concatenate([state.context, samples])[np.newaxis, :]
        ort_inputs = {
            "input": x,
            "state": state.rnn,
            "sr": np.array(self.sample_rate, dtype=np.int64),
        }
        try:
            out, new_rnn = self._session.run(None, ort_inputs)
        except Exception as e:
            raise OracleFailure(f"Silero VAD inference failed: {e}") from e

        probability = float(np.asarray(out).reshape(-1)[0])
        state.rnn = np.asarray(new_rnn, dtype=np.float32)
        state.context = samples[-CONTEXT_SAMPLES:].copy()
        self._last_probability = probability
        return OracleVerdict(probability=probability, is_speech=probability > self._threshold)

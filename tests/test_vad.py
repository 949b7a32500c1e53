"""Tests for the Silero ONNX oracle adapter."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from vad_segmenter.audio.errors import InvalidRateError, MalformedAudioError, ModelLoadError, OracleFailure
from vad_segmenter.audio.types import AnalysisWindow
from vad_segmenter.audio.vad import CONTEXT_SAMPLES, STATE_SHAPE, OracleState, SileroOracle

from tests.helpers import speech_pcm


@pytest.fixture
def session():
    session = MagicMock()
    session.run.return_value = [
        np.array([[0.8]], dtype=np.float32),
        np.full(STATE_SHAPE, 0.25, dtype=np.float32),
    ]
    return session


@pytest.fixture
def oracle(session):
    with patch("vad_segmenter.audio.vad.ort.InferenceSession", return_value=session), \
            patch("vad_segmenter.audio.vad.bundled_model_path", return_value=Path("/models/silero_vad.onnx")):
        return SileroOracle(threshold=0.5)


class TestSileroOracle:

    def test_loads_bundled_model_by_default(self):
        with patch("vad_segmenter.audio.vad.ort.InferenceSession") as mock_session_cls, \
                patch("vad_segmenter.audio.vad.bundled_model_path", return_value=Path("/models/silero_vad.onnx")):
            SileroOracle()
        assert mock_session_cls.call_args[0][0] == "/models/silero_vad.onnx"

    def test_accepts_model_bytes(self):
        with patch("vad_segmenter.audio.vad.ort.InferenceSession") as mock_session_cls:
            SileroOracle(model_source=b"onnx-bytes")
        assert mock_session_cls.call_args[0][0] == b"onnx-bytes"

    def test_cpu_provider_by_default(self):
        with patch("vad_segmenter.audio.vad.ort.InferenceSession") as mock_session_cls:
            SileroOracle(model_source=b"onnx-bytes")
        assert mock_session_cls.call_args.kwargs["providers"] == ["CPUExecutionProvider"]

    def test_custom_providers(self):
        with patch("vad_segmenter.audio.vad.ort.InferenceSession") as mock_session_cls:
            SileroOracle(model_source=b"onnx-bytes", providers=("CUDAExecutionProvider", "CPUExecutionProvider"))
        assert mock_session_cls.call_args.kwargs["providers"] == ["CUDAExecutionProvider", "CPUExecutionProvider"]

    def test_model_load_failure(self):
        with patch("vad_segmenter.audio.vad.ort.InferenceSession", side_effect=RuntimeError("bad model")):
            with pytest.raises(ModelLoadError):
                SileroOracle(model_source="/missing.onnx")

    def test_classify_returns_verdict_and_updates_state(self, oracle, session):
        window = AnalysisWindow(pcm=speech_pcm(512))
        state = OracleState()

        verdict = oracle.classify(window, state)

        assert verdict.probability == pytest.approx(0.8)
        assert verdict.is_speech is True
        assert oracle.last_probability == pytest.approx(0.8)
        assert np.all(state.rnn == 0.25)
        assert np.allclose(state.context, window.to_float32()[-CONTEXT_SAMPLES:])

    def test_model_input_is_context_plus_window(self, oracle, session):
        state = OracleState()
        state.context[:] = 0.5
        oracle.classify(AnalysisWindow(pcm=speech_pcm(512)), state)

        inputs = session.run.call_args[0][1]
        assert inputs["input"].shape == (1, CONTEXT_SAMPLES + 512)
        assert inputs["input"].dtype == np.float32
        assert np.all(inputs["input"][0, :CONTEXT_SAMPLES] == 0.5)
        assert inputs["state"].shape == STATE_SHAPE
        assert inputs["sr"] == 16000
        assert inputs["sr"].dtype == np.int64

    def test_probability_at_threshold_is_not_speech(self, oracle, session):
        session.run.return_value = [np.array([[0.5]], dtype=np.float32), np.zeros(STATE_SHAPE, dtype=np.float32)]
        verdict = oracle.classify(AnalysisWindow(pcm=speech_pcm(512)), OracleState())
        assert verdict.is_speech is False

    def test_wrong_window_length(self, oracle, session):
        with pytest.raises(MalformedAudioError):
            oracle.classify(AnalysisWindow(pcm=speech_pcm(320)), OracleState())
        session.run.assert_not_called()

    def test_wrong_sample_rate(self, oracle, session):
        with pytest.raises(InvalidRateError):
            oracle.classify(AnalysisWindow(pcm=speech_pcm(512), sample_rate=8000), OracleState())
        session.run.assert_not_called()

    def test_inference_failure_leaves_state_untouched(self, oracle, session):
        session.run.side_effect = RuntimeError("onnxruntime exploded")
        state = OracleState()

        with pytest.raises(OracleFailure):
            oracle.classify(AnalysisWindow(pcm=speech_pcm(512)), state)

        assert np.all(state.rnn == 0)
        assert np.all(state.context == 0)


def test_state_copy_is_independent():
    state = OracleState()
    clone = state.copy()
    clone.rnn[:] = 1.0
    clone.context[:] = 1.0
    assert np.all(state.rnn == 0)
    assert np.all(state.context == 0)

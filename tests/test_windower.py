"""Tests for FrameWindower chunk reshaping."""

import pytest

from vad_segmenter.audio.errors import InvalidRateError, MalformedAudioError
from vad_segmenter.audio.types import AudioChunk
from vad_segmenter.audio.windower import FrameWindower

from tests.helpers import WINDOW_BYTES, speech_pcm


def chunk_of(n_samples, sample_rate=16000):
    return AudioChunk(pcm=speech_pcm(n_samples), sample_rate=sample_rate)


class TestFrameWindower:

    @pytest.fixture
    def windower(self):
        return FrameWindower()

    def test_small_chunks_are_carried_until_a_window_fills(self, windower):
        assert windower.push(chunk_of(320)) == []
        assert len(windower.pending) == 640

        windows = windower.push(chunk_of(320))
        assert len(windows) == 1
        assert windows[0].n_samples == 512
        assert len(windower.pending) == (640 - 512) * 2

    def test_large_chunk_yields_several_windows(self, windower):
        windows = windower.push(chunk_of(512 * 3 + 100))
        assert len(windows) == 3
        assert all(len(w.pcm) == WINDOW_BYTES for w in windows)
        assert len(windower.pending) == 200

    def test_windows_preserve_byte_order_across_chunks(self, windower):
        pcm = speech_pcm(2048)
        out = b""
        for i in range(0, len(pcm), 300):
            out += b"".join(w.pcm for w in windower.push(AudioChunk(pcm=pcm[i:i + 300])))
        assert out + windower.pending == pcm

    def test_empty_chunk_is_a_no_op(self, windower):
        windower.push(chunk_of(100))
        assert windower.push(AudioChunk(pcm=b"")) == []
        assert len(windower.pending) == 200

    def test_odd_byte_length_rejected_without_touching_carry(self, windower):
        windower.push(chunk_of(100))
        before = windower.pending
        with pytest.raises(MalformedAudioError):
            windower.push(AudioChunk(pcm=b"\x00" * 641))
        assert windower.pending == before

    def test_wrong_sample_rate_rejected(self, windower):
        with pytest.raises(InvalidRateError):
            windower.push(chunk_of(320, sample_rate=8000))
        assert windower.pending == b""

    def test_restore_and_take_remainder(self, windower):
        windower.push(chunk_of(100))
        saved = windower.pending
        windower.push(chunk_of(600))
        windower.restore(saved)
        assert windower.pending == saved

        assert windower.take_remainder() == saved
        assert windower.pending == b""

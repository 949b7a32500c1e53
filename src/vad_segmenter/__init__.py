"""Streaming VAD speech segmenter."""

__version__ = "0.1.0"

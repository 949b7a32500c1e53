"""Command-line entry point: split a WAV recording into utterance files."""

import argparse
import logging
import queue
import sys
import wave
from pathlib import Path
from typing import Optional

from .audio.errors import InvalidRateError, MalformedAudioError, SegmenterError
from .audio.segmenter import SpeechSegmenter, UtteranceCollector
from .audio.types import AudioChunk, BYTES_PER_SAMPLE, REQUIRED_SAMPLE_RATE, SegmenterConfig
from .audio.vad import SileroOracle
from .audio.worker import SegmenterWorker, Utterance
from .config.settings import create_example_env_file, load_settings, setup_logging
from .core.shutdown import GracefulShutdown

logger = logging.getLogger(__name__)


def read_pcm16_wav(path: Path) -> bytes:
    with wave.open(str(path), "rb") as wav:
        if wav.getnchannels() != 1:
            raise MalformedAudioError(f"{path}: expected mono audio, got {wav.getnchannels()} channels")
        if wav.getsampwidth() != BYTES_PER_SAMPLE:
            raise MalformedAudioError(f"{path}: expected 16-bit samples, got {wav.getsampwidth() * 8}-bit")
        if wav.getframerate() != REQUIRED_SAMPLE_RATE:
            raise InvalidRateError(f"{path}: expected {REQUIRED_SAMPLE_RATE} Hz, got {wav.getframerate()} Hz")
        return wav.readframes(wav.getnframes())


def write_pcm16_wav(path: Path, pcm: bytes, sample_rate: int = REQUIRED_SAMPLE_RATE) -> None:
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(BYTES_PER_SAMPLE)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)


def segment_pcm(segmenter: SpeechSegmenter, pcm: bytes, frame_ms: int) -> None:
    """Feed a whole recording in frame_ms blocks, as a live source would, then flush."""
    step = int(REQUIRED_SAMPLE_RATE * frame_ms / 1000) * BYTES_PER_SAMPLE
    for offset in range(0, len(pcm), step):
        segmenter.push_frame(pcm[offset:offset + step], REQUIRED_SAMPLE_RATE, frame_ms)
    segmenter.flush()


def run_live(cfg: SegmenterConfig, model_path: Optional[str], out_dir: Path, device: Optional[int]) -> int:
    """Capture from the microphone and write utterances as they complete."""
    # sounddevice needs PortAudio; only load it for live capture
    from .audio.mic import Mic

    shutdown = GracefulShutdown()
    chunks_queue: "queue.Queue[AudioChunk]" = queue.Queue(maxsize=400)
    utterance_queue: "queue.Queue[Utterance]" = queue.Queue(maxsize=20)

    oracle = SileroOracle(model_source=model_path, threshold=cfg.speech_threshold)
    mic = Mic(stop_signal=shutdown, chunks_queue=chunks_queue, frame_ms=cfg.ms_per_frame, device=device)
    worker = SegmenterWorker(
        stop_signal=shutdown,
        cfg=cfg,
        chunks_queue=chunks_queue,
        utterance_queue=utterance_queue,
        oracle=oracle,
    )

    out_dir.mkdir(parents=True, exist_ok=True)
    mic.start()
    worker.start()
    print("Listening... press Ctrl+C to stop")

    count = 0
    try:
        while worker.is_alive():
            try:
                utterance = utterance_queue.get(timeout=0.2)
            except queue.Empty:
                continue
            count += 1
            out_path = out_dir / f"utterance_{count:03d}.wav"
            write_pcm16_wav(out_path, utterance.pcm, utterance.sample_rate)
            print(f"[{utterance.started_at_ms / 1000:.2f}s - {utterance.ended_at_ms / 1000:.2f}s] {out_path}")
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        shutdown.stop()
        mic.join()
        worker.join()

    while not utterance_queue.empty():
        utterance = utterance_queue.get_nowait()
        count += 1
        write_pcm16_wav(out_dir / f"utterance_{count:03d}.wav", utterance.pcm, utterance.sample_rate)

    print(f"{count} utterances written to {out_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Split 16kHz mono speech into utterances with Silero VAD")
    parser.add_argument("input", nargs="?", type=Path, help="16kHz mono 16-bit WAV file")
    parser.add_argument("--out-dir", type=Path, default=Path("utterances"), help="Directory for utterance WAV files")
    parser.add_argument("--env", type=str, default=".env", help="Path to config file")
    parser.add_argument("--threshold", type=float, help="Override VAD speech threshold")
    parser.add_argument("--frame-ms", type=int, help="Override incoming frame length in ms")
    parser.add_argument("--announce-continuation", action="store_true",
                        help="Treat the continuation after a max-length cut as a new utterance start")
    parser.add_argument("--mic", action="store_true", help="Segment live microphone audio until Ctrl+C")
    parser.add_argument("--device", type=int, help="Input device index for --mic")
    parser.add_argument("--create-config", action="store_true", help="Create example config file")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.create_config:
        create_example_env_file()
        print("Example configuration file created at .env.example")
        return 0

    if args.input is None and not args.mic:
        print("No input file given. Run with --help for usage.")
        return 2

    try:
        settings = load_settings(Path(args.env))
        overrides = {}
        if args.threshold is not None:
            overrides["vad_threshold"] = args.threshold
        if args.frame_ms is not None:
            overrides["ms_per_frame"] = args.frame_ms
        if args.announce_continuation:
            overrides["announce_continuation"] = True
        if overrides:
            settings = settings.model_copy(update=overrides)
        setup_logging(settings.log_level)

        cfg = settings.to_config()
        if args.mic:
            return run_live(cfg, settings.vad_model_path, args.out_dir, args.device)

        pcm = read_pcm16_wav(args.input)
        collector = UtteranceCollector()
        segmenter = SpeechSegmenter(
            cfg=cfg,
            sink=collector,
            oracle=SileroOracle(model_source=settings.vad_model_path, threshold=cfg.speech_threshold),
        )
        segment_pcm(segmenter, pcm, cfg.ms_per_frame)
    except FileNotFoundError as e:
        print(f"File not found: {e}")
        return 1
    except (SegmenterError, ValueError, wave.Error) as e:
        print(f"Error: {e}")
        return 1

    utterances = collector.drain()
    args.out_dir.mkdir(parents=True, exist_ok=True)
    for i, utterance in enumerate(utterances, start=1):
        out_path = args.out_dir / f"utterance_{i:03d}.wav"
        write_pcm16_wav(out_path, utterance)
        logger.info("Wrote %s", out_path)

    print(f"{collector.begins} onsets, {len(utterances)} utterances written to {args.out_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import logging

from ..audio.types import ForceCutPolicy, SegmenterConfig

logger = logging.getLogger(__name__)


class SegmenterSettings(BaseModel):
    vad_model_path: Optional[str] = Field(default=None, description="Custom Silero ONNX model; bundled model when unset")
    vad_threshold: float = Field(default=0.5, gt=0.0, lt=1.0, description="Speech probability threshold")
    pre_speech_ms: int = Field(default=1200, gt=0, description="Audio kept before confirmed onset")
    begin_of_utterance_ms: int = Field(default=500, gt=0, description="Consecutive speech needed to confirm onset")
    end_of_utterance_ms: int = Field(default=550, gt=0, description="Consecutive silence needed to close an utterance")
    max_speech_length_ms: int = Field(default=7000, gt=0, description="Hard cap on a single utterance")
    ms_per_frame: int = Field(default=20, gt=0, description="Nominal incoming frame length")
    announce_continuation: bool = Field(default=False, description="Fire SentenceBegin again after a max-length cut")
    log_level: str = Field(default="INFO", description="Logging level")

    def to_config(self) -> SegmenterConfig:
        return SegmenterConfig(
            ms_per_frame=self.ms_per_frame,
            pre_speech_ms=self.pre_speech_ms,
            begin_of_utterance_ms=self.begin_of_utterance_ms,
            end_of_utterance_ms=self.end_of_utterance_ms,
            max_speech_length_ms=self.max_speech_length_ms,
            speech_threshold=self.vad_threshold,
            force_cut_policy=ForceCutPolicy.ANNOUNCE if self.announce_continuation else ForceCutPolicy.CONTINUE,
        )


def load_settings(config_path: Optional[Path] = None) -> SegmenterSettings:
    if config_path is None:
        config_path = Path(".env")

    if config_path.exists():
        load_dotenv(config_path)
        logger.info(f"Loaded environment variables from {config_path}")
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables only")

    try:
        return SegmenterSettings(
            vad_model_path=os.getenv("VAD_MODEL_PATH") or None,
            vad_threshold=float(os.getenv("VAD_THRESHOLD", "0.5")),
            pre_speech_ms=int(os.getenv("VAD_PRE_SPEECH_MS", "1200")),
            begin_of_utterance_ms=int(os.getenv("VAD_BEGIN_OF_UTTERANCE_MS", "500")),
            end_of_utterance_ms=int(os.getenv("VAD_END_OF_UTTERANCE_MS", "550")),
            max_speech_length_ms=int(os.getenv("VAD_MAX_SPEECH_LENGTH_MS", "7000")),
            ms_per_frame=int(os.getenv("VAD_MS_PER_FRAME", "20")),
            announce_continuation=os.getenv("VAD_ANNOUNCE_CONTINUATION", "false").lower() in ("true", "1", "yes"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def create_example_env_file(path: Path = Path(".env.example")):
    example_content = """# Custom Silero VAD ONNX model (leave empty for the model bundled with silero-vad)
VAD_MODEL_PATH=

# Speech probability threshold (0-1)
VAD_THRESHOLD=0.5

# Segmentation timing in milliseconds
VAD_PRE_SPEECH_MS=1200
VAD_BEGIN_OF_UTTERANCE_MS=500
VAD_END_OF_UTTERANCE_MS=550
VAD_MAX_SPEECH_LENGTH_MS=7000

# Nominal incoming frame length in milliseconds
VAD_MS_PER_FRAME=20

# Fire a new begin event for the continuation after a max-length cut (true/false)
VAD_ANNOUNCE_CONTINUATION=false

# Logging level
LOG_LEVEL=INFO
"""

    with open(path, "w") as f:
        f.write(example_content)

    logger.info(f"Created example environment file at {path}")


def setup_logging(log_level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

import os
from pathlib import Path
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from dotenv import load_dotenv
import logging

from ..audio.input.chunk_queue import OverflowPolicy
from ..audio.input.types import InputSource
from ..core.events import ResultType

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPEECH_CAPTURE_"


class CaptureConfig(BaseModel):
    sample_rate: int = Field(default=16000, gt=0, description="Sample rate of delivered segments (Hz)")
    input_sample_rate: Optional[int] = Field(default=None, gt=0, description="Sample rate of the audio input (Hz); defaults to sample_rate")
    buffer_size: int = Field(default=16384, gt=0, description="Expected input chunk size in frames, used for the initial window geometry")
    channels: int = Field(default=1, ge=1, description="Number of interleaved input channels")
    threshold_db: float = Field(default=15.0, description="Decibels above the ambient average considered speech")
    min_length_ms: int = Field(default=500, gt=0, description="Utterances of at most this length are discarded")
    max_length_ms: int = Field(default=10000, gt=0, description="Utterances are cut at this length")
    allowed_delay_ms: int = Field(default=400, gt=0, description="Silence allowed inside an utterance before it is considered stopped")
    analysis_chunk_length_ms: int = Field(default=100, gt=0, description="Length of one analysis window and the drain cadence")
    compress_pauses: bool = Field(default=False, description="Remove short pauses from the captured audio")
    detect_only: bool = Field(default=False, description="Only detect speech, do not capture audio")
    result_type: ResultType = Field(default=ResultType.WAV_BLOB, description="Form in which segments are delivered")
    max_chunks_per_cycle: int = Field(default=1, gt=0, description="Maximum input chunks consumed per analysis cycle")
    max_queue_chunks: int = Field(default=100, ge=0, description="Input queue bound in chunks, 0 = unbounded")
    overflow_policy: OverflowPolicy = Field(default=OverflowPolicy.DROP_OLDEST, description="What to do when the input queue is full")
    input_source: InputSource = Field(default=InputSource.MICROPHONE, description="Audio source backend")
    input_device: Optional[int] = Field(default=None, description="sounddevice input device index")
    input_file: Optional[Path] = Field(default=None, description="WAV file for the file source")
    encoder_workers: int = Field(default=1, gt=0, description="Threads used to encode finished segments")
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = ConfigDict(frozen=True)

    @field_validator("result_type", "overflow_policy", "input_source", mode="before")
    @classmethod
    def _normalize_enum_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("input_device", "input_sample_rate", "input_file", mode="before")
    @classmethod
    def _empty_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="before")
    @classmethod
    def _apply_derived_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("input_sample_rate") in (None, ""):
            data["input_sample_rate"] = data.get("sample_rate", 16000)
        detect_only = data.get("detect_only", False)
        if isinstance(detect_only, str):
            detect_only = detect_only.strip().lower() in ("true", "1", "yes")
        result_type = data.get("result_type")
        if isinstance(result_type, str):
            result_type = result_type.strip().lower()
        if detect_only or result_type in (ResultType.DETECTION_ONLY, ResultType.DETECTION_ONLY.value):
            data["detect_only"] = True
            data["result_type"] = ResultType.DETECTION_ONLY
        return data

    @model_validator(mode="after")
    def _check_combinations(self) -> "CaptureConfig":
        if self.min_length_ms >= self.max_length_ms:
            raise ValueError("min_length_ms must be smaller than max_length_ms")
        if self.input_source == InputSource.FILE and self.input_file is None:
            raise ValueError("input_file is required when input_source is 'file'")
        return self


def load_config(config_path: Optional[Path] = None, **overrides: Any) -> CaptureConfig:
    if config_path is None:
        config_path = Path(".env")

    if config_path.exists():
        load_dotenv(config_path)
        logger.info(f"Loaded environment variables from {config_path}")
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables only")

    values: dict[str, Any] = {}
    for name in CaptureConfig.model_fields:
        env_value = os.getenv(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value
    values.update(overrides)

    try:
        return CaptureConfig(**values)
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def create_example_env_file(path: Path = Path(".env.example")):
    example_content = """# Sample rate of delivered segments (Hz)
SPEECH_CAPTURE_SAMPLE_RATE=16000

# Sample rate of the audio input (Hz), leave empty to use SAMPLE_RATE
SPEECH_CAPTURE_INPUT_SAMPLE_RATE=

# Expected input chunk size (samples)
SPEECH_CAPTURE_BUFFER_SIZE=16384

# Decibels above the ambient level that count as speech
SPEECH_CAPTURE_THRESHOLD_DB=15

# Utterance limits (ms)
SPEECH_CAPTURE_MIN_LENGTH_MS=500
SPEECH_CAPTURE_MAX_LENGTH_MS=10000
SPEECH_CAPTURE_ALLOWED_DELAY_MS=400

# Analysis window length (ms)
SPEECH_CAPTURE_ANALYSIS_CHUNK_LENGTH_MS=100

# Remove pauses inside utterances (true/false)
SPEECH_CAPTURE_COMPRESS_PAUSES=false

# Only detect speech, do not capture audio (true/false)
SPEECH_CAPTURE_DETECT_ONLY=false

# Result type: wav_blob, native_buffer, raw_data, detection_only
SPEECH_CAPTURE_RESULT_TYPE=wav_blob

# Input queue: bound in chunks (0 = unbounded) and overflow policy (drop_oldest, drop_newest, raise)
SPEECH_CAPTURE_MAX_QUEUE_CHUNKS=100
SPEECH_CAPTURE_OVERFLOW_POLICY=drop_oldest
SPEECH_CAPTURE_MAX_CHUNKS_PER_CYCLE=1

# Audio source: microphone, push, file
SPEECH_CAPTURE_INPUT_SOURCE=microphone
SPEECH_CAPTURE_INPUT_DEVICE=

# Logging level
SPEECH_CAPTURE_LOG_LEVEL=INFO
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

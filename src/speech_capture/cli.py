"""Command line front end: capture speech from a microphone or WAV file into WAV files."""

import argparse
import itertools
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config.settings import create_example_env_file, load_config, setup_logging
from .core.errors import ConfigurationError, SpeechCaptureError
from .core.events import CaptureStatus, SpeechResult
from .session import CaptureSession

logger = logging.getLogger("SpeechCaptureCLI")


class SegmentWriter:
    """Result callback writing WAV payloads into a directory."""

    def __init__(self, output_dir: Path):
        self._output_dir = output_dir
        self._counter = itertools.count(1)
        self.written: list[Path] = []

    def __call__(self, result: SpeechResult) -> None:
        if not isinstance(result.data, bytes):
            logger.info("Speech detected: %d chunks", result.length_chunks)
            return

        self._output_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = self._output_dir / f"speech_{stamp}_{next(self._counter):04d}.wav"
        path.write_bytes(result.data)
        self.written.append(path)
        logger.info("Saved %s (%d chunks, %d Hz)", path, result.length_chunks, result.sample_rate)


def _on_status(status: CaptureStatus) -> None:
    logger.info("[%s]", status.name)


def _on_error(error: SpeechCaptureError) -> None:
    logger.warning("Error (%s): %s", error.code.name, error.message)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Realtime speech capture")
    parser.add_argument("--config", type=str, help="Path to config file", default=".env")
    parser.add_argument("--create-config", action="store_true", help="Create example config file")
    parser.add_argument("--list-devices", action="store_true", help="List audio input devices")
    parser.add_argument("--input-file", type=str, help="Capture from a 16-bit PCM WAV file instead of the microphone")
    parser.add_argument("--output-dir", type=str, default="captures", help="Directory for captured WAV files")
    parser.add_argument("--detect-only", action="store_true", help="Only report speech, do not save audio")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.create_config:
        create_example_env_file()
        print("Example configuration file created at .env.example")
        return 0

    if args.list_devices:
        from .audio.input.mic import list_input_devices
        for device in list_input_devices():
            print(f"  [{device['index']}] {device['name']} ({device['max_input_channels']} ch, {device['default_samplerate']:.0f} Hz)")
        return 0

    overrides = {}
    if args.input_file:
        overrides.update(input_source="file", input_file=args.input_file)
    if args.detect_only:
        overrides["detect_only"] = True

    try:
        cfg = load_config(Path(args.config), **overrides)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    writer = SegmentWriter(Path(args.output_dir))
    session = CaptureSession()
    try:
        session.start(cfg, on_result=writer, on_error=_on_error, on_status=_on_status)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2

    try:
        while session.is_capturing():
            finished = getattr(session.source, "finished", None)
            if finished is not None and finished.is_set() and session.diagnostics().input_queue_length == 0:
                break
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        session.stop()

    print(f"Captured {len(writer.written)} segment(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

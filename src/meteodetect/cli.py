"""
Command-line driver: read a raw sample file and run the chirp detector.

Usage:
    meteodetect capture.raw
    meteodetect capture.raw --output detect.raw --events chirps.jsonl --debug

Exit codes: 0 when the input is exhausted normally, 1 on a usage error, an
unreadable input file, or a detector that cannot be constructed.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .detector import ChirpDetector, DetectorConfig
from .errors import InitializationError, InputUnavailableError
from .event_log import EventLogger
from .sample_io import SampleReader
from .types import DetectorStats

logger = logging.getLogger("meteodetect.cli")


def run(
    input_path: Path,
    config: Optional[DetectorConfig] = None,
    events_path: Optional[Path] = None,
    echo: bool = True,
) -> DetectorStats:
    """
    Detect chirps in one sample file.

    The input is opened before the detector is built, so a missing input
    never leaves an output file behind.

    Args:
        input_path: Raw complex64 input file
        config: Detector configuration
        events_path: Optional JSON-lines event log
        echo: Print a console notice per chirp

    Returns:
        Final detector statistics

    Raises:
        InputUnavailableError: If the input cannot be opened
        InitializationError: If the detector or event log cannot be created
    """
    config = config or DetectorConfig()

    with SampleReader(input_path) as reader:
        event_log = EventLogger(events_path) if events_path else None
        try:
            on_chirp = event_log.log_chirp if event_log else None
            with ChirpDetector(config, on_chirp=on_chirp, echo=echo) as detector:
                if event_log:
                    event_log.start_session(str(input_path), config.to_dict())

                for chunk in reader.chunks():
                    detector.feed_many(chunk)

                stats = detector.stats
            if event_log:
                event_log.end_session(stats)
        finally:
            if event_log:
                event_log.close()

    logger.info(
        f"Processed {stats.samples_processed} samples, "
        f"{stats.chirps_detected} chirps, {stats.valid_samples} valid output samples"
    )
    return stats


def build_parser() -> argparse.ArgumentParser:
    defaults = DetectorConfig()
    parser = argparse.ArgumentParser(
        prog="meteodetect",
        description="Detect meteor-scatter chirps in a raw complex64 sample file",
    )
    parser.add_argument("input", help="Raw input file (interleaved float32 I/Q)")
    parser.add_argument(
        "--output", "-o", default=str(defaults.output_path),
        help=f"Output file for (valid, phase) samples (default: {defaults.output_path})"
    )
    parser.add_argument(
        "--sample-rate", "-r", type=float, default=defaults.sample_rate,
        help=f"Input sample rate in Hz (default: {defaults.sample_rate:.0f})"
    )
    parser.add_argument(
        "--carrier-offset", "-f", type=float, default=defaults.carrier_offset,
        help=f"Expected chirp frequency offset in Hz (default: {defaults.carrier_offset:.0f})"
    )
    parser.add_argument(
        "--events", "-e",
        help="Write detected chirps to this JSON-lines file"
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Do not print chirp notices")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the detector from the command line."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse uses 2 for usage errors; keep 0 for --help
        return 0 if e.code == 0 else 1

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = DetectorConfig(
        sample_rate=args.sample_rate,
        carrier_offset=args.carrier_offset,
        output_path=args.output,
    )

    try:
        run(
            Path(args.input),
            config=config,
            events_path=Path(args.events) if args.events else None,
            echo=not args.quiet,
        )
    except InputUnavailableError as e:
        logger.error(f"Input unavailable: {e}")
        print(f"{parser.prog}: {e}", file=sys.stderr)
        return 1
    except InitializationError as e:
        logger.error(f"Initialization failed: {e}")
        print(f"{parser.prog}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Write a synthetic chirp recording for trying out the detector.

The file holds an out-of-band interferer for the whole duration with a
short tone burst at the carrier offset in the middle, as raw complex64.

Usage:
    python scripts/make_test_signal.py [output_file.raw]
    meteodetect output_file.raw

Default output: ./test_chirp.raw
"""

import argparse
from pathlib import Path

from meteodetect.detector import DetectorConfig
from meteodetect.sample_io import write_samples
from meteodetect.synth import tone, tone_burst


def main():
    defaults = DetectorConfig()
    parser = argparse.ArgumentParser(description="Generate a synthetic chirp recording")
    parser.add_argument("output", nargs="?", default="test_chirp.raw", help="Output file")
    parser.add_argument("--sample-rate", type=float, default=defaults.sample_rate)
    parser.add_argument("--carrier-offset", type=float, default=defaults.carrier_offset)
    parser.add_argument("--burst-ms", type=float, default=70.0, help="Burst length (default: 70 ms)")
    parser.add_argument("--lead", type=float, default=2.5, help="Seconds before the burst")
    parser.add_argument("--trail", type=float, default=3.0, help="Seconds after the burst")
    parser.add_argument("--interferer-offset", type=float, default=200.0,
                        help="Interferer offset from carrier in Hz (default: 200)")
    parser.add_argument("--interferer-amplitude", type=float, default=0.5)
    args = parser.parse_args()

    total = int(round((args.lead + args.burst_ms / 1000 + args.trail) * args.sample_rate))
    background = tone(
        total,
        args.carrier_offset + args.interferer_offset,
        args.sample_rate,
        amplitude=args.interferer_amplitude,
    )
    samples = tone_burst(
        args.sample_rate,
        args.carrier_offset,
        burst_seconds=args.burst_ms / 1000,
        lead_seconds=args.lead,
        trail_seconds=args.trail,
        background=background,
    )

    output_path = Path(args.output).expanduser().resolve()
    count = write_samples(output_path, samples)

    print(f"Wrote {count} samples ({count / args.sample_rate:.2f} s) to {output_path}")
    print(f"Burst at {args.lead:.2f} s, {args.burst_ms:.0f} ms at {args.carrier_offset:.0f} Hz")


if __name__ == "__main__":
    main()

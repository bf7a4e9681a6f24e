import argparse
import logging
from typing import List, Optional

import numpy as np
import soundfile as sf

from melbank.config import FilterBankConfig
from melbank.log import close_logging, setup_logging

logger = logging.getLogger(__name__)

# CLI flag -> config field
OVERRIDES = {
    "min_freq": "min_freq",
    "max_freq": "max_freq",
    "filters": "filter_amount",
    "n_fft": "n_fft",
    "hop_length": "hop_length",
    "win_length": "win_length",
    "lift_freq": "lift_freq",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="melbank",
        description="Compute mel filter bank energies of an audio file"
    )
    parser.add_argument("--input", required=True, help="Path to input audio file")
    parser.add_argument("--output", required=True, help="Path to save the .npy feature array")
    parser.add_argument("--config", help="JSON file with filter bank parameters")
    parser.add_argument("--min-freq", type=float, help="Lower edge of the first filter (Hz)")
    parser.add_argument("--max-freq", type=float, help="Upper edge of the last filter (Hz)")
    parser.add_argument("--filters", type=int, help="Number of mel filters")
    parser.add_argument("--n-fft", type=int, help="FFT size")
    parser.add_argument("--hop-length", type=int, help="Hop size in samples")
    parser.add_argument("--win-length", type=int, help="Window size in samples")
    parser.add_argument("--lift-freq", type=float, help="Slope denominator offset (Hz)")
    parser.add_argument("--log", action="store_true", help="Store natural log energies")
    parser.add_argument("--clamp", type=float, default=1e-5, help="Minimum energy before log (default: 1e-5)")
    parser.add_argument("--log-file", help="Also write INFO logs to this file")
    parser.add_argument("--verbose", action="store_true", help="Print DEBUG logs")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)
    try:
        try:
            config = FilterBankConfig.load(args.config) if args.config else FilterBankConfig()
        except (OSError, ValueError) as e:
            parser.error(f"cannot read config {args.config}: {e}")

        for flag, field in OVERRIDES.items():
            value = getattr(args, flag)
            if value is not None:
                setattr(config, field, value)

        audio, sample_rate = sf.read(args.input)
        if audio.ndim == 2:
            audio = audio.mean(-1)  # mix stereo -> mono
        config.sample_rate = sample_rate
        logger.info(f"Loaded {args.input}: {len(audio) / sample_rate:.2f}s at {sample_rate} Hz")

        try:
            spectrum = config.build_power_spectrum()
            bank = config.build_filter_bank()
        except ValueError as e:
            parser.error(str(e))

        energies = bank.apply_frames(spectrum.forward(audio))
        if args.log:
            energies = np.log(np.maximum(energies, args.clamp))

        np.save(args.output, energies.astype(np.float32))
        logger.info(f"Saved {energies.shape[0]} frames x {energies.shape[1]} filters to {args.output}")
    finally:
        close_logging(handler)
    return 0


if __name__ == "__main__":
    raise SystemExit(run())

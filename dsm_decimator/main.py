"""
Decimation Filter Designer - Main Entry Point
=============================================

Command-line entry point: sweeps a list of output rates for a 1-bit
bitstream and reports the ENOB / complexity trade-off.

The workflow is:
1. Load a captured bitstream (or synthesize a dithered test bitstream)
2. For each output rate: plan, design, simulate and analyze the chain
3. Print the results table and the best designs
4. Optionally export CSV and plot the trade-off dashboard

Usage:
    dsm-decimator --bitstream capture.npy --modulator-rate 8.192e6 \\
        --rates 500 1000 2000 4000 --csv results.csv --plot

    dsm-decimator --synthetic --rates 1000 2000
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from .exceptions import DecimatorError
from .filters.fixed_point import RoundingMode
from .signals.bitstream_preparer import load_bitstream
from .signals.digital_signal_generator import DigitalSignalGenerator
from .simulation.sweep_controller import SweepConfiguration, SweepController

logger = logging.getLogger(__name__)

DEFAULT_MODULATOR_RATE_HZ: float = 8.192e6
DEFAULT_OUTPUT_RATES_HZ: List[float] = [500.0, 1000.0, 2000.0, 4000.0, 8000.0, 16000.0]
DEFAULT_SYNTHETIC_SAMPLES: int = 2 ** 21

# Synthetic tone placed well inside the passband of the slowest output
SYNTHETIC_TONE_FRACTION: float = 0.05


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsm-decimator",
        description="Multistage decimation filter designer for 1-bit delta-sigma ADCs"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--bitstream',
        type=str,
        default=None,
        help='Bitstream file (.npy, or text with whitespace/comma separated samples)'
    )
    source.add_argument(
        '--synthetic',
        action='store_true',
        help='Use a dithered 1-bit test tone instead of a captured bitstream (default)'
    )
    parser.add_argument(
        '--modulator-rate',
        type=float,
        default=DEFAULT_MODULATOR_RATE_HZ,
        help=f'Modulator sampling rate in Hz (default: {DEFAULT_MODULATOR_RATE_HZ:g})'
    )
    parser.add_argument(
        '--rates',
        type=float,
        nargs='+',
        default=DEFAULT_OUTPUT_RATES_HZ,
        help='Target output rates in Hz'
    )
    parser.add_argument(
        '--samples',
        type=int,
        default=DEFAULT_SYNTHETIC_SAMPLES,
        help=f'Length of the synthetic bitstream (default: {DEFAULT_SYNTHETIC_SAMPLES})'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=1,
        help='Seed of the synthetic bitstream dither'
    )
    parser.add_argument(
        '--fraction-bits',
        type=int,
        default=18,
        help='Fraction bits of the 22-bit stage outputs (default: 18)'
    )
    parser.add_argument(
        '--rounding',
        choices=[mode.value for mode in RoundingMode],
        default=RoundingMode.NEAREST_EVEN.value,
        help='Rounding at every requantization point (default: nearest)'
    )
    parser.add_argument(
        '--csv',
        type=str,
        default=None,
        help='Write the results table to this CSV file'
    )
    parser.add_argument(
        '--plot',
        action='store_true',
        help='Show the trade-off dashboard'
    )
    parser.add_argument(
        '--plot-file',
        type=str,
        default=None,
        help='Save the trade-off dashboard to this image file'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging verbosity (default: INFO)'
    )
    return parser


def synthesize_bitstream(
    modulator_rate_hz: float,
    output_rates_hz: List[float],
    number_of_samples: int,
    seed: Optional[int]
) -> np.ndarray:
    """Dithered 1-bit tone that lies in the passband of every output rate."""
    tone_frequency_hz: float = SYNTHETIC_TONE_FRACTION * min(output_rates_hz)
    generator = DigitalSignalGenerator(
        sampling_frequency_hz=modulator_rate_hz,
        number_of_samples=number_of_samples
    )
    logger.info(
        "Synthesizing %d-sample bitstream with a %.2f Hz tone", number_of_samples, tone_frequency_hz
    )
    return generator.generate_dithered_bitstream(tone_frequency_hz, amplitude=0.5, seed=seed)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run a sweep from the command line.

    Returns:
        int: Process exit status (0 on success).
    """
    args = build_argument_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        configuration = SweepConfiguration(
            modulator_rate_hz=args.modulator_rate,
            target_output_rates_hz=args.rates,
            output_fraction_length=args.fraction_bits,
            rounding=RoundingMode(args.rounding)
        )

        if args.bitstream:
            raw_bitstream = load_bitstream(args.bitstream)
        else:
            raw_bitstream = synthesize_bitstream(
                configuration.modulator_rate_hz,
                configuration.target_output_rates_hz,
                args.samples,
                args.seed
            )

        result = SweepController(configuration).run(raw_bitstream)
    except (DecimatorError, ValueError, OSError) as error:
        logger.error("Sweep failed: %s", error)
        return 1

    result.print_summary()

    if args.csv:
        result.save_csv(args.csv)

    if args.plot or args.plot_file:
        # Imported here so headless runs never load matplotlib
        from .visualization.sweep_plotter import SweepPlotter
        SweepPlotter.plot_tradeoff_dashboard(result, save_path=args.plot_file, show=args.plot)

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Sweep Controller
================

This module runs the complete design flow for a list of target output
rates and collects the results:

    for each target rate:
        OSR = round(modulator_rate / target_rate)
        plan_decimation → build_filter_chain → MultirateProcessor →
        analyze_spectrum

The bitstream is prepared once and shared read-only; every point pads its
own copy. A point that fails with a point-local error (invalid OSR,
filter design failure, unusable output) is logged and recorded as
skipped, and the sweep continues. An empty bitstream or a decimation
mismatch aborts the sweep.

Usage:
    configuration = SweepConfiguration(
        modulator_rate_hz=8.192e6,
        target_output_rates_hz=[500.0, 1000.0, 2000.0]
    )
    controller = SweepController(configuration)
    result = controller.run(bitstream)
    result.print_summary()
"""

import csv
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

import numpy as np

from ..exceptions import POINT_LOCAL_ERRORS, EmptySweepResultError
from ..filters.filter_chain import FilterChain, build_filter_chain, working_format
from ..filters.fixed_point import RoundingMode
from ..metrics.spectral_analyzer import SpectralMetrics, analyze_spectrum
from ..planning.decimation_planner import DecimationPlan, plan_decimation
from ..processing.multirate_processor import MultirateProcessor
from ..signals.bitstream_preparer import pad_bitstream, prepare_bitstream

logger = logging.getLogger(__name__)

CSV_COLUMNS: List[str] = [
    "Fs_out_Hz", "OSR", "ENOB_bits", "SNDR_dB", "SFDR_dB", "NoiseFloor_dB",
    "TotalTaps", "CIC_Dec", "HB_Stages", "FIR_Dec", "TotalDec",
]


@dataclass
class SweepConfiguration:
    """
    Configuration parameters for a decimation sweep.

    Attributes:
        modulator_rate_hz: Sample rate of the 1-bit bitstream.
        target_output_rates_hz: Output rates to evaluate, in order. Repeated
            rates are evaluated once.
        output_fraction_length: Fraction bits of the 22-bit stage outputs.
        rounding: Rounding mode at every requantization point
            (RoundingMode or its value, "nearest" / "floor").
        target_enob_bits: Resolution target used in reports.
    """
    modulator_rate_hz: float
    target_output_rates_hz: List[float]
    output_fraction_length: int = 18
    rounding: RoundingMode = RoundingMode.NEAREST_EVEN
    target_enob_bits: float = 16.0

    def __post_init__(self) -> None:
        """Normalize and validate the parameters."""
        if isinstance(self.rounding, str):
            self.rounding = RoundingMode(self.rounding)
        self.target_output_rates_hz = self._unique_rates(self.target_output_rates_hz)
        self._validate()

    @staticmethod
    def _unique_rates(rates) -> List[float]:
        """Convert to float and drop repeated rates, keeping the first of each."""
        unique: List[float] = []
        for rate in rates:
            rate = float(rate)
            if rate in unique:
                logger.warning("Ignoring repeated target rate %.1f Hz", rate)
                continue
            unique.append(rate)
        return unique

    def _validate(self) -> None:
        if not math.isfinite(self.modulator_rate_hz) or self.modulator_rate_hz <= 0:
            raise ValueError(f"Modulator rate must be positive, got {self.modulator_rate_hz}")

        if not self.target_output_rates_hz:
            raise ValueError("At least one target output rate is required")

        for rate in self.target_output_rates_hz:
            if not math.isfinite(rate) or rate <= 0:
                raise ValueError(f"Target output rates must be positive, got {rate}")

        # Raises ValueError for an out-of-range fraction length
        working_format(self.output_fraction_length)

    def oversampling_ratio_for(self, target_rate_hz: float) -> int:
        """OSR for a target rate, rounded half up to the nearest integer."""
        return int(math.floor(self.modulator_rate_hz / target_rate_hz + 0.5))

    def get_summary_dict(self) -> Dict[str, Any]:
        """Return a dictionary summary of the configuration."""
        return {
            "modulator_rate_hz": self.modulator_rate_hz,
            "target_output_rates_hz": list(self.target_output_rates_hz),
            "output_fraction_length": self.output_fraction_length,
            "rounding": self.rounding.value,
            "target_enob_bits": self.target_enob_bits
        }


@dataclass(frozen=True, eq=False)
class SweepPoint:
    """
    Fully evaluated design for one target rate.

    Attributes:
        target_rate_hz: Requested output rate.
        osr: Oversampling ratio (total decimation).
        plan: Decimation plan for the OSR.
        chain: Filter chain built from the plan.
        sndr_db, enob_bits, sfdr_db, noise_floor_db: Measured metrics.
        metrics: Full spectral analysis.
        output_rate_hz: Actual output rate, modulator_rate / OSR.
    """
    target_rate_hz: float
    osr: int
    plan: DecimationPlan
    chain: FilterChain
    sndr_db: float
    enob_bits: float
    sfdr_db: float
    noise_floor_db: float
    metrics: SpectralMetrics
    output_rate_hz: float
    success: bool = True

    @property
    def total_taps(self) -> int:
        return self.chain.total_taps

    @property
    def enob_per_ktap(self) -> float:
        """Tap efficiency: ENOB per 1000 coefficients."""
        return self.enob_bits / self.total_taps * 1000.0

    def get_record(self) -> Dict[str, Any]:
        """Flat dictionary of the point, keyed by the CSV column names."""
        return {
            "Fs_out_Hz": self.target_rate_hz,
            "OSR": self.osr,
            "ENOB_bits": self.enob_bits,
            "SNDR_dB": self.sndr_db,
            "SFDR_dB": self.sfdr_db,
            "NoiseFloor_dB": self.noise_floor_db,
            "TotalTaps": self.total_taps,
            "CIC_Dec": self.plan.cic_r,
            "HB_Stages": self.plan.hb_count,
            "FIR_Dec": self.plan.fir_r,
            "TotalDec": self.plan.total_decimation,
        }


@dataclass(frozen=True)
class SkippedPoint:
    """A target rate that produced no result, and why."""
    target_rate_hz: float
    osr: int
    reason: str


def _ranking_key(value: float) -> float:
    return -math.inf if math.isnan(value) else value


@dataclass
class SweepResult:
    """
    Results of a sweep: successful points keyed by target rate, plus the
    rates that were skipped with their reasons.
    """
    configuration: SweepConfiguration
    points: Dict[float, SweepPoint] = field(default_factory=dict)
    skipped: Dict[float, SkippedPoint] = field(default_factory=dict)

    @property
    def peak_enob_point(self) -> SweepPoint:
        """Point with the highest ENOB (first one on ties)."""
        if not self.points:
            raise EmptySweepResultError("Sweep has no successful points")
        return max(self.points.values(), key=lambda point: _ranking_key(point.enob_bits))

    @property
    def most_efficient_point(self) -> SweepPoint:
        """Point with the highest ENOB per tap (first one on ties)."""
        if not self.points:
            raise EmptySweepResultError("Sweep has no successful points")
        return max(self.points.values(), key=lambda point: _ranking_key(point.enob_per_ktap))

    def get_records(self) -> List[Dict[str, Any]]:
        """One flat dictionary per successful point, in sweep order."""
        return [point.get_record() for point in self.points.values()]

    def save_csv(self, path: Union[str, Path]) -> Path:
        """
        Write the successful points as CSV.

        Args:
            path: Output file.

        Returns:
            Path: The written file.
        """
        path = Path(path)
        with open(path, "w", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for record in self.get_records():
                writer.writerow(record)
        logger.info("Saved %d sweep points to %s", len(self.points), path)
        return path

    def print_summary(self) -> None:
        """
        Print the results table, the peak and most efficient designs, and
        the skipped rates.
        """
        total: int = len(self.points) + len(self.skipped)
        print("\n" + "=" * 88)
        print("RESULTS SUMMARY")
        print("=" * 88)
        print(f"Successfully processed {len(self.points)}/{total} test points\n")

        print(f"{'Fs_out':<12} | {'OSR':<8} | {'ENOB':>8} | {'SNDR':>8} | "
              f"{'SFDR':>8} | {'Taps':>6} | Architecture")
        print(f"{'[Hz]':<12} | {'':<8} | {'[bits]':>8} | {'[dB]':>8} | "
              f"{'[dB]':>8} | {'':>6} |")
        print("-" * 88)

        for point in self.points.values():
            if point.output_rate_hz >= 1000:
                rate_text: str = f"{point.output_rate_hz / 1e3:.1f} kHz"
            else:
                rate_text = f"{point.output_rate_hz:.0f} Hz"
            print(f"{rate_text:<12} | {point.osr:<8d} | {point.enob_bits:8.2f} | "
                  f"{point.sndr_db:8.2f} | {point.sfdr_db:8.2f} | {point.total_taps:6d} | "
                  f"{point.plan.description}")
        print("=" * 88)

        if self.points:
            peak = self.peak_enob_point
            print("\n--- Peak Performance ---")
            print(f"  Fs = {peak.output_rate_hz:.1f} Hz | ENOB = {peak.enob_bits:.2f} bits | "
                  f"OSR = {peak.osr}")
            print(f"  Architecture: {peak.plan.description}")
            status: str = "PASS" if peak.enob_bits >= self.configuration.target_enob_bits else "FAIL"
            print(f"  {self.configuration.target_enob_bits:g}-bit target: {status}")

            efficient = self.most_efficient_point
            print("\n--- Most Efficient ---")
            print(f"  Fs = {efficient.output_rate_hz:.1f} Hz | ENOB = {efficient.enob_bits:.2f} bits | "
                  f"{efficient.enob_per_ktap:.3f} ENOB/kTap")

        if self.skipped:
            print("\n--- Skipped ---")
            for skipped in self.skipped.values():
                print(f"  {skipped.target_rate_hz:.1f} Hz (OSR {skipped.osr}): {skipped.reason}")
        print()


class SweepController:
    """
    Runs the decimation design flow over every target rate.

    Attributes:
        configuration: The SweepConfiguration for this controller.
        processor: Bit-true chain simulator.
    """

    def __init__(self, configuration: SweepConfiguration) -> None:
        self.configuration: SweepConfiguration = configuration
        self.processor: MultirateProcessor = MultirateProcessor(rounding=configuration.rounding)

    def evaluate_point(self, bitstream: np.ndarray, target_rate_hz: float) -> SweepPoint:
        """
        Run plan, chain, processing and analysis for one target rate.

        Args:
            bitstream: Prepared (read-only) bitstream.
            target_rate_hz: Requested output rate.

        Raises:
            InvalidOSRError, FilterDesignFailedError, InvalidOutputError:
                Point-local failures.
            DecimationMismatchError: Fatal planner failure.
        """
        modulator_rate_hz: float = self.configuration.modulator_rate_hz
        osr: int = self.configuration.oversampling_ratio_for(target_rate_hz)

        # ===== STEP 1: PLAN =====
        plan: DecimationPlan = plan_decimation(osr)

        # ===== STEP 2: DESIGN =====
        chain: FilterChain = build_filter_chain(plan, self.configuration.output_fraction_length)

        # ===== STEP 3: SIMULATE =====
        padded: np.ndarray = pad_bitstream(bitstream, plan.total_decimation)
        output: np.ndarray = self.processor.process(padded, chain, modulator_rate_hz)

        # ===== STEP 4: ANALYZE =====
        output_rate_hz: float = modulator_rate_hz / osr
        metrics: SpectralMetrics = analyze_spectrum(output, output_rate_hz)

        return SweepPoint(
            target_rate_hz=target_rate_hz,
            osr=osr,
            plan=plan,
            chain=chain,
            sndr_db=metrics.sndr_db,
            enob_bits=metrics.enob_bits,
            sfdr_db=metrics.sfdr_db,
            noise_floor_db=metrics.noise_floor_db,
            metrics=metrics,
            output_rate_hz=output_rate_hz
        )

    def iterate(self, bitstream: np.ndarray) -> Iterator[Union[SweepPoint, SkippedPoint]]:
        """
        Evaluate the target rates one at a time.

        Yields a SweepPoint or a SkippedPoint per rate. Stopping early
        leaves the points already yielded valid.

        Args:
            bitstream: Prepared bitstream (see prepare_bitstream).
        """
        for target_rate_hz in self.configuration.target_output_rates_hz:
            osr: int = self.configuration.oversampling_ratio_for(target_rate_hz)
            logger.info("Evaluating %.1f Hz (OSR %d)", target_rate_hz, osr)
            try:
                point = self.evaluate_point(bitstream, target_rate_hz)
            except POINT_LOCAL_ERRORS as error:
                reason: str = f"{type(error).__name__}: {error}"
                logger.warning("Skipping %.1f Hz (OSR %d): %s", target_rate_hz, osr, reason)
                yield SkippedPoint(target_rate_hz=target_rate_hz, osr=osr, reason=reason)
                continue

            logger.info(
                "%.1f Hz: %s, ENOB %.2f bits, SNDR %.2f dB, %d taps",
                target_rate_hz, point.plan.description, point.enob_bits,
                point.sndr_db, point.total_taps
            )
            yield point

    def run(self, raw_bitstream, bitstream_prepared: bool = False) -> SweepResult:
        """
        Execute the complete sweep.

        Args:
            raw_bitstream: Modulator output, unipolar or bipolar.
            bitstream_prepared: Skip preparation if the input already came
                from prepare_bitstream.

        Returns:
            SweepResult: With at least one successful point.

        Raises:
            EmptyBitstreamError: If the bitstream has no finite samples.
            DecimationMismatchError: If a plan does not multiply back.
            EmptySweepResultError: If every target rate was skipped.
        """
        bitstream: np.ndarray = raw_bitstream if bitstream_prepared else prepare_bitstream(raw_bitstream)
        logger.info(
            "Sweeping %d target rates on %d samples at %.3f MHz",
            len(self.configuration.target_output_rates_hz), len(bitstream),
            self.configuration.modulator_rate_hz / 1e6
        )

        result = SweepResult(configuration=self.configuration)
        for outcome in self.iterate(bitstream):
            if isinstance(outcome, SkippedPoint):
                result.skipped[outcome.target_rate_hz] = outcome
            else:
                result.points[outcome.target_rate_hz] = outcome

        if not result.points:
            raise EmptySweepResultError(
                f"No target rate produced a result ({len(result.skipped)} skipped)"
            )

        logger.info(
            "Sweep complete: %d succeeded, %d skipped",
            len(result.points), len(result.skipped)
        )
        return result

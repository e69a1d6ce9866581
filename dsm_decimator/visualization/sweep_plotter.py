"""
Sweep Plotter
=============

This module provides plotting functions for decimation sweep results.

Plots included:
1. Trade-off dashboard (six panels):
   - ENOB vs output rate, with 14-bit and 16-bit lines
   - SNDR vs output rate, with the 98 dB (16-bit) line
   - OSR vs output rate
   - Filter complexity: total taps and halfband stages vs output rate
   - ENOB vs OSR against the reference curve
   - Tap efficiency (ENOB per kTap), best design marked
2. Output spectrum of a single design, signal bins and peak highlighted
"""

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from ..metrics.effective_number_of_bits import estimate_reference_enob
from ..metrics.spectral_analyzer import SpectralMetrics
from ..simulation.sweep_controller import SweepResult


class SweepPlotter:
    """
    Plotting utilities for decimation sweep analysis.

    All methods are static to allow easy use without instantiation.
    Each returns the figure; pass show=False to keep it open for
    further editing or testing.
    """

    DEFAULT_FIGURE_SIZE: Tuple[int, int] = (16, 10)
    DEFAULT_SINGLE_PLOT_SIZE: Tuple[int, int] = (12, 6)

    @staticmethod
    def _finish(fig, save_path: Optional[str], show: bool) -> None:
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"Figure saved to:  {save_path}")

        if show:
            plt.show()

    @staticmethod
    def plot_tradeoff_dashboard(
        result: SweepResult,
        save_path: Optional[str] = None,
        show: bool = True
    ):
        """
        Plot the ENOB / rate / complexity trade-off of a sweep.

        Args:
            result: SweepResult with at least one point.
            save_path: If provided, save figure to this path.
            show: If True, display the figure.

        Returns:
            matplotlib.figure.Figure: The dashboard figure.
        """
        points = sorted(result.points.values(), key=lambda point: point.output_rate_hz)
        rates: np.ndarray = np.array([point.output_rate_hz for point in points])
        enob: np.ndarray = np.array([point.enob_bits for point in points])
        sndr: np.ndarray = np.array([point.sndr_db for point in points])
        osr: np.ndarray = np.array([point.osr for point in points])
        taps: np.ndarray = np.array([point.total_taps for point in points])
        halfbands: np.ndarray = np.array([point.plan.hb_count for point in points])
        efficiency: np.ndarray = np.array([point.enob_per_ktap for point in points])

        fig, axes = plt.subplots(2, 3, figsize=SweepPlotter.DEFAULT_FIGURE_SIZE)
        fig.suptitle('ENOB vs Sampling Rate', fontsize=14, fontweight='bold')

        # ===== SUBPLOT 1: ENOB vs rate =====
        ax = axes[0, 0]
        ax.semilogx(rates, enob, 'b-o', linewidth=2, markersize=6)
        ax.axhline(y=16, color='r', linestyle='--', linewidth=1.5, label='16-bit')
        ax.axhline(y=14, color='g', linestyle='--', linewidth=1.2, label='14-bit')
        ax.set_xlabel('Sampling Rate [Hz]', fontsize=10)
        ax.set_ylabel('ENOB [bits]', fontsize=10)
        ax.set_title('ENOB vs Sampling Rate', fontsize=11)
        ax.legend(loc='best', fontsize=9)
        ax.grid(True, which='both', alpha=0.3)

        # ===== SUBPLOT 2: SNDR vs rate =====
        ax = axes[0, 1]
        ax.semilogx(rates, sndr, 'r-s', linewidth=2, markersize=6)
        ax.axhline(y=98, color='b', linestyle='--', linewidth=1.5, label='98 dB (16-bit)')
        ax.set_xlabel('Sampling Rate [Hz]', fontsize=10)
        ax.set_ylabel('SNDR [dB]', fontsize=10)
        ax.set_title('SNDR vs Sampling Rate', fontsize=11)
        ax.legend(loc='best', fontsize=9)
        ax.grid(True, which='both', alpha=0.3)

        # ===== SUBPLOT 3: OSR vs rate =====
        ax = axes[0, 2]
        ax.loglog(rates, osr, 'g-^', linewidth=2, markersize=6)
        ax.set_xlabel('Sampling Rate [Hz]', fontsize=10)
        ax.set_ylabel('OSR', fontsize=10)
        ax.set_title('Oversampling Ratio', fontsize=11)
        ax.grid(True, which='both', alpha=0.3)

        # ===== SUBPLOT 4: Complexity =====
        ax = axes[1, 0]
        ax.semilogx(rates, taps, 'b-o', linewidth=2, markersize=6)
        ax.set_ylabel('Total Taps', fontsize=10, color='b')
        ax.set_xlabel('Sampling Rate [Hz]', fontsize=10)
        ax.set_title('Filter Complexity', fontsize=11)
        ax.grid(True, which='both', alpha=0.3)
        twin = ax.twinx()
        twin.semilogx(rates, halfbands, 'r-s', linewidth=2, markersize=6)
        twin.set_ylabel('HB Stages', fontsize=10, color='r')

        # ===== SUBPLOT 5: ENOB vs OSR =====
        ax = axes[1, 1]
        osr_order = np.argsort(osr)
        ax.semilogx(osr[osr_order], enob[osr_order], 'k-o', linewidth=2, markersize=6,
                    label='Measured')
        reference_osr: np.ndarray = np.logspace(
            np.log10(osr.min()), np.log10(max(osr.max(), osr.min() + 1)), 100
        )
        ax.semilogx(reference_osr, estimate_reference_enob(reference_osr), 'r--',
                    linewidth=1.5, label='Reference')
        ax.set_xlabel('OSR', fontsize=10)
        ax.set_ylabel('ENOB [bits]', fontsize=10)
        ax.set_title('ENOB vs OSR', fontsize=11)
        ax.legend(loc='best', fontsize=9)
        ax.grid(True, which='both', alpha=0.3)

        # ===== SUBPLOT 6: Efficiency =====
        ax = axes[1, 2]
        ax.semilogx(rates, efficiency, 'm-d', linewidth=2, markersize=6)
        best = result.most_efficient_point
        ax.plot(best.output_rate_hz, best.enob_per_ktap, 'r*', markersize=16, label='Best')
        ax.set_xlabel('Sampling Rate [Hz]', fontsize=10)
        ax.set_ylabel('ENOB / kTap', fontsize=10)
        ax.set_title('Tap Efficiency', fontsize=11)
        ax.legend(loc='best', fontsize=9)
        ax.grid(True, which='both', alpha=0.3)

        SweepPlotter._finish(fig, save_path, show)
        return fig

    @staticmethod
    def plot_output_spectrum(
        metrics: SpectralMetrics,
        title: str = "Decimated Output Spectrum",
        save_path: Optional[str] = None,
        show: bool = True
    ):
        """
        Plot the one-sided power spectrum from a spectral analysis.

        The signal bins are drawn in red and the fundamental is marked.

        Args:
            metrics: Result of analyze_spectrum.
            title: Figure title.
            save_path: If provided, save figure to this path.
            show: If True, display the figure.

        Returns:
            matplotlib.figure.Figure: The spectrum figure.
        """
        frequencies: np.ndarray = metrics.frequency_axis()
        peak: float = float(np.max(metrics.power_spectrum))
        reference: float = peak if peak > 0 else 1.0

        # Normalize to the peak; floor zero bins so the log stays finite
        power_db: np.ndarray = 10.0 * np.log10(
            np.maximum(metrics.power_spectrum / reference, 1e-30)
        )

        low_bin, high_bin = metrics.signal_bin_range
        signal_slice = slice(low_bin, high_bin + 1)

        fig, ax = plt.subplots(figsize=SweepPlotter.DEFAULT_SINGLE_PLOT_SIZE)
        ax.plot(frequencies[1:], power_db[1:], 'b-', linewidth=0.8, label='Spectrum')
        ax.plot(frequencies[signal_slice], power_db[signal_slice], 'r-', linewidth=1.5,
                label='Signal Bins')
        ax.plot(frequencies[metrics.signal_bin], power_db[metrics.signal_bin], 'ro',
                markersize=8, label='Peak')

        unit: str = 'Hz' if metrics.output_rate_hz is not None else 'cycles/sample'
        ax.set_xlabel(f'Frequency [{unit}]', fontsize=10)
        ax.set_ylabel('Power [dBc]', fontsize=10)
        ax.set_title(
            f"{title}  (SNDR {metrics.sndr_db:.1f} dB, ENOB {metrics.enob_bits:.2f} bits)",
            fontsize=12, fontweight='bold'
        )
        ax.legend(loc='best', fontsize=9)
        ax.grid(True, alpha=0.3)

        SweepPlotter._finish(fig, save_path, show)
        return fig

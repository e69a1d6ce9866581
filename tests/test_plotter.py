"""Smoke tests for the sweep plots (headless backend)."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402

from dsm_decimator.signals.digital_signal_generator import DigitalSignalGenerator  # noqa: E402
from dsm_decimator.simulation.sweep_controller import (  # noqa: E402
    SweepConfiguration,
    SweepController,
)
from dsm_decimator.visualization.sweep_plotter import SweepPlotter  # noqa: E402


@pytest.fixture(scope="module")
def sweep_result():
    generator = DigitalSignalGenerator(16000.0, number_of_samples=40000)
    bitstream = generator.generate_dithered_bitstream(25.0, amplitude=0.5, seed=3)
    configuration = SweepConfiguration(16000.0, [2000.0, 1000.0, 500.0])
    return SweepController(configuration).run(bitstream)


def test_dashboard_is_saved(sweep_result, tmp_path):
    path = tmp_path / "dashboard.png"
    fig = SweepPlotter.plot_tradeoff_dashboard(sweep_result, save_path=str(path), show=False)
    assert path.exists()
    assert len(fig.axes) == 7
    plt.close(fig)


def test_spectrum_is_saved(sweep_result, tmp_path, capsys):
    metrics = sweep_result.peak_enob_point.metrics
    path = tmp_path / "spectrum.png"
    fig = SweepPlotter.plot_output_spectrum(metrics, save_path=str(path), show=False)
    assert path.exists()
    assert "Figure saved to" in capsys.readouterr().out
    assert "SNDR" in fig.axes[0].get_title()
    plt.close(fig)


def test_dashboard_with_single_point(tmp_path):
    generator = DigitalSignalGenerator(16000.0, number_of_samples=20000)
    bitstream = generator.generate_dithered_bitstream(25.0, amplitude=0.5, seed=8)
    result = SweepController(SweepConfiguration(16000.0, [1000.0])).run(bitstream)
    fig = SweepPlotter.plot_tradeoff_dashboard(result, show=False)
    assert fig is not None
    plt.close(fig)

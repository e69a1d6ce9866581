"""Tests for bit-true multirate processing of a bitstream."""

import numpy as np
import pytest

from dsm_decimator.exceptions import InvalidOutputError
from dsm_decimator.filters.filter_chain import build_filter_chain
from dsm_decimator.filters.fixed_point import RoundingMode
from dsm_decimator.planning.decimation_planner import plan_decimation
from dsm_decimator.processing.multirate_processor import (
    CIC_HEADROOM,
    MultirateProcessor,
    ProcessingTrace,
)


@pytest.fixture(scope="module")
def chain_256():
    return build_filter_chain(plan_decimation(256))


@pytest.fixture(scope="module")
def chain_1024():
    return build_filter_chain(plan_decimation(1024))


@pytest.fixture(scope="module")
def random_bitstream():
    rng = np.random.default_rng(7)
    return np.where(rng.random(256 * 400) < 0.5, -1.0, 1.0)


@pytest.mark.parametrize("rounding", [RoundingMode.NEAREST_EVEN, RoundingMode.FLOOR])
def test_zero_input_gives_zero_output(chain_1024, rounding):
    output = MultirateProcessor(rounding).process(np.zeros(1024 * 150), chain_1024)
    assert len(output) == 150
    assert np.all(output == 0.0)


def test_processing_is_deterministic(chain_256, random_bitstream):
    processor = MultirateProcessor()
    first = processor.process(random_bitstream, chain_256)
    second = processor.process(random_bitstream, chain_256)
    np.testing.assert_array_equal(first, second)
    np.testing.assert_array_equal(first, MultirateProcessor().process(random_bitstream, chain_256))


def test_input_is_not_modified(chain_256, random_bitstream):
    copy = random_bitstream.copy()
    MultirateProcessor().process(random_bitstream, chain_256)
    np.testing.assert_array_equal(random_bitstream, copy)


def test_dc_input_settles_to_headroom_level(chain_256):
    output = MultirateProcessor().process(np.ones(256 * 200), chain_256)
    assert len(output) == 200
    np.testing.assert_allclose(output[-50:], CIC_HEADROOM, atol=2e-3)


def test_dc_level_through_halfbands(chain_1024):
    output = MultirateProcessor().process(-np.ones(1024 * 200), chain_1024)
    np.testing.assert_allclose(output[-50:], -CIC_HEADROOM, atol=4e-3)


def test_output_length_rounds_up(chain_256):
    output = MultirateProcessor().process(np.ones(256 * 200 + 1), chain_256)
    assert len(output) == 201


def test_output_lies_on_working_grid(chain_256, random_bitstream):
    output = MultirateProcessor().process(random_bitstream, chain_256)
    scaled = output * 2 ** 18
    np.testing.assert_array_equal(scaled, np.round(scaled))


def test_rounding_modes_differ(chain_256, random_bitstream):
    nearest = MultirateProcessor(RoundingMode.NEAREST_EVEN).process(random_bitstream, chain_256)
    floor = MultirateProcessor(RoundingMode.FLOOR).process(random_bitstream, chain_256)
    assert not np.array_equal(nearest, floor)
    assert np.max(np.abs(nearest - floor)) < 1e-3


def test_short_output_raises(chain_256):
    with pytest.raises(InvalidOutputError):
        MultirateProcessor().process(np.ones(256 * 50), chain_256)


def test_empty_input_raises(chain_256):
    with pytest.raises(InvalidOutputError):
        MultirateProcessor().process(np.zeros(0), chain_256)


def test_trace_records_every_stage(chain_1024):
    trace = MultirateProcessor().process(
        np.zeros(1024 * 120), chain_1024, modulator_rate_hz=1.024e6, trace=True
    )
    assert isinstance(trace, ProcessingTrace)
    assert [stage.label for stage in trace.stages] == ["CIC", "HB1", "HB2", "FIR"]
    assert [stage.output_length for stage in trace.stages] == [480, 240, 120, 120]
    assert [stage.sample_rate_hz for stage in trace.stages] == [4000.0, 2000.0, 1000.0, 1000.0]
    assert trace.output_rate_hz == 1000.0
    assert trace.input_length == 1024 * 120
    assert len(trace.output) == 120


def test_trace_without_rate(chain_256, capsys):
    trace = MultirateProcessor().process(np.zeros(256 * 120), chain_256, trace=True)
    assert trace.output_rate_hz is None
    assert all(stage.sample_rate_hz is None for stage in trace.stages)
    trace.print_summary()
    assert "CIC" in capsys.readouterr().out


def test_tone_survives_decimation(chain_256):
    rng = np.random.default_rng(3)
    n = 256 * 1024
    tone = 0.5 * np.sin(2 * np.pi * np.arange(n) / (256 * 64))
    bitstream = np.where(tone + rng.uniform(-1.0, 1.0, n) >= 0.0, 1.0, -1.0)

    output = MultirateProcessor().process(bitstream, chain_256)[64:]

    # Least-squares fit of the tone at 1/64 of the output rate, any phase
    phase = 2 * np.pi * np.arange(64, 1024) / 64
    basis = np.column_stack([np.sin(phase), np.cos(phase)])
    (a, b), *_ = np.linalg.lstsq(basis, output, rcond=None)
    assert np.hypot(a, b) == pytest.approx(CIC_HEADROOM * 0.5, abs=0.02)

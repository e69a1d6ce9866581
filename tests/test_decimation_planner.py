"""Tests for OSR factorization into CIC, halfband and final FIR stages."""

import random

import pytest

from dsm_decimator.exceptions import InvalidOSRError
from dsm_decimator.planning.decimation_planner import (
    CIC_DECIMATION_CANDIDATES,
    plan_decimation,
    prime_factors,
)


@pytest.mark.parametrize(
    "osr, cic_r, hb_count, fir_r",
    [
        (2, 2, 0, 1),
        (3, 3, 0, 1),
        (384, 128, 0, 3),
        (4096, 256, 4, 1),
        (4100, 4, 0, 1025),
        (8192, 256, 5, 1),
        (16384, 256, 6, 1),
        (1009, 1009, 0, 1),
        (3 * 1009, 3, 0, 1009),
    ],
)
def test_known_decompositions(osr, cic_r, hb_count, fir_r):
    plan = plan_decimation(osr)
    assert (plan.cic_r, plan.hb_count, plan.fir_r) == (cic_r, hb_count, fir_r)
    assert plan.total_decimation == osr


def test_description_format():
    assert plan_decimation(4096).description == "CIC(256)→4xHB→FIR(1)"
    assert plan_decimation(4100).description == "CIC(4)→0xHB→FIR(1025)"


def test_integer_valued_float_is_accepted():
    assert plan_decimation(4096.0).total_decimation == 4096


@pytest.mark.parametrize("osr", [1, 0, -8, 2.5, "16", True, None])
def test_invalid_osr_raises(osr):
    with pytest.raises(InvalidOSRError):
        plan_decimation(osr)


def test_invalid_osr_is_a_value_error():
    with pytest.raises(ValueError):
        plan_decimation(1)


def _check_plan_invariants(osr):
    plan = plan_decimation(osr)
    assert plan.cic_r * 2 ** plan.hb_count * plan.fir_r == osr
    assert plan.total_decimation == osr
    assert plan.cic_r >= 2
    assert plan.hb_count >= 0
    assert plan.fir_r >= 1
    assert osr % plan.cic_r == 0
    # Every factor of two left after the CIC becomes a halfband
    assert plan.fir_r % 2 == 1
    if plan.hb_count > 0:
        assert plan.cic_r in CIC_DECIMATION_CANDIDATES


def test_invariants_for_small_osr():
    for osr in range(2, 5000):
        _check_plan_invariants(osr)


def test_invariants_for_sampled_large_osr():
    rng = random.Random(1234)
    for _ in range(500):
        _check_plan_invariants(rng.randint(2, 1_000_000))


def test_cic_prefers_largest_power_of_two():
    assert plan_decimation(512).cic_r == 256
    assert plan_decimation(96).cic_r == 32
    assert plan_decimation(6).cic_r == 2


def test_odd_osr_uses_largest_small_prime():
    # 3 * 5 * 7 * 67: largest prime factor <= 64 is 7
    assert plan_decimation(3 * 5 * 7 * 67).cic_r == 7


def test_plan_is_deterministic():
    assert plan_decimation(2730) == plan_decimation(2730)


def test_halfband_decimation_property():
    assert plan_decimation(16384).halfband_decimation == 64


@pytest.mark.parametrize(
    "value, factors",
    [
        (2, [2]),
        (360, [2, 2, 2, 3, 3, 5]),
        (1009, [1009]),
        (4100, [2, 2, 5, 5, 41]),
    ],
)
def test_prime_factors(value, factors):
    assert prime_factors(value) == factors

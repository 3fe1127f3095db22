# tests/ivp_engine/test_stability.py
"""Tests for Runge-Kutta stability functions and region sampling."""

from __future__ import annotations

import logging

import pytest

from ivp_engine.problems import Interval
from ivp_engine.runge_kutta import CLASSIC_RK4, HEUN_EULER_LOW, RK2_MIDPOINT
from ivp_engine.stability import rk_stability_function, sample_stability_area


def test_euler_stability_function_is_one_plus_z() -> None:
    """The one-stage tableau gives |1 + z|."""
    r = rk_stability_function(HEUN_EULER_LOW)

    assert r(-1.0 + 0j) == pytest.approx(0.0)
    assert r(-2.0 + 0j) == pytest.approx(1.0)
    assert r(1j) == pytest.approx(2.0**0.5)


def test_rk2_stability_function_is_taylor_polynomial() -> None:
    """Two-stage, order two: |1 + z + z^2 / 2|."""
    r = rk_stability_function(RK2_MIDPOINT)
    z = -0.7 + 0.4j

    assert r(z) == pytest.approx(abs(1.0 + z + z * z / 2.0))


def test_rk4_real_axis_boundary() -> None:
    """The RK4 region crosses the negative real axis near -2.785."""
    r = rk_stability_function(CLASSIC_RK4)

    assert r.value_at(-2.7 + 0j) < 1.0
    assert r.value_at(-2.9 + 0j) > 1.0


def test_euler_area_is_the_unit_disk_around_minus_one() -> None:
    """Sampled points lie in |z + 1| <= 1 and cover about pi / 16 of the box."""
    n_samples = 100
    points = sample_stability_area(
        rk_stability_function(HEUN_EULER_LOW),
        n_samples,
        Interval(-3.0, 1.0),
        Interval(-2.0, 2.0),
    )
    fraction = len(points) / (n_samples + 1) ** 2

    assert 0.17 < fraction < 0.23
    assert all((p.x + 1.0) ** 2 + p.y**2 <= 1.0 + 1e-9 for p in points)
    assert all(p.x <= 0.0 for p in points)


def test_sampling_accepts_plain_callables(caplog: pytest.LogCaptureFixture) -> None:
    """Any z -> float works; the projected grid size is logged at INFO."""
    with caplog.at_level(logging.INFO, logger="ivp_engine"):
        points = sample_stability_area(
            lambda z: 0.0, 3, Interval(0.0, 1.0), Interval(0.0, 1.0)
        )

    assert len(points) == 16
    assert "Projected samples: 16" in caplog.text

# ivp_engine/examples/stability_regions.py
"""Sampled linear stability regions of the explicit Runge-Kutta tableaus.

For each tableau the grid points z of the complex plane with |R(z)| <= 1 are
collected and scattered in one figure. The regions grow with the order: Euler
is the unit disk around -1, RK4 reaches about -2.785 on the real axis.

This script saves plots to disk (no interactive windows).
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt

from ivp_engine import (
    CLASSIC_RK4,
    DOPRI5_HIGH,
    HEUN3,
    Interval,
    Tableau,
    rk_stability_function,
    sample_stability_area,
)
from ivp_engine.runge_kutta import HEUN_EULER_LOW, RK2_MIDPOINT

_OUTPUT_DIR = Path(__file__).resolve().parent / "output" / "stability"

_TABLEAUS: dict[str, Tableau] = {
    "Euler": HEUN_EULER_LOW,
    "RK2": RK2_MIDPOINT,
    "Heun 3": HEUN3,
    "RK4": CLASSIC_RK4,
    "DOPRI5": DOPRI5_HIGH,
}


def main() -> None:
    """Sample and plot every region on the same grid.

    Files are written to: examples/output/stability/
    """
    n_samples = 200
    re_interval = Interval(-4.5, 1.0)
    im_interval = Interval(-4.0, 4.0)

    plt.figure(figsize=(7, 7))
    # Largest region first so the smaller ones stay visible on top.
    for name, tableau in reversed(_TABLEAUS.items()):
        points = sample_stability_area(
            rk_stability_function(tableau), n_samples, re_interval, im_interval
        )
        plt.scatter(
            [p.x for p in points],
            [p.y for p in points],
            s=1,
            label=f"{name} ({len(points)} pts)",
        )

    plt.axhline(0.0, color="black", linewidth=0.5)
    plt.axvline(0.0, color="black", linewidth=0.5)
    plt.gca().set_aspect("equal")
    plt.legend(markerscale=8)
    plt.title("|R(z)| <= 1")
    plt.xlabel("Re z")
    plt.ylabel("Im z")
    plt.tight_layout()

    _OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    plt.savefig(_OUTPUT_DIR / "regions.png", dpi=150)
    plt.close()


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Demo script: stipple a synthetic density field in a worker process.

Usage:
    python examples/stipple_demo.py [image_path]

Without an image the Rastrigin test function is used. Needs the ``viz``
extra (matplotlib) for the plot.
"""

import sys

import matplotlib.pyplot as plt

from py_stipple.config import settings
from py_stipple.core import StippleParameters, run_in_worker
from py_stipple.core.density_sources import from_image, mach_banding, rastrigin
from py_stipple.log_config import configure_logging


def print_progress(message):
    """Print a one-line status for each message."""
    print(f"  iteration {message.iteration:4d}  "
          f"{message.progress:5.1f}%  stipples: {len(message.stipples)}")


def main():
    configure_logging(settings.log_level, "console")

    print("Py-Stipple Demo")
    print("=" * 40)

    if len(sys.argv) > 1:
        print(f"\nLoading density from {sys.argv[1]}...")
        field = from_image(sys.argv[1], invert=True)
    else:
        print("\nBuilding Rastrigin density (120x80) with Mach banding...")
        field = mach_banding(rastrigin(120, 80))

    parameters = StippleParameters(
        initial_stipple_radius=2.0,
        initial_error_threshold=0.0,
        convergence_rate=0.01,
        max_iterations=60,
        seed="demo",
    )

    print(f"Running up to {parameters.max_iterations} iterations in a worker...")
    done = run_in_worker(field, parameters, on_message=print_progress)
    print(f"\nFinished after {done.iteration} iterations with {len(done.stipples)} stipples")

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    axes[0].imshow(field.values, cmap="gray_r", origin="upper")
    axes[0].set_title("Density")

    xs = [s.x for s in done.stipples]
    ys = [s.y for s in done.stipples]
    sizes = [4 + 12 * s.density for s in done.stipples]
    axes[1].scatter(xs, ys, s=sizes, c="black")
    axes[1].set_xlim(0, field.width)
    axes[1].set_ylim(field.height, 0)
    axes[1].set_aspect("equal")
    axes[1].set_title(f"{len(done.stipples)} stipples")

    plt.tight_layout()
    plt.savefig("stipple_demo.png", dpi=150)
    print("Saved stipple_demo.png")


if __name__ == "__main__":
    main()

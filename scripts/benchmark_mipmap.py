#!/usr/bin/env python3
"""Quick build/query benchmark for the MipMap pipeline."""
from __future__ import annotations

import argparse
import logging
import statistics
import time

import numpy as np

from config import ViewerConfig
from mipmap.series import Series
from mipmap.viewport import Viewport


def synthetic_series(n: int, *, seed: int = 0) -> Series:
    rng = np.random.default_rng(seed)
    t = np.arange(n, dtype=np.float64) * 1e6  # 1 kHz in nanoseconds
    x = np.sin(np.arange(n) * 1e-4) * 100.0 + rng.standard_normal(n)
    # a few isolated spikes that must survive every reduction
    spikes = rng.integers(0, n, size=8)
    x[spikes] = 1e4
    return Series.from_arrays(t, x, handle="benchmark", name="synthetic")


def run_profile(cfg: ViewerConfig, n: int, pixels: int, frames: int) -> None:
    series = synthetic_series(n)
    builder = cfg.level_builder()
    t0 = time.perf_counter()
    mipmap = builder.build(series)
    build_s = time.perf_counter() - t0
    print(f"build: {n:,} samples -> {mipmap.level_count()} levels in {build_s:.3f}s")

    source = cfg.data_source()
    start, end = mipmap.time_extent
    span = end - start
    for fraction in (1.0, 0.1, 0.01, 0.0001):
        width = span * fraction
        timings = []
        sizes = []
        for frame in range(frames):
            offset = (span - width) * frame / max(1, frames - 1)
            viewport = Viewport(start + offset, start + offset + width, pixels)
            f0 = time.perf_counter()
            points = source.render_points(mipmap, viewport)
            timings.append(time.perf_counter() - f0)
            sizes.append(len(points))
        print(
            f"view {fraction:>8.4%}: median {statistics.median(timings) * 1e3:.3f} ms, "
            f"max points {max(sizes)} (level {points.level})"
        )


def main() -> None:
    p = argparse.ArgumentParser()
    p.add_argument("--samples", type=int, default=10_000_000)
    p.add_argument("--pixels", type=int, default=1920)
    p.add_argument("--frames", type=int, default=50)
    p.add_argument("--config")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    run_profile(ViewerConfig.load(args.config), args.samples, args.pixels, args.frames)


if __name__ == "__main__":
    main()

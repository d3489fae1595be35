"""Construction of min/max MipMap hierarchies."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np

from mipmap.level import Level
from mipmap.pyramid import MipMap
from mipmap.series import Series

__all__ = [
    "LevelBuilder",
    "MipMapOverflowError",
    "reduce_level",
    "DEFAULT_FACTOR",
    "DEFAULT_MAX_LEVELS",
]

LOG = logging.getLogger(__name__)

DEFAULT_FACTOR = 2
DEFAULT_MAX_LEVELS = 64

_INDEX_MAX = int(np.iinfo(np.intp).max)


class MipMapOverflowError(OverflowError):
    """The series is too long to index without overflowing bin arithmetic."""

    def __init__(self, series_length: int, limit: int):
        super().__init__(
            f"log too large to index: {series_length} samples exceeds the limit of {limit}"
        )
        self.series_length = series_length
        self.limit = limit


def _padding_value(dtype: np.dtype, *, high: bool):
    if np.issubdtype(dtype, np.floating):
        return np.inf if high else -np.inf
    info = np.iinfo(dtype)
    return info.max if high else info.min


def _grouped(arr: np.ndarray, groups: int, factor: int, fill) -> np.ndarray:
    missing = groups * factor - arr.size
    if missing:
        arr = np.concatenate((arr, np.full(missing, fill, dtype=arr.dtype)))
    return arr.reshape(groups, factor)


def reduce_level(level: Level, factor: int) -> Level:
    """Combine every ``factor`` consecutive bins of ``level`` into one.

    Parent extrema come from the children's ``mins``/``maxs`` columns, never
    from raw samples, so an outlier survives any number of reductions. The
    trailing partial group is kept even when it holds a single bin.
    """
    if factor < 2:
        raise ValueError("factor must be >= 2")
    n = len(level)
    if n == 0:
        return level
    groups = -(-n // factor)
    if groups > _INDEX_MAX // factor:
        raise MipMapOverflowError(n, (_INDEX_MAX // factor) * factor)

    # Padding never wins: argmin/argmax return the first occurrence, and the
    # pad sits after every real child.
    mins = _grouped(level.mins, groups, factor, _padding_value(level.mins.dtype, high=True))
    maxs = _grouped(level.maxs, groups, factor, _padding_value(level.maxs.dtype, high=False))
    min_pos = np.argmin(mins, axis=1)
    max_pos = np.argmax(maxs, axis=1)
    rows = np.arange(groups, dtype=np.intp)

    min_times = _grouped(level.min_times, groups, factor, level.min_times[-1])
    max_times = _grouped(level.max_times, groups, factor, level.max_times[-1])

    last_child = np.minimum(rows * factor + (factor - 1), n - 1)
    return Level(
        start=level.start[::factor],
        end=level.end[last_child],
        mins=mins[rows, min_pos],
        maxs=maxs[rows, max_pos],
        min_times=min_times[rows, min_pos],
        max_times=max_times[rows, max_pos],
    )


@dataclass(frozen=True)
class LevelBuilder:
    """Builds a :class:`MipMap` from a :class:`Series`.

    Parameters
    ----------
    factor : int
        Decimation factor, the number of child bins per parent bin.
    max_levels : int
        Upper bound on the number of levels including the raw level 0.
    max_samples : int, optional
        Largest series accepted. Defaults to the largest length whose padded
        group arithmetic still fits the platform index type.
    """

    factor: int = DEFAULT_FACTOR
    max_levels: int = DEFAULT_MAX_LEVELS
    max_samples: int | None = None

    def __post_init__(self) -> None:
        if self.factor < 2:
            raise ValueError(f"factor must be >= 2, got {self.factor}")
        if self.max_levels < 1:
            raise ValueError(f"max_levels must be >= 1, got {self.max_levels}")
        if self.max_samples is not None and self.max_samples < 0:
            raise ValueError("max_samples must be non-negative")

    @property
    def sample_limit(self) -> int:
        limit = (_INDEX_MAX // self.factor) * self.factor
        if self.max_samples is not None:
            limit = min(limit, int(self.max_samples))
        return limit

    def build(self, series: Series) -> MipMap:
        n = len(series)
        limit = self.sample_limit
        if n > limit:
            raise MipMapOverflowError(n, limit)

        t_start = time.perf_counter()
        levels = [Level.from_series(series)]
        while len(levels[-1]) > 1 and len(levels) < self.max_levels:
            levels.append(reduce_level(levels[-1], self.factor))

        if len(levels[-1]) > 1:
            LOG.debug(
                "Series %r stopped at %d levels with %d bins left at the top",
                series.handle,
                len(levels),
                len(levels[-1]),
            )
        LOG.debug(
            "Built %d level(s) for %r (%d samples, factor %d) in %.3f s",
            len(levels),
            series.handle,
            n,
            self.factor,
            time.perf_counter() - t_start,
        )
        return MipMap(tuple(levels), factor=self.factor, handle=series.handle, sample_count=n)

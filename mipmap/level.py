"""Struct-of-arrays storage for one tier of the min/max hierarchy."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple

import numpy as np

from mipmap.series import Series

__all__ = ["Bin", "Level"]


class Bin(NamedTuple):
    """One aggregated unit: time range plus the extrema found inside it."""

    start: float
    end: float
    min: float
    max: float
    min_time: float
    max_time: float


@dataclass(frozen=True, eq=False)
class Level:
    """Time-sorted, contiguous bins stored column-wise.

    Bin ``i`` covers ``[start[i], end[i])`` and ``end[i] == start[i + 1]``.
    The last bin is closed so the final sample time is covered as well.
    """

    start: np.ndarray
    end: np.ndarray
    mins: np.ndarray
    maxs: np.ndarray
    min_times: np.ndarray
    max_times: np.ndarray

    def __post_init__(self) -> None:
        size = self.start.size
        columns = (self.start, self.end, self.mins, self.maxs, self.min_times, self.max_times)
        for arr in columns:
            if arr.ndim != 1 or arr.size != size:
                raise ValueError("level columns must be 1-D and of equal length")
            if arr.flags.writeable:
                arr.setflags(write=False)

    @classmethod
    def from_series(cls, series: Series) -> "Level":
        """Level 0: one bin per distinct timestamp of the raw series."""
        t, x = series.t, series.x
        if t.size == 0:
            empty_t = np.zeros(0, dtype=t.dtype)
            empty_x = np.zeros(0, dtype=x.dtype)
            return cls(empty_t, empty_t, empty_x, empty_x, empty_t, empty_t)

        first_of_run = np.flatnonzero(np.concatenate(([True], t[1:] != t[:-1])))
        if first_of_run.size == t.size:
            start = t
            mins = maxs = x
        else:
            # samples sharing a timestamp collapse into a single bin
            start = t[first_of_run]
            mins = np.minimum.reduceat(x, first_of_run)
            maxs = np.maximum.reduceat(x, first_of_run)
        end = np.empty_like(start)
        end[:-1] = start[1:]
        end[-1] = start[-1]
        return cls(start, end, mins, maxs, start, start)

    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return int(self.start.size)

    def __getitem__(self, idx: int) -> Bin:
        n = len(self)
        if not 0 <= idx < n:
            raise IndexError(f"bin index {idx} out of range for level of {n} bins")
        return Bin(
            self.start[idx].item(),
            self.end[idx].item(),
            self.mins[idx].item(),
            self.maxs[idx].item(),
            self.min_times[idx].item(),
            self.max_times[idx].item(),
        )

    def __iter__(self) -> Iterator[Bin]:
        for idx in range(len(self)):
            yield self[idx]

    def slice(self, lo: int, hi: int) -> "Level":
        """Return bins ``lo:hi`` as a view sharing this level's buffers."""
        return Level(
            self.start[lo:hi],
            self.end[lo:hi],
            self.mins[lo:hi],
            self.maxs[lo:hi],
            self.min_times[lo:hi],
            self.max_times[lo:hi],
        )

    def index_range(self, t0: float, t1: float) -> tuple[int, int]:
        """Indices ``[lo, hi)`` of the bins intersecting ``[t0, t1]``."""
        if t1 < t0:
            raise ValueError(f"inverted time range: {t0!r} > {t1!r}")
        n = len(self)
        if n == 0:
            return 0, 0
        hi = int(np.searchsorted(self.start, t1, side="right"))
        lo = int(np.searchsorted(self.end, t0, side="right"))
        if lo == n and self.end[-1] == t0:
            lo = n - 1
        if hi <= lo:
            return lo, lo
        return lo, hi

    def count_in_range(self, t0: float, t1: float) -> int:
        lo, hi = self.index_range(t0, t1)
        return hi - lo

    @property
    def time_extent(self) -> tuple[float, float] | None:
        if len(self) == 0:
            return None
        return self.start[0].item(), self.end[-1].item()

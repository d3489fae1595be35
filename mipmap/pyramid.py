"""The MipMap: every level of the min/max hierarchy for one series."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable

from mipmap.level import Level

__all__ = ["MipMap"]


@dataclass(frozen=True, eq=False)
class MipMap:
    """Immutable level hierarchy; ``levels[0]`` is the raw series.

    Instances are only handed out once fully built and are never mutated,
    so any number of readers may query one concurrently.
    """

    levels: tuple[Level, ...]
    factor: int
    handle: Hashable = None
    sample_count: int = 0

    def __post_init__(self) -> None:
        if not self.levels:
            raise ValueError("a MipMap needs at least the raw level")

    def level_count(self) -> int:
        return len(self.levels)

    def level(self, idx: int) -> Level:
        count = len(self.levels)
        if not 0 <= idx < count:
            raise IndexError(f"level {idx} out of range (0..{count - 1})")
        return self.levels[idx]

    def level_or_coarsest(self, idx: int) -> int:
        """Index ``idx``, or the coarsest level's index when past the top.

        Meant for user-chosen levels, which may exceed what a short log
        produced. Negative indices are still an error.
        """
        if idx < 0:
            raise IndexError(f"level {idx} out of range")
        return min(idx, len(self.levels) - 1)

    def bins_in_range(self, level_idx: int, t0: float, t1: float) -> Level:
        """Bins of ``level_idx`` intersecting ``[t0, t1]``, in time order.

        The result is a view over the level's buffers and can be iterated
        any number of times.
        """
        level = self.level(level_idx)
        lo, hi = level.index_range(t0, t1)
        return level.slice(lo, hi)

    def count_in_range(self, level_idx: int, t0: float, t1: float) -> int:
        return self.level(level_idx).count_in_range(t0, t1)

    @property
    def is_degenerate(self) -> bool:
        return len(self.levels[0]) <= 1

    @property
    def time_extent(self) -> tuple[float, float] | None:
        return self.levels[0].time_extent

    def shifted(self, offset: float) -> "MipMap":
        """Copy of this hierarchy with every time moved by ``offset``."""
        moved = tuple(
            Level(
                start=level.start + offset,
                end=level.end + offset,
                mins=level.mins,
                maxs=level.maxs,
                min_times=level.min_times + offset,
                max_times=level.max_times + offset,
            )
            for level in self.levels
        )
        return MipMap(moved, factor=self.factor, handle=self.handle, sample_count=self.sample_count)

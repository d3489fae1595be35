"""Pick the MipMap level that suits a viewport."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from mipmap.pyramid import MipMap

__all__ = ["LevelSelector", "DEFAULT_BUDGET_MULTIPLIER"]

LOG = logging.getLogger(__name__)

DEFAULT_BUDGET_MULTIPLIER = 2.0


@dataclass(frozen=True)
class LevelSelector:
    """Chooses the finest level that fits a per-pixel bin budget.

    The number of bins intersecting a fixed time range never grows from one
    level to the next (parents are unions of children), so the levels that
    fit the budget form a suffix of the hierarchy and a binary search finds
    where it begins.
    """

    budget_multiplier: float = DEFAULT_BUDGET_MULTIPLIER

    def __post_init__(self) -> None:
        if not math.isfinite(self.budget_multiplier) or self.budget_multiplier <= 0:
            raise ValueError("budget_multiplier must be a positive finite number")

    def budget(self, pixel_width: int) -> int:
        if pixel_width < 1:
            raise ValueError("pixel_width must be positive")
        return max(1, int(math.floor(self.budget_multiplier * pixel_width)))

    def select_level(self, mipmap: MipMap, t0: float, t1: float, pixel_width: int) -> int:
        budget = self.budget(pixel_width)
        if t1 < t0:
            raise ValueError(f"inverted time range: {t0!r} > {t1!r}")
        if mipmap.is_degenerate:
            return 0
        if mipmap.count_in_range(0, t0, t1) == 0:
            # nothing visible; the raw level yields an empty query cheaply
            return 0

        lo, hi = 0, mipmap.level_count() - 1
        if mipmap.count_in_range(hi, t0, t1) > budget:
            LOG.debug(
                "Coarsest level %d of %r still exceeds budget %d", hi, mipmap.handle, budget
            )
            return hi
        while lo < hi:
            mid = (lo + hi) // 2
            if mipmap.count_in_range(mid, t0, t1) <= budget:
                hi = mid
            else:
                lo = mid + 1
        return lo

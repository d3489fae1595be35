"""Per-frame description of what the plot widget is showing."""
from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Viewport"]


@dataclass(frozen=True)
class Viewport:
    t0: float
    t1: float
    pixel_width: int

    def __post_init__(self) -> None:
        if self.t1 < self.t0:
            raise ValueError(f"viewport end {self.t1!r} is before its start {self.t0!r}")
        if self.pixel_width < 1:
            raise ValueError("pixel_width must be positive")

    @property
    def width(self) -> float:
        return self.t1 - self.t0

    def extended(self, fraction: float) -> "Viewport":
        """Widen the range by ``fraction`` of its width on both sides."""
        if fraction < 0:
            raise ValueError("fraction must be non-negative")
        if fraction == 0:
            return self
        pad = abs(self.width) * fraction
        return Viewport(self.t0 - pad, self.t1 + pad, self.pixel_width)

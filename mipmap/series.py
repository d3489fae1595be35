"""Immutable time-ordered sample series fed into the MipMap builder."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterable, Protocol, TypeVar

import numpy as np

__all__ = ["Series", "SampleSource", "InvariantViolation"]

LOG = logging.getLogger(__name__)

E = TypeVar("E")

_handle_counter = itertools.count()


class InvariantViolation(ValueError):
    """Input data breaks a precondition of the downsampling core."""


class SampleSource(Protocol):
    """Anything able to hand over ordered timestamps and numeric values."""

    def timestamps(self) -> Iterable[float]: ...

    def values(self) -> Iterable[float]: ...


def _as_numeric(arr: Any, what: str) -> np.ndarray:
    out = np.asarray(arr)
    if out.ndim != 1:
        raise InvariantViolation(f"{what} must be one-dimensional, got shape {out.shape}")
    if out.dtype == np.bool_ or not np.issubdtype(out.dtype, np.number):
        raise InvariantViolation(f"{what} must be numeric, got dtype {out.dtype}")
    return out


@dataclass(frozen=True, eq=False)
class Series:
    """Raw samples for one plotted quantity.

    ``t`` is non-decreasing (ties allowed) and ``x`` holds the values. Both
    arrays are read-only once the series exists. NaN values are removed on
    construction so every remaining value takes part in a total order.
    """

    t: np.ndarray
    x: np.ndarray
    handle: Hashable
    name: str = ""

    def __post_init__(self) -> None:
        t = _as_numeric(self.t, "t")
        x = _as_numeric(self.x, "x")
        if t.size != x.size:
            raise InvariantViolation(
                f"t and x must have the same length ({t.size} != {x.size})"
            )
        if np.issubdtype(t.dtype, np.floating) and np.isnan(t).any():
            raise InvariantViolation("t contains NaN timestamps")
        if t.size > 1:
            backwards = t[1:] < t[:-1]
            if backwards.any():
                first = int(np.flatnonzero(backwards)[0])
                raise InvariantViolation(
                    f"time goes backwards at sample {first + 1}: "
                    f"{t[first + 1]!r} < {t[first]!r}"
                )
        if np.issubdtype(x.dtype, np.floating):
            valid = ~np.isnan(x)
            dropped = int(x.size - np.count_nonzero(valid))
            if dropped:
                LOG.warning("Dropping %d NaN sample(s) from series %r", dropped, self.handle)
                t = t[valid]
                x = x[valid]
        # Own the buffers so later caller writes cannot reach the hierarchy.
        t = np.array(t, copy=True)
        x = np.array(x, copy=True)
        t.setflags(write=False)
        x.setflags(write=False)
        object.__setattr__(self, "t", t)
        object.__setattr__(self, "x", x)

    def __len__(self) -> int:
        return int(self.t.size)

    @property
    def is_empty(self) -> bool:
        return self.t.size == 0

    @property
    def time_extent(self) -> tuple[float, float] | None:
        if self.t.size == 0:
            return None
        return self.t[0].item(), self.t[-1].item()

    # ------------------------------------------------------------------

    @classmethod
    def from_arrays(
        cls,
        t: Any,
        x: Any,
        *,
        handle: Hashable | None = None,
        name: str = "",
    ) -> "Series":
        if handle is None:
            handle = f"series-{next(_handle_counter)}"
        return cls(np.asarray(t), np.asarray(x), handle=handle, name=name)

    @classmethod
    def from_source(
        cls,
        source: SampleSource,
        *,
        handle: Hashable | None = None,
        name: str = "",
    ) -> "Series":
        t = np.fromiter(source.timestamps(), dtype=np.float64)
        x = np.fromiter(source.values(), dtype=np.float64)
        return cls.from_arrays(t, x, handle=handle, name=name)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[E],
        time_of: Callable[[E], float],
        value_of: Callable[[E], float],
        *,
        handle: Hashable | None = None,
        name: str = "",
    ) -> "Series":
        """Build a series from decoded log entries via per-field extractors."""
        items = list(entries)
        t = np.fromiter((time_of(e) for e in items), dtype=np.float64, count=len(items))
        x = np.fromiter((value_of(e) for e in items), dtype=np.float64, count=len(items))
        return cls.from_arrays(t, x, handle=handle, name=name)

"""Injectable randomness so generation steps can be replayed deterministically."""

from __future__ import annotations

import random
from typing import Protocol, Sequence, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1).

    ``random.Random`` satisfies this; tests may pass a scripted sequence.
    """

    def random(self) -> float: ...


def make_rng(seed: int | None = None) -> random.Random:
    """Create a seedable generator (``None`` seeds from the OS)."""
    return random.Random(seed)


def pick(rng: RandomSource, options: Sequence[T]) -> T:
    """Choose one element uniformly."""
    return options[min(int(rng.random() * len(options)), len(options) - 1)]


def jitter(rng: RandomSource, intensity: float, scale: float) -> float:
    """Symmetric perturbation: uniform(-0.5, 0.5) * intensity * scale."""
    return (rng.random() - 0.5) * intensity * scale


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

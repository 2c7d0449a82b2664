"""
Random-variate oracles used for gate and yard handling times and for demand generation.

Every distribution draws from a numpy Generator so a whole run is reproducible from one seed.
Duration distributions are parameterised in minutes and return `datetime.timedelta`.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import numpy as np


class Dist:
    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng or np.random.default_rng()

    def draw(self) -> float:
        raise NotImplementedError

    @property
    def mean(self) -> float:
        raise NotImplementedError


class DistConstant(Dist):
    def __init__(self, value: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.value = float(value)

    def draw(self) -> float:
        return self.value

    @property
    def mean(self) -> float:
        return self.value


class DistUniform(Dist):
    def __init__(self, low: float, high: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        if high < low:
            raise ValueError("Uniform distribution needs low <= high.")
        self.low = float(low)
        self.high = float(high)

    def draw(self) -> float:
        return float(self.rng.uniform(self.low, self.high))

    @property
    def mean(self) -> float:
        return (self.low + self.high) / 2.0


class DistTriangular(Dist):
    def __init__(self, low: float, mode: float, high: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        if not low <= mode <= high:
            raise ValueError("Triangular distribution needs low <= mode <= high.")
        self.low = float(low)
        self.mode = float(mode)
        self.high = float(high)

    def draw(self) -> float:
        if self.low == self.high:
            return self.low
        return float(self.rng.triangular(self.low, self.mode, self.high))

    @property
    def mean(self) -> float:
        return (self.low + self.mode + self.high) / 3.0


class DistExponential(Dist):
    def __init__(self, mean: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        if mean <= 0:
            raise ValueError("Exponential distribution needs a positive mean.")
        self._mean = float(mean)

    def draw(self) -> float:
        return float(self.rng.exponential(self._mean))

    @property
    def mean(self) -> float:
        return self._mean


class DurationDist:
    """
    Wrap a numeric distribution expressed in minutes so draws come back as timedelta.
    Negative draws are clipped to zero.
    """

    def __init__(self, dist: Dist):
        self.dist = dist

    @classmethod
    def triangular_minutes(
        cls, low: float, mode: float, high: float, rng: Optional[np.random.Generator] = None
    ) -> "DurationDist":
        return cls(DistTriangular(low, mode, high, rng))

    @classmethod
    def constant_minutes(cls, minutes: float) -> "DurationDist":
        return cls(DistConstant(minutes))

    def draw(self) -> timedelta:
        return timedelta(minutes=max(0.0, self.dist.draw()))

    @property
    def mean(self) -> timedelta:
        return timedelta(minutes=max(0.0, self.dist.mean))

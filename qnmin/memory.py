"""
Curvature pair memory for limited-memory quasi-Newton methods

The m most recent accepted (s, y) pairs live in fixed (m, p) arrays used as a
circular buffer, s being the iterate difference and y the gradient difference.
"""

import logging
from typing import Iterator

import numpy as np

from .types import Vector

logger = logging.getLogger(__name__)


class CurvatureMemory:
    def __init__(self, capacity: int, dim: int, curvature_tol: float = 1e-10):
        """
        Parameters:
            capacity: max number of (s, y) pairs to store
            dim: dimension of the iterates
            curvature_tol: pairs with y's <= curvature_tol * max(1, |y||s|) are
                skipped
        """
        if capacity < 0:
            raise ValueError("Memory capacity must be non-negative")
        self.capacity = capacity
        self.curvature_tol = curvature_tol

        self._S = np.zeros((capacity, dim))
        self._Y = np.zeros((capacity, dim))
        self._YS = np.zeros(capacity)
        self.reset()

    def reset(self) -> None:
        self.start = 0  # slot of the oldest pair
        self.end = -1  # slot of the newest pair
        self.count = 0
        self.hdiag = 1.0

    def __len__(self) -> int:
        return self.count

    def update(self, s: Vector, y: Vector) -> bool:
        """
        Store the pair (s, y), evicting the oldest pair if the memory is full.

        Returns False, leaving the memory unchanged, if the pair fails the curvature
        condition or the capacity is 0.
        """
        ys = float(y.dot(s))
        threshold = self.curvature_tol * max(
            1.0, float(np.linalg.norm(y) * np.linalg.norm(s))
        )
        if not ys > threshold:
            logger.debug(f"Skipping curvature pair, y's = {ys:.3e}")
            return False
        if self.capacity == 0:
            return False

        self.end = (self.end + 1) % self.capacity
        if self.count < self.capacity:
            self.count += 1
        else:
            self.start = (self.start + 1) % self.capacity

        self._S[self.end] = s
        self._Y[self.end] = y
        self._YS[self.end] = ys
        # Scale of the initial inverse Hessian approximation, equation (7.20)
        self.hdiag = ys / float(y.dot(y))
        return True

    def _slots(self) -> range:
        return range(self.start, self.start + self.count)

    def pairs(self) -> Iterator[tuple[Vector, Vector, float]]:
        """Yields (s, y, y's) from oldest to newest"""
        for i in self._slots():
            j = i % self.capacity
            yield self._S[j], self._Y[j], float(self._YS[j])

    def reversed_pairs(self) -> Iterator[tuple[Vector, Vector, float]]:
        """Yields (s, y, y's) from newest to oldest"""
        for i in reversed(self._slots()):
            j = i % self.capacity
            yield self._S[j], self._Y[j], float(self._YS[j])

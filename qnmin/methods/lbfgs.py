"""
Limited-memory BFGS (L-BFGS) directions

REF: Algorithm 7.4 in Numerical Optimization by Nocedal and Wright
"""

import numpy as np

from ..memory import CurvatureMemory
from ..types import Vector
from .base import DirectionStrategy


def two_loop_recursion(grad: Vector, memory: CurvatureMemory) -> Vector:
    """
    Two loop recursion for computing H_k * grad, where H_k is the L-BFGS inverse
    Hessian approximation with initial matrix H_k^(0) = memory.hdiag * I.

    With an empty memory this returns grad unchanged.

    REF: Algorithm 7.4 in Numerical Optimization by Nocedal and Wright
    """
    q = np.array(grad, dtype=np.float64)
    alphas = []
    for s_prev, y_prev, ys in memory.reversed_pairs():
        alpha = s_prev.dot(q) / ys
        q -= alpha * y_prev
        alphas.append(alpha)

    r = memory.hdiag * q
    for (s_prev, y_prev, ys), alpha in zip(memory.pairs(), reversed(alphas)):
        beta = y_prev.dot(r) / ys
        r += (alpha - beta) * s_prev
    return r


class LBFGS(DirectionStrategy):
    """Quasi-Newton directions with limited-memory BFGS updating"""

    name = "lbfgs"

    def __init__(self, dim: int, corrections: int = 100, curvature_tol: float = 1e-10):
        """
        Parameters:
            dim: dimension of the iterates
            corrections: number of (s, y) pairs to store, 0 gives steepest descent
            curvature_tol: threshold for skipping pairs, see CurvatureMemory
        """
        super().__init__(dim)
        self.memory = CurvatureMemory(corrections, dim, curvature_tol)

    def reset(self) -> None:
        self.memory.reset()

    def update(self, s: Vector, y: Vector) -> bool:
        return self.memory.update(s, y)

    def direction(self, grad: Vector) -> Vector:
        return -two_loop_recursion(grad, self.memory)

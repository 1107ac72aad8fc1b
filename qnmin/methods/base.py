"""
Base for descent direction strategies
"""

from abc import ABC, abstractmethod

from ..types import Vector


class DirectionStrategy(ABC):
    """
    Computes a descent direction from the current gradient.

    The driver calls reset() on the first iteration, then on every later iteration
    update() with the previous step and gradient change, followed by direction().
    """

    name: str

    def __init__(self, dim: int):
        self.dim = dim

    def reset(self) -> None:
        """Forget any history, the next direction is steepest descent"""

    def update(self, s: Vector, y: Vector) -> bool:
        """
        Record the step s = x_{k+1} - x_k and gradient change y = g_{k+1} - g_k.

        Returns whether the strategy used the pair.
        """
        return False

    @abstractmethod
    def direction(self, grad: Vector) -> Vector:
        """Returns the search direction at a point with gradient grad"""

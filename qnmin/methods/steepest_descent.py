from ..types import Vector
from .base import DirectionStrategy


class SteepestDescent(DirectionStrategy):
    """Steepest descent, no previous information is used"""

    name = "sd"

    def direction(self, grad: Vector) -> Vector:
        return -grad

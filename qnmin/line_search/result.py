from dataclasses import dataclass

from ..types import Vector


@dataclass
class LineSearchResult:
    """
    Accepted step t along the search direction, the function value f and gradient g
    at x + t * d, and the number of objective evaluations used. t = 0 means the line
    search made no usable progress, f and g are then the values at x.
    """

    t: float
    f: float
    g: Vector
    fun_evals: int

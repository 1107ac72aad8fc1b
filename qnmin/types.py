from typing import Any, Callable

import numpy as np
import numpy.typing as npt

Vector = npt.NDArray[np.float64]
ScalarFn = Callable[..., float]
ObjectiveFn = Callable[..., tuple[float, Vector]]
IterationCallback = Callable[[int, Vector, float, float], Any]

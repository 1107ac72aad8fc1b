class QNMinError(RuntimeError):
    """Base class for fatal minimizer failures"""


class IllegalDirectionError(QNMinError):
    """The descent direction contains a non-finite or non-real value"""

    def __init__(self, iteration: int):
        self.iteration = iteration
        super().__init__(f"Step direction is illegal at iteration {iteration}")

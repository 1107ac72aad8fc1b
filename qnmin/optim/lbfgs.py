"""
Limited-memory BFGS (L-BFGS) as a PyTorch optimizer

Each call to step() runs the line-search minimizer on the concatenated model
parameters, starting from their current values, for up to max_iter iterations.
"""

import logging
from typing import Callable

import numpy as np
import torch
from torch import Tensor
from torch.optim import Optimizer
from torch.optim.optimizer import ParamsT

from ..minimize import MinimizeResult, minimize
from ..options import MinimizeOptions

logger = logging.getLogger(__name__)


class LBFGS(Optimizer):
    def __init__(
        self,
        params: ParamsT,
        max_iter: int = 20,
        max_eval: int | None = None,
        opt_tol: float = 1e-5,
        prog_tol: float = 1e-9,
        history_size: int = 100,
        c1: float = 1e-4,
        c2: float = 0.9,
        max_ls: int = 25,
    ):
        """
        Limited-memory BFGS (L-BFGS) with strong Wolfe line search

        Parameters:
            params: iterable of parameters to optimize
            max_iter: max number of iterations per step()
            max_eval: max number of function evaluations per step(), defaults to
                max_iter * 5 / 4
            opt_tol: termination tolerance on max|grad|
            prog_tol: termination tolerance on function/parameter changes
            history_size: history size, 0 gives steepest descent
            c1: parameter for Armijo/sufficient decrease condition
            c2: parameter for curvature condition
            max_ls: max number of trial steps per line search
        """
        if max_iter < 1:
            raise ValueError("L-BFGS needs at least one iteration per step")
        if max_eval is None:
            max_eval = max_iter * 5 // 4
        if history_size < 0:
            raise ValueError("History size must be non-negative")

        defaults = dict(
            max_iter=max_iter,
            max_eval=max_eval,
            opt_tol=opt_tol,
            prog_tol=prog_tol,
            history_size=history_size,
            c1=c1,
            c2=c2,
            max_ls=max_ls,
        )
        super().__init__(params, defaults)

        if len(self.param_groups) != 1:
            raise ValueError("L-BFGS doesn't support per-parameter options")

        self._params: list[torch.nn.Parameter] = self.param_groups[0]["params"]

        # Store state in first param
        state = self.state[self._params[0]]
        state["num_iters"] = 0
        state["func_evals"] = 0
        state["result"] = None

        # Fail on bad hyperparameters now rather than on the first step
        self._options()

    def _options(self) -> MinimizeOptions:
        group = self.param_groups[0]
        return MinimizeOptions(
            max_fun_evals=group["max_eval"],
            max_iter=group["max_iter"],
            opt_tol=group["opt_tol"],
            prog_tol=group["prog_tol"],
            corrections=group["history_size"],
            c1=group["c1"],
            c2=group["c2"],
            max_ls=group["max_ls"],
        )

    def _get_grad_vector(self) -> Tensor:
        """Concatenates gradients from all parameters into a 1D tensor"""
        grads = []
        for param in self._params:
            if param.grad is None:
                grads.append(torch.zeros_like(param).view(-1))
            else:
                grads.append(param.grad.view(-1))
        return torch.cat(grads)

    def _get_param_vector(self) -> Tensor:
        """Concatenates all parameters into a 1D tensor"""
        return torch.cat([p.data.view(-1) for p in self._params])

    def _set_param_vector(self, vec: Tensor):
        """Set model parameters to the given tensor"""
        offset = 0
        with torch.no_grad():
            for param in self._params:
                numel = param.numel()
                param.copy_(vec[offset : offset + numel].view_as(param))
                offset += numel

    @torch.no_grad()
    def step(  # type: ignore[override]
        self, closure: Callable[[], float | Tensor]
    ) -> float:
        """
        Perform up to max_iter L-BFGS iterations.

        Parameters:
            closure: A closure that re-evaluates the model and returns the loss. It
                must zero the gradients and call backward().

        Returns the loss at the parameters on entry.
        """
        # Make sure the closure is always called with grad enabled
        closure = torch.enable_grad()(closure)
        state = self.state[self._params[0]]
        ref = self._params[0]

        def objective(x: np.ndarray) -> tuple[float, np.ndarray]:
            self._set_param_vector(torch.from_numpy(x).to(ref.dtype).to(ref.device))
            loss = float(closure())
            grad = self._get_grad_vector().detach().cpu().double().numpy()
            return loss, grad

        x0 = self._get_param_vector().detach().cpu().double().numpy()
        result: MinimizeResult = minimize(objective, x0, options=self._options())
        self._set_param_vector(torch.from_numpy(result.x).to(ref.dtype).to(ref.device))

        logger.debug(
            f"L-BFGS step: {result.message}, loss = {result.fun:.6e}, "
            f"iterations = {result.nit}"
        )
        state["num_iters"] += result.nit
        state["func_evals"] += result.nfev
        state["result"] = result

        orig_loss = result.trace[0][1]
        return orig_loss

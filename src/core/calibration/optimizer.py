"""
Random Shift Optimization of Calibration Design Matrices.

This module implements the stochastic local search of Kirsanov et al.:
every mixture is shifted along a random direction and the step is halved
until the candidate satisfies the continuation criterion.

Classes
-------
OptimizerConfig
    Iteration budgets of the optimizer

Functions
---------
get_optimized_x
    Optimize a normalized design matrix by random shifts

References
----------
.. [1] Kirsanov, D. et al. (2014). Design of experiments for calibration
       of multicomponent systems. Analyst, 139, 4303-4309.
       doi:10.1039/C4AN00227J
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from src.core.calibration.criteria import Criterion
from src.core.calibration.metrics import n_segments
from src.core.calibration.transforms import Constraint
from src.core.calibration.validation import as_float_matrix, validate_design_matrix
from src.core.exceptions import OptimizationError

SeedLike = Union[None, int, np.random.Generator]


def _is_integer(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


# ============================================================
# OPTIMIZER CONFIGURATION
# ============================================================


@dataclass
class OptimizerConfig:
    """
    Configuration for the random shift optimizer.

    Attributes
    ----------
    max_iterations : int, default=100
        Number of outer iterations, each with a fresh random direction.
        0 returns the input unchanged.
    max_inner_iterations : int, optional
        Cap on step-halving attempts per outer iteration. None shares
        ``max_iterations``, which reproduces the published algorithm.

    Notes
    -----
    An outer iteration gives up when the attempt counter exceeds the cap
    and keeps the current matrix, so at most ``inner_limit - 1``
    candidates are evaluated by the criterion.
    """

    max_iterations: int = 100
    max_inner_iterations: Optional[int] = None

    def __post_init__(self):
        """Validate configuration."""
        if not _is_integer(self.max_iterations) or self.max_iterations < 0:
            raise OptimizationError("max_iterations must be an integer >= 0")
        if self.max_inner_iterations is not None and (
            not _is_integer(self.max_inner_iterations) or self.max_inner_iterations < 1
        ):
            raise OptimizationError("max_inner_iterations must be an integer >= 1")

    @property
    def inner_limit(self) -> int:
        """Effective cap on inner iterations."""
        if self.max_inner_iterations is None:
            return self.max_iterations
        return self.max_inner_iterations


# ============================================================
# RANDOM SHIFT OPTIMIZER
# ============================================================


def _apply_constraint(constraint: Constraint, X: np.ndarray) -> np.ndarray:
    """Apply a constraint and keep its result inside the unit hypercube."""
    constrained = np.asarray(constraint(X), dtype=float)
    if constrained.shape != X.shape:
        raise OptimizationError(
            f"constraint changed the design shape from {X.shape} to {constrained.shape}"
        )
    return np.clip(constrained, 0.0, 1.0)


def get_optimized_x(
    X,
    criterion: Criterion,
    constraint: Optional[Constraint] = None,
    max_iter: int = 100,
    max_inner_iter: Optional[int] = None,
    seed: SeedLike = None,
) -> np.ndarray:
    """
    Optimize design matrix values by random shifts.

    Algorithm Overview
    ------------------
    1. Apply the constraint (if any) to X
    2. For each of ``max_iter`` outer iterations:
       - Draw a shift dX uniformly from [-dxmax/2, dxmax/2] for every
         value, with dxmax = 1/k the segment size
       - Starting with alpha = 1, propose Xp = X + alpha * dX, clip it
         to [0, 1], apply the constraint and halve alpha, until the
         criterion accepts Xp
       - If the attempt counter exceeds the inner cap, keep Xp = X
       - Continue from X = Xp

    Parameters
    ----------
    X : array-like, shape (N, n)
        Normalized design matrix with values in [0, 1]
    criterion : Criterion
        Callable ``(X, Xp) -> bool`` returning True while Xp is not good
        enough (see :mod:`src.core.calibration.criteria`)
    constraint : Constraint, optional
        Callable ``X -> X'`` applied to every candidate, e.g. quantization
    max_iter : int, default=100
        Number of outer iterations
    max_inner_iter : int, optional
        Cap on inner iterations, defaults to ``max_iter``
    seed : int or np.random.Generator, optional
        Random seed or generator for reproducibility

    Returns
    -------
    np.ndarray, shape (N, n)
        Optimized design matrix with values in [0, 1]

    Raises
    ------
    ShapeError, DomainError
        If X is not a valid design matrix, or propagated from the criterion
    OptimizationError
        If the criterion or constraint is not callable or budgets are invalid

    Examples
    --------
    >>> rng = np.random.default_rng(42)
    >>> X = rng.uniform(size=(30, 3))
    >>> X_opt = get_optimized_x(X, DeviationCriterion(), max_iter=50, seed=rng)
    >>> compute_dmax(X_opt) <= compute_dmax(X)
    True
    """
    validate_design_matrix(X)

    if not callable(criterion):
        raise OptimizationError("criterion must be callable")
    if constraint is not None and not callable(constraint):
        raise OptimizationError("constraint must be callable")

    config = OptimizerConfig(max_iterations=max_iter, max_inner_iterations=max_inner_iter)
    inner_limit = config.inner_limit

    if config.max_iterations > 0 and inner_limit < 2:
        warnings.warn(
            f"Inner iteration cap of {inner_limit} never evaluates a candidate; "
            f"the design will not change."
        )

    rng = np.random.default_rng(seed)

    X = as_float_matrix(X)
    if config.max_iterations == 0:
        return X

    N, n = X.shape

    k = n_segments(N, n)
    dxmax = 1.0 / k

    if constraint is not None:
        X = _apply_constraint(constraint, X)

    Xp = X
    for _ in range(config.max_iterations):
        alpha = 1.0
        dX = rng.uniform(-dxmax / 2, dxmax / 2, size=(N, n))

        candidate = None
        n_attempts = 1
        while criterion(X, candidate):
            candidate = np.clip(X + alpha * dX, 0.0, 1.0)

            if constraint is not None:
                candidate = _apply_constraint(constraint, candidate)

            alpha /= 2

            n_attempts += 1
            if n_attempts > inner_limit:
                candidate = X
                break

        if candidate is None:
            raise OptimizationError(
                "criterion must return True when no candidate exists yet"
            )

        Xp = candidate
        X = Xp

    return Xp

"""
High-Level API for Calibration Design Generation.

This module provides the user-facing functions for generating calibration
design matrices with multiple components and for reporting their quality.

Classes
-------
DesignQuality
    Container for the three quality statistics of a design

Functions
---------
random_design
    Draw a random normalized design matrix
generate_design
    Generate an optimized design matrix in concentration units
generate_component_design
    Same as generate_design, driven by Component definitions
quality_report
    Compute Dmax, rmin and maxCor of a design
compare_quality
    Tabulate quality statistics of several designs

Notes
-----
Design generation runs two optimization stages on a random start:

1. minimize Dmax (uniform coverage of the concentration space)
2. minimize Dmax and maximize rmin together (distinct mixtures)

References
----------
.. [1] Kirsanov, D. et al. (2014). Design of experiments for calibration
       of multicomponent systems. Analyst, 139, 4303-4309.
       doi:10.1039/C4AN00227J
"""

import warnings
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from src.core.calibration.criteria import DeviationCriterion, DistanceCriterion
from src.core.calibration.metrics import (
    compute_dmax,
    compute_max_abs_correlation,
    compute_min_distance,
)
from src.core.calibration.optimizer import OptimizerConfig, SeedLike, get_optimized_x
from src.core.calibration.transforms import (
    check_levels,
    create_quantization_constraint,
    map_values,
    normalize_columns,
)
from src.core.components import Component
from src.core.exceptions import DomainError, ShapeError


# ============================================================
# RESULT CONTAINER
# ============================================================


@dataclass
class DesignQuality:
    """
    Quality statistics of a design matrix.

    Attributes
    ----------
    dmax : float
        Maximum deviation from uniform coverage (lower is better)
    min_distance : float
        Smallest distance between two mixtures, rmin (higher is better)
    max_abs_correlation : float
        Largest absolute correlation between components, maxCor
        (lower is better)
    """

    dmax: float
    min_distance: float
    max_abs_correlation: float

    def as_series(self) -> pd.Series:
        """Return statistics as a Series indexed Dmax, rmin, maxCor."""
        return pd.Series(
            {
                "Dmax": self.dmax,
                "rmin": self.min_distance,
                "maxCor": self.max_abs_correlation,
            }
        )


# ============================================================
# MAIN API FUNCTIONS
# ============================================================


def random_design(n_mixtures: int, n_components: int, seed: SeedLike = None) -> np.ndarray:
    """
    Draw a random normalized design matrix.

    Parameters
    ----------
    n_mixtures : int
        Number of mixtures N (rows)
    n_components : int
        Number of components n (columns)
    seed : int or np.random.Generator, optional
        Random seed or generator for reproducibility

    Returns
    -------
    np.ndarray, shape (n_mixtures, n_components)
        Values drawn uniformly from [0, 1)

    Raises
    ------
    ShapeError
        If n_components < 1 or n_mixtures <= n_components
    """
    if n_components < 1:
        raise ShapeError("Number of components must be at least 1.")
    if n_mixtures <= n_components:
        raise ShapeError(
            "Number of mixtures (parameter 'n_mixtures') must be larger than "
            "number of components."
        )

    rng = np.random.default_rng(seed)
    return rng.uniform(0.0, 1.0, size=(n_mixtures, n_components))


def generate_design(
    n_mixtures: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    var_names: Optional[Sequence[str]] = None,
    levels: Optional[Union[int, Sequence[int]]] = None,
    max_iter: int = 30,
    seed: SeedLike = None,
    optimizer_config: Optional[OptimizerConfig] = None,
) -> pd.DataFrame:
    """
    Generate a calibration design matrix with n_mixtures mixtures.

    Parameters
    ----------
    n_mixtures : int
        Number of mixtures to generate
    xmin : sequence of float
        Lowest concentration of each component
    xmax : sequence of float
        Largest concentration of each component
    var_names : sequence of str, optional
        Component names used as column names (default: C1, ..., Cn)
    levels : int or sequence of int, optional
        Number of concentration levels for all components or for each
        component. None leaves concentrations continuous.
    max_iter : int, default=30
        Number of outer iterations of each optimization stage
    seed : int or np.random.Generator, optional
        Random seed or generator for reproducibility
    optimizer_config : OptimizerConfig, optional
        Iteration budgets; overrides ``max_iter`` when given

    Returns
    -------
    pd.DataFrame, shape (n_mixtures, n)
        Design matrix in concentration units, one column per component

    Raises
    ------
    ShapeError
        - If fewer than 2 components or xmin and xmax differ in length
        - If n_mixtures <= number of components
        - If var_names or levels do not match the number of components
    DomainError
        If xmin >= xmax for a component or levels are invalid

    Examples
    --------
    >>> # 30 mixtures, C1 in [0, 10], C2 in [10, 100], C3 in [50, 300]
    >>> design = generate_design(30, [0, 10, 50], [10, 100, 300], seed=42)
    >>> design.shape
    (30, 3)

    >>> # same, with 11 levels for C1 and C2 and 7 levels for C3
    >>> design = generate_design(30, [0, 10, 50], [10, 100, 300], levels=[11, 11, 7])
    """
    lower = np.asarray(xmin, dtype=float)
    upper = np.asarray(xmax, dtype=float)

    if lower.ndim != 1 or upper.ndim != 1 or len(lower) < 2 or len(lower) != len(upper):
        raise ShapeError("Parameters 'xmin' and 'xmax' must be vectors of the same size.")

    n = len(lower)

    if n_mixtures <= n:
        raise ShapeError(
            "Number of mixtures (parameter 'n_mixtures') must be larger than "
            "number of components."
        )

    if var_names is not None and len(var_names) != n:
        raise ShapeError(
            "Number of elements in 'var_names' must be the same as number of components."
        )

    if np.any(lower >= upper):
        bad = [i + 1 for i in np.flatnonzero(lower >= upper)]
        raise DomainError(f"'xmin' must be smaller than 'xmax' for component(s) {bad}.")

    constraint = None
    if levels is not None:
        check_levels(levels, n)
        constraint = create_quantization_constraint(levels)

    if optimizer_config is None:
        optimizer_config = OptimizerConfig(max_iterations=max_iter)

    rng = np.random.default_rng(seed)
    X = random_design(n_mixtures, n, seed=rng)

    # Stage 1: lower Dmax
    X = get_optimized_x(
        X,
        criterion=DeviationCriterion(),
        constraint=constraint,
        max_iter=optimizer_config.max_iterations,
        max_inner_iter=optimizer_config.max_inner_iterations,
        seed=rng,
    )

    # Stage 2: lower Dmax and raise rmin
    X = get_optimized_x(
        X,
        criterion=DeviationCriterion() | DistanceCriterion(),
        constraint=constraint,
        max_iter=optimizer_config.max_iterations,
        max_inner_iter=optimizer_config.max_inner_iterations,
        seed=rng,
    )

    if compute_min_distance(X) == 0:
        warnings.warn(
            "Design contains coincident mixtures. Consider more quantization "
            "levels or fewer mixtures."
        )

    columns = list(var_names) if var_names is not None else [f"C{i + 1}" for i in range(n)]
    return pd.DataFrame(map_values(X, lower, upper), columns=columns)


def generate_component_design(
    components: List[Component],
    n_mixtures: int,
    max_iter: int = 30,
    seed: SeedLike = None,
    optimizer_config: Optional[OptimizerConfig] = None,
) -> pd.DataFrame:
    """
    Generate a calibration design matrix from component definitions.

    Parameters
    ----------
    components : List[Component]
        Component definitions; their names become column names
    n_mixtures : int
        Number of mixtures to generate
    max_iter : int, default=30
        Number of outer iterations of each optimization stage
    seed : int or np.random.Generator, optional
        Random seed or generator for reproducibility
    optimizer_config : OptimizerConfig, optional
        Iteration budgets; overrides ``max_iter`` when given

    Returns
    -------
    pd.DataFrame
        Design matrix in concentration units

    Raises
    ------
    DomainError
        If only some of the components define n_levels

    See Also
    --------
    generate_design : Same procedure driven by bound vectors

    Examples
    --------
    >>> components = [
    ...     Component("Glucose", 0, 10, n_levels=11),
    ...     Component("Ethanol", 10, 100, n_levels=11),
    ...     Component("Lactate", 50, 300, n_levels=7),
    ... ]
    >>> design = generate_component_design(components, n_mixtures=30, seed=1)
    """
    quantized = [c.is_quantized() for c in components]
    if any(quantized) and not all(quantized):
        raise DomainError(
            "Either every component or none of them must define n_levels."
        )

    levels = [c.n_levels for c in components] if components and all(quantized) else None

    return generate_design(
        n_mixtures,
        xmin=[c.min_value for c in components],
        xmax=[c.max_value for c in components],
        var_names=[c.name for c in components],
        levels=levels,
        max_iter=max_iter,
        seed=seed,
        optimizer_config=optimizer_config,
    )


# ============================================================
# QUALITY REPORTING
# ============================================================


def quality_report(X) -> DesignQuality:
    """
    Compute the three quality statistics of a design matrix.

    Every column is first rescaled to [0, 1] by its own minimum and
    maximum, so the statistics do not depend on concentration units.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix in any units (ndarray or DataFrame)

    Returns
    -------
    DesignQuality
        Dmax, rmin and maxCor of the renormalized design

    Raises
    ------
    DomainError
        If a column has a single value (zero range)

    Examples
    --------
    >>> design = generate_design(30, [0, 10, 50], [10, 100, 300], seed=42)
    >>> quality = quality_report(design)
    >>> list(quality.as_series().index)
    ['Dmax', 'rmin', 'maxCor']
    >>> 0 <= quality.max_abs_correlation <= 1
    True
    """
    normalized = normalize_columns(X)

    return DesignQuality(
        dmax=compute_dmax(normalized),
        min_distance=compute_min_distance(normalized),
        max_abs_correlation=compute_max_abs_correlation(normalized),
    )


def compare_quality(designs: Dict[str, object]) -> pd.DataFrame:
    """
    Tabulate quality statistics of several designs side by side.

    Parameters
    ----------
    designs : dict
        Mapping from a label (e.g. "Initial", "After optimization") to a
        design matrix

    Returns
    -------
    pd.DataFrame
        One row per design with columns Dmax, rmin, maxCor
    """
    rows = {label: quality_report(X).as_series() for label, X in designs.items()}
    return pd.DataFrame.from_dict(rows, orient="index", columns=["Dmax", "rmin", "maxCor"])

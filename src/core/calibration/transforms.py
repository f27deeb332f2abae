"""
Value Transforms for Design Matrices.

Transforms convert between the normalized [0, 1] space used by the
optimizer and real concentration units, and restrict normalized values to
a fixed grid of concentration levels.

Classes
-------
Constraint
    Protocol for in-loop constraint transforms

Functions
---------
quantize_levels
    Round normalized values to evenly spaced levels
create_quantization_constraint
    Build a constraint transform from quantization levels
map_values
    Rescale columns from [0, 1] to [xmin, xmax]
unmap_values
    Rescale columns from [xmin, xmax] back to [0, 1]
normalize_columns
    Min-max renormalize every column to [0, 1]
"""

from numbers import Integral
from typing import Protocol, Sequence, Union

import numpy as np

from src.core.calibration.validation import as_float_matrix, validate_design_matrix
from src.core.exceptions import DomainError, ShapeError


class Constraint(Protocol):
    """Protocol for constraint transforms applied inside the optimizer."""

    def __call__(self, X: np.ndarray) -> np.ndarray:
        """
        Transform a normalized design matrix.

        Parameters
        ----------
        X : np.ndarray, shape (N, n)
            Design matrix with values in [0, 1]

        Returns
        -------
        np.ndarray, shape (N, n)
            Transformed matrix, values still in [0, 1]
        """
        ...


def _per_column(values: Union[float, Sequence[float]], n_cols: int, label: str) -> np.ndarray:
    """Broadcast a scalar to n_cols entries or check a vector has n_cols entries."""
    array = np.atleast_1d(np.asarray(values))
    if array.ndim != 1:
        raise ShapeError(f"Parameter '{label}' must be a scalar or a vector.")
    if len(array) == 1 and n_cols > 1:
        array = np.repeat(array, n_cols)
    if len(array) != n_cols:
        raise ShapeError(
            f"Parameter '{label}' must have one value for each of the "
            f"{n_cols} columns, got {len(array)}."
        )
    return array


def check_levels(levels: Union[int, Sequence[int]], n_cols: int) -> np.ndarray:
    """
    Validate quantization levels and broadcast them to every column.

    Raises
    ------
    ShapeError
        If the number of levels does not match the number of columns
    DomainError
        If a level count is not an integer or is smaller than 2
    """
    levels_array = _per_column(levels, n_cols, "levels")

    for level in levels_array:
        if isinstance(level, (bool, np.bool_)) or not isinstance(level, (Integral, np.integer)):
            raise DomainError(f"Number of levels must be an integer, got {level!r}.")
        if level < 2:
            raise DomainError(f"Number of levels must be at least 2, got {level}.")

    return levels_array.astype(int)


def quantize_levels(X, levels: Union[int, Sequence[int]]) -> np.ndarray:
    """
    Quantize values in range [0, 1] to a fixed number of levels.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix with values in [0, 1]
    levels : int or sequence of int
        Number of levels for all columns or one number per column (>= 2)

    Returns
    -------
    np.ndarray, shape (N, n)
        Matrix with every value replaced by the nearest of the evenly
        spaced levels 0, 1/(L-1), ..., 1

    Notes
    -----
    Ties are rounded half to even, as ``np.round`` does.

    Examples
    --------
    >>> quantize_levels(np.array([[0.0], [0.33], [0.5], [1.0]]), 3).ravel()
    array([0. , 0.5, 0.5, 1. ])
    """
    validate_design_matrix(X)
    values = as_float_matrix(X)

    steps = check_levels(levels, values.shape[1]) - 1
    return np.round(values * steps) / steps


def create_quantization_constraint(levels: Union[int, Sequence[int]]) -> Constraint:
    """
    Create a constraint that quantizes every candidate to fixed levels.

    Parameters
    ----------
    levels : int or sequence of int
        Number of levels for all columns or one number per column

    Returns
    -------
    Constraint
        Function mapping a normalized matrix to its quantized version

    Examples
    --------
    >>> constraint = create_quantization_constraint([11, 11, 7])
    >>> Xq = constraint(X)
    """
    def quantize(X: np.ndarray) -> np.ndarray:
        return quantize_levels(X, levels)

    return quantize


def map_values(X, xmin: Sequence[float], xmax: Sequence[float]) -> np.ndarray:
    """
    Map values of matrix columns from [0, 1] to [xmin, xmax].

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix with values in [0, 1]
    xmin : sequence of float
        Lower boundary for each column (a scalar is broadcast)
    xmax : sequence of float
        Upper boundary for each column (a scalar is broadcast)

    Returns
    -------
    np.ndarray, shape (N, n)
        ``X[:, i] * (xmax[i] - xmin[i]) + xmin[i]``

    Examples
    --------
    >>> map_values(np.array([[0.0, 1.0], [1.0, 0.0], [0.5, 0.5]]), [0, 0], [10, 10])
    array([[ 0., 10.],
           [10.,  0.],
           [ 5.,  5.]])
    """
    validate_design_matrix(X)
    values = as_float_matrix(X)
    n_cols = values.shape[1]

    lower = _per_column(xmin, n_cols, "xmin").astype(float)
    upper = _per_column(xmax, n_cols, "xmax").astype(float)

    return values * (upper - lower) + lower


def unmap_values(X, xmin: Sequence[float], xmax: Sequence[float]) -> np.ndarray:
    """
    Map values of matrix columns from [xmin, xmax] back to [0, 1].

    Inverse of :func:`map_values`. The result is not range-checked, values
    outside [xmin, xmax] map outside [0, 1].

    Raises
    ------
    DomainError
        If xmin equals xmax for some column
    """
    values = as_float_matrix(X)
    n_cols = values.shape[1]

    lower = _per_column(xmin, n_cols, "xmin").astype(float)
    upper = _per_column(xmax, n_cols, "xmax").astype(float)

    span = upper - lower
    if np.any(span == 0):
        raise DomainError("Parameters 'xmin' and 'xmax' must differ for every column.")

    return (values - lower) / span


def normalize_columns(X) -> np.ndarray:
    """
    Rescale every column independently to [0, 1] by its own min and max.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix in any units

    Returns
    -------
    np.ndarray, shape (N, n)
        ``(X[:, i] - min(X[:, i])) / (max(X[:, i]) - min(X[:, i]))``

    Raises
    ------
    DomainError
        If a column has zero range
    """
    values = as_float_matrix(X)

    lower = values.min(axis=0)
    span = values.max(axis=0) - lower
    if np.any(span == 0):
        columns = ", ".join(str(i + 1) for i in np.flatnonzero(span == 0))
        raise DomainError(f"Cannot normalize zero-range column(s): {columns}.")

    return (values - lower) / span

"""
Design Matrix Validation.

Every normalized design matrix entering the metrics, transforms or the
optimizer passes through :func:`validate_design_matrix` first.

Functions
---------
validate_design_matrix
    Check shape and [0, 1] range of a normalized design matrix
as_float_matrix
    Convert matrix-like input to a 2D float array
"""

import numpy as np

from src.core.exceptions import DomainError, ShapeError


def _as_array(X) -> np.ndarray:
    """Convert X to an ndarray, rejecting ragged nested sequences."""
    try:
        return np.asarray(X)
    except ValueError as exc:
        raise ShapeError(
            "Parameter 'X' must be a matrix or a data frame with numeric columns "
            "(rows have different lengths)."
        ) from exc


def as_float_matrix(X) -> np.ndarray:
    """
    Convert a matrix-like value (ndarray, DataFrame, nested lists) to floats.

    Raises
    ------
    ShapeError
        If X is not two-dimensional or has rows of different lengths
    DomainError
        If X contains non-numeric entries
    """
    values = _as_array(X)
    if values.ndim != 2:
        raise ShapeError(
            "Design matrix must be two-dimensional (rows x columns), "
            f"got {values.ndim} dimension(s)."
        )

    try:
        return values.astype(float)
    except (TypeError, ValueError) as exc:
        raise DomainError("Design matrix must contain numeric values only.") from exc


def validate_design_matrix(X):
    """
    Check that X is a valid normalized design matrix.

    Checks are performed in order and the first failure is raised:

    1. X is two-dimensional with at least one column
    2. number of rows is larger than number of columns
    3. every value lies in [0, 1] (NaN is rejected)

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix with mixtures as rows and components as columns

    Returns
    -------
    array-like
        The same object that was passed in, unchanged

    Raises
    ------
    ShapeError
        If X is not a matrix or N <= n
    DomainError
        If X has non-numeric values or values outside [0, 1]

    Examples
    --------
    >>> X = np.random.default_rng(1).uniform(size=(10, 3))
    >>> validate_design_matrix(X) is X
    True
    """
    values = _as_array(X)
    if values.ndim != 2:
        raise ShapeError(
            "Parameter 'X' must be a matrix or a data frame with numeric columns."
        )

    n_rows, n_cols = values.shape
    if n_cols < 1:
        raise ShapeError("Design matrix must have at least one column.")

    if n_rows <= n_cols:
        raise ShapeError(
            "Number of rows in 'X' must be larger than the number of columns "
            f"(got {n_rows} rows, {n_cols} columns)."
        )

    values = as_float_matrix(values)
    if np.isnan(values).any() or values.min() < 0 or values.max() > 1:
        raise DomainError("Values in 'X' must be between 0 and 1.")

    return X

"""
Quality Metrics for Calibration Design Matrices.

Three statistics describe how good a calibration design is:

- Dmax: maximum deviation of the cumulative point distribution over
  subvolumes from a uniform fill (lower is better)
- rmin: smallest Euclidean distance between two mixtures (higher is better)
- maxCor: largest absolute correlation between two components
  (lower is better)

Functions
---------
n_segments
    Number of segments per axis used to split the unit hypercube
compute_dmax
    Binned cumulative deviation statistic
compute_min_distance
    Smallest pairwise distance between rows
compute_max_abs_correlation
    Largest off-diagonal absolute Pearson correlation between columns

References
----------
.. [1] Kirsanov, D. et al. (2014). Design of experiments for calibration
       of multicomponent systems. Analyst, 139, 4303-4309.
       doi:10.1039/C4AN00227J
"""

import numpy as np
from scipy.spatial.distance import pdist

from src.core.calibration.validation import as_float_matrix, validate_design_matrix
from src.core.exceptions import DomainError, ShapeError

# Guards floor(N ** (1/n)) against roots like 27 ** (1/3) = 2.9999999999999996
ROOT_EPSILON = 1e-7

# Lower bin edge sits just below zero so exact zeros fall into the first bin
LOWER_BREAK = -1e-8


def n_segments(n_rows: int, n_cols: int, epsilon: float = ROOT_EPSILON) -> int:
    """
    Number of segments k per axis, k = floor(N^(1/n) + epsilon).

    Parameters
    ----------
    n_rows : int
        Number of mixtures N
    n_cols : int
        Number of components n
    epsilon : float, default=1e-7
        Correction for floating point truncation of exact roots

    Returns
    -------
    int
        Number of segments, 0 when N < 1
    """
    if n_rows < 1 or n_cols < 1:
        return 0
    return int(np.floor(n_rows ** (1.0 / n_cols) + epsilon))


def _bin_indices(values: np.ndarray, k: int) -> np.ndarray:
    """
    Bin index of every value for k equal segments of [0, 1].

    Segments are closed on the right, (b[j], b[j+1]], with the first
    breakpoint slightly below zero.
    """
    breaks = np.linspace(LOWER_BREAK, 1.0, k + 1)
    indices = np.searchsorted(breaks, values, side="left") - 1
    return np.clip(indices, 0, k - 1)


def subvolume_counts(X) -> np.ndarray:
    """
    Count mixtures in every subvolume of the unit hypercube.

    The hypercube is split into k segments per axis (m = k^n subvolumes).
    Cells are enumerated with the first component varying fastest.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Normalized design matrix

    Returns
    -------
    np.ndarray, shape (m,)
        Number of mixtures in each subvolume

    Raises
    ------
    DomainError
        If the number of segments is below 1
    """
    values = as_float_matrix(X)
    N, n = values.shape

    k = n_segments(N, n)
    if k < 1:
        raise DomainError(
            f"Cannot split the design space: {N} mixtures give {k} segments "
            f"per component for {n} components."
        )

    m = k ** n
    indices = _bin_indices(values, k)

    # first axis fastest: cell = i_1 + i_2 * k + i_3 * k^2 + ...
    weights = k ** np.arange(n)
    cells = indices @ weights

    return np.bincount(cells, minlength=m)


def compute_dmax(X) -> float:
    """
    Compute maximum absolute deviation between the cumulative distribution
    of mixtures over subvolumes and the uniform expectation.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Normalized design matrix with values in [0, 1]

    Returns
    -------
    float
        Dmax, a value in [0, N]

    Raises
    ------
    ShapeError, DomainError
        If X is not a valid design matrix or binning is undefined

    Notes
    -----
    With k = floor(N^(1/n)) segments per axis and m = k^n subvolumes the
    cumulative counts S_j are compared with E_j = j * N / m:

        Dmax = max_j |S_j - E_j|

    When N < 2^n there is a single subvolume and Dmax is always 0.

    Examples
    --------
    >>> # one mixture in each of the 4 subvolumes of a 2-component design
    >>> grid = np.array([[0.25, 0.25], [0.75, 0.25], [0.25, 0.75], [0.75, 0.75]])
    >>> compute_dmax(grid)
    0.0
    """
    validate_design_matrix(X)

    counts = subvolume_counts(X)
    N = int(counts.sum())
    m = len(counts)

    observed = np.cumsum(counts)
    expected = np.arange(1, m + 1) * N / m

    return float(np.max(np.abs(observed - expected)))


def compute_min_distance(X) -> float:
    """
    Compute the smallest Euclidean distance between any two mixtures.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix, N >= 2

    Returns
    -------
    float
        Minimum pairwise distance; 0 when two mixtures coincide

    Raises
    ------
    ShapeError
        If X is not a matrix or has fewer than two rows
    """
    values = as_float_matrix(X)
    if values.shape[0] < 2:
        raise ShapeError("At least two mixtures are needed to compute distances.")

    return float(np.min(pdist(values)))


def compute_max_abs_correlation(X) -> float:
    """
    Compute the largest absolute Pearson correlation between two components.

    Parameters
    ----------
    X : array-like, shape (N, n)
        Design matrix with n >= 2 columns

    Returns
    -------
    float
        Maximum absolute off-diagonal correlation, in [0, 1]

    Raises
    ------
    ShapeError
        If X has fewer than two columns or two rows
    DomainError
        If a column has zero variance (correlation is undefined)
    """
    values = as_float_matrix(X)
    n_rows, n_cols = values.shape
    if n_cols < 2:
        raise ShapeError("At least two components are needed to compute correlations.")
    if n_rows < 2:
        raise ShapeError("At least two mixtures are needed to compute correlations.")

    constant = np.ptp(values, axis=0) == 0
    if constant.any():
        columns = ", ".join(str(i + 1) for i in np.flatnonzero(constant))
        raise DomainError(
            f"Correlation is undefined for zero-variance column(s): {columns}."
        )

    corr = np.corrcoef(values, rowvar=False)
    np.fill_diagonal(corr, 0.0)

    return float(min(np.max(np.abs(corr)), 1.0))

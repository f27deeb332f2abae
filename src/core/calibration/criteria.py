"""
Continuation Criteria for Design Matrix Optimization.

A criterion compares the current design matrix X with a candidate Xp and
answers the question "is Xp still not good enough?":

- True: continue searching (the candidate is rejected)
- False: stop, the candidate is accepted

Called without a candidate (Xp is None) every criterion returns True, so
the optimizer always makes at least one attempt.

Combining criteria
------------------
Because criteria signal *continuation*, logical operators are inverted
with respect to the improvement they express:

- ``a | b`` (AnyCriterion) continues while *any* criterion continues, so a
  candidate is accepted only when *every* criterion sees an improvement.
- ``a & b`` (AllCriterion) continues while *all* criteria continue, so a
  candidate is accepted as soon as *one* criterion sees an improvement.

Classes
-------
ContinuationCriterion : ABC
    Base class for criteria
DeviationCriterion
    Continue while Dmax(Xp) >= Dmax(X)
DistanceCriterion
    Continue while rmin(Xp) <= rmin(X)
CorrelationCriterion
    Continue while maxCor(Xp) >= maxCor(X)
AnyCriterion, AllCriterion
    Logical combinations of criteria

Functions
---------
create_criterion
    Factory building a criterion from metric names
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Protocol, Sequence, Union

import numpy as np

from src.core.calibration.metrics import (
    compute_dmax,
    compute_max_abs_correlation,
    compute_min_distance,
)


class Criterion(Protocol):
    """Protocol for continuation criteria used by the optimizer."""

    def __call__(self, X: np.ndarray, Xp: Optional[np.ndarray] = None) -> bool:
        """
        Decide whether optimization must continue.

        Parameters
        ----------
        X : np.ndarray, shape (N, n)
            Current design matrix
        Xp : np.ndarray, shape (N, n), optional
            Candidate design matrix, None before the first attempt

        Returns
        -------
        bool
            True if Xp is not good enough, False to accept Xp
        """
        ...


# ============================================================
# BASE CLASS
# ============================================================


class ContinuationCriterion(ABC):
    """
    Abstract base class for continuation criteria.

    Subclasses implement :meth:`should_continue`, which is only called
    when a candidate exists. Criteria combine with ``|`` and ``&``.
    """

    def __call__(self, X: np.ndarray, Xp: Optional[np.ndarray] = None) -> bool:
        if Xp is None:
            return True
        return bool(self.should_continue(X, Xp))

    @abstractmethod
    def should_continue(self, X: np.ndarray, Xp: np.ndarray) -> bool:
        """Return True if Xp does not improve on X."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return criterion name."""
        pass

    def __or__(self, other: Criterion) -> "AnyCriterion":
        return AnyCriterion([self, other])

    def __and__(self, other: Criterion) -> "AllCriterion":
        return AllCriterion([self, other])

    def __ror__(self, other: Criterion) -> "AnyCriterion":
        return AnyCriterion([other, self])

    def __rand__(self, other: Criterion) -> "AllCriterion":
        return AllCriterion([other, self])

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ============================================================
# SINGLE-METRIC CRITERIA
# ============================================================


class DeviationCriterion(ContinuationCriterion):
    """
    Continue while the candidate does not lower Dmax.

    Returns ``Dmax(X) - Dmax(Xp) <= 0``.
    """

    def should_continue(self, X: np.ndarray, Xp: np.ndarray) -> bool:
        return (compute_dmax(X) - compute_dmax(Xp)) <= 0

    @property
    def name(self) -> str:
        return "Dmax"


class DistanceCriterion(ContinuationCriterion):
    """
    Continue while the candidate does not increase the minimum distance.

    Returns ``rmin(Xp) - rmin(X) <= 0``.
    """

    def should_continue(self, X: np.ndarray, Xp: np.ndarray) -> bool:
        return (compute_min_distance(Xp) - compute_min_distance(X)) <= 0

    @property
    def name(self) -> str:
        return "rmin"


class CorrelationCriterion(ContinuationCriterion):
    """
    Continue while the candidate does not lower the maximum correlation.

    Returns ``maxCor(X) - maxCor(Xp) <= 0``. Raises DomainError when a
    column of X or Xp has zero variance.
    """

    def should_continue(self, X: np.ndarray, Xp: np.ndarray) -> bool:
        return (compute_max_abs_correlation(X) - compute_max_abs_correlation(Xp)) <= 0

    @property
    def name(self) -> str:
        return "maxCor"


# ============================================================
# COMBINATORS
# ============================================================


def _criterion_name(criterion: Criterion) -> str:
    name = getattr(criterion, "name", None)
    if isinstance(name, str):
        return name
    return getattr(criterion, "__name__", type(criterion).__name__)


class AnyCriterion(ContinuationCriterion):
    """
    Logical OR of continuation criteria.

    Continues while any member continues; the candidate is accepted only
    when every member sees an improvement. Evaluation short-circuits on
    the first member that continues.
    """

    def __init__(self, criteria: Sequence[Criterion]):
        if not criteria:
            raise ValueError("AnyCriterion needs at least one criterion")
        self.criteria: List[Criterion] = []
        for criterion in criteria:
            # flatten nested ORs so (a | b) | c keeps a single level
            if isinstance(criterion, AnyCriterion):
                self.criteria.extend(criterion.criteria)
            else:
                self.criteria.append(criterion)

    def should_continue(self, X: np.ndarray, Xp: np.ndarray) -> bool:
        return any(criterion(X, Xp) for criterion in self.criteria)

    @property
    def name(self) -> str:
        return " | ".join(_criterion_name(c) for c in self.criteria)

    def __repr__(self) -> str:
        return f"AnyCriterion({self.criteria!r})"


class AllCriterion(ContinuationCriterion):
    """
    Logical AND of continuation criteria.

    Continues while every member continues; the candidate is accepted as
    soon as one member sees an improvement.
    """

    def __init__(self, criteria: Sequence[Criterion]):
        if not criteria:
            raise ValueError("AllCriterion needs at least one criterion")
        self.criteria: List[Criterion] = []
        for criterion in criteria:
            if isinstance(criterion, AllCriterion):
                self.criteria.extend(criterion.criteria)
            else:
                self.criteria.append(criterion)

    def should_continue(self, X: np.ndarray, Xp: np.ndarray) -> bool:
        return all(criterion(X, Xp) for criterion in self.criteria)

    @property
    def name(self) -> str:
        return " & ".join(_criterion_name(c) for c in self.criteria)

    def __repr__(self) -> str:
        return f"AllCriterion({self.criteria!r})"


# ============================================================
# FACTORY FUNCTION
# ============================================================


_CRITERIA = {
    "deviation": DeviationCriterion,
    "distance": DistanceCriterion,
    "correlation": CorrelationCriterion,
}


def create_criterion(names: Union[str, Sequence[str]]) -> ContinuationCriterion:
    """
    Create a criterion from one or more metric names.

    Parameters
    ----------
    names : str or sequence of str
        'deviation' (lower Dmax), 'distance' (higher rmin) or
        'correlation' (lower maxCor). Several names are combined with OR,
        so a candidate must improve every listed metric.

    Returns
    -------
    ContinuationCriterion
        Criterion object usable by the optimizer

    Raises
    ------
    ValueError
        If a name is unknown or no name is given

    Examples
    --------
    >>> criterion = create_criterion(["deviation", "distance"])
    >>> criterion.name
    'Dmax | rmin'
    """
    if isinstance(names, str):
        names = [names]

    criteria = []
    for name in names:
        try:
            criteria.append(_CRITERIA[name]())
        except KeyError:
            raise ValueError(
                f"Unknown criterion: '{name}'. "
                f"Must be one of {sorted(_CRITERIA)}."
            ) from None

    if not criteria:
        raise ValueError("At least one criterion name must be given")

    if len(criteria) == 1:
        return criteria[0]
    return AnyCriterion(criteria)

"""
Tests for the random shift optimizer.

Tests cover:
- Optimizer configuration
- Degenerate budgets (max_iter=0, tiny inner caps)
- Step size and step halving
- Monotone improvement under each criterion
- Constraints and boundary clipping
- Reproducibility with seeds
"""

import numpy as np
import pytest

from src.core.calibration.criteria import (
    CorrelationCriterion,
    DeviationCriterion,
    DistanceCriterion,
)
from src.core.calibration.design_generation import random_design
from src.core.calibration.metrics import (
    compute_dmax,
    compute_max_abs_correlation,
    compute_min_distance,
)
from src.core.calibration.optimizer import OptimizerConfig, get_optimized_x
from src.core.calibration.transforms import create_quantization_constraint
from src.core.exceptions import OptimizationError, ShapeError


def accept_first(X, Xp=None):
    """Accept the first candidate of every outer iteration."""
    return Xp is None


class CountingCriterion:
    """Never accepts; records how many candidates it has seen."""

    def __init__(self):
        self.calls = 0
        self.candidates = 0

    def __call__(self, X, Xp=None):
        self.calls += 1
        if Xp is not None:
            self.candidates += 1
        return True


@pytest.fixture
def initial_design():
    """30 mixtures x 3 components, k = 3 segments."""
    return random_design(30, 3, seed=123)


# ============================================================
# OPTIMIZER CONFIGURATION
# ============================================================


class TestOptimizerConfig:
    """Test OptimizerConfig dataclass and validation."""

    def test_default_config(self):
        config = OptimizerConfig()

        assert config.max_iterations == 100
        assert config.max_inner_iterations is None
        assert config.inner_limit == 100

    def test_inner_limit_override(self):
        config = OptimizerConfig(max_iterations=30, max_inner_iterations=8)
        assert config.inner_limit == 8

    def test_zero_iterations_allowed(self):
        assert OptimizerConfig(max_iterations=0).max_iterations == 0

    def test_negative_iterations(self):
        with pytest.raises(OptimizationError, match="max_iterations must be"):
            OptimizerConfig(max_iterations=-1)

    def test_non_integer_iterations(self):
        with pytest.raises(OptimizationError, match="max_iterations must be"):
            OptimizerConfig(max_iterations=2.5)

    def test_invalid_inner_iterations(self):
        with pytest.raises(OptimizationError, match="max_inner_iterations must be"):
            OptimizerConfig(max_inner_iterations=0)

    def test_bool_iterations_rejected(self):
        with pytest.raises(OptimizationError, match="max_iterations must be"):
            OptimizerConfig(max_iterations=True)

    def test_bool_inner_iterations_rejected(self):
        with pytest.raises(OptimizationError, match="max_inner_iterations must be"):
            OptimizerConfig(max_inner_iterations=True)

    def test_numpy_integer_accepted(self):
        assert OptimizerConfig(max_iterations=np.int64(5)).inner_limit == 5


# ============================================================
# DEGENERATE BUDGETS
# ============================================================


class TestBudgets:
    """Test iteration budgets and the inner-loop safety cap."""

    def test_zero_iterations_returns_input(self, initial_design):
        result = get_optimized_x(initial_design, DeviationCriterion(), max_iter=0)
        np.testing.assert_array_equal(result, initial_design)

    def test_zero_iterations_returns_copy(self, initial_design):
        result = get_optimized_x(initial_design, DeviationCriterion(), max_iter=0)
        assert result is not initial_design

    def test_never_accepting_criterion_keeps_design(self, initial_design):
        result = get_optimized_x(initial_design, CountingCriterion(), max_iter=4, seed=0)
        np.testing.assert_array_equal(result, initial_design)

    def test_inner_cap_shares_outer_budget(self, initial_design):
        """Each outer iteration calls the criterion max_iter times."""
        criterion = CountingCriterion()
        get_optimized_x(initial_design, criterion, max_iter=5, seed=0)

        assert criterion.calls == 5 * 5
        assert criterion.candidates == 5 * 4

    def test_independent_inner_cap(self, initial_design):
        criterion = CountingCriterion()
        get_optimized_x(initial_design, criterion, max_iter=3, max_inner_iter=7, seed=0)

        assert criterion.calls == 3 * 7

    def test_inner_cap_of_one_warns(self, initial_design):
        with pytest.warns(UserWarning, match="never evaluates a candidate"):
            result = get_optimized_x(initial_design, accept_first, max_iter=1, seed=0)

        np.testing.assert_array_equal(result, initial_design)


# ============================================================
# STEP SIZE
# ============================================================


class TestStep:
    """Test the random shift applied to every value."""

    def test_first_candidate_uses_full_step(self, initial_design):
        """Accepted first candidate is X + dX with dX in [-1/(2k), 1/(2k)]."""
        result = get_optimized_x(
            initial_design, accept_first, max_iter=1, max_inner_iter=10, seed=7
        )

        dX = np.random.default_rng(7).uniform(-1 / 6, 1 / 6, size=(30, 3))
        expected = np.clip(initial_design + dX, 0, 1)
        np.testing.assert_allclose(result, expected)

    def test_shift_bounded_by_half_segment(self, initial_design):
        result = get_optimized_x(
            initial_design, accept_first, max_iter=1, max_inner_iter=10, seed=3
        )
        assert np.all(np.abs(result - initial_design) <= 1 / 6 + 1e-12)

    def test_step_halves(self):
        """Candidates are X + dX, X + dX/2, X + dX/4, ..."""
        seen = []

        def record(X, Xp=None):
            if Xp is not None:
                seen.append(Xp - X)
            return len(seen) < 3

        X = np.full((30, 3), 0.5)
        get_optimized_x(X, record, max_iter=1, max_inner_iter=10, seed=5)

        assert len(seen) == 3
        np.testing.assert_allclose(seen[1], seen[0] / 2, atol=1e-12)
        np.testing.assert_allclose(seen[2], seen[0] / 4, atol=1e-12)


# ============================================================
# IMPROVEMENT UNDER CRITERIA
# ============================================================


class TestImprovement:
    """Accepted designs never worsen the criterion metric."""

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_dmax_never_increases(self, seed):
        X = random_design(30, 3, seed=seed)
        result = get_optimized_x(X, DeviationCriterion(), max_iter=20, seed=seed)
        assert compute_dmax(result) <= compute_dmax(X)

    @pytest.mark.parametrize("seed", [0, 1])
    def test_min_distance_never_decreases(self, seed):
        X = random_design(20, 2, seed=seed)
        result = get_optimized_x(X, DistanceCriterion(), max_iter=20, seed=seed)
        assert compute_min_distance(result) >= compute_min_distance(X)

    def test_correlation_never_increases(self):
        X = random_design(20, 3, seed=10)
        result = get_optimized_x(X, CorrelationCriterion(), max_iter=20, seed=10)
        assert compute_max_abs_correlation(result) <= compute_max_abs_correlation(X)

    def test_combined_criterion_improves_both(self):
        X = random_design(30, 3, seed=99)
        criterion = DeviationCriterion() | DistanceCriterion()
        result = get_optimized_x(X, criterion, max_iter=15, seed=99)

        assert compute_dmax(result) <= compute_dmax(X)
        assert compute_min_distance(result) >= compute_min_distance(X)


# ============================================================
# CONSTRAINTS AND BOUNDS
# ============================================================


class TestConstraints:
    """Test in-loop constraints and clipping to [0, 1]."""

    def test_values_stay_in_unit_interval(self, initial_design):
        result = get_optimized_x(initial_design, accept_first, max_iter=25, seed=1)
        assert result.min() >= 0
        assert result.max() <= 1

    def test_misbehaving_constraint_is_clipped(self, initial_design):
        def stretch(X):
            return X * 3 - 1

        result = get_optimized_x(
            initial_design, accept_first, constraint=stretch, max_iter=5, seed=1
        )
        assert result.min() >= 0
        assert result.max() <= 1

    def test_quantization_constraint(self, initial_design):
        constraint = create_quantization_constraint([11, 11, 7])
        result = get_optimized_x(
            initial_design, DeviationCriterion(), constraint=constraint, max_iter=10, seed=2
        )

        for i, n_levels in enumerate([11, 11, 7]):
            scaled = result[:, i] * (n_levels - 1)
            np.testing.assert_allclose(scaled, np.round(scaled), atol=1e-9)

    def test_constraint_changing_shape(self, initial_design):
        with pytest.raises(OptimizationError, match="shape"):
            get_optimized_x(
                initial_design, accept_first, constraint=lambda X: X[:-1], max_iter=2
            )


# ============================================================
# INPUTS AND REPRODUCIBILITY
# ============================================================


class TestInputs:
    """Test argument checks and seeding."""

    def test_invalid_matrix(self):
        with pytest.raises(ShapeError):
            get_optimized_x(np.full((3, 3), 0.5), DeviationCriterion())

    def test_non_callable_criterion(self, initial_design):
        with pytest.raises(OptimizationError, match="criterion must be callable"):
            get_optimized_x(initial_design, "deviation")

    def test_non_callable_constraint(self, initial_design):
        with pytest.raises(OptimizationError, match="constraint must be callable"):
            get_optimized_x(initial_design, DeviationCriterion(), constraint=10)

    def test_criterion_must_continue_without_candidate(self, initial_design):
        with pytest.raises(OptimizationError, match="no candidate"):
            get_optimized_x(initial_design, lambda X, Xp=None: False, max_iter=3)

    def test_same_seed_same_result(self, initial_design):
        first = get_optimized_x(initial_design, DeviationCriterion(), max_iter=10, seed=42)
        second = get_optimized_x(initial_design, DeviationCriterion(), max_iter=10, seed=42)
        np.testing.assert_array_equal(first, second)

    def test_accepts_generator(self, initial_design):
        first = get_optimized_x(
            initial_design, accept_first, max_iter=3, seed=np.random.default_rng(8)
        )
        second = get_optimized_x(initial_design, accept_first, max_iter=3, seed=8)
        np.testing.assert_array_equal(first, second)

    def test_input_not_modified(self, initial_design):
        original = initial_design.copy()
        get_optimized_x(initial_design, accept_first, max_iter=5, seed=0)
        np.testing.assert_array_equal(initial_design, original)

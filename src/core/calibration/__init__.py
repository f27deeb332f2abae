"""
Calibration Design Package.

This package generates design matrices for calibration of multicomponent
systems: N mixtures of n components whose concentrations are evenly spread
over the concentration space and are mutually distinct.

Main Functions
--------------
generate_design
    Generate an optimized design matrix in concentration units
generate_component_design
    Generate a design from Component definitions
get_optimized_x
    Optimize a normalized design matrix by random shifts
quality_report
    Compute Dmax, rmin and maxCor of a design

Key Classes
-----------
DeviationCriterion, DistanceCriterion, CorrelationCriterion
    Continuation criteria, combined with ``|`` and ``&``
OptimizerConfig
    Iteration budgets of the optimizer
DesignQuality
    Container for quality statistics

Examples
--------
>>> from src.core.calibration import generate_design, quality_report
>>>
>>> design = generate_design(30, xmin=[0, 10, 50], xmax=[10, 100, 300], seed=42)
>>> quality_report(design).as_series()
>>>
>>> # custom optimization of a normalized matrix
>>> from src.core.calibration import (
...     CorrelationCriterion, DistanceCriterion, get_optimized_x, random_design,
...     create_quantization_constraint,
... )
>>> X = random_design(30, 3, seed=1)
>>> X_opt = get_optimized_x(
...     X,
...     criterion=DistanceCriterion() | CorrelationCriterion(),
...     constraint=create_quantization_constraint(10),
...     max_iter=100,
...     seed=1,
... )
"""

# Main API
from src.core.calibration.design_generation import (
    DesignQuality,
    compare_quality,
    generate_component_design,
    generate_design,
    quality_report,
    random_design,
)
from src.core.calibration.optimizer import OptimizerConfig, get_optimized_x

# Criteria
from src.core.calibration.criteria import (
    AllCriterion,
    AnyCriterion,
    ContinuationCriterion,
    CorrelationCriterion,
    DeviationCriterion,
    DistanceCriterion,
    create_criterion,
)

# Metrics and transforms
from src.core.calibration.metrics import (
    compute_dmax,
    compute_max_abs_correlation,
    compute_min_distance,
)
from src.core.calibration.transforms import (
    create_quantization_constraint,
    map_values,
    normalize_columns,
    quantize_levels,
    unmap_values,
)
from src.core.calibration.validation import validate_design_matrix

__all__ = [
    # Main API
    "generate_design",
    "generate_component_design",
    "get_optimized_x",
    "quality_report",
    "compare_quality",
    "random_design",
    "DesignQuality",
    "OptimizerConfig",
    # Criteria
    "ContinuationCriterion",
    "DeviationCriterion",
    "DistanceCriterion",
    "CorrelationCriterion",
    "AnyCriterion",
    "AllCriterion",
    "create_criterion",
    # Metrics
    "compute_dmax",
    "compute_min_distance",
    "compute_max_abs_correlation",
    # Transforms
    "quantize_levels",
    "create_quantization_constraint",
    "map_values",
    "unmap_values",
    "normalize_columns",
    "validate_design_matrix",
]

"""
Component definitions for calibration designs.

A component is one chemical or physical constituent of a calibration
mixture. It has a concentration range and, optionally, a fixed number of
evenly spaced concentration levels the experimenter is able to prepare.
"""

from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, Dict, Optional

from src.core.exceptions import DomainError


@dataclass
class Component:
    """
    Represents one component of a calibration mixture.

    Parameters
    ----------
    name : str
        Component name (e.g., "Glucose", "Ethanol")
    min_value : float
        Lowest concentration used in the design
    max_value : float
        Largest concentration used in the design
    n_levels : int, optional
        Number of evenly spaced concentration levels between min_value
        and max_value (inclusive). None means continuous concentrations.
    units : str, optional
        Units of measurement (e.g., "mg/L", "mM")

    Examples
    --------
    >>> glucose = Component("Glucose", 0, 10, units="mM")
    >>> ethanol = Component("Ethanol", 10, 100, n_levels=11, units="mM")
    """
    name: str
    min_value: float
    max_value: float
    n_levels: Optional[int] = None
    units: Optional[str] = None

    def __post_init__(self):
        """Validate component definition after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate component definition.

        Raises
        ------
        DomainError
            If component definition is invalid
        """
        if not self.name or not self.name.strip():
            raise DomainError("Component name cannot be empty")

        for value in (self.min_value, self.max_value):
            if isinstance(value, bool) or not isinstance(value, Real):
                raise DomainError(
                    f"Component '{self.name}' bounds must be numeric, "
                    f"got {type(value).__name__}"
                )

        if self.min_value >= self.max_value:
            raise DomainError(
                f"Component '{self.name}': min ({self.min_value}) must be "
                f"less than max ({self.max_value})"
            )

        if self.n_levels is not None:
            if isinstance(self.n_levels, bool) or not isinstance(self.n_levels, Integral):
                raise DomainError(
                    f"Component '{self.name}' n_levels must be an integer, "
                    f"got {type(self.n_levels).__name__}"
                )
            if self.n_levels < 2:
                raise DomainError(
                    f"Component '{self.name}' must have at least 2 levels, "
                    f"got {self.n_levels}"
                )

    def is_quantized(self) -> bool:
        """Check if component concentrations are restricted to fixed levels."""
        return self.n_levels is not None

    @property
    def span(self) -> float:
        """Width of the concentration range."""
        return self.max_value - self.min_value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert component to dictionary representation.

        Returns
        -------
        dict
            Component definition as dictionary
        """
        return {
            'name': self.name,
            'min_value': self.min_value,
            'max_value': self.max_value,
            'n_levels': self.n_levels,
            'units': self.units,
        }

    def __repr__(self) -> str:
        """String representation of component."""
        levels_str = f", n_levels={self.n_levels}" if self.is_quantized() else ""
        units_str = f" {self.units}" if self.units else ""
        return (
            f"Component('{self.name}', {self.min_value}-{self.max_value}"
            f"{units_str}{levels_str})"
        )

"""Custom exceptions for the calibration design toolkit."""

class CDMCError(Exception):
    """Base exception for all calibration design errors."""
    pass

class ValidationError(CDMCError):
    """Errors from design matrix or input validation."""
    pass

class ShapeError(ValidationError, ValueError):
    """Design matrix or parameter vectors have the wrong shape."""
    pass

class DomainError(ValidationError, ValueError):
    """Values out of range or a statistic that is undefined for the input."""
    pass

class OptimizationError(CDMCError):
    """Errors from optimization routines."""
    pass

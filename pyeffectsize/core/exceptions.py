"""
Exception hierarchy for PyEffectSize.

All exceptions inherit from EffectSizeError to allow catching any
library-specific error. Domain-specific exceptions inherit from the
appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class EffectSizeError(Exception):
    """Base exception for all PyEffectSize errors."""
    pass


class ValidationError(EffectSizeError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    """
    pass


class NumericalError(EffectSizeError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically the number of columns)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.expected_rank = expected_rank


class DegenerateColumnError(NumericalError):
    """
    A dispersion of zero was about to be used as a divisor.

    Raised instead of dividing into infinity or NaN. The term (or column)
    that required the dispersion is named so that per-term reporting can
    attribute the failure.

    Attributes:
        column: Name of the constant column (predictor or response)
        term: Model term whose standardization needed the column, if any
        spread: The offending spread value (0.0, or non-finite)
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        term: str | None = None,
        spread: float | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.term = term
        self.spread = spread


class ConvergenceError(EffectSizeError):
    """
    Iterative algorithm failed to converge.

    Attributes:
        iterations: Number of iterations completed
        reason: Why convergence failed (e.g., 'max_iterations')
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason


class MissingGroupingError(ValidationError):
    """
    A method that needs grouping structure got a model without one.

    Raised by the pseudo-standardization method when the model carries no
    grouping variable (i.e. it is not a mixed model).
    """
    pass


class IncompatibleModelsError(ValidationError):
    """
    Two models cannot be compared.

    Raised when models are fitted to different observations, are not
    nested, or do not expose the statistics a comparison needs.

    Attributes:
        reason: Short machine-readable reason ('n_obs', 'response',
            'not_nested', 'r_squared')
    """

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class RefitError(EffectSizeError):
    """
    Re-fitting the model on standardized data failed.

    Model-wide and fatal to the whole request. The underlying exception,
    if any, is chained as ``__cause__``.

    Attributes:
        model_type: Class name of the model being refit
        converged: Convergence flag reported by the refit, if any
    """

    def __init__(
        self,
        message: str,
        model_type: str | None = None,
        converged: bool | None = None,
    ):
        super().__init__(message)
        self.model_type = model_type
        self.converged = converged


class UnsupportedTermError(EffectSizeError):
    """
    The requested method cannot standardize this term.

    Signaled rather than silently approximated, e.g. an interaction whose
    components cannot be resolved, or a reference-level subset that is empty.

    Attributes:
        term: Offending term name
        method: Standardization method that refused it
    """

    def __init__(
        self,
        message: str,
        term: str | None = None,
        method: str | None = None,
    ):
        super().__init__(message)
        self.term = term
        self.method = method

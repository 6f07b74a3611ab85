"""
Common data types for parameter standardization.

Contains the validated request and the frozen payloads that go inside
Result[P] envelopes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pyeffectsize.core.exceptions import EffectSizeError, ValidationError
from pyeffectsize.core.validation import check_choice, check_probability


Method = Literal['refit', 'posthoc', 'smart', 'basic', 'pseudo']

METHODS: tuple[str, ...] = ('refit', 'posthoc', 'smart', 'basic', 'pseudo')

# Older names still found in the literature and in other tools.
METHOD_ALIASES: dict[str, str] = {'classic': 'posthoc'}

DEFAULT_CI = 0.95


@dataclass(frozen=True)
class StandardizationRequest:
    """
    Validated options of one standardization call.

    Construct via ``build``, which normalizes aliases and rejects bad input.

    Attributes:
        method: One of METHODS.
        robust: Median/MAD instead of mean/SD for every dispersion.
        two_sd: Divide predictors by two spreads (Gelman, 2008). The
            response is never doubled.
        exponentiate: Exponentiate estimates and CI bounds (log/logit links).
        ci: Confidence level in (0, 1).
        strict: Raise the first per-term error instead of collecting it.
        seed: Seed for the generator handed to stochastic refits.
    """
    method: str = 'refit'
    robust: bool = False
    two_sd: bool = False
    exponentiate: bool = False
    ci: float = DEFAULT_CI
    strict: bool = False
    seed: int | None = None

    @classmethod
    def build(
        cls,
        method: str = 'refit',
        *,
        robust: bool = False,
        two_sd: bool = False,
        exponentiate: bool = False,
        ci: float = DEFAULT_CI,
        strict: bool = False,
        seed: int | None = None,
    ) -> StandardizationRequest:
        """
        Raises:
            ValidationError: Unknown method, non-bool flags, ci outside
                (0, 1), or a non-integer seed
        """
        if not isinstance(method, str):
            raise ValidationError(f"method: expected str, got {type(method).__name__}")
        method = METHOD_ALIASES.get(method.lower(), method.lower())
        check_choice(method, METHODS, 'method')

        for name, flag in (('robust', robust), ('two_sd', two_sd),
                           ('exponentiate', exponentiate), ('strict', strict)):
            if not isinstance(flag, bool):
                raise ValidationError(f"{name}: expected bool, got {flag!r}")

        check_probability(ci, 'ci')

        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ValidationError(f"seed: expected int or None, got {seed!r}")

        return cls(
            method=method,
            robust=robust,
            two_sd=two_sd,
            exponentiate=exponentiate,
            ci=float(ci),
            strict=strict,
            seed=seed,
        )

    @property
    def predictor_multiplier(self) -> float:
        """Factor applied to every predictor spread (never the response)."""
        return 2.0 if self.two_sd else 1.0


@dataclass(frozen=True)
class StandardizedCoefficient:
    """
    One row of the output table.

    Attributes:
        term: Coefficient name, as the model reports it.
        estimate: Standardized estimate.
        se: Standardized standard error (NaN when unavailable).
        ci_low: Lower confidence bound.
        ci_high: Upper confidence bound.
        approximate: True when the method cannot standardize this term
            exactly (interactions under posthoc/smart).
    """
    term: str
    estimate: float
    se: float
    ci_low: float
    ci_high: float
    approximate: bool = False


@dataclass(frozen=True)
class StandardizedParams:
    """
    Parameter payload for a standardization call.

    Attributes:
        term_names: Every model term, in model order.
        coefficients: Rows for the terms that could be standardized.
        errors: Term -> the error that prevented its standardization.
        response_spread: Spread the response was divided by (1.0 when the
            response is not standardized).
    """
    term_names: tuple[str, ...]
    coefficients: tuple[StandardizedCoefficient, ...]
    errors: dict[str, EffectSizeError] = field(default_factory=dict)
    response_spread: float = 1.0


@dataclass(frozen=True)
class TermDeviations:
    """
    The dispersions each method would use for one term.

    Attributes:
        term: Coefficient name.
        role: Model-matrix column role.
        deviation_basic: Spread of the model-matrix column.
        deviation_posthoc: Predictor spread under posthoc/smart (1 for
            factor and binary columns, product of component spreads for
            interactions, NaN when unresolvable).
        deviation_response_basic: Spread of the whole response.
        deviation_response_smart: Response spread over the reference rows
            of the term's factors (equals the basic one for numeric terms).
        center_basic: Center of the model-matrix column.
        center_posthoc: Center of the source variable (0 for factors).
    """
    term: str
    role: str
    deviation_basic: float
    deviation_posthoc: float
    deviation_response_basic: float
    deviation_response_smart: float
    center_basic: float
    center_posthoc: float

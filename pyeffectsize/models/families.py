"""
GLM family and link function specifications.

Each Family defines:
- A variance function V(μ)
- A default link function g(μ)
- A deviance function (IRLS convergence, R² for Gaussian)
- An initialization function for IRLS starting values

What matters for standardization:
- Only Gaussian/identity responses are put in SD units; other responses
  keep their link scale (``Family.standardize_response``).
- Exponentiating coefficients is meaningful only for links that make
  effects multiplicative (``Link.multiplicative``: log, logit).

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
    R Core Team. stats::family, stats::make.link
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm


# =====================================================================
# Link functions
# =====================================================================

class Link(ABC):
    """Abstract link function g(μ) mapping mean to linear predictor."""

    name: str = ''
    multiplicative: bool = False

    @abstractmethod
    def link(self, mu: NDArray) -> NDArray:
        """g(μ) → η."""
        ...

    @abstractmethod
    def linkinv(self, eta: NDArray) -> NDArray:
        """g⁻¹(η) → μ."""
        ...

    @abstractmethod
    def mu_eta(self, eta: NDArray) -> NDArray:
        """dμ/dη."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class IdentityLink(Link):
    name = 'identity'

    def link(self, mu: NDArray) -> NDArray:
        return mu.copy()

    def linkinv(self, eta: NDArray) -> NDArray:
        return eta.copy()

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.ones_like(eta)


class LogitLink(Link):
    """exp(β) is an odds ratio."""
    name = 'logit'
    multiplicative = True

    def link(self, mu: NDArray) -> NDArray:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        return np.log(mu / (1 - mu))

    def linkinv(self, eta: NDArray) -> NDArray:
        eta = np.clip(eta, -500, 500)
        return 1.0 / (1.0 + np.exp(-eta))

    def mu_eta(self, eta: NDArray) -> NDArray:
        p = self.linkinv(eta)
        return np.maximum(p * (1.0 - p), 1e-10)


class LogLink(Link):
    """exp(β) is a rate (or mean) ratio."""
    name = 'log'
    multiplicative = True

    def link(self, mu: NDArray) -> NDArray:
        return np.log(np.maximum(mu, 1e-10))

    def linkinv(self, eta: NDArray) -> NDArray:
        return np.exp(np.clip(eta, -500, 500))

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.exp(np.clip(eta, -500, 500))


class ProbitLink(Link):
    name = 'probit'

    def link(self, mu: NDArray) -> NDArray:
        return norm.ppf(np.clip(mu, 1e-10, 1 - 1e-10))

    def linkinv(self, eta: NDArray) -> NDArray:
        return norm.cdf(eta)

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.maximum(norm.pdf(eta), 1e-10)


_LINK_CLASSES: dict[str, type[Link]] = {
    'identity': IdentityLink,
    'logit': LogitLink,
    'log': LogLink,
    'probit': ProbitLink,
}


def _resolve_link(link: str | Link | None, default: Link) -> Link:
    if link is None:
        return default
    if isinstance(link, Link):
        return link
    if isinstance(link, str):
        cls = _LINK_CLASSES.get(link.lower())
        if cls is None:
            valid = ', '.join(sorted(_LINK_CLASSES))
            raise ValueError(f"Unknown link: {link!r}. Valid links: {valid}")
        return cls()
    raise TypeError(f"link must be str or Link, got {type(link).__name__}")


# =====================================================================
# Families
# =====================================================================

class Family(ABC):
    """
    GLM family specification: variance function plus link.
    """

    name: str = ''
    dispersion_is_fixed: bool = False

    def __init__(self, link: str | Link | None = None):
        self._link = _resolve_link(link, self._default_link())

    @abstractmethod
    def _default_link(self) -> Link:
        ...

    @property
    def link(self) -> Link:
        return self._link

    @property
    def standardize_response(self) -> bool:
        """True only for Gaussian responses on the identity scale."""
        return self.name == 'gaussian' and self._link.name == 'identity'

    @abstractmethod
    def variance(self, mu: NDArray) -> NDArray:
        ...

    @abstractmethod
    def deviance(self, y: NDArray, mu: NDArray) -> float:
        ...

    @abstractmethod
    def initialize(self, y: NDArray) -> NDArray:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link.name!r})"


class Gaussian(Family):
    name = 'gaussian'

    def _default_link(self) -> Link:
        return IdentityLink()

    def variance(self, mu: NDArray) -> NDArray:
        return np.ones_like(mu)

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        return float(np.sum((y - mu) ** 2))

    def initialize(self, y: NDArray) -> NDArray:
        return y.copy()


class Binomial(Family):
    name = 'binomial'
    dispersion_is_fixed = True

    def _default_link(self) -> Link:
        return LogitLink()

    def variance(self, mu: NDArray) -> NDArray:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        return mu * (1.0 - mu)

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        with np.errstate(divide='ignore', invalid='ignore'):
            term1 = np.where(y > 0, y * np.log(y / mu), 0.0)
            term2 = np.where(y < 1, (1 - y) * np.log((1 - y) / (1 - mu)), 0.0)
        return 2.0 * float(np.sum(term1 + term2))

    def initialize(self, y: NDArray) -> NDArray:
        return (y + 0.5) / 2.0


class Poisson(Family):
    name = 'poisson'
    dispersion_is_fixed = True

    def _default_link(self) -> Link:
        return LogLink()

    def variance(self, mu: NDArray) -> NDArray:
        return np.maximum(mu, 1e-10)

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        mu = np.maximum(mu, 1e-10)
        with np.errstate(divide='ignore', invalid='ignore'):
            term = np.where(y > 0, y * np.log(y / mu), 0.0)
        return 2.0 * float(np.sum(term - (y - mu)))

    def initialize(self, y: NDArray) -> NDArray:
        return np.maximum(y, 0.1)


_FAMILY_CLASSES: dict[str, type[Family]] = {
    'gaussian': Gaussian,
    'normal': Gaussian,
    'binomial': Binomial,
    'poisson': Poisson,
}


def resolve_family(family: str | Family, link: str | Link | None = None) -> Family:
    """
    Resolve a family argument to a Family instance.

    Raises:
        ValueError: If the name is not recognized.
        TypeError: If the argument is neither str nor Family.
    """
    if isinstance(family, Family):
        return family
    if isinstance(family, str):
        cls = _FAMILY_CLASSES.get(family.lower())
        if cls is None:
            valid = ', '.join(sorted(k for k in _FAMILY_CLASSES if k != 'normal'))
            raise ValueError(f"Unknown family: {family!r}. Valid families: {valid}")
        return cls(link)
    raise TypeError(f"family must be str or Family, got {type(family).__name__}")

import logging
import math
from dataclasses import dataclass

import numpy as np

from gb_anisotropy.errors import CalibrationError

logger = logging.getLogger(__name__)


def interaction_correlation(g2):
    """
    Curve fit y(g^2) = 1/gamma of the GB energy function g(gamma).
    Works on floats, numpy arrays and torch tensors.
    """
    return -5.288 * g2**4 - 0.09364 * g2**3 + 9.965 * g2**2 - 8.183 * g2 + 2.007


def interface_function(y):
    """Curve fit of the interface free energy f_0(gamma) as a function of y = 1/gamma."""
    yyy = y * y * y
    return (0.05676 * yyy * yyy - 0.2924 * yyy * y * y + 0.6367 * yyy * y - 0.7749 * yyy
            + 0.6107 * y * y - 0.4324 * y + 0.2792)


@dataclass(frozen=True)
class PairParams:
    """Calibrated parameters of one grain pair."""
    kappa: float
    gamma: float
    a: float
    g2: float


@dataclass(frozen=True)
class FixedPointResult:
    """
    Outcome of the shape-parameter iteration.

    value is a* when converged, otherwise the last estimate. kappa, gamma
    and g2 belong to the last completed iteration.
    """
    converged: bool
    value: float
    iterations: int
    kappa: float = math.nan
    gamma: float = math.nan
    g2: float = math.nan
    reason: str = ""


def iterate_shape_parameter(sigma, wGB, mu, a0=0.75, tol=1.0e-9, max_iterations=1000):
    """
    Fixed-point iteration a <- sqrt(f(y(g2(a))) / g2(a)) with
    kappa = a wGB sigma and g2 = sigma^2 / (kappa mu).
    """
    a_star = a0
    kappa_star = gamma_star = g2 = math.nan

    for iteration in range(1, max_iterations + 1):
        a_0 = a_star
        kappa_star = a_0 * wGB * sigma
        g2 = sigma * sigma / (kappa_star * mu)
        y = interaction_correlation(g2)

        if not (math.isfinite(y) and y > 0.0):
            return FixedPointResult(False, a_0, iteration, kappa_star, math.nan, g2,
                                    reason=f"correlation y={y!r} outside its physical range at g2={g2!r}")

        gamma_star = 1.0 / y
        ratio = interface_function(y) / g2
        if not (math.isfinite(ratio) and ratio > 0.0):
            return FixedPointResult(False, a_0, iteration, kappa_star, gamma_star, g2,
                                    reason=f"f(y)/g2={ratio!r} is not positive")

        a_star = math.sqrt(ratio)

        if abs(a_0 - a_star) < tol:
            return FixedPointResult(True, a_star, iteration, kappa_star, gamma_star, g2)

    return FixedPointResult(False, a_star, max_iterations, kappa_star, gamma_star, g2,
                            reason="iteration limit reached")


def solve_pair(sigma, wGB, mu, pair=None, a0=0.75, tol=1.0e-9, max_iterations=1000):
    if not sigma > 0.0:
        raise CalibrationError(f"GB energy of pair {pair} must be positive, got {sigma!r}",
                               pair=pair, last_estimate=a0)

    result = iterate_shape_parameter(sigma, wGB, mu, a0=a0, tol=tol, max_iterations=max_iterations)
    if not result.converged:
        raise CalibrationError(
            f"Calibration of pair {pair} did not converge after {result.iterations} iterations "
            f"(last a*={result.value!r}): {result.reason}",
            pair=pair, last_estimate=result.value, iterations=result.iterations)

    logger.debug("pair %s: a*=%.10g kappa*=%.6g gamma*=%.6g g2=%.6g (%d iterations)",
                 pair, result.value, result.kappa, result.gamma, result.g2, result.iterations)

    return PairParams(kappa=result.kappa, gamma=result.gamma, a=result.value, g2=result.g2)


class CalibratedPairParams:
    """
    Calibrated parameters keyed by the unordered grain pair.

    params[m, n] and params[n, m] return the same PairParams record.
    """

    def __init__(self, num_grains, params):
        self.num_grains = num_grains
        self._params = {}
        for (m, n), value in params.items():
            self._params[self._key(m, n)] = value

    def _key(self, m, n):
        if m == n or not (0 <= m < self.num_grains and 0 <= n < self.num_grains):
            raise KeyError((m, n))
        return (min(m, n), max(m, n))

    def __getitem__(self, pair):
        m, n = pair
        return self._params[self._key(m, n)]

    def __contains__(self, pair):
        try:
            self[pair]
        except KeyError:
            return False
        return True

    def __len__(self):
        return len(self._params)

    def __iter__(self):
        return iter(sorted(self._params))

    def items(self):
        return [(pair, self._params[pair]) for pair in self]

    def as_packed(self):
        """
        Legacy packed layout, two N x N matrices:
        kappa_gamma[m, n] = kappa*, kappa_gamma[n, m] = gamma*,
        a_g2[m, n] = a*, a_g2[n, m] = g2 (m < n).
        """
        kappa_gamma = np.zeros((self.num_grains, self.num_grains))
        a_g2 = np.zeros((self.num_grains, self.num_grains))
        for (m, n), p in self.items():
            kappa_gamma[m, n] = p.kappa
            kappa_gamma[n, m] = p.gamma
            a_g2[m, n] = p.a
            a_g2[n, m] = p.g2
        return kappa_gamma, a_g2


def calibrate_pairs(sigma, wGB, mu, a0=0.75, tol=1.0e-9, max_iterations=1000):
    """Calibrates every pair m < n of the (converted) GB energy matrix."""
    N = sigma.shape[0]
    params = {}
    failures = []

    for m in range(N - 1):
        for n in range(m + 1, N):
            try:
                params[(m, n)] = solve_pair(float(sigma[m, n]), wGB, mu, pair=(m, n),
                                            a0=a0, tol=tol, max_iterations=max_iterations)
            except CalibrationError as exc:
                logger.error("%s", exc)
                failures.append(exc)

    if failures:
        first = failures[0]
        pairs = ", ".join(str(exc.pair) for exc in failures)
        raise CalibrationError(f"Calibration failed for {len(failures)} pair(s): {pairs}",
                               pair=first.pair, last_estimate=first.last_estimate,
                               iterations=first.iterations)

    logger.info("Calibrated %d grain pairs (wGB=%g, mu=%g)", len(params), wGB, mu)
    return CalibratedPairParams(N, params)

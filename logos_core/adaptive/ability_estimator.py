"""
Ability Estimator - Item Response Theory.

Converts right/wrong responses on calibrated items into a latent ability
estimate (theta) for one linguistic dimension.

Model (2PL):
    P(correct | theta) = 1 / (1 + exp(-a * (theta - b)))

Estimation:
    Maximum likelihood via Newton-Raphson from theta = 0. Perfect response
    patterns (all correct / all wrong) have no finite MLE and are reported
    at the clamped boundary, as is a mixed pattern whose likelihood still
    rises at a bound. If the solver fails it is retried once with a
    damped step, then replaced by a closed-form logit of percent correct.

Also provides 3PL probability, EAP estimation (uniform grid or
Gauss-Hermite) and Fisher- or KL-based item selection.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger
from numpy.polynomial.hermite import hermgauss

from logos_core.core.errors import InsufficientData, NumericNonConvergence
from logos_core.core.models import (
    THETA_MAX,
    THETA_MIN,
    EstimationMethod,
    Item,
    ItemResponse,
    ThetaEstimate,
)


@dataclass(frozen=True)
class IRTConfig:
    """Solver limits for ability estimation."""

    min_responses: int = 3
    max_iterations: int = 50
    tolerance: float = 0.001
    damping: float = 0.5
    max_standard_error: float = 4.0
    theta_min: float = THETA_MIN
    theta_max: float = THETA_MAX


# =============================================================================
# PROBABILITY FUNCTIONS
# =============================================================================


def probability_2pl(theta: float, a: float, b: float) -> float:
    """
    Probability of a correct response under the 2PL model.

    At theta == b the result is exactly 0.5 for any a.
    """
    z = a * (theta - b)
    # Split on sign so exp() never overflows
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    ez = math.exp(z)
    return ez / (1.0 + ez)


def probability_3pl(theta: float, a: float, b: float, c: float) -> float:
    """
    Probability of a correct response with a guessing floor c.

    P = c + (1 - c) * P_2pl; c = 0 reduces to the 2PL model.
    """
    if not 0.0 <= c < 1.0:
        raise ValueError(f"guessing parameter must be in [0, 1), got {c}")
    return c + (1.0 - c) * probability_2pl(theta, a, b)


def fisher_information(theta: float, a: float, b: float) -> float:
    """Item information I(theta) = a^2 * P * (1 - P)."""
    p = probability_2pl(theta, a, b)
    return a * a * p * (1.0 - p)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# =============================================================================
# ESTIMATOR
# =============================================================================


class AbilityEstimator:
    """
    Maximum-likelihood theta estimation with bounded fallbacks.

    Usage:
        estimator = AbilityEstimator()
        estimate = estimator.estimate([
            ItemResponse(a=1.0, b=-1.0, correct=True),
            ItemResponse(a=1.2, b=0.0, correct=True),
            ItemResponse(a=0.8, b=0.5, correct=False),
        ])
    """

    def __init__(self, config: IRTConfig | None = None):
        self.config = config or IRTConfig()

    def estimate(self, responses: Sequence[ItemResponse]) -> ThetaEstimate:
        """
        Estimate theta and its standard error from a response set.

        Raises:
            InsufficientData: fewer than config.min_responses responses
            ValueError: an item has non-positive discrimination
        """
        cfg = self.config
        n = len(responses)
        if n < cfg.min_responses:
            raise InsufficientData(available=n, required=cfg.min_responses)

        for r in responses:
            if not r.a > 0:
                raise ValueError(f"Item discrimination must be > 0, got {r.a}")

        n_correct = sum(1 for r in responses if r.correct)

        # Perfect patterns: the likelihood is monotone, the MLE is +/- infinity
        if n_correct in (0, n):
            theta = cfg.theta_max if n_correct == n else cfg.theta_min
            logger.debug(f"Perfect response pattern ({n_correct}/{n}), theta clamped to {theta}")
            return self._finish(theta, responses, EstimationMethod.BOUNDARY, clamped=True)

        try:
            theta = self._newton_raphson(responses, step_factor=1.0)
            method = EstimationMethod.MLE
        except NumericNonConvergence as e:
            logger.warning(f"IRT solver did not converge ({e}); retrying with damped step")
            try:
                theta = self._newton_raphson(responses, step_factor=cfg.damping)
                method = EstimationMethod.MLE_DAMPED
            except NumericNonConvergence as e2:
                logger.warning(f"Damped IRT solver failed ({e2}); using closed-form estimate")
                theta = self._closed_form(n_correct, n)
                method = EstimationMethod.CLOSED_FORM

        clamped = theta <= cfg.theta_min or theta >= cfg.theta_max
        return self._finish(theta, responses, method, clamped=clamped)

    def _newton_raphson(self, responses: Sequence[ItemResponse], step_factor: float) -> float:
        """
        Newton-Raphson on the log-likelihood.

        L1 = sum a (u - P), L2 = -sum a^2 P Q; theta <- theta - step * L1 / L2.
        """
        cfg = self.config
        theta = 0.0

        for iteration in range(1, cfg.max_iterations + 1):
            l1 = 0.0
            l2 = 0.0
            for r in responses:
                p = probability_2pl(theta, r.a, r.b)
                l1 += r.a * ((1.0 if r.correct else 0.0) - p)
                l2 -= r.a * r.a * p * (1.0 - p)

            # Peak lies beyond the bound: the bound is the estimate
            if (theta >= cfg.theta_max and l1 > 0) or (theta <= cfg.theta_min and l1 < 0):
                logger.debug(f"IRT likelihood still rising at bound {theta}; stopping there")
                return theta

            if l2 >= 0 or not math.isfinite(l2):
                raise NumericNonConvergence(
                    "non-negative second derivative", iterations=iteration, last_theta=theta
                )

            delta = step_factor * l1 / l2
            if not math.isfinite(delta):
                raise NumericNonConvergence(
                    "non-finite step", iterations=iteration, last_theta=theta
                )

            theta = _clamp(theta - delta, cfg.theta_min, cfg.theta_max)

            if abs(delta) < cfg.tolerance:
                logger.debug(f"IRT converged after {iteration} iterations at theta={theta:.4f}")
                return theta

        raise NumericNonConvergence(
            f"no convergence within {cfg.max_iterations} iterations",
            iterations=cfg.max_iterations,
            last_theta=theta,
        )

    def _closed_form(self, n_correct: int, n: int) -> float:
        """Percent correct through the inverse logistic at a = 1, b = 0."""
        # Keep p off 0 and 1 so the logit stays finite
        p = (n_correct + 0.5) / (n + 1.0)
        return _clamp(math.log(p / (1.0 - p)), self.config.theta_min, self.config.theta_max)

    def _finish(
        self,
        theta: float,
        responses: Sequence[ItemResponse],
        method: EstimationMethod,
        clamped: bool,
    ) -> ThetaEstimate:
        info = sum(fisher_information(theta, r.a, r.b) for r in responses)
        se = 1.0 / math.sqrt(info) if info > 0 else math.inf
        return ThetaEstimate(
            theta=theta,
            standard_error=min(se, self.config.max_standard_error),
            method=method,
            clamped=clamped,
            n_responses=len(responses),
        )


class Quadrature(str, Enum):
    """Integration rule for EAP."""

    UNIFORM = "uniform"
    GAUSS_HERMITE = "gauss-hermite"


def _quadrature_nodes(
    rule: Quadrature,
    prior_mean: float,
    prior_sd: float,
    quad_points: int,
) -> tuple[list[float], list[float]]:
    """Theta nodes and log prior weights for the chosen rule."""
    if rule == Quadrature.GAUSS_HERMITE:
        # hermgauss integrates against exp(-x^2); map x to the normal prior
        nodes, weights = hermgauss(quad_points)
        points = [prior_mean + prior_sd * math.sqrt(2.0) * float(x) for x in nodes]
        return points, [math.log(float(w)) for w in weights]

    points = [
        prior_mean + prior_sd * 8.0 * (i / (quad_points - 1) - 0.5) for i in range(quad_points)
    ]
    return points, [-0.5 * ((t - prior_mean) / prior_sd) ** 2 for t in points]


def estimate_theta_eap(
    responses: Sequence[ItemResponse],
    prior_mean: float = 0.0,
    prior_sd: float = 1.0,
    quad_points: int = 41,
    quadrature: Quadrature | str = Quadrature.UNIFORM,
) -> ThetaEstimate:
    """
    Expected A Posteriori estimate with a normal prior.

    Stable for short tests and perfect response patterns. The posterior is
    integrated either on an evenly spaced grid spanning +/- 4 prior SDs or
    with Gauss-Hermite nodes, which need fewer points for the same accuracy.
    """
    if quad_points < 2:
        raise ValueError("quad_points must be >= 2")
    if prior_sd <= 0:
        raise ValueError("prior_sd must be > 0")

    points, log_priors = _quadrature_nodes(Quadrature(quadrature), prior_mean, prior_sd, quad_points)

    # Work in log space; products of many probabilities underflow
    log_posts = []
    for theta, log_post in zip(points, log_priors):
        for r in responses:
            p = probability_2pl(theta, r.a, r.b)
            p = _clamp(p, 1e-12, 1.0 - 1e-12)
            log_post += math.log(p if r.correct else 1.0 - p)
        log_posts.append(log_post)

    peak = max(log_posts)
    weights = [math.exp(lp - peak) for lp in log_posts]
    total = sum(weights)

    mean = sum(t * w for t, w in zip(points, weights)) / total
    variance = sum((t - mean) ** 2 * w for t, w in zip(points, weights)) / total

    return ThetaEstimate(
        theta=_clamp(mean, THETA_MIN, THETA_MAX),
        standard_error=math.sqrt(variance),
        method=EstimationMethod.EAP,
        clamped=not THETA_MIN < mean < THETA_MAX,
        n_responses=len(responses),
    )


def select_item_kl(
    theta: float,
    standard_error: float,
    items: Iterable[Item],
    used_item_ids: set[str] | None = None,
    quad_points: int = 21,
) -> Item | None:
    """
    Pick the unused item with maximum posterior-weighted KL divergence.

    Unlike Fisher selection this looks at a +/- 1.5 SE neighbourhood of
    theta, so it prefers items that discriminate across the plausible
    range rather than exactly at the point estimate.
    """
    if standard_error <= 0:
        raise ValueError("standard_error must be > 0")
    if quad_points < 2:
        raise ValueError("quad_points must be >= 2")

    used_item_ids = used_item_ids or set()
    eps = 1e-10
    grid = [theta + standard_error * 3.0 * (i / (quad_points - 1) - 0.5) for i in range(quad_points)]
    grid_weights = [math.exp(-0.5 * ((t - theta) / standard_error) ** 2) for t in grid]

    best_item = None
    best_kl = -math.inf

    for item in items:
        if item.item_id in used_item_ids:
            continue
        a, b = item.irt_discrimination, item.irt_difficulty
        p_est = _clamp(probability_2pl(theta, a, b), eps, 1.0 - eps)

        kl_sum = 0.0
        for t, w in zip(grid, grid_weights):
            p = _clamp(probability_2pl(t, a, b), eps, 1.0 - eps)
            kl = p * math.log(p / p_est) + (1.0 - p) * math.log((1.0 - p) / (1.0 - p_est))
            kl_sum += kl * w

        if kl_sum > best_kl:
            best_kl = kl_sum
            best_item = item

    return best_item


def select_next_item(
    theta: float,
    items: Iterable[Item],
    used_item_ids: set[str] | None = None,
) -> Item | None:
    """
    Pick the unused item with maximum Fisher information at theta.

    Returns None when every item has been used.
    """
    used_item_ids = used_item_ids or set()
    best_item = None
    best_info = -math.inf

    for item in items:
        if item.item_id in used_item_ids:
            continue
        info = fisher_information(theta, item.irt_discrimination, item.irt_difficulty)
        if info > best_info:
            best_info = info
            best_item = item

    return best_item


def estimate_ability(
    responses: Sequence[ItemResponse],
    config: IRTConfig | None = None,
) -> ThetaEstimate:
    """Estimate ability with settings-derived defaults."""
    if config is None:
        from config import get_settings

        config = get_settings().get_irt_config()
    return AbilityEstimator(config).estimate(responses)

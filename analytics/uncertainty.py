"""Rate estimates with credible intervals and reproducible sampling."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import numpy as np

DEFAULT_UNCERTAINTY_SEED = 20240901


@dataclass(frozen=True)
class RateEstimate:
    """A rate (0-1) with a credible interval and sample-size reliability label."""

    value: float
    ci_low: float
    ci_high: float
    sample_size: int
    reliability: str

    def as_dict(self) -> dict[str, float | int | str]:
        return {
            "value": float(self.value),
            "ci_low": float(self.ci_low),
            "ci_high": float(self.ci_high),
            "sample_size": int(self.sample_size),
            "reliability": str(self.reliability),
        }


def deterministic_seed(*parts: object, base_seed: int = DEFAULT_UNCERTAINTY_SEED) -> int:
    """Derive a stable integer seed from semantic inputs."""
    payload = "|".join(str(part) for part in parts)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return (int(digest[:8], 16) ^ int(base_seed)) % (2**32 - 1)


def reliability_from_sample_size(sample_size: int) -> str:
    if sample_size >= 100:
        return "high"
    if sample_size >= 30:
        return "medium"
    return "low"


def binomial_rate_estimate(
    successes: int,
    trials: int,
    *,
    prior_alpha: float = 1.0,
    prior_beta: float = 1.0,
    draws: int = 5000,
    confidence: float = 0.95,
    seed: int | None = None,
) -> RateEstimate:
    """Observed rate with a Beta-posterior credible interval."""
    trials = max(0, int(trials))
    successes = min(max(0, int(successes)), trials)
    if trials == 0:
        return RateEstimate(0.0, 0.0, 0.0, 0, reliability_from_sample_size(0))

    alpha_post = prior_alpha + successes
    beta_post = prior_beta + (trials - successes)
    rng = np.random.default_rng(DEFAULT_UNCERTAINTY_SEED if seed is None else seed)
    sample = rng.beta(alpha_post, beta_post, size=max(500, int(draws)))
    tail = (1.0 - confidence) / 2.0
    return RateEstimate(
        value=successes / trials,
        ci_low=float(np.quantile(sample, tail)),
        ci_high=float(np.quantile(sample, 1.0 - tail)),
        sample_size=trials,
        reliability=reliability_from_sample_size(trials),
    )

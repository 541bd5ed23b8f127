"""Win probability estimates for display."""

from bjstats.statistics.probability import DealerOutcome, HeuristicEstimator, ProbabilityEstimator

__all__ = [
    "ProbabilityEstimator",
    "HeuristicEstimator",
    "DealerOutcome",
]

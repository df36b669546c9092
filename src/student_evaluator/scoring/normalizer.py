"""Evaluation score normalisation."""

from ..models.evaluation import EvaluationScores, MAX_RATING

# Four areas plus extra credit, five points each.
MAX_TOTAL = MAX_RATING * 5


def normalize_scores(scores: EvaluationScores) -> float:
    """Convert an evaluation's ratings to a 0-100 percentage.

    Ratings are expected to lie within [0, 5]; out-of-range values are not
    clamped or rejected here, they must be caught when the evaluation is
    created.

    Args:
        scores: The five ratings of one evaluation.

    Returns:
        Sum of the ratings as a percentage of 25.
    """
    return sum(scores.values()) / MAX_TOTAL * 100

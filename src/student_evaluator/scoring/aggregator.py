"""Weighted aggregation of evaluation and course scores."""

import logging
from statistics import mean
from typing import Iterable, Mapping, Optional

from ..config import ScoringConfig
from ..models.course import Grade, WeightingFactors, ASSESSMENT_KINDS
from ..models.evaluation import Evaluation
from ..models.results import CategoryScores, CourseScore, PresenterScore
from .normalizer import normalize_scores
from .partition import RolePartition, partition_by_role

logger = logging.getLogger(__name__)


def _mean_or_zero(values: list[float]) -> float:
    return mean(values) if values else 0.0


class ScoreAggregator:
    """Combine normalised scores into presenter and course scores.

    Two rules are kept separate here. A presenter's final score always splits
    its weight between peer and instructor evaluations, so a missing role
    contributes zero. A course score only divides by the weights of
    categories that actually have a score.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def _round(self, value: float) -> float:
        return round(value, self.config.decimals)

    def _presenter_terms(
        self, evaluations: Iterable[Evaluation]
    ) -> tuple[RolePartition, float, float, float]:
        """Partition, unrounded role averages and unrounded final score."""
        partition = partition_by_role(evaluations, self.config.role_source)
        peer_avg = _mean_or_zero([normalize_scores(e.scores) for e in partition.peer])
        instructor_avg = _mean_or_zero([normalize_scores(e.scores) for e in partition.instructor])
        final = peer_avg * self.config.peer_weight + instructor_avg * self.config.instructor_weight
        return partition, peer_avg, instructor_avg, final

    def aggregate_presenter(
        self,
        presenter_id: str,
        evaluations: Iterable[Evaluation],
    ) -> PresenterScore:
        """Aggregate a presenter's evaluations into a final score.

        Evaluations with an unrecognised role are not counted, so a result
        with zero peer and instructor counts carries no evaluation at all.

        Args:
            presenter_id: ID of the evaluated student.
            evaluations: All evaluations received by the presenter.

        Returns:
            PresenterScore with per-role averages and the weighted final score.
        """
        partition, peer_avg, instructor_avg, final = self._presenter_terms(evaluations)

        logger.debug(
            f"Presenter {presenter_id}: {len(partition.peer)} peer, "
            f"{len(partition.instructor)} instructor evaluations. Final: {final:.2f}"
        )

        return PresenterScore(
            presenter_id=presenter_id,
            peer_average=self._round(peer_avg),
            instructor_average=self._round(instructor_avg),
            peer_count=len(partition.peer),
            instructor_count=len(partition.instructor),
            final_score=self._round(final),
        )

    def weighted_course_score(
        self,
        categories: CategoryScores,
        weights: WeightingFactors,
    ) -> tuple[float, dict[str, float]]:
        """Weighted mean over the categories that have a score.

        Returns:
            Tuple of (unrounded score, weights of the contributing categories).
        """
        present = categories.present()
        weights_used = {kind: weights.weight_for(kind) for kind in present}
        total_weight = sum(weights_used.values())
        if total_weight <= 0:
            return 0.0, weights_used

        weighted_sum = sum(present[kind] * weight for kind, weight in weights_used.items())
        return weighted_sum / total_weight, weights_used

    def aggregate_course(
        self,
        course_id: str,
        categories: CategoryScores,
        weights: WeightingFactors,
        course_title: str = "",
    ) -> CourseScore:
        """Combine per-category scores into a course score.

        Args:
            course_id: ID of the course.
            categories: Quiz, assignment and evaluation scores, any may be None.
            weights: The course's weighting factors.
            course_title: Title shown alongside the score.

        Returns:
            CourseScore for the student in this course.
        """
        score, weights_used = self.weighted_course_score(categories, weights)

        return CourseScore(
            course_id=course_id,
            course_title=course_title,
            categories=categories,
            weights_used=weights_used,
            score=self._round(score),
            graded=bool(weights_used),
        )

    def category_scores(
        self,
        grades: Iterable[Grade],
        evaluations: Iterable[Evaluation] = (),
    ) -> CategoryScores:
        """Derive category scores from a student's ledger entries in one course.

        Quiz and assignment categories are the mean of the matching grades.
        The evaluation category is the presenter's weighted final score over
        the given evaluations that have a recognised role. Without any, it
        falls back to evaluation grades that have no matching evaluation,
        and is absent when there are none of those either.

        Args:
            grades: The student's grades in the course.
            evaluations: Evaluations of the student attached to the course.

        Returns:
            CategoryScores with None for categories without records.
        """
        evaluations = list(evaluations)
        evaluation_ids = {e.id for e in evaluations}

        by_kind: dict[str, list[float]] = {kind: [] for kind in ASSESSMENT_KINDS}
        for grade in grades:
            # Grades written for the given evaluations are covered by the final score.
            if grade.assessment.kind == "evaluation" and grade.assessment.id in evaluation_ids:
                continue
            by_kind[grade.assessment.kind].append(grade.score)

        evaluation_score: Optional[float] = None
        if evaluations:
            partition, _, _, final = self._presenter_terms(evaluations)
            if partition.peer or partition.instructor:
                evaluation_score = final
        if evaluation_score is None and by_kind["evaluation"]:
            evaluation_score = mean(by_kind["evaluation"])

        return CategoryScores(
            quiz=mean(by_kind["quiz"]) if by_kind["quiz"] else None,
            assignment=mean(by_kind["assignment"]) if by_kind["assignment"] else None,
            evaluation=evaluation_score,
        )

    def overall_grade(self, grades: Iterable[Grade], weights: Mapping[str, float]) -> float:
        """Ledger-wide overall grade with fixed per-kind weights.

        Every grade counts individually with the weight of its assessment
        kind, across all courses. Kinds without a weight count zero.

        Returns:
            Unrounded weighted mean, 0 when the total weight is 0.
        """
        weighted_sum = 0.0
        total_weight = 0.0
        for grade in grades:
            weight = weights.get(grade.assessment.kind, 0)
            weighted_sum += grade.score * weight
            total_weight += weight
        if total_weight <= 0:
            return 0.0
        return weighted_sum / total_weight

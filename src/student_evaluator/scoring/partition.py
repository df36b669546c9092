"""Split a presenter's evaluations by the evaluator's role."""

import logging
from typing import NamedTuple, Iterable

from ..config import RoleSource
from ..models.evaluation import Evaluation
from ..models.users import Role

logger = logging.getLogger(__name__)


class RolePartition(NamedTuple):
    """Evaluations authored by students and by instructors."""

    peer: list[Evaluation]
    instructor: list[Evaluation]


def evaluation_role(evaluation: Evaluation, role_source: RoleSource = RoleSource.EVALUATOR) -> str:
    """Role an evaluation is attributed to under the given role source."""
    if role_source == RoleSource.SUBMITTED:
        return evaluation.type
    return evaluation.evaluator.role


def find_role_discrepancies(evaluations: Iterable[Evaluation]) -> list[Evaluation]:
    """Evaluations whose stored type no longer matches the evaluator's role."""
    return [e for e in evaluations if e.type != e.evaluator.role]


def partition_by_role(
    evaluations: Iterable[Evaluation],
    role_source: RoleSource = RoleSource.EVALUATOR,
) -> RolePartition:
    """Partition evaluations into peer and instructor subsets.

    Order is preserved within each subset. Evaluations whose role is neither
    student nor instructor are left out of both.

    Args:
        evaluations: Evaluations of a single presenter.
        role_source: Read the live evaluator role or the submitted type.

    Returns:
        RolePartition of (peer, instructor) evaluations.
    """
    peer: list[Evaluation] = []
    instructor: list[Evaluation] = []

    for evaluation in evaluations:
        if evaluation.type != evaluation.evaluator.role:
            logger.warning(
                f"Evaluation {evaluation.id} was submitted as '{evaluation.type}' but evaluator "
                f"{evaluation.evaluator.id} now has role '{evaluation.evaluator.role}'"
            )

        role = Role.parse(evaluation_role(evaluation, role_source))
        if role == Role.STUDENT:
            peer.append(evaluation)
        elif role == Role.INSTRUCTOR:
            instructor.append(evaluation)
        else:
            logger.warning(
                f"Excluding evaluation {evaluation.id}: unrecognised role "
                f"'{evaluation_role(evaluation, role_source)}'"
            )

    return RolePartition(peer=peer, instructor=instructor)

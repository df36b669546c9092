"""Roll per-course scores up into overall progress."""

from statistics import mean

from ..models.results import CourseScore, StudentProgress


def roll_up(
    student_id: str,
    course_scores: list[CourseScore],
    student_name: str = "",
    decimals: int = 2,
) -> StudentProgress:
    """Average a student's course scores into overall progress.

    A student with no courses has an overall progress of 0.
    """
    overall = mean(c.score for c in course_scores) if course_scores else 0.0
    return StudentProgress(
        student_id=student_id,
        student_name=student_name,
        courses=course_scores,
        overall_progress=round(overall, decimals),
    )

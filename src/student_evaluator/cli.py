"""CLI entry points for Student Evaluator."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from .config import Config, RoleSource
from .errors import StudentEvaluatorError
from .service import GradebookService
from .store import GradebookStore


def setup_logging(verbose: bool, level: str = "INFO") -> None:
    """Configure logging based on verbosity."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _fail(ctx: click.Context, action: str, error: Exception) -> None:
    click.echo(f"Error {action}: {error}", err=True)
    if ctx.obj.get("verbose"):
        import traceback

        traceback.print_exc()
    sys.exit(1)


def _load_service(ctx: click.Context) -> GradebookService:
    cfg: Config = ctx.obj["config"]
    data_path = ctx.obj["data"]
    if data_path is None:
        raise click.UsageError("--data is required (or set STUDENT_EVALUATOR_DATA)")
    try:
        store = GradebookStore.load(data_path)
    except (OSError, ValueError) as e:
        _fail(ctx, f"loading data file {data_path}", e)
    return GradebookService(store, cfg.scoring)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to YAML config file",
)
@click.option(
    "--data",
    "-d",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to the gradebook JSON data file",
)
@click.option(
    "--role-source",
    type=click.Choice([r.value for r in RoleSource], case_sensitive=False),
    default=None,
    help="Partition evaluations on the live evaluator role or the submitted type",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    config_path: Optional[Path],
    data: Optional[Path],
    role_source: Optional[str],
) -> None:
    """Student Evaluator - evaluation, quiz and course score aggregation."""
    load_dotenv()
    cfg = Config.from_yaml(config_path) if config_path else Config.from_env()
    if role_source is not None:
        cfg.scoring.role_source = RoleSource(role_source.lower())
    setup_logging(verbose, cfg.log_level)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = cfg
    ctx.obj["data"] = data or cfg.store.data_path


@main.command("presenter-score")
@click.argument("presenter_id")
@click.pass_context
def presenter_score(ctx: click.Context, presenter_id: str) -> None:
    """Show a presenter's weighted peer/instructor evaluation score."""
    service = _load_service(ctx)
    try:
        result = service.presenter_final_score(presenter_id)
    except StudentEvaluatorError as e:
        _fail(ctx, "computing presenter score", e)
        return

    if result is None:
        click.echo(f"No evaluations found for presenter {presenter_id}")
        return

    cfg = ctx.obj["config"].scoring
    click.echo(f"Presenter: {presenter_id}")
    click.echo(
        f"  Peer average:       {result.peer_average:.2f}% "
        f"({result.peer_count} evaluations, weight {cfg.peer_weight:.0%})"
    )
    click.echo(
        f"  Instructor average: {result.instructor_average:.2f}% "
        f"({result.instructor_count} evaluations, weight {cfg.instructor_weight:.0%})"
    )
    click.echo(f"  Final score:        {result.final_score:.2f}%")


@main.command("course-score")
@click.argument("student_id")
@click.argument("course_id")
@click.pass_context
def course_score(ctx: click.Context, student_id: str, course_id: str) -> None:
    """Show a student's weighted score in one course."""
    service = _load_service(ctx)
    try:
        result = service.course_score(student_id, course_id)
    except StudentEvaluatorError as e:
        _fail(ctx, "computing course score", e)
        return

    click.echo(f"Course: {result.course_title or result.course_id}")
    for kind, score in result.categories.model_dump().items():
        if score is None:
            click.echo(f"  {kind:<12} -")
        else:
            click.echo(f"  {kind:<12} {score:.2f}% (weight {result.weights_used[kind]:g})")
    click.echo(f"  Course score: {result.score:.2f}%")


@main.command()
@click.argument("student_id")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def progress(ctx: click.Context, student_id: str, as_json: bool) -> None:
    """Show a student's per-course scores and overall progress."""
    service = _load_service(ctx)
    try:
        result = service.student_progress(student_id)
    except StudentEvaluatorError as e:
        _fail(ctx, "computing progress", e)
        return

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    click.echo(f"Student: {result.student_name or result.student_id}")
    for course in result.courses:
        suffix = "" if course.graded else " (no graded work)"
        click.echo(f"  - {course.course_title or course.course_id}: {course.score:.2f}%{suffix}")
    click.echo(f"Overall progress: {result.overall_progress:.2f}%")


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the full gradebook to this JSON file",
)
@click.pass_context
def gradebook(ctx: click.Context, output: Optional[Path]) -> None:
    """Show overall progress for every student."""
    service = _load_service(ctx)
    summary = service.all_students_progress()

    click.echo(f"Students: {summary.total_students}")
    for student in summary.students:
        click.echo(f"  - {student.student_name}: {student.overall_progress:.2f}%")
    click.echo(f"Average progress: {summary.average_progress:.2f}%")
    click.echo(f"Median progress: {summary.median_progress:.2f}%")

    if output:
        summary.to_json(output)
        click.echo(f"Saved gradebook to: {output}")


@main.command("overall-grades")
@click.pass_context
def overall_grades(ctx: click.Context) -> None:
    """Show every student's overall grade across the whole grade ledger."""
    service = _load_service(ctx)
    try:
        results = service.overall_grades()
    except StudentEvaluatorError as e:
        _fail(ctx, "computing overall grades", e)
        return

    if not results:
        click.echo("No grades recorded.")
        return

    weights = ", ".join(f"{k}={v:g}" for k, v in service.config.overall_weights.items())
    click.echo(f"Overall grades (weights: {weights})")
    for result in results:
        click.echo(
            f"  - {result.student_name or result.student_id}: {result.overall_score:.2f}% "
            f"({result.grade_count} grades)"
        )


@main.command("submit-quiz")
@click.argument("quiz_id")
@click.argument("student_id")
@click.option(
    "--answers",
    "-a",
    "answers_path",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="JSON file mapping question IDs to selected answers",
)
@click.pass_context
def submit_quiz(ctx: click.Context, quiz_id: str, student_id: str, answers_path: Path) -> None:
    """Score a quiz submission and save it to the data file."""
    service = _load_service(ctx)
    with open(answers_path, "r", encoding="utf-8") as f:
        answers = json.load(f)

    try:
        submission = service.score_and_record_submission(quiz_id, answers, student_id)
    except StudentEvaluatorError as e:
        _fail(ctx, "submitting quiz", e)
        return

    service.store.save(ctx.obj["data"])
    click.echo(
        f"Score: {submission.score:.2f}% "
        f"({submission.correct_count}/{len(submission.answers)} correct)"
    )


@main.command("missed-questions")
@click.option("--quiz", "quiz_id", type=str, default=None, help="Restrict to one quiz")
@click.pass_context
def missed_questions_cmd(ctx: click.Context, quiz_id: Optional[str]) -> None:
    """List questions answered incorrectly and the wrong answers given."""
    service = _load_service(ctx)
    try:
        missed = service.missed_questions(quiz_id)
    except StudentEvaluatorError as e:
        _fail(ctx, "building missed-question report", e)
        return

    if not missed:
        click.echo("No missed questions.")
        return

    for entry in missed:
        people = "person" if entry.missed_count == 1 else "people"
        click.echo(f"Question: {entry.question_text or entry.question_id}")
        click.echo(f"  Correct answer: {entry.correct_answer}")
        click.echo(f"  Missed by: {entry.missed_count} {people}")
        for answer, count in entry.incorrect_answers.items():
            click.echo(f"    {answer!r}: {count}")


@main.command("role-discrepancies")
@click.option("--course", "course_id", type=str, default=None, help="Restrict to one course")
@click.pass_context
def role_discrepancies(ctx: click.Context, course_id: Optional[str]) -> None:
    """List evaluations whose submitted type no longer matches the evaluator's role."""
    service = _load_service(ctx)
    try:
        evaluations = service.role_discrepancies(course_id)
    except StudentEvaluatorError as e:
        _fail(ctx, "listing role discrepancies", e)
        return

    if not evaluations:
        click.echo("No role discrepancies.")
        return

    click.echo(f"Found {len(evaluations)} evaluations with a changed evaluator role:")
    for evaluation in evaluations:
        click.echo(
            f"  - {evaluation.id}: evaluator {evaluation.evaluator.id} submitted as "
            f"'{evaluation.type}', now '{evaluation.evaluator.role}'"
        )


@main.command("set-weights")
@click.argument("course_id")
@click.option("--quiz", type=click.FloatRange(min=0), default=None, help="Quiz weight")
@click.option("--assignment", type=click.FloatRange(min=0), default=None, help="Assignment weight")
@click.option("--evaluation", type=click.FloatRange(min=0), default=None, help="Evaluation weight")
@click.pass_context
def set_weights(
    ctx: click.Context,
    course_id: str,
    quiz: Optional[float],
    assignment: Optional[float],
    evaluation: Optional[float],
) -> None:
    """Update a course's category weighting factors."""
    service = _load_service(ctx)
    try:
        course = service.store.update_weighting_factors(
            course_id, quiz=quiz, assignment=assignment, evaluation=evaluation
        )
    except StudentEvaluatorError as e:
        _fail(ctx, "updating weights", e)
        return

    service.store.save(ctx.obj["data"])
    weights = course.weighting_factors
    click.echo(
        f"Weights for {course.title}: quiz={weights.quiz:g}, "
        f"assignment={weights.assignment:g}, evaluation={weights.evaluation:g}"
    )


@main.command("import-evaluations")
@click.argument("jsonl_path", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def import_evaluations(ctx: click.Context, jsonl_path: Path) -> None:
    """Import evaluations from a JSONL file into the data file."""
    service = _load_service(ctx)
    try:
        count = service.store.import_evaluations(jsonl_path)
    except (StudentEvaluatorError, KeyError, ValueError) as e:
        _fail(ctx, "importing evaluations", e)
        return

    service.store.save(ctx.obj["data"])
    click.echo(f"Imported {count} evaluations")


@main.command("export-grades")
@click.argument("output", type=click.Path(path_type=Path))
@click.option("--student", "student_id", type=str, default=None, help="Only this student's grades")
@click.option("--course", "course_id", type=str, default=None, help="Only this course's grades")
@click.pass_context
def export_grades(
    ctx: click.Context,
    output: Path,
    student_id: Optional[str],
    course_id: Optional[str],
) -> None:
    """Export the grade ledger to a JSONL file."""
    service = _load_service(ctx)
    grades = service.store.list_grades(student_id=student_id, course_id=course_id)
    count = service.store.export_grades(output, grades)
    click.echo(f"Exported {count} grades to: {output}")


if __name__ == "__main__":
    main()

"""Tests for the scoring module."""

import logging

import pytest

from student_evaluator.config import (
    INSTRUCTOR_WEIGHT,
    OVERALL_GRADE_WEIGHTS,
    PEER_WEIGHT,
    RoleSource,
    ScoringConfig,
)
from student_evaluator.models.course import (
    AssignmentRef,
    EvaluationRef,
    Grade,
    QuizRef,
    WeightingFactors,
)
from student_evaluator.models.evaluation import EvaluationScores
from student_evaluator.models.quiz import AnswerRecord, Quiz, QuizSubmission
from student_evaluator.models.results import CategoryScores, CourseScore
from student_evaluator.models.users import User, UserRef
from student_evaluator.scoring.aggregator import ScoreAggregator
from student_evaluator.scoring.normalizer import normalize_scores
from student_evaluator.scoring.partition import find_role_discrepancies, partition_by_role
from student_evaluator.scoring.progress import roll_up
from student_evaluator.scoring.quiz import grade_answers, is_answer_correct, missed_questions


class TestNormalizeScores:
    """Tests for normalize_scores."""

    def test_all_fives(self, scores_factory):
        assert normalize_scores(scores_factory(5)) == 100

    def test_all_zeros(self, scores_factory):
        assert normalize_scores(scores_factory(0)) == 0

    def test_mixed_ratings(self):
        scores = EvaluationScores(area1=5, area2=4, area3=3, area4=2, extra_credit=1)
        assert normalize_scores(scores) == pytest.approx(60.0)

    def test_extra_credit_counts_like_an_area(self):
        with_credit = EvaluationScores(area1=4, area2=4, area3=4, area4=4, extra_credit=5)
        without = EvaluationScores(area1=4, area2=4, area3=4, area4=4, extra_credit=0)
        assert normalize_scores(with_credit) - normalize_scores(without) == pytest.approx(20.0)


class TestPartitionByRole:
    """Tests for partition_by_role."""

    def test_splits_and_preserves_order(self, presenter, peer, instructor, evaluation_factory):
        other_peer = User(id="stu-carl", username="carl", role="student")
        evaluations = [
            evaluation_factory(presenter, peer, 4),
            evaluation_factory(presenter, instructor, 5),
            evaluation_factory(presenter, other_peer, 3),
        ]

        partition = partition_by_role(evaluations)

        assert [e.evaluator.id for e in partition.peer] == ["stu-bob", "stu-carl"]
        assert [e.evaluator.id for e in partition.instructor] == ["ins-dana"]

    def test_unrecognised_role_excluded(self, presenter, evaluation_factory, caplog):
        admin = User(id="adm-1", username="root", role="admin")
        evaluation = evaluation_factory(presenter, admin, 5)

        with caplog.at_level(logging.WARNING):
            partition = partition_by_role([evaluation])

        assert partition.peer == []
        assert partition.instructor == []
        assert "unrecognised role" in caplog.text

    def test_role_is_case_sensitive(self, presenter, evaluation_factory):
        shouty = User(id="ins-2", username="shouty", role="Instructor")
        partition = partition_by_role([evaluation_factory(presenter, shouty, 5)])
        assert partition.instructor == []

    def test_live_role_used_by_default(self, presenter, peer, evaluation_factory):
        evaluation = evaluation_factory(presenter, peer, 4)
        promoted = evaluation.model_copy(update={"evaluator": UserRef(id=peer.id, role="instructor")})

        partition = partition_by_role([promoted])

        assert partition.instructor == [promoted]
        assert partition.peer == []

    def test_submitted_role_source(self, presenter, peer, evaluation_factory):
        evaluation = evaluation_factory(presenter, peer, 4)
        promoted = evaluation.model_copy(update={"evaluator": UserRef(id=peer.id, role="instructor")})

        partition = partition_by_role([promoted], role_source=RoleSource.SUBMITTED)

        assert partition.peer == [promoted]
        assert partition.instructor == []

    def test_find_role_discrepancies(self, presenter, peer, instructor, evaluation_factory):
        consistent = evaluation_factory(presenter, instructor, 5)
        evaluation = evaluation_factory(presenter, peer, 4)
        promoted = evaluation.model_copy(update={"evaluator": UserRef(id=peer.id, role="instructor")})

        assert find_role_discrepancies([consistent, promoted]) == [promoted]


class TestScoreAggregatorPresenter:
    """Tests for presenter (peer/instructor) aggregation."""

    def test_weights_are_named_constants(self):
        config = ScoringConfig()
        assert config.peer_weight == PEER_WEIGHT == 0.80
        assert config.instructor_weight == INSTRUCTOR_WEIGHT == 0.20

    def test_peer_and_instructor(self, presenter, peer, instructor, evaluation_factory):
        evaluations = [
            evaluation_factory(presenter, peer, 4),  # 80
            evaluation_factory(presenter, instructor, 5),  # 100
        ]

        result = ScoreAggregator().aggregate_presenter(presenter.id, evaluations)

        assert result.peer_average == pytest.approx(80.0)
        assert result.instructor_average == pytest.approx(100.0)
        assert result.final_score == pytest.approx(84.0)

    def test_missing_instructor_contributes_zero(self, presenter, peer, evaluation_factory):
        result = ScoreAggregator().aggregate_presenter(
            presenter.id, [evaluation_factory(presenter, peer, 3)]
        )

        assert result.instructor_count == 0
        assert result.instructor_average == 0
        assert result.final_score == pytest.approx(48.0)

    def test_missing_peer_contributes_zero(self, presenter, instructor, evaluation_factory):
        result = ScoreAggregator().aggregate_presenter(
            presenter.id, [evaluation_factory(presenter, instructor, 5)]
        )
        assert result.final_score == pytest.approx(20.0)

    def test_averages_within_role(self, presenter, peer, instructor, evaluation_factory):
        other_peer = User(id="stu-carl", username="carl", role="student")
        evaluations = [
            evaluation_factory(presenter, peer, 5),  # 100
            evaluation_factory(presenter, other_peer, 3),  # 60
            evaluation_factory(presenter, instructor, 4),  # 80
        ]

        result = ScoreAggregator().aggregate_presenter(presenter.id, evaluations)

        assert result.peer_count == 2
        assert result.peer_average == pytest.approx(80.0)
        assert result.final_score == pytest.approx(80.0)

    def test_no_evaluations_is_zero(self, presenter):
        result = ScoreAggregator().aggregate_presenter(presenter.id, [])
        assert result.final_score == 0

    def test_result_is_rounded(self, presenter, peer, evaluation_factory):
        scores = EvaluationScores(area1=5, area2=5, area3=5, area4=5, extra_credit=4)  # 96
        evaluation = evaluation_factory(presenter, peer, 0).model_copy(update={"scores": scores})

        result = ScoreAggregator(ScoringConfig(decimals=1)).aggregate_presenter(
            presenter.id, [evaluation]
        )

        assert result.final_score == 76.8


class TestScoreAggregatorCourse:
    """Tests for per-course weighted aggregation."""

    def test_absent_category_excluded_from_denominator(self):
        weights = WeightingFactors(quiz=1, assignment=1, evaluation=2)
        categories = CategoryScores(quiz=80, evaluation=90)

        result = ScoreAggregator().aggregate_course("course-1", categories, weights)

        assert result.score == pytest.approx(86.67, abs=0.01)
        assert result.weights_used == {"quiz": 1, "evaluation": 2}
        assert result.graded is True

    def test_all_categories_present(self):
        weights = WeightingFactors(quiz=2, assignment=1, evaluation=1)
        categories = CategoryScores(quiz=100, assignment=50, evaluation=50)

        result = ScoreAggregator().aggregate_course("course-1", categories, weights)

        assert result.score == pytest.approx(75.0)

    def test_weights_need_not_sum_to_one(self):
        categories = CategoryScores(quiz=70, assignment=90)
        small = ScoreAggregator().aggregate_course(
            "c", categories, WeightingFactors(quiz=0.1, assignment=0.1)
        )
        large = ScoreAggregator().aggregate_course(
            "c", categories, WeightingFactors(quiz=10, assignment=10)
        )
        assert small.score == large.score == pytest.approx(80.0)

    def test_zero_score_is_present_not_absent(self):
        categories = CategoryScores(quiz=0, assignment=100)
        result = ScoreAggregator().aggregate_course("c", categories, WeightingFactors())
        assert result.score == pytest.approx(50.0)

    def test_no_categories_is_zero(self):
        result = ScoreAggregator().aggregate_course("c", CategoryScores(), WeightingFactors())
        assert result.score == 0
        assert result.graded is False

    def test_zero_weight_for_only_present_category(self):
        result = ScoreAggregator().aggregate_course(
            "c", CategoryScores(quiz=90), WeightingFactors(quiz=0)
        )
        assert result.score == 0

    def test_category_scores_from_grades(self, presenter, peer, instructor, evaluation_factory):
        grades = [
            Grade(student_id=presenter.id, assessment=QuizRef(id="qz1"), score=60),
            Grade(student_id=presenter.id, assessment=QuizRef(id="qz2"), score=100),
            Grade(student_id=presenter.id, assessment=AssignmentRef(id="as1"), score=70),
        ]
        evaluations = [
            evaluation_factory(presenter, peer, 4),
            evaluation_factory(presenter, instructor, 5),
        ]

        categories = ScoreAggregator().category_scores(grades, evaluations)

        assert categories.quiz == pytest.approx(80.0)
        assert categories.assignment == pytest.approx(70.0)
        assert categories.evaluation == pytest.approx(84.0)

    def test_evaluation_category_falls_back_to_grades(self, presenter):
        grades = [Grade(student_id=presenter.id, assessment=EvaluationRef(id="ev1"), score=90)]
        categories = ScoreAggregator().category_scores(grades)
        assert categories.evaluation == pytest.approx(90.0)
        assert categories.quiz is None
        assert categories.assignment is None

    def test_unrecognised_roles_leave_evaluation_absent(self, presenter, evaluation_factory):
        admin = User(id="adm-1", username="root", role="admin")
        evaluation = evaluation_factory(presenter, admin, 4)
        grades = [
            Grade(student_id=presenter.id, assessment=EvaluationRef(id=evaluation.id), score=80),
            Grade(student_id=presenter.id, assessment=QuizRef(id="qz1"), score=60),
        ]

        categories = ScoreAggregator().category_scores(grades, [evaluation])
        result = ScoreAggregator().aggregate_course(
            "c", categories, WeightingFactors(quiz=1, evaluation=2)
        )

        assert categories.evaluation is None
        assert result.score == pytest.approx(60.0)
        assert result.weights_used == {"quiz": 1}

    def test_unrecognised_roles_fall_back_to_ledger_grades(self, presenter, evaluation_factory):
        admin = User(id="adm-1", username="root", role="admin")
        grades = [Grade(student_id=presenter.id, assessment=EvaluationRef(id="imported"), score=90)]

        categories = ScoreAggregator().category_scores(
            grades, [evaluation_factory(presenter, admin, 4)]
        )

        assert categories.evaluation == pytest.approx(90.0)

    def test_evaluation_category_is_unrounded(self, presenter, peer, evaluation_factory):
        scores = EvaluationScores(area1=5, area2=5, area3=5, area4=5, extra_credit=4)  # 96
        evaluation = evaluation_factory(presenter, peer, 0).model_copy(update={"scores": scores})
        aggregator = ScoreAggregator(ScoringConfig(decimals=0))

        categories = aggregator.category_scores([], [evaluation])

        assert aggregator.aggregate_presenter(presenter.id, [evaluation]).final_score == 77
        assert categories.evaluation == pytest.approx(76.8)


class TestOverallGrade:
    """Tests for the ledger-wide overall grade."""

    def test_fixed_kind_weights(self):
        grades = [
            Grade(student_id="s", assessment=QuizRef(id="qz1"), score=100),
            Grade(student_id="s", assessment=AssignmentRef(id="as1"), score=50),
            Grade(student_id="s", assessment=EvaluationRef(id="ev1"), score=80),
        ]

        score = ScoreAggregator().overall_grade(grades, OVERALL_GRADE_WEIGHTS)

        # (100 * 50 + 50 * 30 + 80 * 20) / 100
        assert score == pytest.approx(81.0)

    def test_each_grade_counts(self):
        grades = [
            Grade(student_id="s", assessment=QuizRef(id="qz1"), score=100),
            Grade(student_id="s", assessment=QuizRef(id="qz2"), score=0),
            Grade(student_id="s", assessment=AssignmentRef(id="as1"), score=50),
        ]

        score = ScoreAggregator().overall_grade(grades, OVERALL_GRADE_WEIGHTS)

        assert score == pytest.approx(6500 / 130)

    def test_zero_weight_is_zero(self):
        grades = [Grade(student_id="s", assessment=QuizRef(id="qz1"), score=100)]
        assert ScoreAggregator().overall_grade(grades, {"quiz": 0}) == 0
        assert ScoreAggregator().overall_grade([], OVERALL_GRADE_WEIGHTS) == 0


class TestQuizGrading:
    """Tests for grade_answers and is_answer_correct."""

    def test_three_of_four_correct(self, quiz: Quiz):
        score, records = grade_answers(quiz, {"q1": "A", "q2": "B", "q3": "Torch", "q4": "C"})

        assert score == 75
        assert [r.is_correct for r in records] == [True, True, True, False]
        assert [r.question_id for r in records] == ["q1", "q2", "q3", "q4"]

    def test_comparison_is_case_sensitive(self, quiz: Quiz):
        question = quiz.questions[2]
        assert is_answer_correct(question, "Torch") is True
        assert is_answer_correct(question, "torch") is False

    def test_comparison_does_not_trim(self, quiz: Quiz):
        question = quiz.questions[0]
        assert is_answer_correct(question, "A ") is False
        assert is_answer_correct(question, " A") is False

    def test_missing_answer_is_incorrect(self, quiz: Quiz):
        score, records = grade_answers(quiz, {"q1": "A"})
        assert score == 25
        assert records[1].selected_answer is None
        assert records[1].is_correct is False

    def test_answers_for_unknown_questions_ignored(self, quiz: Quiz):
        score, records = grade_answers(quiz, {"q1": "A", "bogus": "A"})
        assert len(records) == 4
        assert score == 25

    def test_open_ended_never_auto_correct(self, quiz: Quiz, open_ended_question):
        quiz = quiz.model_copy(update={"questions": quiz.questions + [open_ended_question]})
        score, records = grade_answers(
            quiz, {"q1": "A", "q2": "B", "q3": "Torch", "q4": "D", "q5": "anything"}
        )
        assert records[-1].is_correct is False
        assert score == pytest.approx(80.0)

    def test_zero_questions_scores_zero(self):
        score, records = grade_answers(Quiz(title="Empty"), {})
        assert score == 0
        assert records == []


class TestMissedQuestions:
    """Tests for missed_questions."""

    def test_counts_incorrect_answers(self, quiz: Quiz):
        submissions = [
            QuizSubmission(
                student_id="s1",
                quiz_id=quiz.id,
                score=50,
                answers=[
                    AnswerRecord(question_id="q1", selected_answer="B", is_correct=False),
                    AnswerRecord(question_id="q2", selected_answer="B", is_correct=True),
                ],
            ),
            QuizSubmission(
                student_id="s2",
                quiz_id=quiz.id,
                score=0,
                answers=[
                    AnswerRecord(question_id="q1", selected_answer="B", is_correct=False),
                    AnswerRecord(question_id="q3", selected_answer=None, is_correct=False),
                ],
            ),
        ]

        missed = missed_questions([quiz], submissions)

        assert [m.question_id for m in missed] == ["q1", "q3"]
        assert missed[0].missed_count == 2
        assert missed[0].incorrect_answers == {"B": 2}
        assert missed[0].correct_answer == "A"
        assert missed[1].incorrect_answers == {"": 1}

    def test_uses_stored_correctness(self, quiz: Quiz):
        # Correct answer changed after submission; the recorded flag still wins.
        submission = QuizSubmission(
            student_id="s1",
            quiz_id=quiz.id,
            score=100,
            answers=[AnswerRecord(question_id="q1", selected_answer="B", is_correct=True)],
        )
        assert missed_questions([quiz], [submission]) == []


class TestRollUp:
    """Tests for progress roll-up."""

    def test_mean_of_course_scores(self):
        courses = [
            CourseScore(course_id="c1", score=80),
            CourseScore(course_id="c2", score=90),
            CourseScore(course_id="c3", score=100),
        ]
        progress = roll_up("stu-1", courses)
        assert progress.overall_progress == pytest.approx(90.0)
        assert progress.courses == courses

    def test_no_courses_is_zero(self):
        progress = roll_up("stu-1", [])
        assert progress.overall_progress == 0
        assert progress.courses == []

    def test_rounding(self):
        courses = [CourseScore(course_id="c1", score=100), CourseScore(course_id="c2", score=0),
                   CourseScore(course_id="c3", score=0)]
        assert roll_up("stu-1", courses).overall_progress == 33.33

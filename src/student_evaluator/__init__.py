"""Student Evaluator - grade and score aggregation for cohort-based courses."""

__version__ = "0.1.0"

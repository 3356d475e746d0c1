"""Judging core: evaluation of judge results and the submission pipeline."""

from .evaluator import (
    CaseEvaluation,
    Performance,
    aggregate_performance,
    all_passed,
    evaluate_batch,
    evaluate_case,
    redact_view,
    summarize_performance,
)
from .pipeline import SubmissionPipeline

__all__ = [
    "CaseEvaluation",
    "Performance",
    "aggregate_performance",
    "all_passed",
    "evaluate_batch",
    "evaluate_case",
    "redact_view",
    "summarize_performance",
    "SubmissionPipeline",
]

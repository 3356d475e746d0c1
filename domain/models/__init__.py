"""Models package - contains database models.

Note: Pydantic request/response schemas sống ở `domain/schemas.py` và các router.
"""

# Database Models (SQLAlchemy ORM)
from .core import (
    User,
    Problem,
    TestCase,
    ProblemSolved,
)
from .submission import Submission, SubmissionStatus, TestCaseResult

__all__ = [
    "User",
    "Problem",
    "TestCase",
    "ProblemSolved",
    "Submission",
    "SubmissionStatus",
    "TestCaseResult",
]

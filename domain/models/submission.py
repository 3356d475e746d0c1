"""
Submission database models.
Contains: Submission, TestCaseResult, SubmissionStatus
"""
from enum import Enum
from datetime import datetime

from sqlalchemy import Column, Integer, Boolean, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.db import Base


class SubmissionStatus(str, Enum):
    ACCEPTED = "Accepted"
    WRONG_ANSWER = "Wrong Answer"


class Submission(Base):
    """Database model for storing scored code submissions"""
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)

    # Code submitted
    source_code = Column(Text, nullable=False)
    language = Column(String(50), nullable=False)
    stdin = Column(Text, nullable=True)  # input các test case nối bằng "\n"

    # Results (JSON-serialized arrays, one entry per test case)
    stdout = Column(Text, nullable=True)
    stderr = Column(Text, nullable=True)
    compile_output = Column(Text, nullable=True)
    status = Column(String(50), nullable=False)  # "Accepted" | "Wrong Answer"
    memory = Column(Text, nullable=True)
    time = Column(Text, nullable=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="submissions")
    problem = relationship("Problem", back_populates="submissions")
    testcase_results = relationship(
        "TestCaseResult",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="TestCaseResult.test_case_index",
    )


class TestCaseResult(Base):
    """Kết quả của từng test case trong một submission"""
    __tablename__ = "test_case_results"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False)
    test_case_id = Column(Integer, ForeignKey("test_cases.id", ondelete="SET NULL"), nullable=True)
    test_case_index = Column(Integer, nullable=False)  # 1-based, theo thứ tự gửi lên judge

    passed = Column(Boolean, nullable=False)
    stdout = Column(Text, nullable=True)
    expected_output = Column(Text, nullable=True)
    stderr = Column(Text, nullable=True)
    compile_output = Column(Text, nullable=True)
    status = Column(String(100), nullable=True)
    memory = Column(String(50), nullable=True)
    time = Column(String(50), nullable=True)

    submission = relationship("Submission", back_populates="testcase_results")

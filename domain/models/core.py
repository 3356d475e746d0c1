"""
Core database models với PostgreSQL schema.
Contains: User, Problem, TestCase, ProblemSolved
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db import Base


class User(Base):
    """User model - stores authentication and user information"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, index=True, nullable=False)
    hashed_password = Column(String(256), nullable=False)
    is_admin = Column(Integer, default=0, nullable=False)  # 0 = regular user, 1 = admin

    # Relationships
    submissions = relationship("Submission", back_populates="user", cascade="all, delete-orphan")
    solved_problems = relationship("ProblemSolved", back_populates="user", cascade="all, delete-orphan")


class Problem(Base):
    """Problem model - programming exercises"""
    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    difficulty = Column(String(50), nullable=False)
    problem_number = Column(Integer, nullable=True, index=True)
    tags = Column(JSON, nullable=True)
    examples = Column(JSON, nullable=True)
    constraints = Column(Text, nullable=True)
    hints = Column(Text, nullable=True)
    editorial = Column(Text, nullable=True)
    code_snippets = Column(JSON, nullable=True)
    reference_solutions = Column(JSON, nullable=True)  # {"PYTHON": "...", "JAVA": "..."}
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    testcases = relationship(
        "TestCase",
        back_populates="problem",
        cascade="all, delete-orphan",
        order_by="TestCase.id",
    )
    submissions = relationship("Submission", back_populates="problem", cascade="all, delete-orphan")
    solved_by = relationship("ProblemSolved", back_populates="problem", cascade="all, delete-orphan")


class TestCase(Base):
    """Test case model for problems"""
    __tablename__ = "test_cases"

    id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    input = Column(Text, nullable=True)
    expected_output = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)

    # Relationships
    problem = relationship("Problem", back_populates="testcases")


class ProblemSolved(Base):
    """Đánh dấu user đã giải được bài (ít nhất một submission Accepted)."""
    __tablename__ = "problems_solved"
    __table_args__ = (UniqueConstraint("user_id", "problem_id", name="uq_problem_solved_user_problem"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="solved_problems")
    problem = relationship("Problem", back_populates="solved_by")

"""Pydantic schemas dùng chung giữa router và pipeline."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TestCaseIn(BaseModel):
    input: str = ""
    expected_output: str = Field(..., alias="expected")
    is_public: bool = False

    model_config = {"populate_by_name": True}


class ProblemCreate(BaseModel):
    title: str
    description: str
    difficulty: str
    problem_number: Optional[int] = None
    tags: List[str] = []
    examples: Optional[Dict[str, Any]] = None
    constraints: Optional[str] = None
    hints: Optional[str] = None
    editorial: Optional[str] = None
    code_snippets: Optional[Dict[str, str]] = None
    reference_solutions: Dict[str, str] = {}
    test_cases: List[TestCaseIn] = []


class ProblemUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty: Optional[str] = None
    problem_number: Optional[int] = None
    tags: Optional[List[str]] = None
    examples: Optional[Dict[str, Any]] = None
    constraints: Optional[str] = None
    hints: Optional[str] = None
    editorial: Optional[str] = None
    code_snippets: Optional[Dict[str, str]] = None
    reference_solutions: Optional[Dict[str, str]] = None
    test_cases: Optional[List[TestCaseIn]] = None


class CodeRequest(BaseModel):
    source_code: str
    language_id: int


__all__ = ["TestCaseIn", "ProblemCreate", "ProblemUpdate", "CodeRequest"]

"""Admin Router - Admin-only endpoints for problem authoring.

Features:
- Tạo problem: chạy reference solution của mọi ngôn ngữ qua judge, chỉ lưu khi tất cả pass
- Xem đầy đủ problem (kể cả test case private)
- Cập nhật problem / thay toàn bộ test case (một transaction)
- Xoá problem (cascade test case, submission, solved mark)
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import get_current_admin_user
from app.db import get_db
from app.deps import get_pipeline
from domain.errors import Conflict, PersistenceError
from domain.judging import SubmissionPipeline
from domain.models import Problem, TestCase, User
from domain.schemas import ProblemCreate, ProblemUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ==================== Request/Response Models ====================

class AdminTestCase(BaseModel):
	id: int
	input: Optional[str]
	expected_output: Optional[str]
	is_public: bool


class ProblemResponse(BaseModel):
	id: int
	problem_number: Optional[int]
	title: str
	description: str
	difficulty: str
	tags: List[str] = []
	examples: Optional[Dict[str, Any]] = None
	constraints: Optional[str] = None
	hints: Optional[str] = None
	editorial: Optional[str] = None
	code_snippets: Optional[Dict[str, str]] = None
	reference_solutions: Optional[Dict[str, str]] = None
	test_cases: List[AdminTestCase] = []


def _problem_response(problem: Problem) -> ProblemResponse:
	return ProblemResponse(
		id=problem.id,
		problem_number=problem.problem_number,
		title=problem.title,
		description=problem.description,
		difficulty=problem.difficulty,
		tags=problem.tags or [],
		examples=problem.examples,
		constraints=problem.constraints,
		hints=problem.hints,
		editorial=problem.editorial,
		code_snippets=problem.code_snippets,
		reference_solutions=problem.reference_solutions,
		test_cases=[
			AdminTestCase(id=tc.id, input=tc.input, expected_output=tc.expected_output, is_public=bool(tc.is_public))
			for tc in problem.testcases
		],
	)


def _get_problem_or_404(db: Session, problem_id: int) -> Problem:
	problem = db.query(Problem).filter(Problem.id == problem_id).first()
	if not problem:
		raise HTTPException(status_code=404, detail="Problem not found")
	return problem


# ==================== Problem Authoring ====================

@router.post("/problems", response_model=ProblemResponse, status_code=status.HTTP_201_CREATED)
def create_problem(
	request: ProblemCreate,
	pipeline: SubmissionPipeline = Depends(get_pipeline),
	current_admin: User = Depends(get_current_admin_user)
):
	"""Validate reference solutions against the judge, then create problem + test cases."""
	problem = pipeline.validate_and_create_problem(request, author_id=current_admin.id)
	return _problem_response(problem)


@router.get("/problems/{problem_id}", response_model=ProblemResponse)
def get_problem_admin(
	problem_id: int,
	db: Session = Depends(get_db),
	current_admin: User = Depends(get_current_admin_user)
):
	return _problem_response(_get_problem_or_404(db, problem_id))


@router.patch("/problems/{problem_id}", response_model=ProblemResponse)
def update_problem(
	problem_id: int,
	request: ProblemUpdate,
	db: Session = Depends(get_db),
	current_admin: User = Depends(get_current_admin_user)
):
	"""Update an existing problem (test cases, if given, are replaced as a whole)"""
	problem = _get_problem_or_404(db, problem_id)
	changes = request.model_dump(exclude_unset=True, exclude={"test_cases"})

	if changes.get("title") or changes.get("problem_number") is not None:
		filters = []
		if changes.get("title"):
			filters.append(Problem.title == changes["title"])
		if changes.get("problem_number") is not None:
			filters.append(Problem.problem_number == changes["problem_number"])
		duplicate = db.query(Problem.id).filter(Problem.id != problem_id, or_(*filters)).first()
		if duplicate:
			raise Conflict("Problem with this title or number already exists.")

	for field, value in changes.items():
		if value is not None:
			setattr(problem, field, value)

	if request.test_cases is not None:
		problem.testcases = [
			TestCase(input=tc.input, expected_output=tc.expected_output, is_public=tc.is_public)
			for tc in request.test_cases
		]

	# Problem + test cases commit cùng lúc
	try:
		db.commit()
	except SQLAlchemyError as e:
		db.rollback()
		logger.error(f"Failed to update problem {problem_id}: {e}")
		raise PersistenceError(f"Failed to update problem: {e}") from e

	db.refresh(problem)
	return _problem_response(problem)


@router.delete("/problems/{problem_id}")
def delete_problem(
	problem_id: int,
	db: Session = Depends(get_db),
	current_admin: User = Depends(get_current_admin_user)
):
	"""Delete a problem and all associated data"""
	problem = _get_problem_or_404(db, problem_id)
	title = problem.title

	db.delete(problem)
	db.commit()

	logger.info(f"Problem {problem_id} '{title}' deleted by admin {current_admin.id}")
	return {"message": f"Problem '{title}' deleted successfully"}


__all__ = ["router"]

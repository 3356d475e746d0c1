"""Problems Router - Problem listing, practice run and scored submit.

Endpoints:
- GET /problems - Danh sách bài tập (có search/filter/pagination)
- GET /problems/solved - Các bài user hiện tại đã giải
- GET /problems/{id} - Chi tiết bài tập (chỉ kèm test case public)
- POST /problems/{id}/run - Chạy thử trên test case public (không lưu)
- POST /problems/{id}/submit - Nộp lời giải để chấm toàn bộ test
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.auth import get_current_user, get_optional_user_id
from app.db import get_db
from app.deps import get_pipeline
from domain.judging import SubmissionPipeline
from domain.models import Problem, ProblemSolved, TestCase, User
from domain.schemas import CodeRequest

router = APIRouter(prefix="/problems", tags=["problems"])

logger = logging.getLogger(__name__)


class PublicTestCase(BaseModel):
	input: Optional[str]
	expected_output: Optional[str]


class ProblemOut(BaseModel):
	id: int
	problem_number: Optional[int]
	title: str
	difficulty: str
	tags: List[str] = []
	solved: bool = False


class ProblemDetail(ProblemOut):
	description: str
	examples: Optional[Dict[str, Any]] = None
	constraints: Optional[str] = None
	hints: Optional[str] = None
	editorial: Optional[str] = None
	code_snippets: Optional[Dict[str, str]] = None
	test_cases: List[PublicTestCase] = []


class PaginatedProblems(BaseModel):
	total: int
	limit: int
	offset: int
	items: List[ProblemOut]


def _problem_out(problem: Problem, solved: bool) -> ProblemOut:
	return ProblemOut(
		id=problem.id,
		problem_number=problem.problem_number,
		title=problem.title,
		difficulty=problem.difficulty,
		tags=problem.tags or [],
		solved=solved,
	)


def _solved_ids(db: Session, user_id: Optional[int]) -> set:
	if not user_id:
		return set()
	rows = db.query(ProblemSolved.problem_id).filter(ProblemSolved.user_id == user_id).all()
	return set(r[0] for r in rows)


@router.get("/", response_model=PaginatedProblems)
def list_problems(
	db: Session = Depends(get_db),
	user_id: Optional[int] = Depends(get_optional_user_id),
	search: Optional[str] = None,
	difficulty: Optional[str] = None,
	limit: int = 50,
	offset: int = 0,
):
	limit = max(min(limit, 200), 1)
	offset = max(offset, 0)

	q = db.query(Problem)

	if search:
		like = f"%{search.strip()}%"
		q = q.filter((Problem.title.ilike(like)) | (Problem.description.ilike(like)))

	if difficulty:
		q = q.filter(Problem.difficulty == difficulty)

	total = q.count()
	problems = (
		q.order_by(Problem.problem_number.is_(None), Problem.problem_number.asc(), Problem.id.asc())
		.offset(offset)
		.limit(limit)
		.all()
	)

	# Auth optional: nếu có token thì trả thêm cờ `solved` cho user đó.
	solved = _solved_ids(db, user_id)

	items = [_problem_out(p, p.id in solved) for p in problems]
	return {"total": total, "limit": limit, "offset": offset, "items": items}


@router.get("/solved", response_model=List[ProblemOut])
def list_solved_problems(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
	problems = (
		db.query(Problem)
		.join(ProblemSolved, ProblemSolved.problem_id == Problem.id)
		.filter(ProblemSolved.user_id == user.id)
		.order_by(ProblemSolved.created_at.desc())
		.all()
	)
	return [_problem_out(p, True) for p in problems]


@router.get("/{problem_id}", response_model=ProblemDetail)
def get_problem(
	problem_id: int,
	db: Session = Depends(get_db),
	user_id: Optional[int] = Depends(get_optional_user_id),
):
	"""Lấy thông tin một bài tập theo ID.

	Chỉ trả test case public; test case private không bao giờ rời khỏi server.
	"""
	problem = db.query(Problem).filter(Problem.id == problem_id).first()
	if not problem:
		raise HTTPException(status_code=404, detail="Problem not found")

	public_cases = (
		db.query(TestCase)
		.filter(TestCase.problem_id == problem_id, TestCase.is_public.is_(True))
		.order_by(TestCase.id.asc())
		.all()
	)

	base = _problem_out(problem, problem.id in _solved_ids(db, user_id))
	return ProblemDetail(
		**base.model_dump(),
		description=problem.description,
		examples=problem.examples,
		constraints=problem.constraints,
		hints=problem.hints,
		editorial=problem.editorial,
		code_snippets=problem.code_snippets,
		test_cases=[PublicTestCase(input=tc.input, expected_output=tc.expected_output) for tc in public_cases],
	)


@router.post("/{problem_id}/run", response_model=Dict[str, Any])
def run_solution(
	problem_id: int,
	req: CodeRequest,
	pipeline: SubmissionPipeline = Depends(get_pipeline),
	user: User = Depends(get_current_user),
):
	result = pipeline.run_against_public_cases(user.id, req.source_code, req.language_id, problem_id)
	return {
		"success": True,
		"message": "Code executed successfully on public test cases.",
		**result,
	}


@router.post("/{problem_id}/submit", response_model=Dict[str, Any])
def submit_solution(
	problem_id: int,
	req: CodeRequest,
	pipeline: SubmissionPipeline = Depends(get_pipeline),
	user: User = Depends(get_current_user),
):
	summary = pipeline.submit_for_scoring(user.id, req.source_code, req.language_id, problem_id)
	return {
		"success": True,
		"message": "All test cases passed!" if summary["all_passed"] else "Some test cases failed.",
		"submission": summary,
	}


__all__ = ["router"]

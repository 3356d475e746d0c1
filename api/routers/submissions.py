"""
Submissions Router - Endpoint cho người dùng xem danh sách bài nộp của mình.

Endpoints:
- GET /submissions - Lấy danh sách bài nộp (có phân trang, lọc theo bài/trạng thái)
- GET /submissions/{id} - Xem chi tiết bài nộp (code + kết quả từng test case)
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from app.db import get_db
from app.auth import get_current_user
from domain.judging import aggregate_performance, redact_view
from domain.models import Problem, Submission, TestCase, User

router = APIRouter(prefix="/submissions", tags=["submissions"])


class MySubmissionItem(BaseModel):
    id: int
    problem_id: int
    problem_title: Optional[str]
    status: str
    language: str
    runtime: Optional[str]
    memory: Optional[str]
    created_at: Optional[str]


class MySubmissionsResponse(BaseModel):
    total: int
    skip: int
    limit: int
    items: List[MySubmissionItem]


class MySubmissionDetail(MySubmissionItem):
    source_code: str
    test_cases_passed: str
    test_cases: List[Dict[str, Any]] = []


def _summary_fields(sub: Submission, problem_title: Optional[str]) -> Dict[str, Any]:
    results = sub.testcase_results
    performance = aggregate_performance((r.time for r in results), (r.memory for r in results))
    return dict(
        id=sub.id,
        problem_id=sub.problem_id,
        problem_title=problem_title,
        status=sub.status,
        language=sub.language,
        runtime=performance.total_time,
        memory=performance.total_memory,
        created_at=sub.created_at.isoformat() if sub.created_at else None,
    )


@router.get("/", response_model=MySubmissionsResponse)
def list_my_submissions(
    skip: int = 0,
    limit: int = 50,
    problem_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    skip = max(skip, 0)
    limit = max(min(limit, 200), 1)

    query = (
        db.query(Submission)
        .join(Problem, Submission.problem_id == Problem.id)
        .filter(Submission.user_id == user.id)
    )

    if problem_id is not None:
        query = query.filter(Submission.problem_id == problem_id)
    if status:
        query = query.filter(Submission.status == status)

    total = query.count()

    rows = (
        query.add_columns(Problem.title)
        .order_by(Submission.created_at.desc(), Submission.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

    items = [MySubmissionItem(**_summary_fields(sub, title)) for (sub, title) in rows]
    return MySubmissionsResponse(total=total, skip=skip, limit=limit, items=items)


@router.get("/{submission_id}", response_model=MySubmissionDetail)
def get_my_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    row = (
        db.query(Submission, Problem.title)
        .join(Problem, Submission.problem_id == Problem.id)
        .filter(Submission.id == submission_id, Submission.user_id == user.id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Submission not found")
    (sub, problem_title) = row

    results = sub.testcase_results
    case_ids = [r.test_case_id for r in results if r.test_case_id is not None]
    public_ids = set()
    if case_ids:
        public_ids = set(
            r[0]
            for r in db.query(TestCase.id).filter(TestCase.id.in_(case_ids), TestCase.is_public.is_(True)).all()
        )

    # Test case đã bị xoá coi như private
    test_cases = [
        redact_view(
            {
                "test_case": r.test_case_index,
                "passed": r.passed,
                "stdout": r.stdout,
                "expected_output": r.expected_output,
                "stderr": r.stderr,
                "compile_output": r.compile_output,
                "status": r.status,
                "memory": r.memory,
                "time": r.time,
            },
            r.test_case_id in public_ids,
        )
        for r in results
    ]
    passed = sum(1 for r in results if r.passed)

    return MySubmissionDetail(
        **_summary_fields(sub, problem_title),
        source_code=sub.source_code,
        test_cases_passed=f"{passed}/{len(results)}",
        test_cases=test_cases,
    )


__all__ = ["router"]

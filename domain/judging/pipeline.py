"""Submission pipeline: gửi batch lên judge, chấm và lưu kết quả.

Ba luồng dùng chung JudgeClient + evaluator nhưng khác chính sách:
- validate_and_create_problem: chạy reference solution của từng ngôn ngữ, chỉ tạo
  problem khi tất cả test case đều Accepted (một transaction duy nhất).
- run_against_public_cases: chạy thử trên test case public, không lưu DB.
- submit_for_scoring: chạy trên toàn bộ test case, lưu Submission + TestCaseResult,
  đánh dấu solved nếu Accepted.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from domain.errors import (
    Conflict,
    InvalidInput,
    NotFound,
    PersistenceError,
    ReferenceSolutionFailed,
    UnsupportedLanguage,
    UpstreamJudgeFailure,
)
from domain.models import Problem, ProblemSolved, Submission, SubmissionStatus, TestCase, TestCaseResult
from domain.schemas import ProblemCreate
from infra.services.judge_client import JudgeClient, JudgeResult
from infra.services.languages import LanguageRegistry, default_registry

from .evaluator import CaseEvaluation, all_passed, evaluate_batch, summarize_performance

logger = logging.getLogger(__name__)


def _json_list(values: Sequence[Any]) -> str:
    return json.dumps(list(values), ensure_ascii=False)


def _json_list_or_none(values: Sequence[Optional[str]]) -> Optional[str]:
    # Không lưu mảng toàn null
    return _json_list(values) if any(values) else None


class SubmissionPipeline:

    def __init__(self, db: Session, judge: JudgeClient, languages: LanguageRegistry = default_registry):
        self.db = db
        self.judge = judge
        self.languages = languages

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _execute(self, submissions: List[Dict[str, Any]]) -> List[JudgeResult]:
        tokens = self.judge.submit_batch(submissions)
        results = self.judge.poll_batch_results(tokens)
        if len(results) != len(submissions):
            raise UpstreamJudgeFailure(
                f"Judge returned {len(results)} results for {len(submissions)} submissions"
            )
        return results

    def _judge_cases(self, source_code: str, language_id: int, cases: Sequence[TestCase]) -> List[CaseEvaluation]:
        submissions = [
            {"source_code": source_code, "language_id": language_id, "stdin": tc.input or ""}
            for tc in cases
        ]
        results = self._execute(submissions)
        return evaluate_batch(results, cases)

    def _check_code_request(self, source_code: Optional[str], language_id: Optional[int], problem_id: Optional[int]) -> None:
        if not source_code or not source_code.strip() or language_id is None or problem_id is None:
            raise InvalidInput("source_code, language_id and problem_id are required")
        if not self.languages.is_supported(language_id):
            raise UnsupportedLanguage(language_id)

    def _get_problem(self, problem_id: int) -> Problem:
        problem = self.db.query(Problem).filter(Problem.id == problem_id).first()
        if not problem:
            raise NotFound("Problem not found")
        return problem

    # ------------------------------------------------------------------
    # Validate (problem authoring)
    # ------------------------------------------------------------------

    def validate_and_create_problem(self, draft: ProblemCreate, author_id: Optional[int] = None) -> Problem:
        title = (draft.title or "").strip()
        if not title or not (draft.description or "").strip() or not (draft.difficulty or "").strip():
            raise InvalidInput("Title, description, and difficulty are required.")
        if not draft.test_cases:
            raise InvalidInput("At least one test case is required.")
        if not draft.reference_solutions:
            raise InvalidInput("At least one reference solution is required.")

        self._ensure_unique(title, draft.problem_number)

        # Resolve toàn bộ ngôn ngữ trước khi gọi judge
        resolved = []
        for language, source_code in draft.reference_solutions.items():
            language_id = self.languages.id_for(language)
            if language_id is None:
                raise UnsupportedLanguage(language)
            if not (source_code or "").strip():
                raise InvalidInput(f"Reference solution for {language} is empty.")
            resolved.append((language, language_id, source_code))

        for language, language_id, source_code in resolved:
            self._check_reference_solution(language, language_id, source_code, draft)

        return self._create_problem(draft, title, author_id)

    def _ensure_unique(self, title: str, problem_number: Optional[int]) -> None:
        filters = [Problem.title == title]
        if problem_number is not None:
            filters.append(Problem.problem_number == problem_number)
        if self.db.query(Problem.id).filter(or_(*filters)).first():
            raise Conflict("Problem with this title or number already exists.")

    def _check_reference_solution(self, language: str, language_id: int, source_code: str, draft: ProblemCreate) -> None:
        submissions = [
            {
                "source_code": source_code,
                "language_id": language_id,
                "stdin": tc.input,
                "expected_output": tc.expected_output,
            }
            for tc in draft.test_cases
        ]
        results = self._execute(submissions)

        for i, result in enumerate(results, start=1):
            if not result.is_accepted:
                logger.info(
                    f"Reference solution ({language}) for '{draft.title}' failed on testcase {i}: "
                    f"{result.status_description}"
                )
                raise ReferenceSolutionFailed(
                    language,
                    i,
                    result.status_description,
                    details=result.compile_output or result.stderr or result.message,
                )

        logger.info(f"Reference solution ({language}) for '{draft.title}' passed {len(results)} testcases")

    def _create_problem(self, draft: ProblemCreate, title: str, author_id: Optional[int]) -> Problem:
        problem = Problem(
            user_id=author_id,
            title=title,
            description=draft.description,
            difficulty=draft.difficulty,
            problem_number=draft.problem_number,
            tags=draft.tags,
            examples=draft.examples,
            constraints=draft.constraints,
            hints=draft.hints,
            editorial=draft.editorial,
            code_snippets=draft.code_snippets,
            reference_solutions=draft.reference_solutions,
        )
        problem.testcases = [
            TestCase(input=tc.input, expected_output=tc.expected_output, is_public=tc.is_public)
            for tc in draft.test_cases
        ]

        # Problem + test cases trong cùng một transaction
        try:
            self.db.add(problem)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create problem '{title}': {e}")
            raise PersistenceError(f"Failed to create problem: {e}") from e

        self.db.refresh(problem)
        logger.info(f"Created problem {problem.id} '{title}' with {len(draft.test_cases)} testcases")
        return problem

    # ------------------------------------------------------------------
    # Run (practice, public test cases only, no persistence)
    # ------------------------------------------------------------------

    def run_against_public_cases(self, user_id: int, source_code: str, language_id: int, problem_id: int) -> Dict[str, Any]:
        self._check_code_request(source_code, language_id, problem_id)
        self._get_problem(problem_id)

        cases = (
            self.db.query(TestCase)
            .filter(TestCase.problem_id == problem_id, TestCase.is_public.is_(True))
            .order_by(TestCase.id.asc())
            .all()
        )
        if not cases:
            raise NotFound("No public test cases found for this problem.")

        logger.info(f"User {user_id} running problem {problem_id} on {len(cases)} public testcases")
        evaluations = self._judge_cases(source_code, language_id, cases)

        return {
            "all_passed": all_passed(evaluations),
            "results": [e.full_view() for e in evaluations],
        }

    # ------------------------------------------------------------------
    # Submit (scored)
    # ------------------------------------------------------------------

    def submit_for_scoring(self, user_id: int, source_code: str, language_id: int, problem_id: int) -> Dict[str, Any]:
        self._check_code_request(source_code, language_id, problem_id)
        self._get_problem(problem_id)

        # Public trước, sau đó theo id (kết quả được khớp theo index)
        cases = (
            self.db.query(TestCase)
            .filter(TestCase.problem_id == problem_id)
            .order_by(TestCase.is_public.desc(), TestCase.id.asc())
            .all()
        )
        if not cases:
            raise NotFound("No test cases found for this problem")

        evaluations = self._judge_cases(source_code, language_id, cases)
        accepted = all_passed(evaluations)
        language = self.languages.name_for(language_id)

        submission = self._persist_submission(user_id, problem_id, source_code, language, cases, evaluations, accepted)

        passed_count = sum(1 for e in evaluations if e.passed)
        logger.info(
            f"Submission {submission.id} by user {user_id} on problem {problem_id}: "
            f"{submission.status} ({passed_count}/{len(evaluations)})"
        )

        return {
            "submission_id": submission.id,
            "status": submission.status,
            "language": language,
            "all_passed": accepted,
            "passed_count": passed_count,
            "total_count": len(evaluations),
            "test_cases_passed": f"{passed_count}/{len(evaluations)}",
            "performance": summarize_performance(evaluations).to_dict(),
            "test_cases": [e.redacted_view() for e in evaluations],
            "created_at": submission.created_at.isoformat() if submission.created_at else None,
        }

    def _persist_submission(
        self,
        user_id: int,
        problem_id: int,
        source_code: str,
        language: str,
        cases: Sequence[TestCase],
        evaluations: Sequence[CaseEvaluation],
        accepted: bool,
    ) -> Submission:
        status = SubmissionStatus.ACCEPTED if accepted else SubmissionStatus.WRONG_ANSWER
        submission = Submission(
            user_id=user_id,
            problem_id=problem_id,
            source_code=source_code,
            language=language,
            stdin="\n".join(tc.input or "" for tc in cases),
            stdout=_json_list([e.stdout for e in evaluations]),
            stderr=_json_list_or_none([e.stderr for e in evaluations]),
            compile_output=_json_list_or_none([e.compile_output for e in evaluations]),
            status=status.value,
            memory=_json_list([e.memory for e in evaluations]),
            time=_json_list([e.time for e in evaluations]),
        )
        submission.testcase_results = [
            TestCaseResult(
                test_case_id=tc.id,
                test_case_index=e.index,
                passed=e.passed,
                stdout=e.stdout,
                expected_output=e.expected_output,
                stderr=e.stderr,
                compile_output=e.compile_output,
                status=e.status,
                memory=e.memory,
                time=e.time,
            )
            for tc, e in zip(cases, evaluations)
        ]

        # Submission + results + solved mark: commit một lần
        try:
            self.db.add(submission)
            self.db.flush()
            if accepted:
                self._mark_solved(user_id, problem_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to persist submission of user {user_id} for problem {problem_id}: {e}")
            raise PersistenceError(f"Failed to persist submission: {e}") from e

        self.db.refresh(submission)
        return submission

    def _mark_solved(self, user_id: int, problem_id: int) -> bool:
        """Upsert (user, problem) solved mark; returns False when it already existed."""
        exists = (
            self.db.query(ProblemSolved.id)
            .filter(ProblemSolved.user_id == user_id, ProblemSolved.problem_id == problem_id)
            .first()
        )
        if exists:
            return False

        try:
            with self.db.begin_nested():
                self.db.add(ProblemSolved(user_id=user_id, problem_id=problem_id))
        except IntegrityError:
            # Request song song đã insert trước
            logger.info(f"Problem {problem_id} already marked solved for user {user_id}")
            return False
        return True


__all__ = ["SubmissionPipeline"]

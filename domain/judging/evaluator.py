"""Chấm từng test case từ kết quả judge và tổng hợp cả batch.

Chính sách ẩn dữ liệu (redaction): với test case private đã pass, client chỉ thấy
passed/status/memory/time. Test case private bị fail thì lộ stdout/expected/stderr
để người dùng debug.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence

from infra.services.judge_client import JudgeResult
from infra.utils.units import format_memory, format_seconds, parse_seconds, to_kb


# Chỉ hiện khi test case public hoặc bị fail
PRIVATE_FIELDS = ("stdout", "expected_output", "stderr", "compile_output")


def redact_view(view: Dict[str, Any], is_public: bool) -> Dict[str, Any]:
    """Drop output details of a passed private test case; memory/time/status always stay."""
    if is_public or not view.get("passed"):
        return dict(view, is_public=bool(is_public))
    redacted = {k: v for k, v in view.items() if k not in PRIVATE_FIELDS}
    redacted["is_public"] = False
    return redacted


@dataclass
class CaseEvaluation:
    index: int  # 1-based
    passed: bool
    is_public: bool
    stdout: str
    expected_output: str
    stderr: Optional[str]
    compile_output: Optional[str]
    status: str
    status_id: int
    memory: Optional[str]
    time: Optional[str]

    def full_view(self) -> Dict[str, Any]:
        return {
            "test_case": self.index,
            "passed": self.passed,
            "stdout": self.stdout,
            "expected_output": self.expected_output,
            "stderr": self.stderr,
            "compile_output": self.compile_output,
            "status": self.status,
            "memory": self.memory,
            "time": self.time,
        }

    def redacted_view(self) -> Dict[str, Any]:
        return redact_view(self.full_view(), self.is_public)


@dataclass
class Performance:
    total_time: Optional[str]
    total_memory: Optional[str]

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"total_time": self.total_time, "total_memory": self.total_memory}


def evaluate_case(result: JudgeResult, expected_output: Optional[str], is_public: bool, index: int) -> CaseEvaluation:
    stdout = (result.stdout or "").strip()
    expected = (expected_output or "").strip()
    return CaseEvaluation(
        index=index,
        # Không có stdout (compile error, crash) thì không bao giờ pass
        passed=result.stdout is not None and stdout == expected,
        is_public=bool(is_public),
        stdout=stdout,
        expected_output=expected,
        stderr=result.stderr or None,
        compile_output=result.compile_output or None,
        status=result.status_description,
        status_id=result.status_id,
        memory=format_memory(result.memory),
        time=format_seconds(result.time),
    )


def evaluate_batch(results: Sequence[JudgeResult], cases: Sequence[Any]) -> list:
    """Pair results with test cases index-for-index (cases need .expected_output/.is_public)."""
    if len(results) != len(cases):
        raise ValueError(f"Got {len(results)} judge results for {len(cases)} test cases")
    return [
        evaluate_case(result, case.expected_output, case.is_public, i)
        for i, (result, case) in enumerate(zip(results, cases), start=1)
    ]


def all_passed(evaluations: Iterable[CaseEvaluation]) -> bool:
    evaluations = list(evaluations)
    if not evaluations:
        raise ValueError("Cannot aggregate an empty set of test case results")
    return all(e.passed for e in evaluations)


def aggregate_performance(times: Iterable[Optional[str]], memories: Iterable[Optional[str]]) -> Performance:
    """Cộng dồn best-effort: giá trị thiếu/không đọc được tính là 0."""
    total_seconds = sum(parse_seconds(t) for t in times)
    total_kb = sum(to_kb(m) for m in memories)
    return Performance(total_time=format_seconds(total_seconds), total_memory=format_memory(total_kb))


def summarize_performance(evaluations: Sequence[CaseEvaluation]) -> Performance:
    return aggregate_performance((e.time for e in evaluations), (e.memory for e in evaluations))


__all__ = [
    "CaseEvaluation",
    "PRIVATE_FIELDS",
    "redact_view",
    "Performance",
    "evaluate_case",
    "evaluate_batch",
    "all_passed",
    "aggregate_performance",
    "summarize_performance",
]

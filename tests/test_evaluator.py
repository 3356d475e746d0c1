from types import SimpleNamespace

import pytest

from domain.judging.evaluator import (
    PRIVATE_FIELDS,
    aggregate_performance,
    all_passed,
    evaluate_batch,
    evaluate_case,
    summarize_performance,
)
from infra.services.judge_client import JudgeResult


def _result(stdout, status_id=3, description="Accepted", **kwargs):
    return JudgeResult("tok", status_id, description, stdout=stdout, **kwargs)


def test_outputs_are_trimmed_before_comparison():
    evaluation = evaluate_case(_result("  42\n"), "42 \n", is_public=True, index=1)
    assert evaluation.passed
    assert evaluation.stdout == "42"
    assert evaluation.expected_output == "42"


def test_missing_stdout_fails_against_non_empty_expected():
    evaluation = evaluate_case(_result(None, 6, "Compilation Error", compile_output="boom"), "1", True, 1)
    assert not evaluation.passed
    assert evaluation.stdout == ""
    assert evaluation.compile_output == "boom"


def test_missing_stdout_fails_against_empty_expected():
    compile_error = evaluate_case(_result(None, 6, "Compilation Error", compile_output="boom"), "", True, 1)
    assert compile_error.passed is False
    assert compile_error.stdout == ""

    silent_crash = evaluate_case(_result(None, 11, "Runtime Error (NZEC)"), "  \n", False, 2)
    assert silent_crash.passed is False
    assert silent_crash.redacted_view()["stdout"] == ""


def test_empty_stdout_matches_empty_expected():
    assert evaluate_case(_result("\n"), "", True, 1).passed is True


def test_resource_usage_is_formatted():
    evaluation = evaluate_case(_result("1", time="0.012", memory=1536), "1", True, 3)
    assert evaluation.memory == "1.50 MB"
    assert evaluation.time == "0.012 s"
    assert evaluation.full_view()["test_case"] == 3


def test_private_passed_case_hides_outputs():
    view = evaluate_case(_result("7", memory=512, time="0.001"), "7", is_public=False, index=1).redacted_view()

    for field in PRIVATE_FIELDS:
        assert field not in view
    assert view["passed"] is True
    assert view["status"] == "Accepted"
    assert view["memory"] == "512.00 KB"
    assert view["time"] == "0.001 s"


def test_private_failed_case_shows_outputs():
    view = evaluate_case(_result("8", 4, "Wrong Answer", stderr="warn"), "7", is_public=False, index=2).redacted_view()

    assert view["passed"] is False
    assert view["stdout"] == "8"
    assert view["expected_output"] == "7"
    assert view["stderr"] == "warn"
    assert "compile_output" in view


def test_public_case_always_shows_outputs():
    view = evaluate_case(_result("7"), "7", is_public=True, index=1).redacted_view()
    assert view["stdout"] == "7"
    assert view["expected_output"] == "7"


def test_all_passed_and_single_failure_detail():
    cases = [
        SimpleNamespace(expected_output="1", is_public=False),
        SimpleNamespace(expected_output="2", is_public=False),
        SimpleNamespace(expected_output="3", is_public=False),
    ]
    evaluations = evaluate_batch([_result("1"), _result("2"), _result("4")], cases)

    assert [e.passed for e in evaluations] == [True, True, False]
    assert all_passed(evaluations) is False
    views = [e.redacted_view() for e in evaluations]
    assert [("stdout" in v) for v in views] == [False, False, True]

    assert all_passed(evaluations[:2]) is True


def test_all_passed_refuses_empty_set():
    with pytest.raises(ValueError):
        all_passed([])


def test_evaluate_batch_requires_matching_lengths():
    with pytest.raises(ValueError):
        evaluate_batch([_result("1")], [])


def test_aggregate_performance_skips_unusable_entries():
    performance = aggregate_performance(
        ["0.100 s", None, "junk", "0.250 s"],
        ["512.00 KB", "1.50 MB", None, "lots"],
    )
    assert performance.total_time == "0.350 s"
    assert performance.total_memory == "2.00 MB"


def test_summarize_performance():
    cases = [SimpleNamespace(expected_output="1", is_public=True)] * 2
    evaluations = evaluate_batch(
        [_result("1", time="0.010", memory=300), _result("1", time="0.020", memory=200)], cases
    )
    assert summarize_performance(evaluations).to_dict() == {"total_time": "0.030 s", "total_memory": "500.00 KB"}

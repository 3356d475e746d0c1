import json

import pytest

from domain import models
from domain.errors import (
    Conflict,
    InvalidInput,
    NotFound,
    ReferenceSolutionFailed,
    UnsupportedLanguage,
    UpstreamJudgeFailure,
)
from domain.judging import SubmissionPipeline
from domain.schemas import ProblemCreate

PYTHON = 71


@pytest.fixture
def pipeline(db_session, fake_judge):
    return SubmissionPipeline(db_session, fake_judge)


def _draft(**overrides):
    data = dict(
        title="Triple it",
        description="Print three times the input.",
        difficulty="EASY",
        problem_number=2,
        reference_solutions={"PYTHON": "double"},
        test_cases=[
            {"input": "1", "expected": "2", "is_public": True},
            {"input": "2", "expected": "4", "is_public": True},
            {"input": "3", "expected": "6"},
        ],
    )
    data.update(overrides)
    return ProblemCreate(**data)


# ---------------------------------------------------------------- submit

def test_submit_accepted_marks_problem_solved(pipeline, db_session, fake_judge, user, problem):
    summary = pipeline.submit_for_scoring(user.id, "double", PYTHON, problem.id)

    assert summary["status"] == "Accepted"
    assert summary["all_passed"] is True
    assert summary["test_cases_passed"] == "3/3"
    assert summary["language"] == "Python"
    assert summary["performance"] == {"total_time": "0.030 s", "total_memory": "3.00 MB"}
    assert "stdout" not in summary

    # Public trước khi gửi lên judge
    assert [s["stdin"] for s in fake_judge.batches[0]] == ["1", "2", "5"]
    assert all("expected_output" not in s for s in fake_judge.batches[0])

    views = summary["test_cases"]
    assert [v["is_public"] for v in views] == [True, True, False]
    assert "stdout" in views[0]
    assert "stdout" not in views[2]

    submission = db_session.query(models.Submission).one()
    assert submission.status == "Accepted"
    assert submission.stdin == "1\n2\n5"
    assert json.loads(submission.stdout) == ["2", "4", "10"]
    assert submission.stderr is None
    assert submission.compile_output is None
    assert len(submission.testcase_results) == len(problem.testcases) == 3
    assert [r.test_case_index for r in submission.testcase_results] == [1, 2, 3]

    marks = db_session.query(models.ProblemSolved).all()
    assert [(m.user_id, m.problem_id) for m in marks] == [(user.id, problem.id)]


def test_repeated_accepted_submit_keeps_single_mark(pipeline, db_session, user, problem):
    pipeline.submit_for_scoring(user.id, "double", PYTHON, problem.id)
    pipeline.submit_for_scoring(user.id, "double", PYTHON, problem.id)

    assert db_session.query(models.Submission).count() == 2
    assert db_session.query(models.ProblemSolved).count() == 1


class _NoRows:
    def filter(self, *criteria):
        return self

    def first(self):
        return None


def test_concurrent_solved_mark_is_swallowed(pipeline, db_session, monkeypatch, user, problem):
    # Mark đã được request khác insert sau bước kiểm tra tồn tại
    db_session.add(models.ProblemSolved(user_id=user.id, problem_id=problem.id))
    db_session.commit()

    real_query = db_session.query

    def query(*entities, **kwargs):
        if entities and entities[0] is models.ProblemSolved.id:
            return _NoRows()
        return real_query(*entities, **kwargs)

    monkeypatch.setattr(db_session, "query", query)

    summary = pipeline.submit_for_scoring(user.id, "double", PYTHON, problem.id)

    assert summary["status"] == "Accepted"
    submission = db_session.query(models.Submission).one()
    assert len(submission.testcase_results) == 3
    assert db_session.query(models.TestCaseResult).count() == 3
    assert db_session.query(models.ProblemSolved).count() == 1


def test_wrong_answer_exposes_failing_private_case(pipeline, db_session, user, problem):
    summary = pipeline.submit_for_scoring(user.id, "always_two", PYTHON, problem.id)

    assert summary["status"] == "Wrong Answer"
    assert summary["test_cases_passed"] == "1/3"
    private_view = summary["test_cases"][2]
    assert private_view["passed"] is False
    assert private_view["expected_output"] == "10"
    assert private_view["stdout"] == "2"

    assert db_session.query(models.ProblemSolved).count() == 0
    assert db_session.query(models.TestCaseResult).count() == 3


def test_runtime_error_serializes_stderr(pipeline, db_session, user, problem):
    pipeline.submit_for_scoring(user.id, "crash", PYTHON, problem.id)

    submission = db_session.query(models.Submission).one()
    assert submission.status == "Wrong Answer"
    assert len(json.loads(submission.stderr)) == 3
    assert json.loads(submission.memory) == ["256.00 KB"] * 3


def test_submit_rejects_before_calling_judge(pipeline, fake_judge, user, problem):
    with pytest.raises(UnsupportedLanguage):
        pipeline.submit_for_scoring(user.id, "double", 9999, problem.id)
    with pytest.raises(InvalidInput):
        pipeline.submit_for_scoring(user.id, "   ", PYTHON, problem.id)
    with pytest.raises(NotFound):
        pipeline.submit_for_scoring(user.id, "double", PYTHON, 12345)
    assert fake_judge.batches == []


def test_submit_without_test_cases_is_not_found(pipeline, db_session, fake_judge, user):
    empty = models.Problem(title="Empty", description="-", difficulty="EASY")
    db_session.add(empty)
    db_session.commit()

    with pytest.raises(NotFound):
        pipeline.submit_for_scoring(user.id, "double", PYTHON, empty.id)
    assert fake_judge.batches == []


def test_judge_failure_persists_nothing(pipeline, db_session, fake_judge, user, problem):
    fake_judge.fail_polls = True

    with pytest.raises(UpstreamJudgeFailure):
        pipeline.submit_for_scoring(user.id, "double", PYTHON, problem.id)
    assert db_session.query(models.Submission).count() == 0


# ---------------------------------------------------------------- run

def test_run_uses_public_cases_only(pipeline, db_session, fake_judge, user, problem):
    result = pipeline.run_against_public_cases(user.id, "always_two", PYTHON, problem.id)

    assert [s["stdin"] for s in fake_judge.batches[0]] == ["1", "2"]
    assert result["all_passed"] is False
    assert [r["passed"] for r in result["results"]] == [True, False]
    assert result["results"][0]["expected_output"] == "2"
    assert db_session.query(models.Submission).count() == 0


def test_run_without_public_cases_is_not_found(pipeline, db_session, fake_judge, user):
    hidden = models.Problem(title="Hidden", description="-", difficulty="HARD")
    hidden.testcases = [models.TestCase(input="1", expected_output="1", is_public=False)]
    db_session.add(hidden)
    db_session.commit()

    with pytest.raises(NotFound):
        pipeline.run_against_public_cases(user.id, "echo", PYTHON, hidden.id)
    assert fake_judge.batches == []


# ---------------------------------------------------------------- validate

def test_validate_creates_problem_with_test_cases(pipeline, db_session, fake_judge, admin):
    created = pipeline.validate_and_create_problem(_draft(), author_id=admin.id)

    assert created.id is not None
    assert created.user_id == admin.id
    assert [(tc.input, tc.expected_output, tc.is_public) for tc in created.testcases] == [
        ("1", "2", True),
        ("2", "4", True),
        ("3", "6", False),
    ]
    assert [s["expected_output"] for s in fake_judge.batches[0]] == ["2", "4", "6"]


def test_validate_runs_every_language(pipeline, db_session, fake_judge, admin):
    fake_judge.programs["double_js"] = fake_judge.programs["double"]
    pipeline.validate_and_create_problem(
        _draft(reference_solutions={"PYTHON": "double", "javascript": "double_js"}), author_id=admin.id
    )

    assert [b[0]["language_id"] for b in fake_judge.batches] == [71, 63]


def test_validate_reports_failing_test_case(pipeline, db_session, admin):
    with pytest.raises(ReferenceSolutionFailed) as exc_info:
        pipeline.validate_and_create_problem(_draft(reference_solutions={"PYTHON": "always_two"}), author_id=admin.id)

    assert exc_info.value.test_case == 2
    assert exc_info.value.language == "PYTHON"
    assert exc_info.value.context["status"] == "Wrong Answer"
    assert db_session.query(models.Problem).count() == 0
    assert db_session.query(models.TestCase).count() == 0


def test_validate_rejects_unsupported_language_before_judging(pipeline, db_session, fake_judge, admin):
    with pytest.raises(UnsupportedLanguage):
        pipeline.validate_and_create_problem(
            _draft(reference_solutions={"PYTHON": "double", "COBOL": "double"}), author_id=admin.id
        )
    assert fake_judge.batches == []


def test_validate_rejects_duplicates(pipeline, db_session, fake_judge, admin, problem):
    with pytest.raises(Conflict):
        pipeline.validate_and_create_problem(_draft(title=problem.title), author_id=admin.id)
    with pytest.raises(Conflict):
        pipeline.validate_and_create_problem(_draft(problem_number=problem.problem_number), author_id=admin.id)
    assert fake_judge.batches == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"test_cases": []},
        {"reference_solutions": {}},
        {"title": "  "},
        {"reference_solutions": {"PYTHON": ""}},
    ],
)
def test_validate_rejects_invalid_drafts(pipeline, fake_judge, admin, overrides):
    with pytest.raises(InvalidInput):
        pipeline.validate_and_create_problem(_draft(**overrides), author_id=admin.id)
    assert fake_judge.batches == []

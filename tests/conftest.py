import os

# Phải set trước khi import app.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient

from app.auth import token_for_user
from app.db import Base, SessionLocal, engine, get_db
from app.main import app
from domain import models
from domain.errors import UpstreamJudgeFailure
from infra.services import JudgeResult, get_judge_client


class FakeJudge:
    """In-process stand-in for the Judge0 batch API.

    `programs` maps a source string to a function stdin -> stdout; unknown sources
    come back as compilation errors. When `expected_output` is sent, a mismatch is
    reported as "Wrong Answer" like Judge0 does.
    """

    def __init__(self):
        self.programs = {
            "double": lambda s: str(int(s) * 2),
            "echo": lambda s: s,
            "always_two": lambda s: "2",
            "crash": lambda s: 1 / 0,
        }
        self.batches = []
        self.fail_polls = False
        self._jobs = {}

    def submit_batch(self, submissions):
        self.batches.append(list(submissions))
        tokens = []
        for sub in submissions:
            token = f"tok-{len(self._jobs) + 1}"
            self._jobs[token] = sub
            tokens.append(token)
        return tokens

    def poll_batch_results(self, tokens):
        if self.fail_polls:
            raise UpstreamJudgeFailure("Judge HTTP error: 503")
        return [self._run(token, self._jobs[token]) for token in tokens]

    def _run(self, token, sub):
        program = self.programs.get(sub["source_code"])
        if program is None:
            return JudgeResult(token, 6, "Compilation Error", compile_output="error: cannot compile")
        try:
            stdout = program(sub["stdin"]) + "\n"
        except Exception as e:
            return JudgeResult(token, 11, "Runtime Error (NZEC)", stderr=f"Traceback: {e}", time="0.005", memory=256)

        expected = sub.get("expected_output")
        if expected is not None and stdout.strip() != expected.strip():
            return JudgeResult(token, 4, "Wrong Answer", stdout=stdout, time="0.010", memory=1024)
        return JudgeResult(token, 3, "Accepted", stdout=stdout, time="0.010", memory=1024)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_judge():
    return FakeJudge()


@pytest.fixture
def user(db_session):
    u = models.User(username="alice", hashed_password="not-a-real-hash", is_admin=0)
    db_session.add(u)
    db_session.commit()
    return u


@pytest.fixture
def admin(db_session):
    u = models.User(username="root", hashed_password="not-a-real-hash", is_admin=1)
    db_session.add(u)
    db_session.commit()
    return u


@pytest.fixture
def problem(db_session, admin):
    """Problem "Double it": 2 public + 1 private test case (private inserted first)."""
    p = models.Problem(
        user_id=admin.id,
        title="Double it",
        description="Print twice the input.",
        difficulty="EASY",
        problem_number=1,
        tags=["math"],
        reference_solutions={"PYTHON": "double"},
    )
    p.testcases = [
        models.TestCase(input="5", expected_output="10", is_public=False),
        models.TestCase(input="1", expected_output="2", is_public=True),
        models.TestCase(input="2", expected_output="4", is_public=True),
    ]
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture
def client(db_session, fake_judge):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_judge_client] = lambda: fake_judge
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {token_for_user(admin)}"}

import time
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from app.settings import (
    JUDGE_API_URL,
    JUDGE_AUTH_TOKEN,
    JUDGE_HTTP_TIMEOUT_SECONDS,
    JUDGE_MAX_POLL_ATTEMPTS,
    JUDGE_POLL_INTERVAL_SECONDS,
)
from domain.errors import JudgeTimeout, UpstreamJudgeFailure

logger = logging.getLogger(__name__)

# Judge0 status ids
STATUS_IN_QUEUE = 1
STATUS_PROCESSING = 2
STATUS_ACCEPTED = 3
PENDING_STATUS_IDS = frozenset({STATUS_IN_QUEUE, STATUS_PROCESSING})

RESULT_FIELDS = "token,status,stdout,stderr,compile_output,message,time,memory"


@dataclass
class JudgeResult:
    token: str
    status_id: int
    status_description: str
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    message: Optional[str] = None
    time: Optional[str] = None
    memory: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.status_id in PENDING_STATUS_IDS

    @property
    def is_accepted(self) -> bool:
        return self.status_id == STATUS_ACCEPTED

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "JudgeResult":
        status = payload.get("status") or {}
        try:
            status_id = int(status["id"])
        except (KeyError, TypeError, ValueError):
            raise UpstreamJudgeFailure(f"Judge result without a valid status: {payload!r}")
        return cls(
            token=payload.get("token") or "",
            status_id=status_id,
            status_description=status.get("description") or "",
            stdout=payload.get("stdout"),
            stderr=payload.get("stderr"),
            compile_output=payload.get("compile_output"),
            message=payload.get("message"),
            time=payload.get("time"),
            memory=payload.get("memory"),
        )


class JudgeClient:
    """Client cho batch API của Judge0.

    `submit_batch` gửi N submission một lần và trả về N token theo đúng thứ tự.
    `poll_batch_results` hỏi trạng thái cả batch mỗi `poll_interval` giây cho tới khi
    mọi token kết thúc, hoặc raise `JudgeTimeout` khi vượt `max_poll_attempts`.
    """

    def __init__(
        self,
        base_url: str = JUDGE_API_URL,
        auth_token: str = JUDGE_AUTH_TOKEN,
        poll_interval: float = JUDGE_POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = JUDGE_MAX_POLL_ATTEMPTS,
        timeout: float = JUDGE_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_poll_attempts = max(1, int(max_poll_attempts))
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep
        self.headers = {"Content-Type": "application/json"}
        if auth_token:
            self.headers["X-Auth-Token"] = auth_token

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"Judge request: {method} {url}")
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers, transport=self._transport) as client:
                resp = client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Connection to judge at {self.base_url} failed: {e}")
            raise UpstreamJudgeFailure(f"Connection to judge failed: {e}") from e

        if resp.status_code >= 400:
            logger.error(f"Judge HTTP error {resp.status_code} on {method} {path}: {resp.text[:500]}")
            raise UpstreamJudgeFailure(f"Judge HTTP error: {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamJudgeFailure("Judge returned a non-JSON body") from e

    def submit_batch(self, submissions: Sequence[Dict[str, Any]]) -> List[str]:
        """Submit [{source_code, language_id, stdin, expected_output?}], return tokens in order."""
        if not submissions:
            return []

        data = self._request(
            "POST",
            "/submissions/batch",
            params={"base64_encoded": "false"},
            json={"submissions": list(submissions)},
        )

        if not isinstance(data, list) or len(data) != len(submissions):
            raise UpstreamJudgeFailure(f"Unexpected batch submit response: {data!r}")

        tokens: List[str] = []
        for i, item in enumerate(data):
            token = item.get("token") if isinstance(item, dict) else None
            if not token:
                # Judge0 trả lỗi validate theo từng phần tử, vd {"language_id": ["..."]}
                raise UpstreamJudgeFailure(f"Judge rejected submission {i + 1}: {item!r}")
            tokens.append(token)

        logger.info(f"Submitted batch of {len(tokens)} to judge")
        return tokens

    def fetch_batch(self, tokens: Sequence[str]) -> List[JudgeResult]:
        """One status query for the whole batch, results in `tokens` order."""
        data = self._request(
            "GET",
            "/submissions/batch",
            params={
                "tokens": ",".join(tokens),
                "base64_encoded": "false",
                "fields": RESULT_FIELDS,
            },
        )

        items = data.get("submissions") if isinstance(data, dict) else None
        if not isinstance(items, list) or len(items) != len(tokens):
            raise UpstreamJudgeFailure(f"Unexpected batch status response: {data!r}")

        results = [JudgeResult.from_payload(item or {}) for item in items]

        # Khớp theo token; nếu judge không trả token thì giữ thứ tự theo index
        if all(r.token for r in results):
            by_token = {r.token: r for r in results}
            missing = [t for t in tokens if t not in by_token]
            if missing:
                raise UpstreamJudgeFailure(f"Judge response is missing tokens: {missing}")
            results = [by_token[t] for t in tokens]
        return results

    def poll_batch_results(self, tokens: Sequence[str]) -> List[JudgeResult]:
        if not tokens:
            return []

        for attempt in range(1, self.max_poll_attempts + 1):
            results = self.fetch_batch(tokens)
            pending = sum(1 for r in results if r.is_pending)
            if not pending:
                logger.info(f"Judge batch of {len(tokens)} finished after {attempt} poll(s)")
                return results

            logger.debug(f"Judge batch poll {attempt}: {pending}/{len(tokens)} still pending")
            if attempt < self.max_poll_attempts:
                self._sleep(self.poll_interval)

        logger.error(f"Judge batch of {len(tokens)} not finished after {self.max_poll_attempts} polls")
        raise JudgeTimeout(
            f"Judge batch did not finish after {self.max_poll_attempts} polls",
            tokens=list(tokens),
        )


@lru_cache(maxsize=1)
def get_judge_client() -> JudgeClient:
    """Singleton JudgeClient (per-process), dùng làm FastAPI dependency."""
    return JudgeClient()


__all__ = [
    "JudgeClient",
    "JudgeResult",
    "get_judge_client",
    "STATUS_ACCEPTED",
    "PENDING_STATUS_IDS",
]

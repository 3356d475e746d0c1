"""Error kinds raised by the judging core.

Each error carries the HTTP status the router layer should answer with; the
translation itself lives in `app.main`.
"""

from typing import Any, Dict, Optional


class CodeJudgeError(Exception):
    status_code = 500
    public_detail: Optional[str] = None

    def __init__(self, detail: str, **context: Any):
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_response(self) -> Dict[str, Any]:
        # Lỗi 5xx không trả chi tiết nội bộ cho client
        body: Dict[str, Any] = {"detail": self.public_detail or self.detail}
        if self.public_detail is None and self.context:
            body.update(self.context)
        return body


class InvalidInput(CodeJudgeError):
    status_code = 400


class UnsupportedLanguage(CodeJudgeError):
    status_code = 400

    def __init__(self, language: Any):
        super().__init__(f"Language {language} is not supported", language=language)


class NotFound(CodeJudgeError):
    status_code = 404


class Conflict(CodeJudgeError):
    status_code = 409


class ReferenceSolutionFailed(CodeJudgeError):
    """A reference solution did not reach "Accepted" on one of the declared test cases."""

    status_code = 400

    def __init__(self, language: str, test_case: int, status: str, details: Optional[str] = None):
        super().__init__(
            f"Reference solution failed on testcase {test_case} for language {language}",
            language=language,
            test_case=test_case,
            status=status,
            details=details,
        )
        self.language = language
        self.test_case = test_case


class UpstreamJudgeFailure(CodeJudgeError):
    status_code = 500
    public_detail = "Code execution service failed"


class JudgeTimeout(CodeJudgeError):
    status_code = 504
    public_detail = "Code execution service did not finish in time"


class PersistenceError(CodeJudgeError):
    status_code = 500
    public_detail = "Internal server error"


__all__ = [
    "CodeJudgeError",
    "InvalidInput",
    "UnsupportedLanguage",
    "NotFound",
    "Conflict",
    "ReferenceSolutionFailed",
    "UpstreamJudgeFailure",
    "JudgeTimeout",
    "PersistenceError",
]

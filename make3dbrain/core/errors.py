from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .results import StageResult

INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
INVALID_EMAIL = "INVALID_EMAIL"
INVALID_FILENAME = "INVALID_FILENAME"
UNKNOWN_INPUT = "UNKNOWN_INPUT"
TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
STAGE_FAILED = "STAGE_FAILED"
WORKSPACE_ERROR = "WORKSPACE_ERROR"


@dataclass
class UserFacingError(Exception):
    """
    An error that is safe and useful to show directly to the operator.

    The CLI prints `message` and exits with code 1; `details` carries the
    structured context (missing tools, stage diagnostics) for the job report.
    """
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    stage: Optional[str] = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.stage:
            out["stage"] = self.stage
        if self.details:
            out["details"] = self.details
        return out

    @classmethod
    def stage_failed(cls, result: StageResult, **details: Any) -> "UserFacingError":
        return cls(
            code=STAGE_FAILED,
            stage=result.stage,
            message=f"Stage '{result.stage}' failed: {result.detail}",
            details={"result": result.to_dict(), **details},
        )

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class StageResult:
    """Outcome of one pipeline stage (one external tool run or file step)."""

    stage: str
    ok: bool
    detail: Optional[str] = None
    outputs: tuple[Path, ...] = field(default_factory=tuple)
    returncode: Optional[int] = None
    elapsed_s: float = 0.0

    @classmethod
    def success(
        cls,
        stage: str,
        *,
        outputs: tuple[Path, ...] = (),
        detail: Optional[str] = None,
        returncode: Optional[int] = None,
        elapsed_s: float = 0.0,
    ) -> "StageResult":
        return cls(
            stage=stage,
            ok=True,
            detail=detail,
            outputs=tuple(outputs),
            returncode=returncode,
            elapsed_s=elapsed_s,
        )

    @classmethod
    def failure(
        cls,
        stage: str,
        detail: str,
        *,
        returncode: Optional[int] = None,
        elapsed_s: float = 0.0,
    ) -> "StageResult":
        return cls(
            stage=stage,
            ok=False,
            detail=detail,
            returncode=returncode,
            elapsed_s=elapsed_s,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "ok": self.ok,
            "detail": self.detail,
            "outputs": [str(p) for p in self.outputs],
            "returncode": self.returncode,
            "elapsed_s": round(self.elapsed_s, 3),
        }

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from ..core.results import StageResult

logger = logging.getLogger(__name__)

TAIL_LINES = 20


def tool_available(executable: str) -> bool:
    return shutil.which(executable) is not None


def _tail(text: Optional[str], lines: int = TAIL_LINES) -> str:
    if not text:
        return ""
    parts = text.strip().splitlines()
    return "\n".join(parts[-lines:])


def _produced(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def run_tool(
    stage: str,
    cmd: Sequence[str | Path],
    *,
    env: Optional[Mapping[str, str]] = None,
    input_text: Optional[str] = None,
    expected_outputs: Iterable[Path] = (),
) -> StageResult:
    """
    Run one external command to completion and fold the outcome into a StageResult.

    Never raises for process failures: a non-zero exit, a command that cannot
    be launched, or a declared output that is missing/empty afterwards all
    come back as a failed result with the tail of the tool's output.
    """
    argv = [str(c) for c in cmd]
    outputs = tuple(Path(p) for p in expected_outputs)

    logger.debug("[%s] running: %s", stage, " ".join(argv))
    t0 = time.perf_counter()
    try:
        p = subprocess.run(
            argv,
            input=input_text,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=dict(env) if env is not None else None,
        )
    except OSError as e:
        return StageResult.failure(
            stage,
            f"Cannot launch {argv[0]}: {e}",
            elapsed_s=time.perf_counter() - t0,
        )
    elapsed = time.perf_counter() - t0

    if p.stdout and p.stdout.strip():
        logger.debug("[%s] stdout:\n%s", stage, _tail(p.stdout))
    if p.stderr and p.stderr.strip():
        logger.debug("[%s] stderr:\n%s", stage, _tail(p.stderr))

    if p.returncode != 0:
        out = _tail(p.stderr) or _tail(p.stdout) or "no output"
        return StageResult.failure(
            stage,
            f"{argv[0]} exited with code {p.returncode}: {out}",
            returncode=p.returncode,
            elapsed_s=elapsed,
        )

    missing = [str(o) for o in outputs if not _produced(o)]
    if missing:
        return StageResult.failure(
            stage,
            f"{argv[0]} finished but did not produce: {', '.join(missing)}",
            returncode=p.returncode,
            elapsed_s=elapsed,
        )

    return StageResult.success(
        stage, outputs=outputs, returncode=p.returncode, elapsed_s=elapsed
    )

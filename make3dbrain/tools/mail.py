from __future__ import annotations

from typing import Optional

from ..core.results import StageResult
from .base import CommandTool
from .runner import run_tool


class MailCommand(CommandTool):
    """
    Sends a plain-text message through a mailx-compatible agent:
      mail -s <subject> [-c <cc>] <recipient>   (body on stdin)
    """

    default_executable = "mail"
    hint = "install a mailx-compatible mail agent (e.g. `mailutils`) or set MAKE3DBRAIN_MAIL_COMMAND"

    def send(
        self, recipient: str, subject: str, body: str, cc: Optional[str] = None
    ) -> StageResult:
        cmd = [self.executable, "-s", subject]
        if cc:
            cmd += ["-c", cc]
        cmd.append(recipient)
        return run_tool("notify", cmd, input_text=body)

from __future__ import annotations

import sys
from pathlib import Path

# keep make3dbrain/ importable when run from outside the repo root
REPO_DIR = Path(__file__).resolve().parents[1]
if str(REPO_DIR) not in sys.path:
    sys.path.insert(0, str(REPO_DIR))

from make3dbrain.core.config import Settings
from make3dbrain.tools import Dcm2niix, MailCommand, MrisConvert, ReconAll


def main() -> int:
    """
    Report which external programs the pipeline can reach:
      python scripts/check_tools.py

    Exit code 1 if any of them is missing.
    """
    settings = Settings.from_env()
    tools = [Dcm2niix(), ReconAll(), MrisConvert(), MailCommand(settings.mail_command)]

    missing = 0
    for tool in tools:
        if tool.available():
            print(f"[OK]      {tool.executable}")
        else:
            missing += 1
            print(f"[MISSING] {tool.executable}: {tool.hint}")

    print()
    print(f"  scratch root: {settings.scratch_root}")
    print(f"  admin copy:   {settings.admin_email} (outside {settings.institution_domain})")
    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(main())

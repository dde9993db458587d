from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..contracts.job import EmailAddress
from .errors import INVALID_ARGUMENTS, UserFacingError

DEFAULT_ADMIN_EMAIL = "3dprinting@kumc.edu"
DEFAULT_INSTITUTION_DOMAIN = "kumc.edu"
DEFAULT_SCRATCH_ROOT = "~/.make3dbrain"
DEFAULT_MAIL_COMMAND = "mail"

ENV_VARS = {
    "admin_email": "MAKE3DBRAIN_ADMIN_EMAIL",
    "institution_domain": "MAKE3DBRAIN_INSTITUTION_DOMAIN",
    "scratch_root": "MAKE3DBRAIN_SCRATCH_ROOT",
    "mail_command": "MAKE3DBRAIN_MAIL_COMMAND",
}


def _env_str(name: str, default: str) -> str:
    """
    Reads a single setting from the environment:
      MAKE3DBRAIN_ADMIN_EMAIL="someone@kumc.edu"
    Empty/None -> default.
    """
    value = os.getenv(name)
    if not value or not value.strip():
        return default
    return value.strip()


class Settings(BaseModel):
    """
    Deployment configuration for the orchestrator.

    Everything the shell version of the tool hard-coded (admin copy address,
    institutional domain, scratch location, mail agent) lives here, so tests
    can pass alternate values instead of patching globals.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    admin_email: EmailAddress = DEFAULT_ADMIN_EMAIL
    institution_domain: str = Field(default=DEFAULT_INSTITUTION_DOMAIN, min_length=1)
    scratch_root: Path = Field(
        default_factory=lambda: Path(DEFAULT_SCRATCH_ROOT).expanduser()
    )
    mail_command: str = Field(default=DEFAULT_MAIL_COMMAND, min_length=1)

    @field_validator("institution_domain")
    @classmethod
    def _normalize_domain(cls, v: str) -> str:
        domain = v.strip().lstrip("@").lower()
        if not domain:
            raise ValueError("institution domain must not be empty")
        return domain

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Settings from MAKE3DBRAIN_* variables; a malformed value becomes
        UserFacingError naming the variable.
        """
        try:
            return cls(
                admin_email=_env_str("MAKE3DBRAIN_ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL),
                institution_domain=_env_str(
                    "MAKE3DBRAIN_INSTITUTION_DOMAIN", DEFAULT_INSTITUTION_DOMAIN
                ),
                scratch_root=Path(
                    _env_str("MAKE3DBRAIN_SCRATCH_ROOT", DEFAULT_SCRATCH_ROOT)
                ).expanduser(),
                mail_command=_env_str("MAKE3DBRAIN_MAIL_COMMAND", DEFAULT_MAIL_COMMAND),
            )
        except ValidationError as e:
            errors = e.errors()
            loc = errors[0].get("loc") if errors else ()
            field = str(loc[0]) if loc else ""
            env_name = ENV_VARS.get(field, "MAKE3DBRAIN_*")
            raise UserFacingError(
                code=INVALID_ARGUMENTS,
                stage="config",
                message=f"Invalid configuration in {env_name}: {os.getenv(env_name)!r}",
                details={"variable": env_name, "errors": [err.get("msg") for err in errors]},
            ) from e

    def scratch_dir(self, filename: str) -> Path:
        """Per-job workspace, used as FreeSurfer's SUBJECTS_DIR."""
        return self.scratch_root / filename

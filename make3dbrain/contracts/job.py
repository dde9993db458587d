from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    StringConstraints,
    ValidationError,
    field_validator,
)

from ..core.errors import (
    INVALID_ARGUMENTS,
    INVALID_EMAIL,
    INVALID_FILENAME,
    UserFacingError,
)


# ----------------------------
# Common scalar types
# ----------------------------

EMAIL_PATTERN = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"

EmailAddress = Annotated[
    str,
    StringConstraints(
        pattern=EMAIL_PATTERN,  # local@domain.tld
    ),
]

OutputName = Annotated[
    str,
    StringConstraints(
        pattern=r"^[^/\\\s](?:[^/\\]*[^/\\\s])?$",  # single path component, no edge whitespace
    ),
]

Hemisphere = Literal["lh", "rh"]

HEMISPHERES: tuple[Hemisphere, ...] = ("lh", "rh")


class InputKind(str, Enum):
    DICOM = "dicom"
    PIAL = "pial"
    NIFTI = "nifti"


# ----------------------------
# Job parameters
# ----------------------------

class JobParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    input_path: Path
    dest_dir: Path
    filename: OutputName
    email: Optional[EmailAddress] = None

    @field_validator("filename")
    @classmethod
    def _not_dot_component(cls, v: str) -> str:
        if v in (".", ".."):
            raise ValueError("filename must not be '.' or '..'")
        return v

    @property
    def nifti_path(self) -> Path:
        return self.dest_dir / f"{self.filename}.nii"

    def stl_path(self, hemi: Hemisphere) -> Path:
        return self.dest_dir / f"{self.filename}_{hemi}.stl"

    @property
    def stl_paths(self) -> tuple[Path, Path]:
        return self.stl_path("lh"), self.stl_path("rh")

    @property
    def email_domain(self) -> Optional[str]:
        if not self.email:
            return None
        return self.email.rsplit("@", 1)[1].lower()


def build_job_params(
    input_path: str | Path,
    dest_dir: str | Path,
    filename: str,
    email: Optional[str] = None,
) -> JobParams:
    """
    Validate raw CLI values into JobParams.

    Validation failures become UserFacingError, so nothing touches the
    filesystem before arguments are known to be well-formed.
    """
    try:
        return JobParams(
            input_path=Path(input_path),
            dest_dir=Path(dest_dir),
            filename=filename,
            email=email,
        )
    except ValidationError as e:
        errors = e.errors()
        loc = errors[0].get("loc") if errors else ()
        field = str(loc[0]) if loc else ""

        if field == "email":
            raise UserFacingError(
                code=INVALID_EMAIL,
                stage="validate",
                message=(
                    f"Invalid email address: {email!r}. "
                    "Expected the form local@domain.tld"
                ),
                details={"email": email},
            ) from e

        if field == "filename":
            raise UserFacingError(
                code=INVALID_FILENAME,
                stage="validate",
                message=(
                    f"Invalid output filename: {filename!r}. "
                    "Use a plain name without path separators"
                ),
                details={"filename": filename},
            ) from e

        raise UserFacingError(
            code=INVALID_ARGUMENTS,
            stage="validate",
            message=f"Invalid arguments: {e}",
        ) from e

from __future__ import annotations

from pathlib import Path

from ..contracts.job import InputKind
from ..core.errors import UNKNOWN_INPUT, UserFacingError


def _has_files(directory: Path, pattern: str) -> bool:
    return any(p.is_file() for p in directory.glob(pattern))


def classify_input(input_path: Path) -> InputKind:
    """
    Decide which conversion path applies to `input_path`:
      - directory with any *.dcm            -> DICOM (checked first)
      - directory with any *.pial, no *.dcm -> PIAL
      - regular file with extension `nii`   -> NIFTI
    Anything else raises UserFacingError(UNKNOWN_INPUT).
    """
    p = Path(input_path)

    if p.is_dir():
        if _has_files(p, "*.dcm"):
            return InputKind.DICOM
        if _has_files(p, "*.pial"):
            return InputKind.PIAL
        raise UserFacingError(
            code=UNKNOWN_INPUT,
            stage="classify",
            message=(
                f"Input directory contains neither DICOM (*.dcm) "
                f"nor pial surface (*.pial) files: {p}"
            ),
            details={"input": str(p)},
        )

    if p.is_file():
        if p.suffix == ".nii":
            return InputKind.NIFTI
        raise UserFacingError(
            code=UNKNOWN_INPUT,
            stage="classify",
            message=f"Input file is not a NIFTI volume (expected a .nii file): {p}",
            details={"input": str(p), "suffix": p.suffix},
        )

    raise UserFacingError(
        code=UNKNOWN_INPUT,
        stage="classify",
        message=f"Input path does not exist: {p}",
        details={"input": str(p)},
    )

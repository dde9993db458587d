from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from ..contracts.job import HEMISPHERES, Hemisphere
from ..core.results import StageResult
from .base import CommandTool
from .runner import run_tool

FREESURFER_HINT = (
    "load FreeSurfer first: `source $FREESURFER_HOME/SetUpFreeSurfer.sh` "
    "(or `module load freesurfer`)"
)


def pial_surface_path(subjects_dir: Path, subject: str, hemi: Hemisphere) -> Path:
    return Path(subjects_dir) / subject / "surf" / f"{hemi}.pial"


class ReconAll(CommandTool):
    """
    Full cortical reconstruction (`recon-all -all`) of one T1 volume.

    Runs with SUBJECTS_DIR pointed at the job's scratch workspace, so the
    subject tree lands in <subjects_dir>/<subject>/. Typically takes hours.
    """

    default_executable = "recon-all"
    hint = FREESURFER_HINT

    def __init__(self, executable: Optional[str] = None, *, threads: Optional[int] = None) -> None:
        super().__init__(executable)
        self.threads = threads

    def pial_surface(self, subjects_dir: Path, subject: str, hemi: Hemisphere) -> Path:
        return pial_surface_path(subjects_dir, subject, hemi)

    def reconstruct(self, nifti_path: Path, subjects_dir: Path, subject: str) -> StageResult:
        cmd = [self.executable, "-s", subject, "-i", str(nifti_path), "-all"]
        if self.threads:
            cmd += ["-threads", str(self.threads)]

        env = dict(os.environ)
        env["SUBJECTS_DIR"] = str(subjects_dir)

        return run_tool(
            "nifti_to_pial",
            cmd,
            env=env,
            expected_outputs=[
                self.pial_surface(subjects_dir, subject, hemi) for hemi in HEMISPHERES
            ],
        )


class MrisConvert(CommandTool):
    """FreeSurfer surface -> STL mesh (format picked by mris_convert from the suffix)."""

    default_executable = "mris_convert"
    hint = FREESURFER_HINT

    def to_stl(self, surface: Path, stl_path: Path, *, stage: str) -> StageResult:
        surface = Path(surface)
        if not surface.is_file():
            return StageResult.failure(stage, f"Surface file not found: {surface}")

        return run_tool(
            stage,
            [self.executable, str(surface), str(stl_path)],
            expected_outputs=[Path(stl_path)],
        )

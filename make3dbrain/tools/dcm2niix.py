from __future__ import annotations

from pathlib import Path

from ..core.results import StageResult
from .base import CommandTool
from .runner import run_tool


class Dcm2niix(CommandTool):
    """
    DICOM series -> single uncompressed NIFTI via dcm2niix.
    Output is <out_dir>/<name>.nii; no BIDS sidecar is written.
    """

    default_executable = "dcm2niix"
    hint = "install dcm2niix or load it first (e.g. `module load dcm2niix`)"

    def to_nifti(self, dicom_dir: Path, out_dir: Path, name: str) -> StageResult:
        out_dir = Path(out_dir)
        cmd = [
            self.executable,
            "-z", "n",
            "-b", "n",
            "-f", name,
            "-o", str(out_dir),
            str(dicom_dir),
        ]
        return run_tool(
            "dicom_to_nifti",
            cmd,
            expected_outputs=[out_dir / f"{name}.nii"],
        )

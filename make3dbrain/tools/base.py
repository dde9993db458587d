from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Optional, Protocol

from ..contracts.job import Hemisphere
from ..core.results import StageResult
from .runner import tool_available


class ExternalTool(Protocol):
    executable: str
    hint: str

    def available(self) -> bool: ...


class DicomConverter(ExternalTool, Protocol):
    def to_nifti(self, dicom_dir: Path, out_dir: Path, name: str) -> StageResult: ...


class SurfaceReconstructor(ExternalTool, Protocol):
    def reconstruct(
        self, nifti_path: Path, subjects_dir: Path, subject: str
    ) -> StageResult: ...

    def pial_surface(
        self, subjects_dir: Path, subject: str, hemi: Hemisphere
    ) -> Path: ...


class MeshConverter(ExternalTool, Protocol):
    def to_stl(self, surface: Path, stl_path: Path, *, stage: str) -> StageResult: ...


class Notifier(ExternalTool, Protocol):
    def send(
        self, recipient: str, subject: str, body: str, cc: Optional[str] = None
    ) -> StageResult: ...


class CommandTool:
    """Shared base for wrappers around a single executable on PATH."""

    default_executable: ClassVar[str] = ""
    hint: str = "make sure it is installed and on PATH"

    def __init__(self, executable: Optional[str] = None) -> None:
        self.executable = executable or self.default_executable

    def available(self) -> bool:
        return tool_available(self.executable)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(executable={self.executable!r})"

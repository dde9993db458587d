from __future__ import annotations

import json
import logging
import shutil
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TextIO, Tuple

from ..contracts.job import HEMISPHERES, InputKind, JobParams, build_job_params
from ..core.config import Settings
from ..core.errors import TOOL_NOT_FOUND, WORKSPACE_ERROR, UserFacingError
from ..core.results import StageResult
from ..services.notification_service import NotificationService
from ..tools.base import (
    DicomConverter,
    ExternalTool,
    MeshConverter,
    Notifier,
    SurfaceReconstructor,
)
from ..tools.dcm2niix import Dcm2niix
from ..tools.freesurfer import MrisConvert, ReconAll
from ..tools.mail import MailCommand
from .classify import classify_input

logger = logging.getLogger(__name__)

REPORT_NAME = "job_report.json"

Step = Tuple[str, Callable[[], StageResult]]


@dataclass
class JobResult:
    job: JobParams
    kind: InputKind
    stages: List[StageResult] = field(default_factory=list)
    notified: bool = False

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.stages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": str(self.job.input_path),
            "dest": str(self.job.dest_dir),
            "filename": self.job.filename,
            "email": self.job.email,
            "kind": self.kind.value,
            "ok": self.ok,
            "notified": self.notified,
            "stl": [str(p) for p in self.job.stl_paths],
            "stages": [s.to_dict() for s in self.stages],
        }


class PipelineOrchestrator:
    """
    Drives one job: validate -> classify -> preflight -> stages -> notify.

    Stages run strictly in order and the job halts on the first failed
    StageResult with UserFacingError(STAGE_FAILED). External programs are
    reached only through the injected capabilities, so tests can pass fakes.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        dicom_converter: Optional[DicomConverter] = None,
        reconstructor: Optional[SurfaceReconstructor] = None,
        mesh_converter: Optional[MeshConverter] = None,
        notifier: Optional[Notifier] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._settings = settings or Settings.from_env()
        self._dicom = dicom_converter or Dcm2niix()
        self._recon = reconstructor or ReconAll()
        self._mesh = mesh_converter or MrisConvert()
        self._notifications = NotificationService(
            self._settings,
            notifier=notifier or MailCommand(self._settings.mail_command),
            stream=stream,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    # --- validation / classification ---

    def validate_input(
        self,
        input_path: str | Path,
        dest_dir: str | Path,
        filename: str,
        email: Optional[str] = None,
    ) -> JobParams:
        return build_job_params(input_path, dest_dir, filename, email)

    def classify(self, job: JobParams) -> InputKind:
        kind = classify_input(job.input_path)
        logger.info("Input %s classified as %s", job.input_path, kind.value)
        return kind

    # --- preflight ---

    def required_tools(self, kind: InputKind, job: JobParams) -> List[ExternalTool]:
        tools: List[ExternalTool] = []
        if kind is InputKind.DICOM:
            tools.append(self._dicom)
        if kind in (InputKind.DICOM, InputKind.NIFTI):
            tools.append(self._recon)
        tools.append(self._mesh)
        if job.email and self._notifications.notifier is not None:
            tools.append(self._notifications.notifier)
        return tools

    def preflight(self, kind: InputKind, job: JobParams) -> None:
        missing = [t for t in self.required_tools(kind, job) if not t.available()]
        if not missing:
            return

        lines = [f"{t.executable} not found on PATH; {t.hint}" for t in missing]
        raise UserFacingError(
            code=TOOL_NOT_FOUND,
            stage="preflight",
            message="Required tool missing:\n  " + "\n  ".join(lines),
            details={"missing": [t.executable for t in missing]},
        )

    # --- workspace ---

    def prepare_workspace(self, job: JobParams) -> Path:
        """Create destination and scratch dirs (idempotent). Returns SUBJECTS_DIR."""
        subjects_dir = self._settings.scratch_dir(job.filename)
        for d in (job.dest_dir, subjects_dir):
            try:
                d.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise UserFacingError(
                    code=WORKSPACE_ERROR,
                    stage="workspace",
                    message=f"Cannot create directory {d}: {e.strerror or e}",
                    details={"path": str(d)},
                ) from e
        return subjects_dir

    # --- stages ---

    def _copy_nifti(self, job: JobParams) -> StageResult:
        t0 = time.perf_counter()
        src = job.input_path
        dst = job.nifti_path
        try:
            if src.resolve() != dst.resolve():
                shutil.copyfile(src, dst)
        except OSError as e:
            return StageResult.failure(
                "copy_nifti",
                f"Cannot copy {src} -> {dst}: {e}",
                elapsed_s=time.perf_counter() - t0,
            )
        return StageResult.success(
            "copy_nifti", outputs=(dst,), elapsed_s=time.perf_counter() - t0
        )

    def _stl_steps(self, job: JobParams, surfaces: Dict[str, Path]) -> List[Step]:
        steps: List[Step] = []
        for hemi in HEMISPHERES:
            stage = f"pial_to_stl_{hemi}"
            steps.append(
                (stage, partial(self._mesh.to_stl, surfaces[hemi], job.stl_path(hemi), stage=stage))
            )
        return steps

    def plan(self, kind: InputKind, job: JobParams, subjects_dir: Path) -> List[Step]:
        if kind is InputKind.PIAL:
            surfaces = {hemi: job.input_path / f"{hemi}.pial" for hemi in HEMISPHERES}
            return self._stl_steps(job, surfaces)

        steps: List[Step] = []
        if kind is InputKind.DICOM:
            steps.append(
                (
                    "dicom_to_nifti",
                    lambda: self._dicom.to_nifti(job.input_path, job.dest_dir, job.filename),
                )
            )
        else:
            steps.append(("copy_nifti", lambda: self._copy_nifti(job)))

        steps.append(
            (
                "nifti_to_pial",
                lambda: self._recon.reconstruct(job.nifti_path, subjects_dir, job.filename),
            )
        )
        surfaces = {
            hemi: self._recon.pial_surface(subjects_dir, job.filename, hemi)
            for hemi in HEMISPHERES
        }
        steps.extend(self._stl_steps(job, surfaces))
        return steps

    def _write_report(self, subjects_dir: Path, result: JobResult) -> Path:
        p = subjects_dir / REPORT_NAME
        try:
            p.write_text(
                json.dumps(result.to_dict(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise UserFacingError(
                code=WORKSPACE_ERROR,
                stage="workspace",
                message=f"Cannot write job report {p}: {e.strerror or e}",
                details={"path": str(p)},
            ) from e
        return p

    def _fail(self, subjects_dir: Path, result: JobResult, stage: StageResult) -> UserFacingError:
        report = self._write_report(subjects_dir, result)
        logger.debug("Job report: %s", report)
        return UserFacingError.stage_failed(stage, report=str(report))

    # --- main entry ---

    def execute(self, job: JobParams) -> JobResult:
        kind = self.classify(job)
        self.preflight(kind, job)
        subjects_dir = self.prepare_workspace(job)

        result = JobResult(job=job, kind=kind)
        for name, step in self.plan(kind, job, subjects_dir):
            logger.info("Stage %s: started", name)
            stage = step()
            result.stages.append(stage)
            if not stage.ok:
                raise self._fail(subjects_dir, result, stage)
            logger.info("Stage %s: done in %.1fs", name, stage.elapsed_s)

        notice = self._notifications.deliver(job)
        result.stages.append(notice)
        if not notice.ok:
            raise self._fail(subjects_dir, result, notice)
        result.notified = bool(job.email)

        self._write_report(subjects_dir, result)
        return result

    def run(
        self,
        input_path: str | Path,
        dest_dir: str | Path,
        filename: str,
        email: Optional[str] = None,
    ) -> JobResult:
        return self.execute(self.validate_input(input_path, dest_dir, filename, email))

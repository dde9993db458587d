from __future__ import annotations

import io
import stat
import sys
from pathlib import Path
from typing import Callable

import pytest


def pytest_sessionstart(session):
    """
    Make sure the repo root (where the make3dbrain/ package lives) is on
    sys.path, even if pytest is started from somewhere else.
    """
    repo_dir = Path(__file__).resolve().parents[1]
    p = str(repo_dir)
    if p not in sys.path:
        sys.path.insert(0, p)


# ----------------------------
# Fake capabilities
# ----------------------------

class FakeTool:
    def __init__(self, executable: str, *, available: bool = True, fail: bool = False) -> None:
        self.executable = executable
        self.hint = f"install {executable}"
        self._available = available
        self.fail = fail
        self.calls: list = []

    def available(self) -> bool:
        return self._available


class FakeDicomConverter(FakeTool):
    def __init__(self, **kw) -> None:
        super().__init__("dcm2niix", **kw)

    def to_nifti(self, dicom_dir, out_dir, name):
        from make3dbrain.core.results import StageResult

        self.calls.append((dicom_dir, out_dir, name))
        if self.fail:
            return StageResult.failure("dicom_to_nifti", "dcm2niix exited with code 1: bad series")
        out = Path(out_dir) / f"{name}.nii"
        out.write_bytes(b"nifti")
        return StageResult.success("dicom_to_nifti", outputs=(out,))


class FakeReconstructor(FakeTool):
    def __init__(self, **kw) -> None:
        super().__init__("recon-all", **kw)

    def pial_surface(self, subjects_dir, subject, hemi):
        from make3dbrain.tools.freesurfer import pial_surface_path

        return pial_surface_path(subjects_dir, subject, hemi)

    def reconstruct(self, nifti_path, subjects_dir, subject):
        from make3dbrain.core.results import StageResult

        self.calls.append((nifti_path, subjects_dir, subject))
        if self.fail:
            return StageResult.failure("nifti_to_pial", "recon-all exited with code 1: ERROR")
        outs = []
        for hemi in ("lh", "rh"):
            p = self.pial_surface(subjects_dir, subject, hemi)
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(b"surface")
            outs.append(p)
        return StageResult.success("nifti_to_pial", outputs=tuple(outs))


class FakeMeshConverter(FakeTool):
    def __init__(self, **kw) -> None:
        super().__init__("mris_convert", **kw)

    def to_stl(self, surface, stl_path, *, stage):
        from make3dbrain.core.results import StageResult

        self.calls.append((Path(surface), Path(stl_path)))
        if self.fail:
            return StageResult.failure(stage, "mris_convert exited with code 1")
        if not Path(surface).is_file():
            return StageResult.failure(stage, f"Surface file not found: {surface}")
        Path(stl_path).write_text("solid fake\nendsolid fake\n", encoding="utf-8")
        return StageResult.success(stage, outputs=(Path(stl_path),))


class FakeNotifier(FakeTool):
    def __init__(self, **kw) -> None:
        super().__init__("mail", **kw)

    def send(self, recipient, subject, body, cc=None):
        from make3dbrain.core.results import StageResult

        self.calls.append({"recipient": recipient, "subject": subject, "body": body, "cc": cc})
        if self.fail:
            return StageResult.failure("notify", "mail exited with code 1")
        return StageResult.success("notify")


# ----------------------------
# Fixtures
# ----------------------------

@pytest.fixture
def settings(tmp_path: Path):
    from make3dbrain.core.config import Settings

    return Settings(
        admin_email="admin@kumc.edu",
        institution_domain="kumc.edu",
        scratch_root=tmp_path / ".scratch",
    )


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Destination directory; deliberately NOT created up front."""
    return tmp_path / "out"


@pytest.fixture
def pial_dir(tmp_path: Path) -> Path:
    d = tmp_path / "pial_input"
    d.mkdir()
    (d / "lh.pial").write_bytes(b"lh surface")
    (d / "rh.pial").write_bytes(b"rh surface")
    return d


@pytest.fixture
def dicom_dir(tmp_path: Path) -> Path:
    d = tmp_path / "dicom_input"
    d.mkdir()
    for i in range(3):
        (d / f"IM{i:04d}.dcm").write_bytes(b"DICM")
    return d


@pytest.fixture
def nifti_file(tmp_path: Path) -> Path:
    p = tmp_path / "t1.nii"
    p.write_bytes(b"nifti volume")
    return p


@pytest.fixture
def fakes() -> dict:
    return {
        "dicom_converter": FakeDicomConverter(),
        "reconstructor": FakeReconstructor(),
        "mesh_converter": FakeMeshConverter(),
        "notifier": FakeNotifier(),
    }


@pytest.fixture
def stdout_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def make_orchestrator(settings, fakes, stdout_buffer):
    from make3dbrain.pipeline.orchestrator import PipelineOrchestrator

    def _make(**overrides) -> PipelineOrchestrator:
        kw = dict(fakes)
        kw.update(overrides)
        return PipelineOrchestrator(settings, stream=stdout_buffer, **kw)

    return _make


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch) -> Callable[[str, str], Path]:
    """
    Directory that replaces PATH; returns a factory writing /bin/sh stand-ins
    for external programs into it.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))

    def _write(name: str, body: str) -> Path:
        p = bin_dir / name
        p.write_text("#!/bin/sh\nPATH=/usr/bin:/bin\n" + body + "\n", encoding="utf-8")
        p.chmod(p.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return p

    return _write


@pytest.fixture
def fake_mris_convert(fake_bin, tmp_path: Path) -> Path:
    """mris_convert stand-in: logs its argv and writes a tiny STL."""
    log = tmp_path / "mris_convert.log"
    fake_bin(
        "mris_convert",
        f'echo "$1 $2" >> "{log}"\n'
        'printf "solid %s\\nendsolid\\n" "$1" > "$2"',
    )
    return log


@pytest.fixture
def fake_mail(fake_bin, tmp_path: Path) -> Path:
    """mail stand-in: records argv and the body read from stdin."""
    args_log = tmp_path / "mail.args"
    body_log = tmp_path / "mail.body"
    fake_bin(
        "mail",
        f'for a in "$@"; do echo "$a" >> "{args_log}"; done\n'
        f'cat > "{body_log}"',
    )
    return args_log

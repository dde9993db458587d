from __future__ import annotations

import argparse
import logging
import sys
from typing import NoReturn, Optional, Sequence

from .core.config import Settings
from .core.errors import UserFacingError
from .pipeline.orchestrator import PipelineOrchestrator
from .tools.dcm2niix import Dcm2niix
from .tools.freesurfer import MrisConvert, ReconAll
from .tools.mail import MailCommand

logger = logging.getLogger(__name__)

DESCRIPTION = """\
Convert brain imaging data into 3D-printable STL meshes of the left and
right cerebral hemispheres.

<input> may be:
  - a directory of DICOM files (*.dcm): dcm2niix -> recon-all -> mris_convert
  - a directory with lh.pial / rh.pial:  mris_convert only
  - a NIFTI volume (*.nii):              recon-all -> mris_convert

Results are written to <dest>/<filename>_lh.stl and <dest>/<filename>_rh.stl.
Surface reconstruction takes several hours.
"""

EPILOG = """\
environment:
  MAKE3DBRAIN_ADMIN_EMAIL         admin copy for recipients outside the institution
  MAKE3DBRAIN_INSTITUTION_DOMAIN  institutional mail domain (default kumc.edu)
  MAKE3DBRAIN_SCRATCH_ROOT        FreeSurfer scratch root (default ~/.make3dbrain)
  MAKE3DBRAIN_MAIL_COMMAND        mail agent (default mail)
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with 1, like every other precondition failure."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1: {value!r}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="make3dbrain",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", help="DICOM directory, pial directory or .nii file")
    parser.add_argument("dest", help="destination directory for the NIFTI and STL files")
    parser.add_argument("filename", help="base name for the output files")
    parser.add_argument(
        "email",
        nargs="?",
        default=None,
        help="optional address to notify when the meshes are ready",
    )
    parser.add_argument(
        "--threads",
        type=_positive_int,
        default=None,
        help="threads for recon-all (passed as -threads N)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def configure_logging(verbose: bool = False) -> None:
    """One stderr handler on the package logger; repeated calls replace it."""
    pkg_logger = logging.getLogger("make3dbrain")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_orchestrator(
    settings: Optional[Settings] = None, *, threads: Optional[int] = None
) -> PipelineOrchestrator:
    settings = settings or Settings.from_env()
    return PipelineOrchestrator(
        settings,
        dicom_converter=Dcm2niix(),
        reconstructor=ReconAll(threads=threads),
        mesh_converter=MrisConvert(),
        notifier=MailCommand(settings.mail_command),
    )


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    orchestrator: Optional[PipelineOrchestrator] = None,
) -> int:
    """
    make3dbrain [-h|--help] <input> <dest> <filename> [email]

    Returns the process exit code: 0 when both STL files were produced (and
    the notice went out), 1 on any validation, preflight or stage failure.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    if "-h" in argv or "--help" in argv:
        # help wins over any other argument, valid or not
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if orchestrator is None:
            orchestrator = build_orchestrator(threads=args.threads)
        job = orchestrator.validate_input(args.input, args.dest, args.filename, args.email)
        result = orchestrator.execute(job)
    except UserFacingError as e:
        logger.error("%s", e.message)
        return 1

    lh, rh = result.job.stl_paths
    logger.info("Done: %s, %s", lh, rh)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

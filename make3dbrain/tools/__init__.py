"""
Tools - wrappers around the external programs the pipeline drives.

Nothing here reimplements imaging work; each wrapper builds a command line,
runs it to completion and reports a StageResult.

Components:
- dcm2niix: DICOM series -> NIFTI
- freesurfer: recon-all (NIFTI -> pial surfaces), mris_convert (pial -> STL)
- mail: completion notice through the local mail agent
"""

from .base import (
    CommandTool,
    DicomConverter,
    ExternalTool,
    MeshConverter,
    Notifier,
    SurfaceReconstructor,
)
from .dcm2niix import Dcm2niix
from .freesurfer import MrisConvert, ReconAll, pial_surface_path
from .mail import MailCommand
from .runner import run_tool, tool_available

__all__ = [
    # capabilities
    "ExternalTool",
    "DicomConverter",
    "SurfaceReconstructor",
    "MeshConverter",
    "Notifier",
    # implementations
    "CommandTool",
    "Dcm2niix",
    "ReconAll",
    "MrisConvert",
    "MailCommand",
    "pial_surface_path",
    # helpers
    "run_tool",
    "tool_available",
]

"""
Pipeline - input classification and stage orchestration.

Components:
- classify: decide DICOM / pial / NIFTI path from the input's shape
- orchestrator: preflight, run the stages in order, halt on first failure
"""

from .classify import classify_input
from .orchestrator import JobResult, PipelineOrchestrator

__all__ = [
    "classify_input",
    "JobResult",
    "PipelineOrchestrator",
]

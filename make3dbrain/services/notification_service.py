# make3dbrain/services/notification_service.py

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional, TextIO

from ..contracts.job import JobParams
from ..core.config import Settings
from ..core.results import StageResult
from ..tools.base import Notifier

logger = logging.getLogger(__name__)

SUBJECT = "Your 3D brain is ready"

INSTRUCTIONS = """\
Your 3D brain surfaces are ready:

  left hemisphere:  {lh}
  right hemisphere: {rh}

Before printing, clean up each hemisphere in MeshLab (https://www.meshlab.net):

  1. File > Import Mesh, and open the STL file.
  2. Filters > Remeshing, Simplification and Reconstruction >
     Simplification: Quadric Edge Collapse Decimation.
     Set "Target number of faces" to about 300000 and apply.
  3. Filters > Smoothing, Fairing and Deformation > Laplacian Smooth,
     3 smoothing steps.
  4. File > Export Mesh As..., and save as STL (binary).

Repeat for the other hemisphere. Print each hemisphere separately, lying on
its medial surface, with supports enabled in your slicer.
"""


@dataclass(frozen=True)
class Notice:
    recipient: str
    subject: str
    body: str
    cc: Optional[str] = None


class NotificationService:
    """
    Completion notice for a finished job.

    - with an email: send through the mail agent, copying the admin address
      when the recipient is outside the institutional domain
    - without one: print the same instructions to stdout
    """

    def __init__(
        self,
        settings: Settings,
        notifier: Optional[Notifier] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._settings = settings
        self._notifier = notifier
        self._stream = stream

    @property
    def notifier(self) -> Optional[Notifier]:
        return self._notifier

    def needs_admin_copy(self, job: JobParams) -> bool:
        domain = job.email_domain
        if domain is None:
            return False
        home = self._settings.institution_domain
        return not (domain == home or domain.endswith("." + home))

    def instructions(self, job: JobParams) -> str:
        lh, rh = job.stl_paths
        return INSTRUCTIONS.format(lh=lh, rh=rh)

    def compose(self, job: JobParams) -> Notice:
        if not job.email:
            raise ValueError("compose() needs a job with an email address")
        cc = self._settings.admin_email if self.needs_admin_copy(job) else None
        return Notice(
            recipient=job.email,
            subject=SUBJECT,
            body=self.instructions(job),
            cc=cc,
        )

    def deliver(self, job: JobParams) -> StageResult:
        if not job.email:
            stream = self._stream or sys.stdout
            print(self.instructions(job), file=stream)
            return StageResult.success("notify", detail="instructions printed to stdout")

        if self._notifier is None:
            return StageResult.failure("notify", "No mail agent configured")

        notice = self.compose(job)
        if notice.cc:
            logger.info("Mailing %s (cc %s)", notice.recipient, notice.cc)
        else:
            logger.info("Mailing %s", notice.recipient)
        return self._notifier.send(
            notice.recipient, notice.subject, notice.body, cc=notice.cc
        )

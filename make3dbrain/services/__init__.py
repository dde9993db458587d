"""
Services layer - completion reporting around the pipeline.

Keeps user-facing messaging (mail routing, printed instructions) out of the
orchestrator itself.
"""

from .notification_service import Notice, NotificationService

__all__ = [
    "Notice",
    "NotificationService",
]

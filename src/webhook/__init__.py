"""Admission webhook boundary for the pod security defaults engine."""

from .review import review_admission
from .settings import WebhookSettings

__all__ = ["WebhookSettings", "review_admission"]

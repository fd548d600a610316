"""Admission package computing pod security default patches."""

from .containers import default_containers
from .models import ContainerSecurityView, PatchOperation, PodSecurityView, PostureConflict
from .policy import Decision, decide, evaluate
from .view import ViewDecodeError, pod_view_from_manifest

__all__ = [
    "ContainerSecurityView",
    "Decision",
    "PatchOperation",
    "PodSecurityView",
    "PostureConflict",
    "ViewDecodeError",
    "decide",
    "default_containers",
    "evaluate",
    "pod_view_from_manifest",
]

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


class PostureConflict(Exception):
    """Raised when an explicit pod posture contradicts itself."""

    def __init__(self, run_as_non_root: bool, run_as_user: int) -> None:
        self.run_as_non_root = run_as_non_root
        self.run_as_user = run_as_user
        super().__init__(
            f"runAsNonRoot={str(run_as_non_root).lower()} specified, "
            f"but runAsUser set to {run_as_user} (the root user)"
        )


@dataclass(frozen=True)
class ContainerSecurityView:
    has_security_context: bool = False
    allow_privilege_escalation: Optional[bool] = None
    capabilities: Optional[Dict[str, Any]] = None
    seccomp_profile: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PodSecurityView:
    run_as_non_root: Optional[bool] = None
    run_as_user: Optional[int] = None
    containers: Tuple[ContainerSecurityView, ...] = field(default_factory=tuple)
    init_containers: Tuple[ContainerSecurityView, ...] = field(default_factory=tuple)
    has_security_context: bool = False


@dataclass(frozen=True)
class PatchOperation:
    path: str
    value: Any
    op: str = "add"

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "path": self.path, "value": self.value}


__all__ = [
    "ContainerSecurityView",
    "PatchOperation",
    "PodSecurityView",
    "PostureConflict",
]

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .models import ContainerSecurityView, PatchOperation

CONTAINERS_PREFIX = "/spec/containers"
INIT_CONTAINERS_PREFIX = "/spec/initContainers"

RUNTIME_DEFAULT = "RuntimeDefault"


def drop_all_capabilities() -> Dict[str, Any]:
    return {"drop": ["ALL"]}


def runtime_default_seccomp() -> Dict[str, Any]:
    return {"type": RUNTIME_DEFAULT}


def default_security_context() -> Dict[str, Any]:
    return {
        "capabilities": drop_all_capabilities(),
        "allowPrivilegeEscalation": False,
        "seccompProfile": runtime_default_seccomp(),
    }


def default_containers(
    path_prefix: str, containers: Sequence[ContainerSecurityView]
) -> List[PatchOperation]:
    """Return add operations hardening every container under ``path_prefix``.

    Paths are positional: the container at index ``i`` of the input is
    addressed as ``<path_prefix>/<i>``. A container without any security
    context receives a single combined patch; otherwise each missing field is
    added separately and explicit values are left untouched.
    """

    patches: List[PatchOperation] = []
    for index, container in enumerate(containers):
        base = f"{path_prefix}/{index}/securityContext"
        if not container.has_security_context:
            patches.append(PatchOperation(path=base, value=default_security_context()))
            continue
        if container.allow_privilege_escalation is None:
            patches.append(PatchOperation(path=f"{base}/allowPrivilegeEscalation", value=False))
        # Only a wholly missing capabilities object is defaulted; a present
        # object without a drop list is respected.
        if container.capabilities is None:
            patches.append(PatchOperation(path=f"{base}/capabilities", value=drop_all_capabilities()))
        if container.seccomp_profile is None:
            patches.append(PatchOperation(path=f"{base}/seccompProfile", value=runtime_default_seccomp()))
    return patches


__all__ = [
    "CONTAINERS_PREFIX",
    "INIT_CONTAINERS_PREFIX",
    "RUNTIME_DEFAULT",
    "default_containers",
    "default_security_context",
]

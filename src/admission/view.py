from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from .models import ContainerSecurityView, PodSecurityView


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ViewDecodeError(ValueError):
    """Raised when a pod object cannot be projected into a security view."""


def pod_view_from_manifest(pod: Mapping[str, Any]) -> PodSecurityView:
    """Project a decoded Pod object into a ``PodSecurityView``."""

    if not isinstance(pod, Mapping):
        raise ViewDecodeError("pod object must be a mapping")
    spec = pod.get("spec")
    if spec is None:
        raise ViewDecodeError("spec is missing")
    if not isinstance(spec, Mapping):
        raise ViewDecodeError("spec must be a mapping")

    security = _optional_mapping(spec.get("securityContext"), "spec.securityContext")
    run_as_non_root: Optional[bool] = None
    run_as_user: Optional[int] = None
    if security is not None:
        run_as_non_root = _optional_bool(security.get("runAsNonRoot"), "spec.securityContext.runAsNonRoot")
        run_as_user = _optional_int(security.get("runAsUser"), "spec.securityContext.runAsUser")

    return PodSecurityView(
        run_as_non_root=run_as_non_root,
        run_as_user=run_as_user,
        containers=_container_views(spec.get("containers"), "containers"),
        init_containers=_container_views(spec.get("initContainers"), "initContainers"),
        has_security_context=security is not None,
    )


def _container_views(raw: Any, key: str) -> Tuple[ContainerSecurityView, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ViewDecodeError(f"spec.{key} must be a list")
    views = []
    for index, container in enumerate(raw):
        location = f"spec.{key}[{index}]"
        if not isinstance(container, Mapping):
            raise ViewDecodeError(f"{location} must be a mapping")
        security = _optional_mapping(container.get("securityContext"), f"{location}.securityContext")
        if security is None:
            views.append(ContainerSecurityView())
            continue
        views.append(
            ContainerSecurityView(
                has_security_context=True,
                allow_privilege_escalation=_optional_bool(
                    security.get("allowPrivilegeEscalation"),
                    f"{location}.securityContext.allowPrivilegeEscalation",
                ),
                capabilities=_optional_mapping(
                    security.get("capabilities"), f"{location}.securityContext.capabilities"
                ),
                seccomp_profile=_optional_mapping(
                    security.get("seccompProfile"), f"{location}.securityContext.seccompProfile"
                ),
            )
        )
    return tuple(views)


def _optional_mapping(value: Any, location: str) -> Optional[Mapping[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ViewDecodeError(f"{location} must be a mapping")
    return value


def _optional_bool(value: Any, location: str) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ViewDecodeError(f"{location} must be a boolean")
    return value


def _optional_int(value: Any, location: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ViewDecodeError(f"{location} must be an integer")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ViewDecodeError(f"{location} out of int64 range: {value}")
    return value


__all__ = ["ViewDecodeError", "pod_view_from_manifest"]

"""Pod-wide run-as-non-root / run-as-user posture evaluation."""

from __future__ import annotations

import enum
import random
from typing import Dict, List, Optional, Protocol, Tuple

from .containers import CONTAINERS_PREFIX, INIT_CONTAINERS_PREFIX, default_containers
from .models import PatchOperation, PodSecurityView, PostureConflict

POD_SECURITY_CONTEXT_PATH = "/spec/securityContext"

# Synthetic user ids stay well clear of system and service account UIDs.
MIN_DEFAULT_USER_ID = 1_000_000_000
MAX_DEFAULT_USER_ID = 1_000_999_998


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


class NonRootSetting(enum.Enum):
    UNSET = "unset"
    TRUE = "true"
    FALSE = "false"


class UserSetting(enum.Enum):
    UNSET = "unset"
    ZERO = "zero"
    NONZERO = "nonzero"


class Decision(enum.Enum):
    DEFAULT_BOTH = "default-both"
    DEFAULT_NON_ROOT_ONLY = "default-non-root-only"
    NOOP = "noop"
    REJECT = "reject"


_DECISIONS: Dict[Tuple[NonRootSetting, UserSetting], Decision] = {
    (NonRootSetting.UNSET, UserSetting.UNSET): Decision.DEFAULT_BOTH,
    (NonRootSetting.UNSET, UserSetting.ZERO): Decision.DEFAULT_NON_ROOT_ONLY,
    (NonRootSetting.UNSET, UserSetting.NONZERO): Decision.DEFAULT_NON_ROOT_ONLY,
    (NonRootSetting.TRUE, UserSetting.UNSET): Decision.NOOP,
    (NonRootSetting.TRUE, UserSetting.ZERO): Decision.REJECT,
    (NonRootSetting.TRUE, UserSetting.NONZERO): Decision.NOOP,
    (NonRootSetting.FALSE, UserSetting.UNSET): Decision.NOOP,
    (NonRootSetting.FALSE, UserSetting.ZERO): Decision.NOOP,
    (NonRootSetting.FALSE, UserSetting.NONZERO): Decision.NOOP,
}

_SYSTEM_RANDOM = random.SystemRandom()


def classify_non_root(value: Optional[bool]) -> NonRootSetting:
    if value is None:
        return NonRootSetting.UNSET
    return NonRootSetting.TRUE if value else NonRootSetting.FALSE


def classify_user(value: Optional[int]) -> UserSetting:
    if value is None:
        return UserSetting.UNSET
    return UserSetting.ZERO if value == 0 else UserSetting.NONZERO


def decide(view: PodSecurityView) -> Decision:
    """Map the pod's explicit posture onto the decision table."""

    key = (classify_non_root(view.run_as_non_root), classify_user(view.run_as_user))
    return _DECISIONS[key]


def random_user_id(rng: RandomSource) -> int:
    return rng.randint(MIN_DEFAULT_USER_ID, MAX_DEFAULT_USER_ID)


def posture_patches(view: PodSecurityView, rng: RandomSource) -> List[PatchOperation]:
    """Return the pod-wide patches, raising ``PostureConflict`` on a contradiction."""

    decision = decide(view)
    if decision is Decision.REJECT:
        raise PostureConflict(bool(view.run_as_non_root), int(view.run_as_user or 0))
    if decision is Decision.NOOP:
        return []

    patches: List[PatchOperation] = []
    if not view.has_security_context:
        patches.append(PatchOperation(path=POD_SECURITY_CONTEXT_PATH, value={}))
    # Never default to non-root while the explicit user is root.
    non_root = classify_user(view.run_as_user) is not UserSetting.ZERO
    patches.append(PatchOperation(path=f"{POD_SECURITY_CONTEXT_PATH}/runAsNonRoot", value=non_root))
    if decision is Decision.DEFAULT_BOTH:
        patches.append(
            PatchOperation(path=f"{POD_SECURITY_CONTEXT_PATH}/runAsUser", value=random_user_id(rng))
        )
    return patches


def evaluate(view: PodSecurityView, rng: Optional[RandomSource] = None) -> List[PatchOperation]:
    """Evaluate a pod and return the patches that apply the security baseline.

    Pod-wide patches come first, followed by the patches for regular
    containers and then init containers. Raises ``PostureConflict`` when
    ``runAsNonRoot=true`` is paired with ``runAsUser=0``; in that case no
    container is evaluated.
    """

    source = rng if rng is not None else _SYSTEM_RANDOM
    patches = posture_patches(view, source)
    patches.extend(default_containers(CONTAINERS_PREFIX, view.containers))
    patches.extend(default_containers(INIT_CONTAINERS_PREFIX, view.init_containers))
    return patches


__all__ = [
    "Decision",
    "MAX_DEFAULT_USER_ID",
    "MIN_DEFAULT_USER_ID",
    "NonRootSetting",
    "RandomSource",
    "UserSetting",
    "decide",
    "evaluate",
    "posture_patches",
]

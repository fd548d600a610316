"""Translate AdmissionReview requests into admission responses."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from src.admission.models import PostureConflict
from src.admission.policy import RandomSource, evaluate
from src.admission.view import ViewDecodeError, pod_view_from_manifest
from src.common.jsonpatch_guard import encode_patch

from .settings import WebhookSettings

logger = logging.getLogger(__name__)

POD_RESOURCE = {"group": "", "version": "v1", "resource": "pods"}


def is_pod_resource(resource: Any) -> bool:
    if not isinstance(resource, Mapping):
        return False
    return all((resource.get(key) or "") == value for key, value in POD_RESOURCE.items())


def _allow(uid: str) -> Dict[str, Any]:
    return {"uid": uid, "allowed": True}


def _deny(uid: str, message: str, code: int) -> Dict[str, Any]:
    return {"uid": uid, "allowed": False, "status": {"code": code, "message": message}}


def review_admission(
    request: Mapping[str, Any],
    *,
    settings: WebhookSettings,
    rng: Optional[RandomSource] = None,
) -> Dict[str, Any]:
    """Return the ``response`` section answering an AdmissionReview ``request``.

    Non-pod resources and ignored namespaces pass through unchanged. A pod
    that cannot be decoded is denied, as is a pod whose explicit posture
    conflicts. Otherwise the request is allowed with the computed JSON patch.
    """

    uid = str(request.get("uid") or "")
    resource = request.get("resource")
    if not is_pod_resource(resource):
        logger.warning("uid=%s expected resource %s, got %s; passing through", uid, POD_RESOURCE, resource)
        return _allow(uid)

    namespace = request.get("namespace")
    if namespace in settings.ignored_namespaces:
        logger.debug("uid=%s namespace %s is ignored; passing through", uid, namespace)
        return _allow(uid)

    pod = request.get("object")
    if pod is None:
        logger.warning("uid=%s admission request carries no object", uid)
        return _deny(uid, "could not deserialize pod object: object missing", 400)
    try:
        view = pod_view_from_manifest(pod)
    except ViewDecodeError as exc:
        logger.warning("uid=%s could not deserialize pod object: %s", uid, exc)
        return _deny(uid, f"could not deserialize pod object: {exc}", 400)

    try:
        patches = evaluate(view, rng)
    except PostureConflict as exc:
        logger.info("uid=%s rejected pod in namespace %s: %s", uid, namespace, exc)
        return _deny(uid, str(exc), 403)

    response = _allow(uid)
    if patches:
        response["patchType"] = "JSONPatch"
        response["patch"] = encode_patch(patches)
    logger.debug("uid=%s admitted pod with %d patch operation(s)", uid, len(patches))
    return response


__all__ = ["POD_RESOURCE", "is_pod_resource", "review_admission"]

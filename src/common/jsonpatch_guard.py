from __future__ import annotations

import base64
import json
from typing import Any, Dict, Iterable, List

import jsonpatch

from src.admission.models import PatchOperation


class PatchError(Exception):
    """Raised when a patch document cannot be applied to a manifest."""


def patch_document(patch_ops: Iterable[PatchOperation]) -> List[Dict[str, Any]]:
    return [op.to_dict() for op in patch_ops]


def encode_patch(patch_ops: Iterable[PatchOperation]) -> str:
    """Render the operations as a base64 encoded RFC 6902 document."""

    payload = json.dumps(patch_document(patch_ops)).encode("utf-8")
    return base64.b64encode(payload).decode("ascii")


def apply_patches(manifest: Dict[str, Any], patch_ops: Iterable[PatchOperation]) -> Dict[str, Any]:
    document = patch_document(patch_ops)
    try:
        return jsonpatch.apply_patch(manifest, document, in_place=False)
    except (jsonpatch.JsonPatchException, jsonpatch.JsonPointerException) as exc:
        raise PatchError(f"bad path or conflict: {exc}") from exc


__all__ = ["PatchError", "apply_patches", "encode_patch", "patch_document"]

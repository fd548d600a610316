import base64
import json
import random
import unittest
from typing import Any, Dict

from src.webhook.review import review_admission
from src.webhook.settings import WebhookSettings

POD_RESOURCE = {"group": "", "version": "v1", "resource": "pods"}


def _request(obj: Any, **overrides: Any) -> Dict[str, Any]:
    request = {
        "uid": "705ab4f5-6393-11e8-b7cc-42010a800002",
        "kind": {"group": "", "version": "v1", "kind": "Pod"},
        "resource": POD_RESOURCE,
        "namespace": "default",
        "operation": "CREATE",
        "object": obj,
    }
    request.update(overrides)
    return request


def _decode(response: Dict[str, Any]):
    return json.loads(base64.b64decode(response["patch"]))


class ReviewAdmissionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = WebhookSettings()
        self.rng = random.Random(42)

    def test_allows_with_base64_patch(self) -> None:
        pod = {"spec": {"containers": [{"name": "app", "image": "nginx:1.25"}]}}
        response = review_admission(_request(pod), settings=self.settings, rng=self.rng)
        self.assertTrue(response["allowed"])
        self.assertEqual(response["uid"], "705ab4f5-6393-11e8-b7cc-42010a800002")
        self.assertEqual(response["patchType"], "JSONPatch")
        patch = _decode(response)
        self.assertEqual(
            [op["path"] for op in patch],
            [
                "/spec/securityContext",
                "/spec/securityContext/runAsNonRoot",
                "/spec/securityContext/runAsUser",
                "/spec/containers/0/securityContext",
            ],
        )
        self.assertTrue(all(op["op"] == "add" for op in patch))

    def test_allows_without_patch_when_nothing_to_default(self) -> None:
        pod = {
            "spec": {
                "securityContext": {"runAsNonRoot": False},
                "containers": [
                    {
                        "name": "app",
                        "securityContext": {
                            "allowPrivilegeEscalation": False,
                            "capabilities": {"drop": ["ALL"]},
                            "seccompProfile": {"type": "RuntimeDefault"},
                        },
                    }
                ],
            }
        }
        response = review_admission(_request(pod), settings=self.settings, rng=self.rng)
        self.assertEqual(response, {"uid": "705ab4f5-6393-11e8-b7cc-42010a800002", "allowed": True})

    def test_denies_conflicting_posture(self) -> None:
        pod = {
            "spec": {
                "securityContext": {"runAsNonRoot": True, "runAsUser": 0},
                "containers": [{"name": "app"}],
            }
        }
        response = review_admission(_request(pod), settings=self.settings, rng=self.rng)
        self.assertFalse(response["allowed"])
        self.assertNotIn("patch", response)
        self.assertEqual(response["status"]["code"], 403)
        self.assertIn("runAsUser set to 0", response["status"]["message"])

    def test_passes_through_other_resources(self) -> None:
        request = _request(
            {"spec": {"replicas": 1}},
            resource={"group": "apps", "version": "v1", "resource": "deployments"},
        )
        response = review_admission(request, settings=self.settings, rng=self.rng)
        self.assertEqual(response, {"uid": request["uid"], "allowed": True})

    def test_passes_through_ignored_namespaces(self) -> None:
        pod = {"spec": {"securityContext": {"runAsNonRoot": True, "runAsUser": 0}, "containers": []}}
        request = _request(pod, namespace="kube-system")
        response = review_admission(request, settings=self.settings, rng=self.rng)
        self.assertTrue(response["allowed"])
        self.assertNotIn("patch", response)

    def test_fails_closed_on_decode_error(self) -> None:
        pod = {"spec": {"containers": "not-a-list"}}
        response = review_admission(_request(pod), settings=self.settings, rng=self.rng)
        self.assertFalse(response["allowed"])
        self.assertEqual(response["status"]["code"], 400)
        self.assertIn("could not deserialize pod object", response["status"]["message"])

    def test_fails_closed_when_spec_missing(self) -> None:
        pod = {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "bare"}}
        response = review_admission(_request(pod), settings=self.settings, rng=self.rng)
        self.assertFalse(response["allowed"])
        self.assertNotIn("patch", response)
        self.assertIn("spec is missing", response["status"]["message"])

    def test_fails_closed_when_object_missing(self) -> None:
        response = review_admission(_request(None), settings=self.settings, rng=self.rng)
        self.assertFalse(response["allowed"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

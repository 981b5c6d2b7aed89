"""
Minimal models for Kubernetes AdmissionReview, Pod and NetworkAttachmentDefinition
used by this webhook. We intentionally parse only the fields we need and ignore
unknowns so that new Kubernetes fields don't break this app.

References:
- AdmissionReview request/response shape:
  https://kubernetes.io/docs/reference/access-authn-authz/extensible-admission-controllers/#request-and-response
- Pod (core/v1) API reference:
  https://kubernetes.io/docs/reference/generated/kubernetes-api/latest/#pod-v1-core
- NetworkAttachmentDefinition CRD:
  https://github.com/k8snetworkplumbingwg/multi-net-spec
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional


def _get(d: dict[str, Any], key: str, default):
    # Safe nested getter for dicts
    v = d.get(key)
    return v if isinstance(v, type(default)) else default


class ResourceMap(Mapping):
    """
    Ordered mapping of resource name -> quantity string.

    Keys keep the order they were first inserted in; assigning to an existing
    key keeps its position. Values are stored as strings so existing quantities
    are re-emitted with the encoding they arrived with.
    """

    def __init__(self, entries: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, str] = {}
        for key, value in (entries or {}).items():
            self._entries[str(key)] = value if isinstance(value, str) else str(value)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResourceMap):
            return list(self._entries.items()) == list(other._entries.items())
        if isinstance(other, Mapping):
            return self._entries == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ResourceMap({self._entries!r})"

    def set(self, key: str, quantity: str) -> None:
        self._entries[key] = quantity

    def copy(self) -> "ResourceMap":
        return ResourceMap(self._entries)

    def to_dict(self) -> dict[str, str]:
        return dict(self._entries)


@dataclass
class ContainerModel:
    name: str
    requests: ResourceMap
    limits: ResourceMap

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ContainerModel":
        resources = _get(d, "resources", {})
        return ContainerModel(
            name=_get(d, "name", ""),
            requests=ResourceMap(_get(resources, "requests", {})),
            limits=ResourceMap(_get(resources, "limits", {})),
        )


@dataclass
class PodModel:
    name: str
    namespace: str
    annotations: dict[str, str]
    containers: list[ContainerModel]

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PodModel":
        meta = _get(d, "metadata", {})
        spec = _get(d, "spec", {})
        containers = [
            ContainerModel.from_dict(c if isinstance(c, dict) else {})
            for c in _get(spec, "containers", [])
        ]
        return PodModel(
            name=_get(meta, "name", "") or _get(meta, "generateName", ""),
            namespace=_get(meta, "namespace", ""),
            annotations=_get(meta, "annotations", {}),
            containers=containers,
        )


@dataclass(frozen=True)
class NetworkReference:
    name: str
    namespace: str
    interface_request: str | None = None


@dataclass
class NetworkAttachmentDefinition:
    name: str
    namespace: str
    annotations: dict[str, str] = field(default_factory=dict)
    config: str = ""

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "NetworkAttachmentDefinition":
        meta = _get(d, "metadata", {})
        spec = _get(d, "spec", {})
        return NetworkAttachmentDefinition(
            name=_get(meta, "name", ""),
            namespace=_get(meta, "namespace", ""),
            annotations=_get(meta, "annotations", {}),
            config=_get(spec, "config", ""),
        )

    def resource_name(self, key: str) -> str | None:
        value = self.annotations.get(key)
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()


@dataclass
class AdmissionRequestModel:
    uid: str
    obj: Any
    namespace: str
    kind: str = ""
    operation: str = "CREATE"

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Optional["AdmissionRequestModel"]:
        if not isinstance(d, dict):
            return None
        uid = str(d.get("uid", ""))
        op = str(d.get("operation", "CREATE"))
        kind = _get(d, "kind", {})
        # Kept as sent; compute_patch rejects anything that is not a Pod object
        obj_raw = d.get("object")
        return AdmissionRequestModel(
            uid=uid,
            obj=obj_raw,
            namespace=_get(d, "namespace", ""),
            kind=_get(kind, "kind", ""),
            operation=op,
        )


@dataclass
class AdmissionReviewModel:
    request: AdmissionRequestModel
    api_version: str = "admission.k8s.io/v1"

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Optional["AdmissionReviewModel"]:
        if not isinstance(d, dict):
            return None
        req_raw = d.get("request")
        req = (
            AdmissionRequestModel.from_dict(req_raw)
            if isinstance(req_raw, dict)
            else None
        )
        if req is None:
            return None
        return AdmissionReviewModel(
            request=req,
            api_version=_get(d, "apiVersion", "") or "admission.k8s.io/v1",
        )

import base64
import json
import logging
from collections import Counter
from typing import Any

from kubernetes.utils import parse_quantity

from .config import Settings
from .errors import MalformedAnnotationError, MalformedObjectError, ResolutionError
from .lookup.interface import NetworkLookup
from .models import NetworkReference, PodModel, ResourceMap

log = logging.getLogger("network-resources-injector")

STANDARD_RESOURCES = ("cpu", "memory", "ephemeral-storage", "storage")
UNIT_QUANTITY = "1"


def validate_kubernetes_name(name: Any, field_name: str = "name") -> tuple[bool, str | None]:
    """
    Validate a Kubernetes object name (network name, namespace):
    - Must be a non-empty string
    - Must be 253 characters or less (DNS subdomain limit)
    Returns (is_valid, error_message).
    """
    if name is None or name == "":
        return False, f"{field_name} cannot be empty or None"

    if not isinstance(name, str):
        return False, f"{field_name} must be a string, got: {type(name).__name__}"

    if len(name) > 253:
        return False, f"{field_name} must be 253 characters or less, got: {len(name)}"

    return True, None


def _reference(
    name: Any, namespace: Any, interface: Any, default_namespace: str
) -> NetworkReference:
    is_valid, error = validate_kubernetes_name(name, "network name")
    if not is_valid:
        raise MalformedAnnotationError(error)

    if namespace is None or namespace == "":
        namespace = default_namespace
    else:
        is_valid, error = validate_kubernetes_name(namespace, "network namespace")
        if not is_valid:
            raise MalformedAnnotationError(error)

    if interface is not None and not isinstance(interface, str):
        raise MalformedAnnotationError(
            f"interface must be a string, got: {type(interface).__name__}"
        )

    return NetworkReference(
        name=name, namespace=namespace, interface_request=interface or None
    )


def _parse_shorthand(raw: str, default_namespace: str) -> list[NetworkReference]:
    # <namespace>/<name>@<interface>, comma separated; namespace and interface optional
    refs = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            raise MalformedAnnotationError(f"empty network selection in {raw!r}")

        namespace = None
        if "/" in item:
            parts = item.split("/")
            if len(parts) != 2:
                raise MalformedAnnotationError(f"invalid network selection {item!r}")
            namespace, item = parts

        interface = None
        if "@" in item:
            parts = item.split("@")
            if len(parts) != 2:
                raise MalformedAnnotationError(f"invalid network selection {item!r}")
            item, interface = parts

        refs.append(_reference(item, namespace, interface, default_namespace))
    return refs


def parse_network_annotation(
    raw: str | None, default_namespace: str, allow_shorthand: bool = False
) -> list[NetworkReference]:
    """
    Decode the Pod's network attachment annotation into ordered NetworkReferences.

    The value is a JSON array of objects with a required "name" and optional
    "namespace" and "interface". With allow_shorthand, a value that is not a JSON
    array is read in the multus "ns/name@iface,..." form instead.
    An absent or blank annotation yields no references.
    """
    if raw is None:
        return []
    if not isinstance(raw, str):
        raise MalformedAnnotationError(
            f"network annotation must be a string, got: {type(raw).__name__}"
        )
    if not raw.strip():
        return []

    raw = raw.strip()
    if allow_shorthand and not raw.startswith("["):
        return _parse_shorthand(raw, default_namespace)

    try:
        selections = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise MalformedAnnotationError(f"network annotation is not valid JSON: {e}") from e

    if not isinstance(selections, list):
        raise MalformedAnnotationError("network annotation must be a JSON array")

    refs = []
    for selection in selections:
        if not isinstance(selection, dict):
            raise MalformedAnnotationError(
                f"network selection must be an object, got: {type(selection).__name__}"
            )
        refs.append(
            _reference(
                selection.get("name"),
                selection.get("namespace"),
                selection.get("interface"),
                default_namespace,
            )
        )
    return refs


def resolve_resource_name(
    lookup: NetworkLookup, ref: NetworkReference, resource_key: str
) -> str | None:
    """Return the hardware resource name of the referenced network, or None if it has none."""
    try:
        definition = lookup.get(ref.namespace, ref.name)
    except ResolutionError:
        raise
    except Exception as e:
        raise ResolutionError(
            f"failed to resolve network {ref.namespace}/{ref.name}: {e}"
        ) from e

    if definition is None:
        log.info(
            "Network %s/%s not found; no resource requested", ref.namespace, ref.name
        )
        return None

    resource_name = definition.resource_name(resource_key)
    if resource_name is None:
        log.info(
            "Network %s/%s has no %s annotation; no resource requested",
            ref.namespace,
            ref.name,
            resource_key,
        )
    return resource_name


def resolve_resource_names(
    lookup: NetworkLookup, refs: list[NetworkReference], resource_key: str
) -> list[str]:
    """Resolve every reference in order; duplicates are kept, each one is a unit."""
    # Memoized for this call only; definitions may change between requests
    resolved: dict[tuple[str, str], str | None] = {}
    names = []
    for ref in refs:
        log.debug(
            "Resolving network %s/%s (interface=%s)",
            ref.namespace,
            ref.name,
            ref.interface_request or "auto",
        )
        key = (ref.namespace, ref.name)
        if key not in resolved:
            resolved[key] = resolve_resource_name(lookup, ref, resource_key)
        if resolved[key] is not None:
            names.append(resolved[key])
    return names


def is_standard_resource(name: str) -> bool:
    return name in STANDARD_RESOURCES or name.startswith("hugepages-")


def _add_quantity(existing: str, count: int) -> str | None:
    try:
        total = parse_quantity(existing) + count
    except ValueError:
        return None
    if total == total.to_integral_value():
        return str(int(total))
    return str(total.normalize())


def merge_resources(
    existing: ResourceMap, identifiers: list[str], policy: str = "SET"
) -> ResourceMap:
    """
    Merge requested resource identifiers into a copy of a container resource map.

    Each occurrence of an identifier is one unit. Standard resources that are
    already set are left alone. For a hardware resource that is already set,
    "SET" replaces the quantity with this Pod's count and "SUM" adds the count to
    it. Existing keys keep their order; new keys follow in first-seen order.
    """
    merged = existing.copy()
    for name, count in Counter(identifiers).items():
        if name in merged:
            if is_standard_resource(name):
                continue
            if policy == "SUM":
                total = _add_quantity(merged[name], count)
                if total is not None:
                    merged.set(name, total)
                    continue
                log.warning(
                    "Cannot add to quantity %r of %s; overwriting", merged[name], name
                )
        merged.set(name, UNIT_QUANTITY if count == 1 else str(count))
    return merged


def build_resource_patch(
    pod: PodModel,
    identifiers: list[str],
    policy: str = "SET",
    container_scope: str = "ALL",
) -> list[dict[str, Any]]:
    """Produce the JSONPatch adding the resolved resources to each container's requests and limits."""
    if not identifiers:
        return []

    containers = pod.containers[:1] if container_scope == "FIRST" else pod.containers
    patch = []
    for i, container in enumerate(containers):
        for kind, current in (("requests", container.requests), ("limits", container.limits)):
            merged = merge_resources(current, identifiers, policy)
            if merged == current:
                continue
            log.debug("Container %r %s -> %s", container.name, kind, merged.to_dict())
            patch.append(
                {
                    "op": "add",
                    "path": f"/spec/containers/{i}/resources/{kind}",
                    "value": merged.to_dict(),
                }
            )
    return patch


def compute_patch(
    pod_json: dict[str, Any] | str | bytes,
    namespace: str,
    lookup: NetworkLookup,
    settings: Settings | None = None,
) -> list[dict[str, Any]]:
    """
    Compute the JSONPatch for a Pod: parse its networks, resolve their resources and
    merge them into every container. Either the whole patch is returned or an
    InjectorError is raised.
    """
    settings = settings or Settings()

    if isinstance(pod_json, (str, bytes)):
        try:
            pod_json = json.loads(pod_json)
        except (ValueError, RecursionError) as e:
            raise MalformedObjectError(f"pod is not valid JSON: {e}") from e
    if not isinstance(pod_json, dict):
        raise MalformedObjectError("pod must be a JSON object")

    pod = PodModel.from_dict(pod_json)
    ns = pod.namespace or namespace or "default"

    refs = parse_network_annotation(
        pod.annotations.get(settings.networks_annotation),
        ns,
        settings.allow_shorthand_networks,
    )
    if not refs:
        return []

    log.info("Pod %s/%s requests %d networks", ns, pod.name, len(refs))
    identifiers = resolve_resource_names(lookup, refs, settings.resource_name_annotation)
    patch = build_resource_patch(
        pod,
        identifiers,
        settings.resource_merge_policy,
        settings.container_scope,
    )
    log.info(
        "Pod %s/%s resources %s -> %d patch operations",
        ns,
        pod.name,
        identifiers,
        len(patch),
    )
    return patch


def make_admission_response(
    uid: str,
    allowed: bool = True,
    patch: list[dict[str, Any]] | None = None,
    message: str | None = None,
    warnings: list[str] | None = None,
    api_version: str = "admission.k8s.io/v1",
) -> dict[str, Any]:
    """Return the AdmissionReview the webhook sends to K8s to allow and optionally patch a Pod."""
    resp: dict[str, Any] = {"uid": uid, "allowed": allowed}

    if patch:
        resp["patchType"] = "JSONPatch"
        resp["patch"] = base64.b64encode(json.dumps(patch).encode()).decode()

    if message:
        resp["status"] = {"message": message}

    if warnings:
        resp["warnings"] = list(warnings)

    return {
        "apiVersion": api_version,
        "kind": "AdmissionReview",
        "response": resp,
    }

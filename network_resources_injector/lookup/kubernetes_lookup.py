import logging
from typing import Any

from kubernetes.client.exceptions import ApiException

from ..config import NAD_GROUP, NAD_PLURAL, NAD_VERSION
from ..errors import ResolutionError
from ..models import NetworkAttachmentDefinition
from .interface import NetworkLookup

log = logging.getLogger("network-resources-injector")


class KubernetesNetworkLookup(NetworkLookup):
    def __init__(self, custom_api: Any, timeout_seconds: int = 5) -> None:
        self._api = custom_api
        self._timeout_seconds = max(1, int(timeout_seconds))

    def get(self, namespace: str, name: str) -> NetworkAttachmentDefinition | None:
        try:
            obj = self._api.get_namespaced_custom_object(
                NAD_GROUP,
                NAD_VERSION,
                namespace,
                NAD_PLURAL,
                name,
                _request_timeout=self._timeout_seconds,
            )
        except ApiException as e:
            if e.status == 404:
                log.info(
                    "NetworkAttachmentDefinition %s/%s not found", namespace, name
                )
                return None
            raise ResolutionError(
                f"failed to get NetworkAttachmentDefinition {namespace}/{name}: "
                f"{e.status} {e.reason}"
            ) from e
        except Exception as e:
            # Connection errors and read timeouts from the underlying urllib3 pool
            raise ResolutionError(
                f"failed to get NetworkAttachmentDefinition {namespace}/{name}: {e}"
            ) from e

        if not isinstance(obj, dict):
            raise ResolutionError(
                f"unexpected response for NetworkAttachmentDefinition {namespace}/{name}"
            )
        return NetworkAttachmentDefinition.from_dict(obj)

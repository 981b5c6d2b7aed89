import os
from dataclasses import dataclass
from typing import Literal

FailurePolicy = Literal["FAIL_CLOSED", "FAIL_OPEN"]
MergePolicy = Literal["SET", "SUM"]
ContainerScope = Literal["ALL", "FIRST"]

# Wire contract with multus and the NetworkAttachmentDefinition CRD
NETWORKS_ANNOTATION = "k8s.v1.cni.cncf.io/networks"
RESOURCE_NAME_ANNOTATION = "k8s.v1.cni.cncf.io/resourceName"
NAD_GROUP = "k8s.cni.cncf.io"
NAD_VERSION = "v1"
NAD_PLURAL = "network-attachment-definitions"


def _get_env(name: str, default: str) -> str:
    val = os.getenv(name)
    return val if val is not None and val != "" else default


def _parse_int(name: str, default: int) -> int:
    val = _get_env(name, str(default))
    try:
        return int(val)
    except Exception:
        return default


def _parse_bool(name: str, default: bool) -> bool:
    val = _get_env(name, "true" if default else "false")
    return val.lower() in ("1", "true", "yes")


def _parse_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    val = _get_env(name, default)
    val = val.upper()
    return val if val in choices else default


@dataclass(frozen=True)
class Settings:
    # Behavior
    failure_policy: FailurePolicy = "FAIL_CLOSED"
    resource_merge_policy: MergePolicy = "SET"
    container_scope: ContainerScope = "ALL"
    allow_shorthand_networks: bool = False
    webhook_timeout_seconds: int = 5
    app_env: str = "production"

    # Server
    port: int = 8443
    bind_address: str = "0.0.0.0"
    tls_cert_file: str = "tls/tls.crt"
    tls_key_file: str = "tls/tls.key"

    # Keys (annotations)
    networks_annotation: str = NETWORKS_ANNOTATION
    resource_name_annotation: str = RESOURCE_NAME_ANNOTATION


def load() -> Settings:
    return Settings(
        failure_policy=_parse_choice(
            "FAILURE_POLICY", ("FAIL_CLOSED", "FAIL_OPEN"), "FAIL_CLOSED"
        ),
        resource_merge_policy=_parse_choice(
            "RESOURCE_MERGE_POLICY", ("SET", "SUM"), "SET"
        ),
        container_scope=_parse_choice("CONTAINER_SCOPE", ("ALL", "FIRST"), "ALL"),
        allow_shorthand_networks=_parse_bool("ALLOW_SHORTHAND_NETWORKS", False),
        webhook_timeout_seconds=_parse_int("WEBHOOK_TIMEOUT_SECONDS", 5),
        app_env=_get_env("APP_ENV", "production"),
        port=_parse_int("PORT", 8443),
        bind_address=_get_env("BIND_ADDRESS", "0.0.0.0"),
        tls_cert_file=_get_env("TLS_CERT_FILE", "tls/tls.crt"),
        tls_key_file=_get_env("TLS_KEY_FILE", "tls/tls.key"),
    )


# Singleton settings for app usage (optional in tests)
settings: Settings = load()

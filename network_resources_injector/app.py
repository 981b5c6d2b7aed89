import logging
import os

from flask import Flask
from kubernetes import client, config

from .config import settings
from .lookup.kubernetes_lookup import KubernetesNetworkLookup
from .routes import create_routes

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(message)s",
)
log = logging.getLogger("network-resources-injector")

# Initialize Kubernetes client; avoid constructing real client in tests
if os.getenv("APP_ENV", getattr(settings, "app_env", "production")) == "test":
    custom_api = object()
else:
    try:
        config.load_incluster_config()
    except config.ConfigException:
        log.info("Not running in cluster; loading kubeconfig")
        config.load_kube_config()
    custom_api = client.CustomObjectsApi()

lookup = KubernetesNetworkLookup(custom_api, settings.webhook_timeout_seconds)

app = Flask(__name__)
bp = create_routes(lookup, settings)
app.register_blueprint(bp)

if __name__ == "__main__":
    log.info(
        "Starting webhook server (failure_policy=%s merge_policy=%s scope=%s)",
        settings.failure_policy,
        settings.resource_merge_policy,
        settings.container_scope,
    )
    app.run(
        host=settings.bind_address,
        port=settings.port,
        ssl_context=(settings.tls_cert_file, settings.tls_key_file),
    )

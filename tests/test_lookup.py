import importlib

import pytest
from kubernetes.client.exceptions import ApiException


def import_lookup():
	return importlib.import_module("network_resources_injector.lookup.kubernetes_lookup")


def import_errors():
	return importlib.import_module("network_resources_injector.errors")


class DummyCustomApi:
	def __init__(self, obj=None, exc=None):
		self.obj = obj
		self.exc = exc
		self.calls = []

	def get_namespaced_custom_object(self, group, version, namespace, plural, name, **kwargs):
		self.calls.append((group, version, namespace, plural, name, kwargs))
		if self.exc is not None:
			raise self.exc
		return self.obj


def test_get_returns_definition():
	mod = import_lookup()
	api = DummyCustomApi(
		obj={
			"apiVersion": "k8s.cni.cncf.io/v1",
			"kind": "NetworkAttachmentDefinition",
			"metadata": {
				"name": "sriov",
				"namespace": "ns1",
				"annotations": {"k8s.v1.cni.cncf.io/resourceName": "openshift.io/intel_sriov"},
			},
			"spec": {"config": '{"type":"sriov"}'},
		}
	)
	definition = mod.KubernetesNetworkLookup(api, timeout_seconds=3).get("ns1", "sriov")
	assert definition.name == "sriov"
	assert definition.resource_name("k8s.v1.cni.cncf.io/resourceName") == "openshift.io/intel_sriov"
	assert definition.config == '{"type":"sriov"}'
	assert api.calls == [
		(
			"k8s.cni.cncf.io",
			"v1",
			"ns1",
			"network-attachment-definitions",
			"sriov",
			{"_request_timeout": 3},
		)
	]


def test_get_not_found_returns_none():
	mod = import_lookup()
	api = DummyCustomApi(exc=ApiException(status=404, reason="Not Found"))
	assert mod.KubernetesNetworkLookup(api).get("ns1", "missing") is None


@pytest.mark.parametrize(
	"exc",
	[
		ApiException(status=403, reason="Forbidden"),
		ApiException(status=500, reason="Internal Server Error"),
		TimeoutError("read timed out"),
	],
)
def test_get_failures_raise_resolution_error(exc):
	mod = import_lookup()
	errors = import_errors()
	with pytest.raises(errors.ResolutionError):
		mod.KubernetesNetworkLookup(DummyCustomApi(exc=exc)).get("ns1", "sriov")


def test_get_unexpected_response_raises_resolution_error():
	mod = import_lookup()
	errors = import_errors()
	with pytest.raises(errors.ResolutionError):
		mod.KubernetesNetworkLookup(DummyCustomApi(obj="nope")).get("ns1", "sriov")

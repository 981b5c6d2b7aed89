from ..models import NetworkAttachmentDefinition


class NetworkLookup:
    def get(self, namespace: str, name: str) -> NetworkAttachmentDefinition | None:
        """
        Return the NetworkAttachmentDefinition (namespace, name), or None if it does not exist.
        Raise ResolutionError if the definition could not be fetched.
        """
        raise NotImplementedError

class InjectorError(Exception):
    """Base class for errors that stop a Pod from being patched."""


class MalformedAnnotationError(InjectorError):
    """The Pod's network annotation is present but cannot be parsed."""


class MalformedObjectError(InjectorError):
    """The admission request does not carry a Pod object."""


class ResolutionError(InjectorError):
    """A NetworkAttachmentDefinition lookup failed (transport, timeout, API error)."""

"""Error taxonomy for the Chaos Mesh experiment client.

Every error raised by the client derives from ``ChaosSDKError`` and carries
the context of the failed call (operation, kind, namespace, name) so callers
can log or display it without parsing the message.
"""

from typing import Optional


class ChaosSDKError(Exception):
    """Base exception for all chaos-mesh-sdk errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        kind: Optional[str] = None,
        namespace: Optional[str] = None,
        name: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.status_code = status_code

    def context(self) -> dict:
        """Return the call context as a dict of the fields that are set."""
        return {
            key: value
            for key, value in (
                ('operation', self.operation),
                ('kind', self.kind),
                ('namespace', self.namespace),
                ('name', self.name),
                ('status_code', self.status_code),
            )
            if value is not None
        }


class ChaosConnectionError(ChaosSDKError):
    """Kubernetes configuration could not be loaded or the client is not initialized."""


class UnknownKindError(ChaosSDKError):
    """The experiment kind is not registered."""


class ExperimentNotFoundError(ChaosSDKError):
    """
    The experiment does not exist in the control plane.

    Raised as-is (never wrapped) by every operation that can hit a 404,
    regardless of kind.
    """


class PayloadMismatchError(ChaosSDKError):
    """The create payload does not fit the kind's resource envelope."""


class RemoteReadError(ChaosSDKError):
    """A get/list call was rejected by the control plane or failed in transport."""


class RemoteWriteError(ChaosSDKError):
    """A create/delete call was rejected by the control plane or failed in transport."""

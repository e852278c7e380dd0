"""chaos-mesh-sdk - async client for Chaos Mesh experiments.

Creates, inspects, lists and deletes Chaos Mesh custom resources and
correlates them with the Kubernetes event stream.

Example usage:
    from chaos_mesh_sdk import new_client

    client = await new_client()
    experiment = await client.describe_experiment_with_events(
        'chaos-testing', 'pod-kill-demo', 'PodChaos'
    )
    print(experiment.uid, len(experiment.events))
"""

from .client import ChaosExperimentClient, new_client
from .config import ChaosClientSettings, get_settings
from .exceptions import (
    ChaosConnectionError,
    ChaosSDKError,
    ExperimentNotFoundError,
    PayloadMismatchError,
    RemoteReadError,
    RemoteWriteError,
    UnknownKindError,
)
from .kinds import KindDescriptor, KindRegistry, default_registry
from .models import ChaosObject, ChaosStatus, Experiment

__version__ = '0.1.0'
__all__ = [
    'ChaosExperimentClient',
    'new_client',
    'ChaosClientSettings',
    'get_settings',
    'ChaosSDKError',
    'ChaosConnectionError',
    'UnknownKindError',
    'ExperimentNotFoundError',
    'PayloadMismatchError',
    'RemoteReadError',
    'RemoteWriteError',
    'KindDescriptor',
    'KindRegistry',
    'default_registry',
    'ChaosObject',
    'ChaosStatus',
    'Experiment',
]

"""
Pytest configuration and fixtures for chaos-mesh-sdk tests.

This module provides:
- Custom markers for test categorization
- Structlog capture so tests can assert on emitted events
- A client instance wired to mocked Kubernetes APIs
- Sample Chaos Mesh resources and core/v1 Events
"""

from typing import Any, Dict
from unittest.mock import AsyncMock

import pytest
import structlog
from kubernetes_asyncio.client import CoreV1Event, V1ObjectMeta, V1ObjectReference

from chaos_mesh_sdk.client import ChaosExperimentClient
from chaos_mesh_sdk.config import ChaosClientSettings


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line('markers', 'unit: Unit tests')
    config.addinivalue_line('markers', 'k8s: Tests exercising the Kubernetes API surface (mocked)')


@pytest.fixture(autouse=True)
def captured_logs():
    """Capture structlog events instead of printing them."""
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture
def settings() -> ChaosClientSettings:
    return ChaosClientSettings(
        in_cluster=False,
        namespace='chaos-testing',
        request_timeout_seconds=10.0
    )


@pytest.fixture
def chaos_client(settings) -> ChaosExperimentClient:
    """Client marked as initialized with AsyncMock custom objects and core APIs."""
    chaos_client = ChaosExperimentClient(settings=settings)
    chaos_client._initialized = True
    chaos_client._custom_api = AsyncMock()
    chaos_client._core_api = AsyncMock()
    return chaos_client


def make_pod_chaos(
    name: str = 'pod-kill-demo',
    namespace: str = 'chaos-testing',
    uid: str = 'aefdc968-570b-466b-b1a3-615792dcfe75',
    with_status: bool = True
) -> Dict[str, Any]:
    resource = {
        'apiVersion': 'chaos-mesh.org/v1alpha1',
        'kind': 'PodChaos',
        'metadata': {
            'name': name,
            'namespace': namespace,
            'uid': uid,
            'resourceVersion': '1234',
            'creationTimestamp': '2022-04-21T07:15:30Z',
        },
        'spec': {
            'action': 'pod-kill',
            'mode': 'one',
            'duration': '30s',
            'selector': {'namespaces': ['default']},
        },
    }
    if with_status:
        resource['status'] = {
            'conditions': [
                {'type': 'Selected', 'status': 'True'},
                {'type': 'AllInjected', 'status': 'True'},
                {'type': 'AllRecovered', 'status': 'False'},
                {'type': 'Paused', 'status': 'False'},
            ],
            'experiment': {
                'desiredPhase': 'Run',
                'containerRecords': [
                    {'id': 'default/nginx-7d8b49557c-x2x5l', 'phase': 'Injected'},
                ],
            },
        }
    return resource


def make_event(
    uid: str,
    event_type: str = 'Normal',
    reason: str = 'Applied',
    name: str = 'pod-kill-demo.16e7f'
) -> CoreV1Event:
    return CoreV1Event(
        metadata=V1ObjectMeta(name=name, namespace='chaos-testing'),
        involved_object=V1ObjectReference(
            kind='PodChaos',
            name='pod-kill-demo',
            namespace='chaos-testing',
            uid=uid
        ),
        type=event_type,
        reason=reason,
        message=f'{reason} chaos'
    )


@pytest.fixture
def sample_pod_chaos() -> Dict[str, Any]:
    return make_pod_chaos()


@pytest.fixture
def pod_chaos_factory():
    return make_pod_chaos


@pytest.fixture
def event_factory():
    return make_event

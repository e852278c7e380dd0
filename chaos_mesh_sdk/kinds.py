"""
Registry of Chaos Mesh experiment kinds.

Each kind is described once by a KindDescriptor (API coordinates, zero-value
factories and status extraction). The default registry is built at import time
and looked up by exact kind name.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import structlog

from .exceptions import UnknownKindError
from .models import ChaosObject, ChaosObjectList, ChaosStatus

logger = structlog.get_logger()


CHAOS_API_GROUP = 'chaos-mesh.org'
CHAOS_API_VERSION = 'v1alpha1'

CHAOS_KINDS = (
    'AWSChaos',
    'AzureChaos',
    'BlockChaos',
    'DNSChaos',
    'GCPChaos',
    'HTTPChaos',
    'IOChaos',
    'JVMChaos',
    'KernelChaos',
    'NetworkChaos',
    'PhysicalMachineChaos',
    'PodChaos',
    'StressChaos',
    'TimeChaos',
)


def extract_chaos_status(obj: ChaosObject) -> Optional[ChaosStatus]:
    """Return the status of a chaos object, or None when it has not been reported yet."""
    if obj.status is None:
        return None
    return ChaosStatus.model_validate(obj.status)


@dataclass(frozen=True)
class KindDescriptor:
    """API coordinates and factories for one experiment kind."""

    kind: str
    plural: str
    group: str = CHAOS_API_GROUP
    version: str = CHAOS_API_VERSION
    status_extractor: Callable[[ChaosObject], Optional[ChaosStatus]] = extract_chaos_status

    @property
    def api_version(self) -> str:
        return f'{self.group}/{self.version}'

    def spawn_object(self) -> ChaosObject:
        return ChaosObject(apiVersion=self.api_version, kind=self.kind)

    def spawn_list(self) -> ChaosObjectList:
        return ChaosObjectList(apiVersion=self.api_version, kind=f'{self.kind}List')

    def extract_status(self, obj: ChaosObject) -> Optional[ChaosStatus]:
        return self.status_extractor(obj)


class KindRegistry:
    '''Exact-match table of experiment kinds'''

    def __init__(self, descriptors: Optional[List[KindDescriptor]] = None):
        self._descriptors: Dict[str, KindDescriptor] = {}
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: KindDescriptor):
        if descriptor.kind in self._descriptors:
            raise ValueError(f'Kind already registered: {descriptor.kind}')
        self._descriptors[descriptor.kind] = descriptor

        logger.debug(
            'chaos_kind_registered',
            kind=descriptor.kind,
            plural=descriptor.plural
        )

    def get(self, kind: str) -> KindDescriptor:
        descriptor = self._descriptors.get(kind)
        if descriptor is None:
            raise UnknownKindError(f"Unsupported chaos kind '{kind}'", kind=kind)
        return descriptor

    def kinds(self) -> List[str]:
        return sorted(self._descriptors)

    def __contains__(self, kind: object) -> bool:
        return kind in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


def build_registry(group: str = CHAOS_API_GROUP, version: str = CHAOS_API_VERSION) -> KindRegistry:
    """Build a registry with every Chaos Mesh experiment kind for the given API group/version."""
    return KindRegistry([
        KindDescriptor(kind=kind, plural=kind.lower(), group=group, version=version)
        for kind in CHAOS_KINDS
    ])


_DEFAULT_REGISTRY = build_registry()


def default_registry() -> KindRegistry:
    return _DEFAULT_REGISTRY

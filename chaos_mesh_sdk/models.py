"""
Pydantic models for Chaos Mesh resources and the kind-agnostic experiment view.

The resource envelope (ChaosObject) mirrors what the custom objects API returns:
apiVersion/kind/metadata plus a kind-specific spec and status kept as mappings.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChaosObjectMeta(BaseModel):
    """Subset of ObjectMeta used by the client; other keys are kept as extra."""
    model_config = ConfigDict(extra='allow')

    name: Optional[str] = None
    generateName: Optional[str] = None
    namespace: Optional[str] = None
    uid: Optional[str] = None
    resourceVersion: Optional[str] = None
    creationTimestamp: Optional[datetime] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None


class ChaosObject(BaseModel):
    """Single chaos experiment resource."""
    model_config = ConfigDict(extra='ignore')

    apiVersion: str
    kind: str
    metadata: ChaosObjectMeta = Field(default_factory=ChaosObjectMeta)
    spec: Dict[str, Any] = Field(default_factory=dict)
    status: Optional[Dict[str, Any]] = None

    def to_body(self) -> Dict[str, Any]:
        """Serialize as a request body for the custom objects API."""
        return self.model_dump(mode='json', exclude_none=True)


class ChaosObjectList(BaseModel):
    """List of chaos resources of a single kind."""
    model_config = ConfigDict(extra='ignore')

    apiVersion: str
    kind: str
    items: List[ChaosObject] = Field(default_factory=list)


class ChaosCondition(BaseModel):
    """Condition reported in a chaos status (Selected, AllInjected, AllRecovered, Paused)."""
    model_config = ConfigDict(extra='allow')

    type: str
    status: str
    reason: Optional[str] = None


class ChaosStatus(BaseModel):
    """Status shared by the Chaos Mesh experiment kinds."""
    model_config = ConfigDict(extra='allow')

    conditions: List[ChaosCondition] = Field(default_factory=list)
    experiment: Optional[Dict[str, Any]] = None

    @property
    def desired_phase(self) -> Optional[str]:
        if not self.experiment:
            return None
        return self.experiment.get('desiredPhase')


class Experiment(BaseModel):
    """Kind-agnostic view of an experiment, rebuilt on every call."""

    namespace: str
    name: str
    kind: str
    uid: str
    created_at: Optional[str] = None
    status: Optional[ChaosStatus] = None
    events: Optional[List[Any]] = None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as RFC 3339 in UTC with second precision."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class ChaosClientSettings(BaseSettings):
    '''Settings for the Chaos Mesh experiment client'''

    # Kubernetes connection
    in_cluster: bool = Field(
        default=True,
        description='Use the in-cluster service account instead of a kubeconfig'
    )
    kubeconfig_path: Optional[str] = Field(
        default=None,
        description='Path to a kubeconfig file (default location when empty)'
    )
    context: Optional[str] = Field(
        default=None,
        description='kubeconfig context to activate'
    )

    # Experiments
    namespace: str = Field(
        default='chaos-testing',
        description='Namespace listed by list_experiments and used by create when '
                    'the payload has none. Empty lists across all namespaces'
    )
    api_group: str = 'chaos-mesh.org'
    api_version: str = 'v1alpha1'

    # Transport
    request_timeout_seconds: Optional[float] = Field(
        default=30.0,
        description='Default timeout for each API round trip (None disables it)'
    )

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        env_prefix = 'CHAOS_SDK_'
        case_sensitive = False


@lru_cache()
def get_settings() -> ChaosClientSettings:
    '''Return the process-wide settings instance'''
    return ChaosClientSettings()

"""
Cliente assincrono para experimentos Chaos Mesh via Kubernetes API.

Traduz um nome de kind e parametros em chamadas ao CustomObjectsApi, projeta o
resultado na view Experiment e correlaciona experimentos com Events do cluster
via field selector.
"""

import json
from typing import Any, Dict, List, Optional

import structlog
from kubernetes_asyncio import client, config
from kubernetes_asyncio.client.rest import ApiException
from opentelemetry import trace
from prometheus_client import Counter, Histogram
from pydantic import BaseModel, ValidationError

from .config import ChaosClientSettings, get_settings
from .exceptions import (
    ChaosConnectionError,
    ChaosSDKError,
    ExperimentNotFoundError,
    PayloadMismatchError,
    RemoteReadError,
    RemoteWriteError,
)
from .kinds import KindDescriptor, KindRegistry, build_registry
from .models import ChaosObject, ChaosObjectList, Experiment, format_timestamp

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

# Prometheus metrics
chaos_operations_total = Counter(
    'chaos_sdk_operations_total',
    'Total Chaos Mesh client operations',
    ['operation', 'kind', 'status']
)

chaos_operation_duration = Histogram(
    'chaos_sdk_operation_duration_seconds',
    'Duration of Chaos Mesh client operations',
    ['operation'],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0)
)

EVENT_UID_FIELD = 'involvedObject.uid'


def build_event_field_selector(uid: str, event_type: str = '', reason: str = '') -> str:
    """
    Build the field selector matching the events of one experiment.

    Empty ``event_type`` and ``reason`` are left out of the selector.
    Pairs are sorted by key.
    """
    if not uid:
        raise ValueError('uid is required to list experiment events')

    fields = {EVENT_UID_FIELD: uid}
    if event_type:
        fields['type'] = event_type
    if reason:
        fields['reason'] = reason

    return ','.join(f'{key}={fields[key]}' for key in sorted(fields))


def bind_payload(
    descriptor: KindDescriptor,
    payload: Any,
    default_namespace: Optional[str] = None
) -> ChaosObject:
    """
    Decode a generic payload onto an empty object of the given kind.

    Args:
        descriptor: Resolved kind
        payload: Mapping, pydantic model, or JSON text/bytes
        default_namespace: Namespace used when the payload has none

    Returns:
        ChaosObject ready to submit

    Raises:
        PayloadMismatchError: payload is not JSON-encodable or does not fit the envelope
    """
    def mismatch(reason: str) -> PayloadMismatchError:
        return PayloadMismatchError(
            f'Payload does not fit kind {descriptor.kind}: {reason}',
            operation='create_experiment',
            kind=descriptor.kind
        )

    try:
        if isinstance(payload, BaseModel):
            data = payload.model_dump(mode='json', by_alias=True, exclude_none=True)
        elif isinstance(payload, (str, bytes, bytearray)):
            data = json.loads(payload)
        else:
            data = json.loads(json.dumps(payload))
    except (TypeError, ValueError) as e:
        raise mismatch(f'not JSON-encodable ({e})') from e

    if not isinstance(data, dict):
        raise mismatch(f'expected an object, got {type(data).__name__}')

    unknown = set(data) - set(ChaosObject.model_fields)
    if unknown:
        raise mismatch(f'unknown fields {sorted(unknown)}')

    empty = descriptor.spawn_object()
    for field in ('kind', 'apiVersion'):
        if field in data and data[field] != getattr(empty, field):
            raise mismatch(f'{field} {data[field]!r} != {getattr(empty, field)!r}')

    try:
        obj = ChaosObject.model_validate({
            **empty.model_dump(exclude_none=True),
            **data,
            'status': None,
        })
    except ValidationError as e:
        raise mismatch(str(e)) from e

    if not obj.metadata.name and not obj.metadata.generateName:
        raise mismatch('metadata.name or metadata.generateName is required')

    if not obj.metadata.namespace:
        if not default_namespace:
            raise mismatch('metadata.namespace is required when no default namespace is configured')
        obj.metadata.namespace = default_namespace

    return obj


class ChaosExperimentClient:
    """Cliente para experimentos Chaos Mesh via Kubernetes API."""

    def __init__(
        self,
        settings: Optional[ChaosClientSettings] = None,
        registry: Optional[KindRegistry] = None
    ):
        """
        Inicializa cliente.

        Args:
            settings: Configuracao (usa get_settings() se nao especificada)
            registry: Tabela de kinds (construida a partir do api_group/api_version se omitida)
        """
        self.settings = settings or get_settings()
        self.registry = registry or build_registry(
            self.settings.api_group,
            self.settings.api_version
        )
        self._api_client = None
        self._custom_api = None
        self._core_api = None
        self._initialized = False
        self.logger = logger.bind(service='chaos_experiment_client')

    async def initialize(self):
        """Carrega configuracao do cluster e cria os clientes de API."""
        if self._initialized:
            return

        try:
            if self.settings.in_cluster:
                config.load_incluster_config()
            else:
                await config.load_kube_config(
                    config_file=self.settings.kubeconfig_path,
                    context=self.settings.context
                )

            self._api_client = client.ApiClient()
            self._custom_api = client.CustomObjectsApi(self._api_client)
            self._core_api = client.CoreV1Api(self._api_client)
            self._initialized = True

            self.logger.info(
                'chaos_client_initialized',
                in_cluster=self.settings.in_cluster,
                namespace=self.settings.namespace
            )

        except Exception as e:
            self.logger.error('chaos_client_init_failed', error=str(e))
            raise ChaosConnectionError(f'Failed to load Kubernetes configuration: {e}') from e

    async def close(self):
        """Fecha o cliente de API."""
        if self._api_client:
            await self._api_client.close()
        self._api_client = None
        self._custom_api = None
        self._core_api = None
        self._initialized = False
        self.logger.info('chaos_client_closed')

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_initialized(self, operation: str):
        if not self._initialized:
            raise ChaosConnectionError(
                'Chaos client not initialized, call initialize() first',
                operation=operation
            )

    def _resolve(self, kind: str, operation: str) -> KindDescriptor:
        try:
            return self.registry.get(kind)
        except ChaosSDKError as e:
            e.operation = operation
            self.logger.warning('chaos_unknown_kind', operation=operation, kind=kind)
            raise

    def _request_options(self, timeout: Optional[float]) -> Dict[str, Any]:
        effective = timeout if timeout is not None else self.settings.request_timeout_seconds
        if effective is None:
            return {}
        return {'_request_timeout': effective}

    def _record(self, operation: str, kind: str, status: str):
        chaos_operations_total.labels(
            operation=operation,
            kind=kind,
            status=status
        ).inc()

    def _to_experiment(self, descriptor: KindDescriptor, obj: ChaosObject) -> Experiment:
        return Experiment(
            namespace=obj.metadata.namespace or '',
            name=obj.metadata.name or '',
            kind=obj.kind or descriptor.kind,
            uid=obj.metadata.uid or '',
            created_at=format_timestamp(obj.metadata.creationTimestamp),
            status=descriptor.extract_status(obj)
        )

    async def _get_object(
        self,
        descriptor: KindDescriptor,
        namespace: str,
        name: str,
        operation: str,
        timeout: Optional[float]
    ) -> ChaosObject:
        """Busca um objeto por identidade, normalizando 404 para ExperimentNotFoundError."""
        try:
            result = await self._custom_api.get_namespaced_custom_object(
                group=descriptor.group,
                version=descriptor.version,
                namespace=namespace,
                plural=descriptor.plural,
                name=name,
                **self._request_options(timeout)
            )
        except ApiException as e:
            if e.status == 404:
                self.logger.debug(
                    'chaos_experiment_not_found',
                    kind=descriptor.kind,
                    namespace=namespace,
                    name=name
                )
                raise ExperimentNotFoundError(
                    f'{descriptor.kind} {namespace}/{name} not found',
                    operation=operation,
                    kind=descriptor.kind,
                    namespace=namespace,
                    name=name,
                    status_code=404
                ) from e
            raise RemoteReadError(
                f'Failed to get {descriptor.kind} {namespace}/{name}: {e.reason}',
                operation=operation,
                kind=descriptor.kind,
                namespace=namespace,
                name=name,
                status_code=e.status
            ) from e
        except Exception as e:
            raise RemoteReadError(
                f'Failed to get {descriptor.kind} {namespace}/{name}: {e}',
                operation=operation,
                kind=descriptor.kind,
                namespace=namespace,
                name=name
            ) from e

        return ChaosObject.model_validate(result)

    async def create_experiment(
        self,
        kind: str,
        payload: Any,
        timeout: Optional[float] = None
    ) -> Experiment:
        """
        Cria experimento de um kind especifico.

        Args:
            kind: Tipo do experimento (ex: PodChaos)
            payload: Recurso completo (metadata + spec) como mapping, modelo pydantic ou JSON
            timeout: Timeout por chamada em segundos

        Returns:
            Experiment relido do cluster apos a criacao

        Raises:
            UnknownKindError: kind nao suportado
            PayloadMismatchError: payload nao corresponde ao recurso
            RemoteWriteError: criacao rejeitada pela API
        """
        operation = 'create_experiment'
        with tracer.start_as_current_span('chaos.create_experiment') as span:
            self._ensure_initialized(operation)
            descriptor = self._resolve(kind, operation)
            obj = bind_payload(descriptor, payload, self.settings.namespace)

            namespace = obj.metadata.namespace
            span.set_attribute('chaos.kind', kind)
            span.set_attribute('chaos.namespace', namespace or '')
            span.set_attribute('chaos.name', obj.metadata.name or '')

            with chaos_operation_duration.labels(operation=operation).time():
                try:
                    result = await self._custom_api.create_namespaced_custom_object(
                        group=descriptor.group,
                        version=descriptor.version,
                        namespace=namespace,
                        plural=descriptor.plural,
                        body=obj.to_body(),
                        **self._request_options(timeout)
                    )
                except Exception as e:
                    self._record(operation, kind, 'error')
                    status_code = getattr(e, 'status', None)
                    self.logger.error(
                        'chaos_create_failed',
                        kind=kind,
                        namespace=namespace,
                        name=obj.metadata.name,
                        error=str(e),
                        status_code=status_code
                    )
                    raise RemoteWriteError(
                        f'Failed to create {kind} {namespace}/{obj.metadata.name}: {e}',
                        operation=operation,
                        kind=kind,
                        namespace=namespace,
                        name=obj.metadata.name,
                        status_code=status_code
                    ) from e

            created = ChaosObject.model_validate(result)
            name = created.metadata.name or obj.metadata.name
            namespace = created.metadata.namespace or namespace

            self._record(operation, kind, 'success')
            self.logger.info(
                'chaos_experiment_created',
                kind=kind,
                namespace=namespace,
                name=name
            )

            return await self.describe_experiment(namespace, name, kind, timeout=timeout)

    async def delete_experiment(
        self,
        namespace: str,
        name: str,
        kind: str,
        timeout: Optional[float] = None
    ) -> None:
        """
        Remove experimento, o que interrompe a injecao de falhas.

        Raises:
            ExperimentNotFoundError: experimento nao existe
            RemoteWriteError: remocao rejeitada pela API
        """
        operation = 'delete_experiment'
        with tracer.start_as_current_span('chaos.delete_experiment') as span:
            self._ensure_initialized(operation)
            descriptor = self._resolve(kind, operation)
            span.set_attribute('chaos.kind', kind)
            span.set_attribute('chaos.namespace', namespace)
            span.set_attribute('chaos.name', name)

            with chaos_operation_duration.labels(operation=operation).time():
                try:
                    await self._get_object(descriptor, namespace, name, operation, timeout)
                except ChaosSDKError:
                    self._record(operation, kind, 'error')
                    raise

                try:
                    await self._custom_api.delete_namespaced_custom_object(
                        group=descriptor.group,
                        version=descriptor.version,
                        namespace=namespace,
                        plural=descriptor.plural,
                        name=name,
                        **self._request_options(timeout)
                    )
                except ApiException as e:
                    self._record(operation, kind, 'error')
                    if e.status == 404:
                        raise ExperimentNotFoundError(
                            f'{kind} {namespace}/{name} not found',
                            operation=operation,
                            kind=kind,
                            namespace=namespace,
                            name=name,
                            status_code=404
                        ) from e
                    self.logger.error(
                        'chaos_delete_failed',
                        kind=kind,
                        namespace=namespace,
                        name=name,
                        error=str(e),
                        status_code=e.status
                    )
                    raise RemoteWriteError(
                        f'Failed to delete {kind} {namespace}/{name}: {e.reason}',
                        operation=operation,
                        kind=kind,
                        namespace=namespace,
                        name=name,
                        status_code=e.status
                    ) from e
                except Exception as e:
                    self._record(operation, kind, 'error')
                    self.logger.error(
                        'chaos_delete_failed',
                        kind=kind,
                        namespace=namespace,
                        name=name,
                        error=str(e)
                    )
                    raise RemoteWriteError(
                        f'Failed to delete {kind} {namespace}/{name}: {e}',
                        operation=operation,
                        kind=kind,
                        namespace=namespace,
                        name=name
                    ) from e

            self._record(operation, kind, 'success')
            self.logger.info(
                'chaos_experiment_deleted',
                kind=kind,
                namespace=namespace,
                name=name
            )

    async def describe_experiment(
        self,
        namespace: str,
        name: str,
        kind: str,
        timeout: Optional[float] = None
    ) -> Experiment:
        """
        Consulta experimento.

        Raises:
            ExperimentNotFoundError: experimento nao existe
            RemoteReadError: falha na API
        """
        operation = 'describe_experiment'
        with tracer.start_as_current_span('chaos.describe_experiment') as span:
            self._ensure_initialized(operation)
            descriptor = self._resolve(kind, operation)
            span.set_attribute('chaos.kind', kind)
            span.set_attribute('chaos.namespace', namespace)
            span.set_attribute('chaos.name', name)

            with chaos_operation_duration.labels(operation=operation).time():
                try:
                    obj = await self._get_object(descriptor, namespace, name, operation, timeout)
                except ChaosSDKError:
                    self._record(operation, kind, 'error')
                    raise

            self._record(operation, kind, 'success')
            experiment = self._to_experiment(descriptor, obj)
            span.set_attribute('chaos.uid', experiment.uid)
            return experiment

    async def describe_experiment_with_events(
        self,
        namespace: str,
        name: str,
        kind: str,
        timeout: Optional[float] = None
    ) -> Experiment:
        """Consulta experimento e anexa os Events associados ao seu uid."""
        operation = 'describe_experiment_with_events'
        with tracer.start_as_current_span('chaos.describe_experiment_with_events') as span:
            span.set_attribute('chaos.kind', kind)
            span.set_attribute('chaos.namespace', namespace)
            span.set_attribute('chaos.name', name)

            with chaos_operation_duration.labels(operation=operation).time():
                try:
                    experiment = await self.describe_experiment(namespace, name, kind, timeout=timeout)
                    experiment.events = await self.list_events(experiment.uid, timeout=timeout)
                except ChaosSDKError:
                    self._record(operation, kind, 'error')
                    raise

            self._record(operation, kind, 'success')
            span.set_attribute('chaos.uid', experiment.uid)
            span.set_attribute('chaos.event_count', len(experiment.events))
            return experiment

    async def list_experiments(
        self,
        kind: str,
        namespace: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> List[Experiment]:
        """
        Lista experimentos de um kind.

        Args:
            kind: Tipo do experimento
            namespace: Namespace a listar (usa settings.namespace se nao especificado;
                vazio lista todos os namespaces)
            timeout: Timeout por chamada em segundos

        Returns:
            Lista de Experiment sem events (vazia se nao houver experimentos)
        """
        operation = 'list_experiments'
        with tracer.start_as_current_span('chaos.list_experiments') as span:
            self._ensure_initialized(operation)
            descriptor = self._resolve(kind, operation)
            ns = self.settings.namespace if namespace is None else namespace
            span.set_attribute('chaos.kind', kind)
            span.set_attribute('chaos.namespace', ns or 'all')

            with chaos_operation_duration.labels(operation=operation).time():
                try:
                    if ns:
                        result = await self._custom_api.list_namespaced_custom_object(
                            group=descriptor.group,
                            version=descriptor.version,
                            namespace=ns,
                            plural=descriptor.plural,
                            **self._request_options(timeout)
                        )
                    else:
                        result = await self._custom_api.list_cluster_custom_object(
                            group=descriptor.group,
                            version=descriptor.version,
                            plural=descriptor.plural,
                            **self._request_options(timeout)
                        )
                except Exception as e:
                    self._record(operation, kind, 'error')
                    status_code = getattr(e, 'status', None)
                    self.logger.error(
                        'chaos_list_failed',
                        kind=kind,
                        namespace=ns or 'all',
                        error=str(e),
                        status_code=status_code
                    )
                    raise RemoteReadError(
                        f'Failed to list {kind} in {ns or "all namespaces"}: {e}',
                        operation=operation,
                        kind=kind,
                        namespace=ns or None,
                        status_code=status_code
                    ) from e

            empty = descriptor.spawn_list()
            items = [
                {'apiVersion': descriptor.api_version, 'kind': descriptor.kind, **item}
                for item in result.get('items') or []
            ]
            chaos_list = ChaosObjectList.model_validate({
                **empty.model_dump(),
                'items': items,
            })

            self._record(operation, kind, 'success')
            self.logger.info(
                'chaos_experiments_listed',
                kind=kind,
                namespace=ns or 'all',
                count=len(chaos_list.items)
            )

            return [self._to_experiment(descriptor, item) for item in chaos_list.items]

    async def list_events(
        self,
        uid: str,
        event_type: str = '',
        reason: str = '',
        timeout: Optional[float] = None
    ) -> List[Any]:
        """
        Lista Events de um experimento.

        Args:
            uid: UID do experimento (obrigatorio)
            event_type: Tipo do evento (Normal, Warning); ignorado se vazio
            reason: Motivo do evento; ignorado se vazio
            timeout: Timeout por chamada em segundos

        Returns:
            Lista de CoreV1Event na ordem retornada pela API
        """
        operation = 'list_events'
        with tracer.start_as_current_span('chaos.list_events') as span:
            self._ensure_initialized(operation)
            field_selector = build_event_field_selector(uid, event_type, reason)
            span.set_attribute('chaos.uid', uid)
            span.set_attribute('chaos.field_selector', field_selector)

            with chaos_operation_duration.labels(operation=operation).time():
                try:
                    result = await self._core_api.list_event_for_all_namespaces(
                        field_selector=field_selector,
                        **self._request_options(timeout)
                    )
                except Exception as e:
                    self._record(operation, 'Event', 'error')
                    status_code = getattr(e, 'status', None)
                    self.logger.error(
                        'chaos_list_events_failed',
                        uid=uid,
                        field_selector=field_selector,
                        error=str(e),
                        status_code=status_code
                    )
                    raise RemoteReadError(
                        f'Failed to list events for {uid}: {e}',
                        operation=operation,
                        status_code=status_code
                    ) from e

            events = list(result.items or [])
            self._record(operation, 'Event', 'success')
            self.logger.debug(
                'chaos_events_listed',
                uid=uid,
                field_selector=field_selector,
                count=len(events)
            )
            return events


async def new_client(
    settings: Optional[ChaosClientSettings] = None,
    registry: Optional[KindRegistry] = None
) -> ChaosExperimentClient:
    """
    Cria e inicializa um cliente.

    Raises:
        ChaosConnectionError: configuracao do Kubernetes nao pode ser carregada
    """
    chaos_client = ChaosExperimentClient(settings=settings, registry=registry)
    await chaos_client.initialize()
    return chaos_client

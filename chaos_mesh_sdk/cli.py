#!/usr/bin/env python3
"""
Command line entry point for chaos-mesh-sdk.

Uso:
    chaos-mesh-sdk events UID [--type Warning] [--reason REASON]
    chaos-mesh-sdk list KIND [--namespace NAMESPACE]
    chaos-mesh-sdk describe NAMESPACE NAME KIND [--events]
    chaos-mesh-sdk create KIND FILE
    chaos-mesh-sdk delete NAMESPACE NAME KIND

Kubernetes connection settings are read from CHAOS_SDK_* environment variables.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, List, Optional

import structlog

from .client import ChaosExperimentClient, new_client
from .exceptions import ChaosSDKError

logger = structlog.get_logger()


def configure_logging():
    """Structured JSON logs on stderr so stdout only carries command output."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='chaos-mesh-sdk',
        description='Manage Chaos Mesh experiments'
    )
    parser.add_argument('--timeout', type=float, default=None, help='Per-request timeout in seconds')
    subparsers = parser.add_subparsers(dest='command', required=True)

    events = subparsers.add_parser('events', help='Count events of an experiment')
    events.add_argument('uid')
    events.add_argument('--type', dest='event_type', default='', help='Event type (Normal, Warning)')
    events.add_argument('--reason', default='')

    list_cmd = subparsers.add_parser('list', help='List experiments of a kind')
    list_cmd.add_argument('kind')
    list_cmd.add_argument('--namespace', default=None)

    describe = subparsers.add_parser('describe', help='Describe an experiment')
    describe.add_argument('namespace')
    describe.add_argument('name')
    describe.add_argument('kind')
    describe.add_argument('--events', action='store_true', help='Attach related events')

    create = subparsers.add_parser('create', help='Create an experiment from a JSON file')
    create.add_argument('kind')
    create.add_argument('file', help="JSON payload file ('-' for stdin)")

    delete = subparsers.add_parser('delete', help='Delete an experiment')
    delete.add_argument('namespace')
    delete.add_argument('name')
    delete.add_argument('kind')

    return parser


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, 'model_dump'):
        return value.model_dump(mode='json')
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


def _emit(value: Any):
    if isinstance(value, list):
        value = [_to_jsonable(item) for item in value]
    else:
        value = _to_jsonable(value)
    print(json.dumps(value, indent=2, default=str))


def _read_payload(path: str) -> str:
    if path == '-':
        return sys.stdin.read()
    with open(path, encoding='utf-8') as f:
        return f.read()


async def run(args: argparse.Namespace, chaos_client: Optional[ChaosExperimentClient] = None) -> int:
    """
    Executa o comando.

    Args:
        args: Argumentos parseados por build_parser()
        chaos_client: Cliente ja inicializado (um novo e criado e fechado se omitido)

    Returns:
        Exit code (0 sucesso, 1 falha)
    """
    owns_client = chaos_client is None
    try:
        if owns_client:
            chaos_client = await new_client()

        if args.command == 'events':
            events = await chaos_client.list_events(
                args.uid, args.event_type, args.reason, timeout=args.timeout
            )
            print(len(events))
        elif args.command == 'list':
            _emit(await chaos_client.list_experiments(
                args.kind, namespace=args.namespace, timeout=args.timeout
            ))
        elif args.command == 'describe':
            if args.events:
                experiment = await chaos_client.describe_experiment_with_events(
                    args.namespace, args.name, args.kind, timeout=args.timeout
                )
                experiment = experiment.model_dump(mode='json', exclude={'events'}) | {
                    'events': [_to_jsonable(event) for event in experiment.events or []]
                }
            else:
                experiment = await chaos_client.describe_experiment(
                    args.namespace, args.name, args.kind, timeout=args.timeout
                )
            _emit(experiment)
        elif args.command == 'create':
            _emit(await chaos_client.create_experiment(
                args.kind, _read_payload(args.file), timeout=args.timeout
            ))
        elif args.command == 'delete':
            await chaos_client.delete_experiment(
                args.namespace, args.name, args.kind, timeout=args.timeout
            )

        return 0

    except ChaosSDKError as e:
        logger.error('chaos_cli.command_failed', command=args.command, error=str(e), **e.context())
        print(f'error: {e}', file=sys.stderr)
        return 1
    except ValueError as e:
        logger.error('chaos_cli.invalid_argument', command=args.command, error=str(e))
        print(f'error: {e}', file=sys.stderr)
        return 1
    except OSError as e:
        logger.error('chaos_cli.payload_read_failed', command=args.command, error=str(e))
        print(f'error: {e}', file=sys.stderr)
        return 1

    finally:
        if owns_client and chaos_client is not None:
            await chaos_client.close()


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == '__main__':
    sys.exit(main())

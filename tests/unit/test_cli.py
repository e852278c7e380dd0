"""Tests for the chaos-mesh-sdk command line."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from chaos_mesh_sdk.cli import build_parser, main, run
from chaos_mesh_sdk.exceptions import ChaosConnectionError, ExperimentNotFoundError
from chaos_mesh_sdk.models import Experiment

UID = 'aefdc968-570b-466b-b1a3-615792dcfe75'


def sample_experiment(**overrides) -> Experiment:
    values = dict(
        namespace='chaos-testing',
        name='pod-kill-demo',
        kind='PodChaos',
        uid=UID,
        created_at='2022-04-21T07:15:30Z',
    )
    values.update(overrides)
    return Experiment(**values)


@pytest.fixture
def mock_chaos_client():
    return AsyncMock()


class TestParser:
    """Test argument parsing."""

    def test_events_defaults(self):
        args = build_parser().parse_args(['events', UID])
        assert args.command == 'events'
        assert args.event_type == ''
        assert args.reason == ''
        assert args.timeout is None

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2


class TestRun:
    """Test command execution against a mocked client."""

    @pytest.mark.asyncio
    async def test_events_prints_count(self, mock_chaos_client, event_factory, capsys):
        mock_chaos_client.list_events.return_value = [event_factory(UID, 'Warning')]
        args = build_parser().parse_args(['events', UID, '--type', 'Warning'])

        assert await run(args, mock_chaos_client) == 0

        assert capsys.readouterr().out.strip() == '1'
        mock_chaos_client.list_events.assert_awaited_once_with(UID, 'Warning', '', timeout=None)

    @pytest.mark.asyncio
    async def test_list_prints_json(self, mock_chaos_client, capsys):
        mock_chaos_client.list_experiments.return_value = [sample_experiment()]
        args = build_parser().parse_args(['--timeout', '5', 'list', 'PodChaos'])

        assert await run(args, mock_chaos_client) == 0

        output = json.loads(capsys.readouterr().out)
        assert output[0]['uid'] == UID
        mock_chaos_client.list_experiments.assert_awaited_once_with('PodChaos', namespace=None, timeout=5.0)

    @pytest.mark.asyncio
    async def test_describe_with_events(self, mock_chaos_client, event_factory, capsys):
        mock_chaos_client.describe_experiment_with_events.return_value = sample_experiment(
            events=[event_factory(UID, 'Normal', 'Applied')]
        )
        args = build_parser().parse_args(['describe', 'chaos-testing', 'pod-kill-demo', 'PodChaos', '--events'])

        assert await run(args, mock_chaos_client) == 0

        output = json.loads(capsys.readouterr().out)
        assert output['kind'] == 'PodChaos'
        assert output['events'][0]['reason'] == 'Applied'
        assert output['events'][0]['involved_object']['uid'] == UID

    @pytest.mark.asyncio
    async def test_create_reads_payload(self, mock_chaos_client, tmp_path, capsys):
        payload = {'metadata': {'name': 'pod-kill-demo'}, 'spec': {'duration': '30s'}}
        payload_file = tmp_path / 'pod-kill.json'
        payload_file.write_text(json.dumps(payload))
        mock_chaos_client.create_experiment.return_value = sample_experiment()
        args = build_parser().parse_args(['create', 'PodChaos', str(payload_file)])

        assert await run(args, mock_chaos_client) == 0

        kind, raw = mock_chaos_client.create_experiment.call_args.args
        assert kind == 'PodChaos'
        assert json.loads(raw) == payload
        assert json.loads(capsys.readouterr().out)['name'] == 'pod-kill-demo'

    @pytest.mark.asyncio
    async def test_events_empty_uid(self, chaos_client, capsys, captured_logs):
        args = build_parser().parse_args(['events', ''])

        assert await run(args, chaos_client) == 1

        assert 'uid is required' in capsys.readouterr().err
        assert any(log['event'] == 'chaos_cli.invalid_argument' for log in captured_logs)
        chaos_client._core_api.list_event_for_all_namespaces.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_missing_file(self, mock_chaos_client, tmp_path):
        args = build_parser().parse_args(['create', 'PodChaos', str(tmp_path / 'missing.json')])

        assert await run(args, mock_chaos_client) == 1
        mock_chaos_client.create_experiment.assert_not_called()

    @pytest.mark.asyncio
    async def test_sdk_error_exit_code(self, mock_chaos_client, capsys, captured_logs):
        mock_chaos_client.delete_experiment.side_effect = ExperimentNotFoundError(
            'PodChaos chaos-testing/missing not found',
            operation='delete_experiment',
            kind='PodChaos'
        )
        args = build_parser().parse_args(['delete', 'chaos-testing', 'missing', 'PodChaos'])

        assert await run(args, mock_chaos_client) == 1

        assert 'not found' in capsys.readouterr().err
        failure = next(log for log in captured_logs if log['event'] == 'chaos_cli.command_failed')
        assert failure['operation'] == 'delete_experiment'

    @pytest.mark.asyncio
    async def test_creates_and_closes_own_client(self, mock_chaos_client):
        mock_chaos_client.list_experiments.return_value = []
        args = build_parser().parse_args(['list', 'PodChaos'])

        with patch('chaos_mesh_sdk.cli.new_client', AsyncMock(return_value=mock_chaos_client)):
            assert await run(args) == 0

        mock_chaos_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        args = build_parser().parse_args(['list', 'PodChaos'])
        failing = AsyncMock(side_effect=ChaosConnectionError('no kubeconfig'))

        with patch('chaos_mesh_sdk.cli.new_client', failing):
            assert await run(args) == 1


def test_main_runs_command(mock_chaos_client, capsys):
    mock_chaos_client.list_events.return_value = []

    with patch('chaos_mesh_sdk.cli.configure_logging'), \
            patch('chaos_mesh_sdk.cli.new_client', AsyncMock(return_value=mock_chaos_client)):
        assert main(['events', UID]) == 0

    assert capsys.readouterr().out.strip() == '0'

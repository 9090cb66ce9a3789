"""Tests for the rendezvous CLI."""

import json

import pytest
from typer.testing import CliRunner

from rendezvous import __version__
from rendezvous import config as config_module
from rendezvous.cli import app, run_simulation
from rendezvous.config import RendezvousConfig
from rendezvous.metrics import BarrierMetrics

runner = CliRunner()


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """No RENDEZVOUS_* variables, empty home and working directory."""
    for key in ('RENDEZVOUS_POLL_INTERVAL', 'RENDEZVOUS_ALL_CLEAR_NAME',
                'RENDEZVOUS_LOG_LEVEL', 'RENDEZVOUS_ENABLE_METRICS',
                'RENDEZVOUS_CONFIG_FILE'):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _fast_config():
    config = RendezvousConfig(load_external=False)
    config.barrier.poll_interval = 0.05
    return config


class TestRunSimulation:
    """Test the threaded simulation helper"""

    def test_single_initiator(self):
        results = run_simulation("round1", 4, config=_fast_config(), jitter=0.05)

        assert [r['member'] for r in results] == ["member-0", "member-1", "member-2", "member-3"]
        assert [r['role'] for r in results].count("initiator") == 1
        assert all(r['error'] is None for r in results)

    def test_late_members_are_followers(self):
        results = run_simulation("round1", 2, late=2, config=_fast_config())

        late = [r for r in results if r['late']]
        assert len(late) == 2
        assert all(r['role'] == "follower" for r in late)

    def test_absent_member_times_out_and_cancels(self):
        results = run_simulation("round1", 3, absent=1, config=_fast_config(), timeout=0.3)

        assert len(results) == 2
        assert all(r['role'] is None for r in results)
        assert all("cancelled" in r['error'] for r in results)


class TestCommands:
    """Test CLI commands"""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_simulate_success(self):
        result = runner.invoke(app, ["simulate", "round1", "-n", "3", "--late", "1",
                                     "--poll-interval", "0.05", "--jitter", "0.05"])
        assert result.exit_code == 0, result.stdout
        assert "initiator was member-" in result.stdout

    def test_simulate_with_metrics(self):
        result = runner.invoke(app, ["simulate", "round1", "-n", "2",
                                     "--poll-interval", "0.05", "--metrics"])
        assert result.exit_code == 0, result.stdout
        assert "rendezvous_barrier_entries_total" in result.stdout

    def test_simulate_absent_member_fails(self):
        result = runner.invoke(app, ["simulate", "round1", "-n", "2", "--absent", "1",
                                     "--poll-interval", "0.05", "--timeout", "0.3"])
        assert result.exit_code == 1
        assert "Round failed" in result.stdout

    def test_simulate_rejects_bad_arguments(self):
        result = runner.invoke(app, ["simulate", "round1", "-n", "0"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["simulate", "a/b"])
        assert result.exit_code == 1

    def test_config_show(self, isolated_env, monkeypatch):
        monkeypatch.setenv('RENDEZVOUS_POLL_INTERVAL', '0.5')

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['barrier']['poll_interval'] == 0.5

    def test_config_save(self, isolated_env, monkeypatch):
        monkeypatch.setattr(config_module, '_config', None)
        monkeypatch.setenv('RENDEZVOUS_ALL_CLEAR_NAME', 'Go')
        path = isolated_env / 'out' / 'rendezvous.json'

        result = runner.invoke(app, ["config", "save", str(path)])

        assert result.exit_code == 0, result.stdout
        assert json.loads(path.read_text())['barrier']['all_clear_name'] == 'Go'


class TestSimulateOptions:
    """Test logging and metrics wiring of the simulate command"""

    def test_log_level_from_config(self, isolated_env, monkeypatch, mocker):
        monkeypatch.setenv('RENDEZVOUS_LOG_LEVEL', 'DEBUG')
        configure = mocker.patch('rendezvous.cli._configure_logging')

        result = runner.invoke(app, ["simulate", "round1", "-n", "1", "--poll-interval", "0.05"])

        assert result.exit_code == 0, result.stdout
        configure.assert_called_once_with('DEBUG')

    def test_loglevel_option_overrides_config(self, isolated_env, monkeypatch, mocker):
        monkeypatch.setenv('RENDEZVOUS_LOG_LEVEL', 'DEBUG')
        configure = mocker.patch('rendezvous.cli._configure_logging')

        result = runner.invoke(app, ["simulate", "round1", "-n", "1", "--poll-interval", "0.05",
                                     "--loglevel", "ERROR"])

        assert result.exit_code == 0, result.stdout
        configure.assert_called_once_with('ERROR')

    def test_unknown_loglevel_is_rejected(self, isolated_env, mocker):
        configure = mocker.patch('rendezvous.cli._configure_logging')

        result = runner.invoke(app, ["simulate", "round1", "-n", "1", "--loglevel", "chatty"])

        assert result.exit_code == 1
        configure.assert_not_called()

    def test_metrics_port_serves_round_metrics(self, isolated_env, mocker):
        start_server = mocker.patch('rendezvous.cli.start_metrics_server')

        result = runner.invoke(app, ["simulate", "round1", "-n", "2", "--poll-interval", "0.05",
                                     "--metrics-port", "9250"])

        assert result.exit_code == 0, result.stdout
        start_server.assert_called_once()
        args, kwargs = start_server.call_args
        assert args == (9250,)
        metrics = kwargs['metrics']
        assert isinstance(metrics, BarrierMetrics)
        assert metrics.registry.get_sample_value(
            'rendezvous_barrier_entries_total', {'role': 'initiator'}) == 1.0

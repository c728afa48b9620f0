# tests/test_cli.py - Tests for the command-line interface
"""
End-to-end tests of the click commands.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from telemetry_analyzer.cli import cli


ACCESS_LOG = (
    "time:2024-01-01T00:00:00+00:00\tmethod:GET\turi:/users/1\tstatus:200\treqtime:0.2\tvhost:a\n"
    "time:2024-01-01T00:00:01+00:00\tmethod:GET\turi:/users/2\tstatus:500\treqtime:2.5\tvhost:a\n"
)

SLOW_LOG = (
    "# Time: 2024-01-02T03:04:05Z\n"
    "# User@Host: app[app] @ localhost []\n"
    "# Query_time: 1.0  Lock_time: 0.0 Rows_sent: 1  Rows_examined: 10\n"
    "SELECT * FROM t WHERE id=1;\n"
    "# User@Host: app[app] @ localhost []\n"
    "# Query_time: 3.0  Lock_time: 0.0 Rows_sent: 1  Rows_examined: 10\n"
    "SELECT * FROM t WHERE id=2;\n"
)


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI replaces root handlers with ones bound to the runner's streams"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def runner():
    return CliRunner()


class TestPprofCommand:
    """Test cases for the pprof command"""

    def test_structured(self, runner, tmp_path, cpu_profile):
        """Test the default structured summary on stdout"""
        path = tmp_path / 'cpu.pb.gz'
        path.write_bytes(cpu_profile)

        result = runner.invoke(cli, ['pprof', str(path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['metadata']['profileType'] == 'cpu'
        assert len(data['samples']) == 2

    def test_report(self, runner, tmp_path, cpu_profile):
        """Test the wrapped hotspot report"""
        path = tmp_path / 'profile.pb.gz'
        path.write_bytes(cpu_profile)

        result = runner.invoke(cli, ['pprof', str(path), '--type', 'cpu',
                                     '--format', 'report', '--entry-id', '42'])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['format'] == 'text'
        assert data['entry_id'] == '42'
        assert '===== Top 50 Hotspot Functions =====' in data['report']

    def test_corrupt_profile(self, runner, tmp_path):
        """Test that undecodable input exits with an error"""
        path = tmp_path / 'cpu.pb.gz'
        path.write_bytes(b'\x1f\x8bnot really gzip')

        result = runner.invoke(cli, ['pprof', str(path)])

        assert result.exit_code == 1
        assert 'Error:' in result.output


class TestHttplogCommand:
    """Test cases for the httplog command"""

    def test_alp_config_and_output_file(self, runner, tmp_path):
        """Test grouping with an ALP file, written to --output"""
        log = tmp_path / 'access.log'
        log.write_text(ACCESS_LOG)
        alp = tmp_path / 'alp.yml'
        alp.write_text("matching_groups:\n  - '^/users/'\n")
        out = tmp_path / 'out.json'

        result = runner.invoke(cli, ['httplog', str(log), '--threshold', '1.0',
                                     '--alp-config', str(alp), '--output', str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data['config_used'] is True
        stats = data['endpoint_stats']['group_1: ^/users/']
        assert stats['count'] == 2
        assert stats['statusCodes'] == {'200': 1, '500': 1}
        assert [r['uri'] for r in data['slow_requests']] == ['/users/2']


class TestSlowlogCommand:
    """Test cases for the slowlog command"""

    def test_output_file(self, runner, tmp_path):
        """Test slow-log aggregation written to --output"""
        log = tmp_path / 'mysql-slow.log'
        log.write_text(SLOW_LOG)
        out = tmp_path / 'slow.json'

        result = runner.invoke(cli, ['slowlog', str(log), '--threshold', '0.5', '--output', str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data['total_queries'] == 2
        assert data['top_query_patterns'][0]['count'] == 2
        assert [q['query_time'] for q in data['slowest_queries']] == [3.0, 1.0]

    def test_config_threshold(self, runner, tmp_path):
        """Test that the config file supplies the default threshold"""
        log = tmp_path / 'mysql-slow.log'
        log.write_text(SLOW_LOG)
        config = tmp_path / 'config.yaml'
        config.write_text("slowlog:\n  slow_threshold: 2.0\n")
        out = tmp_path / 'slow.json'

        result = runner.invoke(cli, ['--config', str(config), 'slowlog', str(log), '--output', str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert [q['query_time'] for q in data['slowest_queries']] == [3.0]

    def test_bad_config(self, runner, tmp_path):
        """Test that an unreadable config aborts"""
        log = tmp_path / 'mysql-slow.log'
        log.write_text(SLOW_LOG)
        config = tmp_path / 'config.yaml'
        config.write_text("slowlog: [unclosed\n")

        result = runner.invoke(cli, ['--config', str(config), 'slowlog', str(log)])

        assert result.exit_code == 1

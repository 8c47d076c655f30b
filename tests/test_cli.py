"""CLI tests."""

import json
import pytest
import click
from click.testing import CliRunner

from build_progress.cli import main, parse_event
from build_progress.core.cache import CacheStore
from build_progress.core.models import CacheRecord


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    for name in ["main.ts", "App.vue", "theme.scss", "notes.txt"]:
        (src / name).write_text("")
    return tmp_path


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        result = runner.invoke(main, ['--help'])

        assert result.exit_code == 0
        assert "Usage:" in result.output
        for command in ["status", "scan", "init", "clear", "replay"]:
            assert command in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(main, ['--version'])

        assert result.exit_code == 0
        assert "version" in result.output.lower()


class TestStatusCommand:
    """Test status command."""

    def test_status_without_cache(self, runner, project):
        result = runner.invoke(main, ['status', '--project-dir', str(project)])

        assert result.exit_code == 0
        assert "No build totals cached" in result.output

    def test_status_with_cache(self, runner, project):
        CacheStore(project).save(CacheRecord(transform_count=1234, chunk_count=7))

        result = runner.invoke(main, ['status', '--project-dir', str(project)])

        assert result.exit_code == 0
        assert "1,234" in result.output
        assert "Cached Build Totals" in result.output


class TestScanCommand:
    """Test scan command."""

    def test_scan_counts_tracked_files(self, runner, project):
        result = runner.invoke(main, ['scan', '-C', str(project)])

        assert result.exit_code == 0
        assert "3 tracked source files" in result.output

    def test_scan_honours_config(self, runner, project):
        (project / "build-progress.json").write_text(json.dumps({"extensions": ["txt"]}))

        result = runner.invoke(main, ['scan', '-C', str(project)])

        assert "1 tracked source files" in result.output


class TestInitCommand:
    """Test init command."""

    def test_init_writes_defaults(self, runner, project):
        result = runner.invoke(main, ['init', '-C', str(project)])

        assert result.exit_code == 0
        saved = json.loads((project / "build-progress.json").read_text())
        assert saved["source_root"] == "src"
        assert saved["bar_width"] == 40

    def test_init_yaml(self, runner, project):
        result = runner.invoke(main, ['init', '-C', str(project), '--format', 'yaml'])

        assert result.exit_code == 0
        assert "cache_dir: node_modules/.progress" in (project / "build-progress.yaml").read_text()

    def test_init_refuses_to_overwrite(self, runner, project):
        config_file = project / "build-progress.json"
        config_file.write_text(json.dumps({"bar_width": 10}))

        result = runner.invoke(main, ['init', '-C', str(project)])

        assert result.exit_code == 1
        assert json.loads(config_file.read_text()) == {"bar_width": 10}

    def test_init_force_fills_missing_settings(self, runner, project):
        config_file = project / "build-progress.json"
        config_file.write_text(json.dumps({"bar_width": 10}))

        result = runner.invoke(main, ['init', '-C', str(project), '--force'])

        assert result.exit_code == 0
        saved = json.loads(config_file.read_text())
        assert saved["bar_width"] == 10
        assert saved["description"] == "Building"


class TestClearCommand:
    """Test clear command."""

    def test_clear_with_yes(self, runner, project):
        store = CacheStore(project)
        store.save(CacheRecord(transform_count=3, chunk_count=1))

        result = runner.invoke(main, ['clear', '-C', str(project), '--yes'])

        assert result.exit_code == 0
        assert "Cache removed" in result.output
        assert not store.exists()

    def test_clear_without_cache(self, runner, project):
        result = runner.invoke(main, ['clear', '-C', str(project), '--yes'])

        assert result.exit_code == 0
        assert "No build totals cached" in result.output


class TestReplayCommand:
    """Test replaying an event log."""

    def test_replay_successful_build(self, runner, project):
        events = project / "events.log"
        events.write_text(
            "# build of a small app\n"
            "transform src/main.ts\n"
            "transform src/App.vue\n"
            "\n"
            "transform node_modules/vue/dist/vue.runtime.esm.js\n"
            "chunk index\n"
            "chunk vendor\n"
            "close\n"
        )

        result = runner.invoke(main, ['replay', str(events), '-C', str(project)])

        assert result.exit_code == 0
        assert "Build complete" in result.output
        assert CacheStore(project).load() == CacheRecord(transform_count=3, chunk_count=2)

    def test_replay_from_stdin_implies_close(self, runner, project):
        result = runner.invoke(
            main, ['replay', '-', '-C', str(project)],
            input="transform src/main.ts\nchunk\n"
        )

        assert result.exit_code == 0
        assert CacheStore(project).load() == CacheRecord(transform_count=1, chunk_count=1)

    def test_replay_failed_build(self, runner, project):
        result = runner.invoke(
            main, ['replay', '-', '-C', str(project)],
            input="transform src/main.ts\nerror Unexpected token\nclose\n"
        )

        assert result.exit_code == 1
        assert "Build failed: Unexpected token" in result.output
        assert not CacheStore(project).exists()

    def test_replay_unknown_event(self, runner, project):
        result = runner.invoke(
            main, ['replay', '-', '-C', str(project)],
            input="transform src/main.ts\nexplode now\n"
        )

        assert result.exit_code == 2
        assert "Unknown event 'explode'" in result.output
        assert not CacheStore(project).exists()


class TestParseEvent:
    """Test event log parsing."""

    def test_parse_transform(self):
        assert parse_event("transform src/a b.ts\n") == ("transform", "src/a b.ts")

    def test_parse_bare_verb(self):
        assert parse_event("CLOSE") == ("close", "")

    def test_skip_blank_and_comments(self):
        assert parse_event("   \n") is None
        assert parse_event("# comment") is None

    def test_unknown_verb(self):
        with pytest.raises(click.BadParameter):
            parse_event("bundle it")

"""Unit tests for the coursereg CLI."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from coursereg import __version__
from coursereg.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_loggers() -> Iterator[None]:
    """Close the log files serve opens."""
    yield
    for name in ("coursereg", "uvicorn"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)


@pytest.mark.unit
class TestSeedDump:
    """Tests for the seed-dump command."""

    @pytest.mark.parametrize("storage", ["memory", "sql"])
    def test_prints_seed_data(self, runner: CliRunner, storage: str) -> None:
        result = runner.invoke(main, ["seed-dump", "--storage", storage])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [s["name"] for s in data["students"]] == ["Alice", "Bob", "Charlie"]
        assert [c["title"] for c in data["courses"]] == ["Math", "Physics", "History"]
        assert data["enrollments"] == []


@pytest.mark.unit
class TestServe:
    """Tests for the serve command."""

    def test_serve_runs_uvicorn(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("COURSEREG_LOG_DIR", str(tmp_path / "logs"))

        with patch("coursereg.cli.uvicorn.run") as run:
            result = runner.invoke(
                main, ["serve", "--port", "4321", "--storage", "sql", "--no-seed"]
            )

        assert result.exit_code == 0, result.output
        run.assert_called_once()
        app = run.call_args.args[0]
        assert run.call_args.kwargs["port"] == 4321
        assert app.state.settings.storage == "sql"
        assert app.state.settings.seed is False
        assert run.call_args.kwargs["log_config"] is None
        assert (tmp_path / "logs" / "coursereg.log").exists()

    def test_explicit_config_ignores_ancestor_config(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A broken coursereg.yaml higher up does not matter when --config is given."""
        (tmp_path / "coursereg.yaml").write_text("storage: bogus\n")
        workdir = tmp_path / "work"
        workdir.mkdir()
        good = workdir / "good.yaml"
        good.write_text(f"storage: sql\nlog_dir: {workdir / 'logs'}\n")
        monkeypatch.chdir(workdir)
        for var in ("COURSEREG_STORAGE", "COURSEREG_LOG_DIR"):
            monkeypatch.delenv(var, raising=False)

        with patch("coursereg.cli.uvicorn.run") as run:
            result = runner.invoke(main, ["serve", "--config", str(good)])

        assert result.exit_code == 0, result.output
        assert run.call_args.args[0].state.settings.storage == "sql"

    def test_serve_reads_config_file(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "coursereg.yaml"
        config_path.write_text(f"port: 5000\nlog_dir: {tmp_path / 'logs'}\n")
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.delenv("COURSEREG_PORT", raising=False)
        monkeypatch.delenv("COURSEREG_LOG_DIR", raising=False)

        with patch("coursereg.cli.uvicorn.run") as run:
            result = runner.invoke(main, ["serve", "--config", str(config_path)])

        assert result.exit_code == 0, result.output
        assert run.call_args.kwargs["port"] == 5000

    def test_serve_rejects_bad_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config_path = tmp_path / "coursereg.yaml"
        config_path.write_text("storage: redis\n")

        with patch("coursereg.cli.uvicorn.run") as run:
            result = runner.invoke(main, ["serve", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        run.assert_not_called()


@pytest.mark.unit
def test_version(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output

"""
Tests for the CLI commands that do not call the model.
"""

from __future__ import annotations

import io

from rich.console import Console
from typer.testing import CliRunner

from erpro import __version__
from erpro.cli.main import app
from erpro.cli.progress import PipelineProgress
from erpro.config import Settings
from erpro.types import Artifact, ResearchStep, RunStateSnapshot, StageKey
from erpro.workspace.history import RunHistoryStore

runner = CliRunner()


class TestCli:
    """Test version, config, history and show."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_redacts_key(self, mock_settings: Settings) -> None:
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "test-fake-gemini-key-1234567890" not in result.output

    def test_history_empty(self, mock_settings: Settings) -> None:
        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "No completed runs" in result.output

    def test_show_exports_stored_run(self, mock_settings: Settings) -> None:
        store = RunHistoryStore(mock_settings.HISTORY_PATH)
        store.save("Acme Corp", [Artifact.create(s, "Acme Corp", s.value) for s in StageKey])
        out_dir = mock_settings.OUTPUT_DIR / "export"

        result = runner.invoke(app, ["show", "acme corp", "--output-dir", str(out_dir)])

        assert result.exit_code == 0
        assert (out_dir / "Acme Corp_memo.md").read_text(encoding="utf-8") == "memo"

    def test_show_unknown_subject(self, mock_settings: Settings) -> None:
        result = runner.invoke(app, ["show", "Nobody"])

        assert result.exit_code == 1


class TestPipelineProgress:
    """Test the live stage display bookkeeping."""

    def _snapshot(self, step: ResearchStep, done: int, error: str | None = None) -> RunStateSnapshot:
        artifacts = tuple(Artifact.create(s, "Acme Corp", "x") for s in list(StageKey)[:done])
        return RunStateSnapshot(
            subject_name="Acme Corp",
            step=step,
            artifacts=artifacts,
            error=error,
            is_processing=step not in (ResearchStep.COMPLETED, ResearchStep.FAILED),
        )

    def test_stage_statuses_follow_snapshots(self) -> None:
        progress = PipelineProgress(Console(file=io.StringIO()), "Acme Corp")

        progress.update(self._snapshot(ResearchStep.SOURCING_DOCUMENTS, 0))
        assert [s.status for s in progress.stages.values()] == ["running", "pending", "pending"]

        progress.update(self._snapshot(ResearchStep.DRAFTING_REPORT, 1))
        assert [s.status for s in progress.stages.values()] == ["complete", "running", "pending"]

        progress.update(self._snapshot(ResearchStep.FAILED, 1, error="boom"))
        assert [s.status for s in progress.stages.values()] == ["complete", "error", "pending"]
        assert progress.error_message == "boom"

    def test_display_renders(self) -> None:
        output = io.StringIO()
        console = Console(file=output, width=100)
        with PipelineProgress(console, "Acme Corp") as progress:
            progress.update(self._snapshot(ResearchStep.COMPLETED, 3))

        assert "Acme Corp Research Complete" in output.getvalue()
        assert "Investment Memo" in output.getvalue()

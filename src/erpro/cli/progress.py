"""Rich progress display for the research pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from erpro.types import ResearchStep, RunStateSnapshot, StageKey


@dataclass
class StageInfo:
    """Information about a pipeline stage."""

    number: int
    name: str
    status: str = "pending"  # pending, running, complete, error
    started_at: float | None = None
    completed_at: float | None = None

    @property
    def duration_str(self) -> str:
        """Get formatted duration string."""
        if self.started_at is None:
            return ""
        d = (self.completed_at or time.time()) - self.started_at
        if d < 60:
            return f"{d:.0f}s"
        return f"{int(d // 60)}m {int(d % 60)}s"


# Stage running while the pipeline is in each step
RUNNING_STAGE = {
    ResearchStep.SOURCING_DOCUMENTS: 1,
    ResearchStep.DRAFTING_REPORT: 2,
    ResearchStep.DRAFTING_MEMO: 3,
}


class PipelineProgress:
    """Live progress display fed by orchestrator state snapshots."""

    STATUS_ICONS = {
        "pending": "[dim]...[/dim]",
        "running": "[yellow]...[/yellow]",
        "complete": "[green]OK[/green]",
        "error": "[red]ERR[/red]",
    }

    def __init__(self, console: Console, subject_name: str) -> None:
        """Initialize progress display.

        Args:
            console: Rich console to write to.
            subject_name: Company being researched.
        """
        self.console = console
        self.subject_name = subject_name
        self.started_at = time.time()
        self.stages: dict[int, StageInfo] = {
            i: StageInfo(number=i, name=stage.display_title)
            for i, stage in enumerate(StageKey, start=1)
        }
        self.step = ResearchStep.IDLE
        self.error_message: str | None = None
        self._live: Live | None = None

    def _build_display(self) -> Panel:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Stage", width=3, justify="right")
        table.add_column("Status", width=4)
        table.add_column("Name", width=24)
        table.add_column("Time", width=8, justify="right", style="dim")

        styles = {"running": "bold yellow", "complete": "green", "error": "red"}
        for i, stage in self.stages.items():
            table.add_row(
                f"{i}.",
                self.STATUS_ICONS.get(stage.status, ""),
                Text(stage.name, style=styles.get(stage.status, "dim")),
                stage.duration_str,
            )

        footer = Text()
        footer.append("Elapsed: ", style="dim")
        footer.append(f"{time.time() - self.started_at:.0f}s", style="cyan")
        if self.error_message:
            footer.append("  |  ", style="dim")
            footer.append(self.error_message[:80], style="red")

        if self.step == ResearchStep.COMPLETED:
            title = f"[bold green]{self.subject_name} Research Complete[/bold green]"
            border_style = "green"
        elif self.step == ResearchStep.FAILED:
            title = f"[bold red]{self.subject_name} Research Failed[/bold red]"
            border_style = "red"
        else:
            title = f"[bold cyan]Researching {self.subject_name}...[/bold cyan]"
            border_style = "cyan"

        return Panel(Group(table, Text(""), footer), title=title, border_style=border_style)

    def update(self, snapshot: RunStateSnapshot) -> None:
        """Update the display from an orchestrator snapshot."""
        now = time.time()
        self.step = snapshot.step
        self.error_message = snapshot.error
        done = len(snapshot.artifacts)

        for i, stage in self.stages.items():
            if i <= done:
                if stage.status != "complete":
                    stage.status = "complete"
                    stage.completed_at = now
            elif i == RUNNING_STAGE.get(snapshot.step):
                if stage.status != "running":
                    stage.status = "running"
                    stage.started_at = now
            elif snapshot.step == ResearchStep.FAILED and i == done + 1:
                stage.status = "error"
                stage.completed_at = now

        if self._live:
            self._live.update(self._build_display())

    def __enter__(self) -> PipelineProgress:
        """Start the live display."""
        self._live = Live(
            self._build_display(),
            console=self.console,
            refresh_per_second=4,
            transient=False,
            get_renderable=self._build_display,
        )
        self._live.__enter__()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Stop the live display."""
        if self._live:
            self._live.update(self._build_display())
            self._live.__exit__(exc_type, exc_val, exc_tb)
            self._live = None

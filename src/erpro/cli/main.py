"""
CLI for the research pipeline.

Commands:
    erpro analyze COMPANY - Generate sources, report and memo for a company
    erpro history - List recent completed runs
    erpro show COMPANY - Re-export a stored run
    erpro config - Show current configuration
    erpro version - Print version
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from erpro import __version__
from erpro.auth import CredentialGate
from erpro.cli.progress import PipelineProgress
from erpro.config import Settings, clear_settings_cache, get_settings
from erpro.coordinator.pipeline import PipelineOrchestrator
from erpro.llm.stages import GeminiStages
from erpro.logging import setup_logging
from erpro.outputs.export import export_artifacts
from erpro.types import ResearchStep, RunStateSnapshot
from erpro.verification.links import LinkVerifier
from erpro.workspace.history import RunHistoryStore

app = typer.Typer(
    name="erpro",
    help="Equity Research Pro - sourced analyst reports and investment memos",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def _get_settings_safe() -> Settings | None:
    """Get settings, returning None if configuration is invalid."""
    try:
        clear_settings_cache()
        return get_settings()
    except Exception:
        return None


def _has_key() -> bool:
    settings = _get_settings_safe()
    return settings is not None and settings.gemini_api_key is not None


def _prompt_for_key() -> None:
    """Ask for a Gemini API key and expose it to the settings loader."""
    key = typer.prompt(
        "Gemini API key (Google AI Studio)",
        hide_input=True,
        default="",
        show_default=False,
    )
    if key.strip():
        os.environ["GEMINI_API_KEY"] = key.strip()


def _history_store(settings: Settings) -> RunHistoryStore:
    return RunHistoryStore(settings.HISTORY_PATH, limit=settings.HISTORY_LIMIT)


async def _run_pipeline(
    settings: Settings,
    company: str,
    progress: PipelineProgress,
) -> tuple[RunStateSnapshot, bool]:
    """Run the pipeline once; returns the final state and whether re-auth was requested."""
    reauthorize_requested = False

    def _on_reauthorize() -> None:
        nonlocal reauthorize_requested
        reauthorize_requested = True

    async with LinkVerifier(timeout=settings.PROBE_TIMEOUT_SECONDS) as verifier:
        orchestrator = PipelineOrchestrator(
            stages=GeminiStages(settings=settings),
            verifier=verifier,
            history_store=_history_store(settings),
            url_suffix=settings.LINK_SUFFIX,
            on_update=progress.update,
            on_reauthorize=_on_reauthorize,
        )
        final_state = await orchestrator.run(company)

    return final_state, reauthorize_requested


@app.command()
def analyze(
    company: Annotated[str, typer.Argument(help="Company name (e.g., Nvidia)")],
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Output directory"),
    ] = None,
) -> None:
    """Research a company: document sources, analyst report and investment memo.

    Writes three markdown files to the output directory:
    - {company}_sources.md (with link verification report)
    - {company}_report.md
    - {company}_memo.md
    """
    company = company.strip()
    if not company:
        error_console.print("[red]Error:[/red] Company name must not be empty.")
        raise typer.Exit(1)

    gate = CredentialGate(
        probe=_has_key,
        prompt=_prompt_for_key,
    )
    if not gate.is_authorized():
        console.print("[yellow]A Gemini API key is required to run research.[/yellow]")
        if not gate.request_authorization():
            error_console.print("[red]Error:[/red] No usable API key was provided.")
            raise typer.Exit(1)

    settings = _get_settings_safe()
    if settings is None:
        error_console.print(
            "[red]Error:[/red] Configuration is invalid. "
            "Run 'erpro config' to see what's wrong."
        )
        raise typer.Exit(1)

    settings.ensure_directories()
    setup_logging(settings.LOG_LEVEL, log_file=settings.OUTPUT_DIR / "erpro.log", console_output=False)

    console.print()
    with PipelineProgress(console, company) as progress:
        final_state, reauthorize_requested = asyncio.run(
            _run_pipeline(settings, company, progress)
        )

    if reauthorize_requested:
        console.print(
            "\n[yellow]The API key was rejected by the provider. "
            "Please connect a valid key.[/yellow]"
        )
        if gate.request_authorization():
            console.print(f"Key updated. Run [bold]erpro analyze \"{company}\"[/bold] again.")
        raise typer.Exit(2)

    if final_state.step == ResearchStep.FAILED:
        error_console.print(f"\n[red]Error:[/red] {final_state.error}")
        raise typer.Exit(1)

    target_dir = output_dir or settings.get_run_output_dir(company)
    paths = export_artifacts(final_state.artifacts, target_dir)

    console.print()
    console.print(
        Panel(
            "\n".join(f"[bold]{a.title}:[/bold] {p}" for a, p in zip(final_state.artifacts, paths)),
            title=f"[bold green]{company} Research Complete[/bold green]",
            border_style="green",
        )
    )


@app.command()
def history() -> None:
    """List recent completed runs, most recent first."""
    settings = _get_settings_safe()
    if settings is None:
        error_console.print("[red]Configuration is invalid or incomplete.[/red]")
        raise typer.Exit(1)

    entries = _history_store(settings).entries
    if not entries:
        console.print("[dim]No completed runs yet.[/dim]")
        return

    table = Table(title="Recent Research", show_header=True)
    table.add_column("Company", style="cyan")
    table.add_column("Completed", style="green")
    table.add_column("Artifacts")

    for entry in entries:
        table.add_row(
            entry.subject_name,
            entry.completed_at.strftime("%Y-%m-%d %H:%M UTC"),
            ", ".join(a.title for a in entry.artifacts),
        )
    console.print(table)


@app.command()
def show(
    company: Annotated[str, typer.Argument(help="Company name from history")],
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Output directory"),
    ] = None,
) -> None:
    """Export the artifacts of a stored run again."""
    settings = _get_settings_safe()
    if settings is None:
        error_console.print("[red]Configuration is invalid or incomplete.[/red]")
        raise typer.Exit(1)

    entry = _history_store(settings).get(company)
    if entry is None:
        error_console.print(f"[red]Error:[/red] No stored run for {company!r}.")
        raise typer.Exit(1)

    paths = export_artifacts(entry.artifacts, output_dir or settings.get_run_output_dir(entry.subject_name))
    for path in paths:
        console.print(f"[bold]Saved:[/bold] {path}")


@app.command()
def config() -> None:
    """Show current configuration with API keys redacted."""
    console.print()
    settings = _get_settings_safe()

    if settings is None:
        error_console.print("[red]Configuration is invalid or incomplete.[/red]")
        error_console.print("Check the environment variables or your .env file.")
        raise typer.Exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.redacted_display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print(table)
    console.print()


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"erpro version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

"""
scriptalchemy.cli - Typer CLI entry point.

Provides the project subcommands: init, add, convert, analyze, template,
remove, and status.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scriptalchemy import __version__
from scriptalchemy.config import SUPPORTED_MODELS, AnalysisConfig, load_config
from scriptalchemy.exceptions import ConfigError, ScriptAlchemyError
from scriptalchemy.io import read_transcript_file, write_text
from scriptalchemy.llm.templates import PROMPTS_DIR, PromptTemplateManager
from scriptalchemy.logging import configure_logging
from scriptalchemy.models import MasterTemplate, ProcessingStatus, SegmentLabel
from scriptalchemy.project import Project, find_project_dir

app = typer.Typer(
    name="scriptalchemy",
    help="Subtitle transcript analysis toolkit.\n\n"
    "Labels the structure of video scripts with an LLM and distills several "
    "analyses into a reusable master template.",
    add_completion=False,
)
console = Console()

STATUS_STYLES = {
    ProcessingStatus.QUEUED: "dim",
    ProcessingStatus.PROCESSING: "cyan",
    ProcessingStatus.COMPLETED: "green",
    ProcessingStatus.ERROR: "red",
}


def version_callback(value: bool) -> None:
    if value:
        console.print(f"scriptalchemy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """ScriptAlchemy - subtitle transcript analysis toolkit."""
    configure_logging(verbose)


def _require_project() -> Project:
    project_dir = find_project_dir()
    if not project_dir:
        console.print("[red]Error: Not in a ScriptAlchemy project directory[/red]")
        console.print("[dim]Run 'scriptalchemy init' first or cd into a project directory[/dim]")
        raise typer.Exit(1)
    project = Project(project_dir)
    requeued = project.reset_interrupted()
    if requeued:
        console.print(f"[dim]Re-queued {requeued} interrupted script(s)[/dim]")
    return project


def _template_manager(project: Project) -> PromptTemplateManager:
    if project.prompts_dir.exists() and any(project.prompts_dir.glob("*.txt")):
        return PromptTemplateManager(project.prompts_dir)
    return PromptTemplateManager()


@app.command("init")
def init_project(
    name: str = typer.Argument(..., help="Project name"),
    language: str = typer.Option(
        "vi", "--language", "-l", help="Output language for analyses: en or vi"
    ),
    path: str = typer.Option(".", "--path", "-d", help="Directory to create project in"),
) -> None:
    """Create a new ScriptAlchemy project."""
    project_path = Path(path) / name

    if project_path.exists():
        console.print(f"[red]Error: Directory '{project_path}' already exists[/red]")
        raise typer.Exit(1)

    try:
        project = Project(project_path)
        project.create(language=language)
    except ScriptAlchemyError as e:
        console.print(f"[red]Error creating project: {e}[/red]")
        raise typer.Exit(1)

    for prompt_file in PROMPTS_DIR.glob("*.txt"):
        shutil.copy(prompt_file, project.prompts_dir / prompt_file.name)

    console.print(f"[green]✓[/green] Created project '{name}' (output language: {language})")
    console.print(f"[dim]  {project_path}[/dim]")
    console.print("\nNext steps:")
    console.print(f"  cd {name}")
    console.print("  scriptalchemy add <subtitle_files>")


@app.command("add")
def add_scripts(
    files: list[Path] = typer.Argument(..., help="Subtitle (.srt) or time-marked transcript file(s)"),
) -> None:
    """Parse transcript files and queue them for analysis."""
    from scriptalchemy.parse import load_transcript

    project = _require_project()
    config = load_config(project.path)

    table = Table(title="Adding Scripts")
    table.add_column("File", style="cyan")
    table.add_column("Segments", style="green")
    table.add_column("Status", style="yellow")

    added = 0
    for file in files:
        if not file.exists():
            table.add_row(file.name, "-", "[red]Not found[/red]")
            continue

        try:
            segments = load_transcript(
                read_transcript_file(file),
                min_tail_seconds=config.freeform_min_tail_seconds,
                words_per_second=config.freeform_words_per_second,
            )
        except ScriptAlchemyError as e:
            table.add_row(file.name, "-", f"[red]{escape(str(e))}[/red]")
            continue

        script = project.add_script(file, segments)
        table.add_row(file.name, str(len(segments)), f"Queued as {script.id}")
        added += 1

    console.print(table)
    console.print(f"\n[green]✓[/green] Added {added} script(s)")
    if added:
        console.print("\nNext step: [cyan]scriptalchemy analyze[/cyan]")


@app.command("convert")
def convert_transcript(
    source: Path = typer.Argument(..., help="Transcript with m:ss time markers in brackets"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output .srt path"),
) -> None:
    """Convert a transcript with bracketed m:ss markers to SRT."""
    from scriptalchemy.parse import convert_freeform

    if not source.exists():
        console.print(f"[red]Error: File not found: {source}[/red]")
        raise typer.Exit(1)

    config = AnalysisConfig()
    project_dir = find_project_dir()
    if project_dir:
        config = load_config(project_dir)

    converted = convert_freeform(
        read_transcript_file(source),
        min_tail_seconds=config.freeform_min_tail_seconds,
        words_per_second=config.freeform_words_per_second,
    )
    if not converted:
        console.print("[red]Error: No \\[m:ss] or \\[h:mm:ss] time markers found[/red]")
        raise typer.Exit(1)

    output_path = output or source.with_suffix(".srt")
    write_text(output_path, converted)
    console.print(f"[green]✓[/green] Converted to {output_path}")


@app.command("analyze")
def analyze_scripts(
    retry_errors: bool = typer.Option(
        False, "--retry-errors", "-r", help="Also re-run scripts that failed"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Re-analyze completed scripts too"),
) -> None:
    """Analyze queued scripts one at a time."""
    from scriptalchemy.llm.client import create_client_from_config
    from scriptalchemy.pipeline import run_analysis

    project = _require_project()
    config = load_config(project.path)
    client = create_client_from_config(config)
    template_manager = _template_manager(project)

    runnable = {ProcessingStatus.QUEUED}
    if retry_errors:
        runnable.add(ProcessingStatus.ERROR)
    if force:
        runnable.update({ProcessingStatus.ERROR, ProcessingStatus.COMPLETED})

    pending = [s for s in project.list_scripts() if s.status in runnable]
    if not pending:
        console.print("[yellow]Nothing to analyze. Add scripts with 'scriptalchemy add'.[/yellow]")
        return

    console.print(f"[cyan]Analyzing {len(pending)} script(s) with {config.llm_model}...[/cyan]\n")

    completed = failed = 0
    for script in pending:
        project.update_script(
            script.id, status=ProcessingStatus.PROCESSING, progress="Initializing...", error=None
        )

        console.print(f"[bold]{script.filename}[/bold] ({script.id})")

        def report(message: str) -> None:
            console.print(f"[dim]  {escape(message)}[/dim]")
            project.update_script(script.id, progress=message)

        try:
            analysis = run_analysis(
                project.load_segments(script.id),
                client=client,
                config=config,
                on_progress=report,
                template_manager=template_manager,
            )
        except ConfigError as e:
            project.update_script(script.id, status=ProcessingStatus.QUEUED, progress=None)
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)
        except Exception as e:
            project.update_script(
                script.id, status=ProcessingStatus.ERROR, progress=None, error=str(e)
            )
            console.print(f"[red]✗ {script.filename}: {escape(str(e))}[/red]")
            failed += 1
            continue

        project.save_analysis(script.id, analysis)
        project.update_script(script.id, status=ProcessingStatus.COMPLETED, progress=None)
        console.print(
            f"[green]✓[/green] {script.filename}: hook {analysis.hook_score}, "
            f"pacing {analysis.pacing_score}, {len(analysis.segments)} segments"
        )
        completed += 1

    console.print(f"\n[green]✓[/green] Completed {completed}, failed {failed}")
    usage = client.get_token_usage()
    if usage["total_tokens"] > 0:
        console.print(f"[dim]Token usage: {usage['total_tokens']:,} total[/dim]")
    if completed:
        console.print("\nNext step: [cyan]scriptalchemy template[/cyan]")

    if failed:
        raise typer.Exit(1)


@app.command("template")
def build_template(
    show: bool = typer.Option(False, "--show", "-s", help="Print the saved template and exit"),
) -> None:
    """Synthesize a master template from all completed analyses."""
    from scriptalchemy.llm.client import create_client_from_config
    from scriptalchemy.llm.master import build_master_template

    project = _require_project()

    if show:
        template = project.load_template()
        if template is None:
            console.print("[yellow]No master template yet. Run 'scriptalchemy template'.[/yellow]")
            raise typer.Exit(1)
        _print_template(template)
        return

    analyses = project.completed_analyses()
    if not analyses:
        console.print("[red]Error: No completed analyses found[/red]")
        console.print("[dim]Run 'scriptalchemy analyze' first.[/dim]")
        raise typer.Exit(1)

    config = load_config(project.path)
    client = create_client_from_config(config)

    console.print(f"[cyan]Synthesizing master template from {len(analyses)} script(s)...[/cyan]")

    try:
        template = build_master_template(
            analyses,
            client=client,
            config=config,
            template_manager=_template_manager(project),
        )
    except ScriptAlchemyError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    output_path = project.save_template(template)
    _print_template(template)
    console.print(f"\n[green]✓[/green] Master template saved to {output_path}")


def _print_template(template: MasterTemplate) -> None:
    console.print(f"\n[bold]{template.title}[/bold]")
    if template.target_audience:
        console.print(f"[dim]Audience: {template.target_audience}[/dim]")

    table = Table(title="Blueprint")
    table.add_column("Section", style="cyan")
    table.add_column("Share", style="green")
    table.add_column("Description")
    for section in template.structure:
        table.add_row(section.section.value, section.duration_percent, section.description)
    console.print(table)

    if template.winning_formula:
        console.print(f"\n[bold]Winning formula:[/bold] {template.winning_formula}")
    for tip in template.tips:
        console.print(f"  • {tip}")


@app.command("remove")
def remove_script(
    script_id: str = typer.Argument(..., help="Script ID to remove, e.g. script_001"),
) -> None:
    """Remove a script from the project with its stored segments and analysis."""
    project = _require_project()

    try:
        script = project.remove_script(script_id)
    except ScriptAlchemyError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Removed {script.id} ({script.filename})")


@app.command("status")
def show_status() -> None:
    """Show scripts in the project and their processing status."""
    project = _require_project()
    config = load_config(project.path)
    scripts = project.list_scripts()

    table = Table(title=f"{project.path.name} ({config.llm_model}, {config.output_language})")
    table.add_column("ID", style="cyan")
    table.add_column("File")
    table.add_column("Segments", justify="right")
    table.add_column("Status")
    table.add_column("Details", style="dim")

    for script in scripts:
        style = STATUS_STYLES[script.status]
        details = script.error or script.progress or ""
        if script.status is ProcessingStatus.COMPLETED:
            try:
                analysis = project.load_analysis(script.id)
            except FileNotFoundError:
                details = "analysis file missing"
            else:
                hooks = analysis.label_counts().get(SegmentLabel.HOOK, 0)
                details = (
                    f"hook {analysis.hook_score}, pacing {analysis.pacing_score}, {hooks} HOOK"
                )
        table.add_row(
            script.id,
            script.filename,
            str(script.segment_count),
            f"[{style}]{script.status.value}[/{style}]",
            details,
        )

    console.print(table)
    if config.llm_backend == "gemini" and config.llm_model not in SUPPORTED_MODELS:
        console.print(f"[yellow]Warning: untested Gemini model '{config.llm_model}'[/yellow]")
    if project.template_path.exists():
        console.print("[dim]Master template available: scriptalchemy template --show[/dim]")


if __name__ == "__main__":
    app()

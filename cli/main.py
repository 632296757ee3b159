# cli/main.py
# ============================================================
# Resumind: Command Line Interface
# ============================================================
# Typer-based CLI that drives the pipeline with the local
# collaborators (on-disk storage + key-value store) and the
# configured AI server.
#
# Usage:
#   python -m cli.main analyze cv.pdf --title "Data Engineer" --company Acme
#   python -m cli.main convert cv.pdf --output cv.png
#   python -m cli.main show <record-id>
#   python -m cli.main health
# ============================================================

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import settings
from resumind.analysis.client import FeedbackClient
from resumind.analysis.prompts import list_categories
from resumind.pipeline.models import PipelineRecord, SubmissionForm
from resumind.pipeline.orchestrator import ResumePipeline, record_key
from resumind.render.converter import SourceDocument, convert_page
from resumind.render.loader import check_engine_version
from resumind.services.storage import FileKeyValueStore, LocalObjectStorage

# ============================================================
# CLI App Setup
# ============================================================

app = typer.Typer(
    name="resumind",
    help=(
        "📄 Resumind — AI Resume Feedback\n\n"
        "Renders the first page of a resume PDF and asks a vision model\n"
        "for an ATS score and improvement tips."
    ),
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def _load_document(path: str) -> SourceDocument:
    pdf = Path(path)
    if not pdf.is_file():
        console.print(f"[red]Error:[/red] Input file not found: {path}")
        raise typer.Exit(code=1)
    return SourceDocument.from_path(pdf)


# ============================================================
# Commands
# ============================================================

@app.command()
def analyze(
    input_path: str = typer.Argument(..., help="Path to the resume PDF."),
    company: str = typer.Option("", "--company", "-c", help="Company name."),
    title: str = typer.Option("", "--title", "-t", help="Job title applied for."),
    description: str = typer.Option("", "--description", "-d", help="Job description text."),
    description_file: Optional[Path] = typer.Option(
        None, "--description-file", help="Read the job description from a file.",
    ),
):
    """
    🔍 Run the full pipeline: upload, render, persist, analyse.
    """
    document = _load_document(input_path)
    if description_file is not None:
        description = description_file.read_text(encoding="utf-8")

    form = SubmissionForm(company_name=company, job_title=title, job_description=description)

    console.print(Panel(
        f"[bold blue]Resume Analysis[/bold blue]\n"
        f"Input:   {input_path}\n"
        f"Job:     {title or '-'} @ {company or '-'}\n"
        f"Model:   {settings.ai_model_name}",
        title="📄 Resumind",
        border_style="blue",
    ))

    storage = LocalObjectStorage(settings.storage_dir)
    store = FileKeyValueStore(settings.kv_dir)
    client = FeedbackClient(storage)
    pipeline = ResumePipeline(
        storage, store, client,
        on_status=lambda text: console.print(f"[cyan]›[/cyan] {text}"),
    )

    async def run_pipeline():
        try:
            return await pipeline.submit(form, document)
        finally:
            await client.aclose()

    outcome = asyncio.run(run_pipeline())

    if not outcome.completed:
        console.print(f"\n[red]Stopped at {outcome.failed_stage.value}:[/red] {outcome.status}")
        if outcome.record_id:
            console.print(f"Partial record: {record_key(outcome.record_id)}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold green]Done.[/bold green] Record id: [bold]{outcome.record_id}[/bold]")
    _print_record(pipeline.record)


@app.command()
def convert(
    input_path: str = typer.Argument(..., help="Path to the PDF."),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="PNG output path. Defaults to the PDF name with .png.",
    ),
    scale: float = typer.Option(settings.render_scale, "--scale", "-s", help="Viewport scale."),
):
    """
    🖼  Render page 1 of a PDF to PNG without analysing it.
    """
    document = _load_document(input_path)
    result = asyncio.run(convert_page(document, scale=scale))

    if result.file is None:
        console.print(f"[red]Error:[/red] {result.error}")
        raise typer.Exit(code=1)

    output_path = Path(output) if output else Path(input_path).with_name(result.file.name)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.file.data)
    console.print(
        f"Wrote [bold]{output_path}[/bold] "
        f"({result.file.width}x{result.file.height}, {len(result.file.data)} bytes)"
    )


@app.command()
def show(
    record_id: str = typer.Argument(..., help="Record id printed by analyze."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw record JSON."),
):
    """
    📋 Print a stored record.
    """
    raw = asyncio.run(FileKeyValueStore(settings.kv_dir).get(record_key(record_id)))
    if raw is None:
        console.print(f"[red]Error:[/red] No record {record_key(record_id)}")
        raise typer.Exit(code=1)

    record = PipelineRecord.from_json(raw)
    if as_json:
        console.print_json(_dump_json(record))
    else:
        _print_record(record)


@app.command()
def health():
    """
    🏥 Check that a rendering engine can be loaded.
    """
    console.print("[bold]Checking rendering engine...[/bold]\n")
    status = asyncio.run(check_engine_version())

    table = Table(title="Rendering Engine", show_header=False)
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Engine", status["api"])
    table.add_row("Worker", status["worker"])
    table.add_row("Compatible", "✅ Yes" if status["compatible"] else "❌ No")
    table.add_row("Strategy", settings.render_strategy)
    table.add_row("Render scale", f"{settings.render_scale}x")
    console.print(table)

    if not status["compatible"]:
        raise typer.Exit(code=1)


# ============================================================
# Helper Functions
# ============================================================

def _print_record(record: Optional[PipelineRecord]) -> None:
    """Print a summary table of a record and its feedback scores."""
    if record is None:
        return

    table = Table(title=f"Record {record.id}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Company", record.company_name or "-")
    table.add_row("Job title", record.job_title or "-")
    table.add_row("Resume", record.resume_path)
    table.add_row("Image", record.image_path)

    if record.has_feedback:
        overall = record.feedback.get("overallScore")
        if isinstance(overall, (int, float)):
            table.add_row("Overall", f"[bold cyan]{overall}[/bold cyan]")
        for name in list_categories():
            section = record.feedback.get(name)
            score = section.get("score") if isinstance(section, dict) else None
            if isinstance(score, (int, float)):
                table.add_row(name, f"[cyan]{score}[/cyan]")
    else:
        table.add_row("Feedback", "[yellow]pending[/yellow]")

    console.print(table)


def _dump_json(record: PipelineRecord) -> str:
    return json.dumps(json.loads(record.to_json()), indent=2, ensure_ascii=False)


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    app()

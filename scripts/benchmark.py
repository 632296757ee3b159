# scripts/benchmark.py
# ============================================================
# Render Scale Benchmark
# ============================================================
# The render scale trades render time for output resolution.
# This script renders page 1 of a PDF at several scales and
# reports image size, PNG size and latency for each, so the
# default (settings.render_scale) can be chosen with numbers.
#
# Usage:
#   python scripts/benchmark.py cv.pdf --scales 1 2 3 4 --runs 5
# ============================================================

import argparse
import asyncio
import statistics
import time

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from resumind.errors import LoadFailure
from resumind.render.converter import SourceDocument, convert_page
from resumind.render.loader import engine_loader
from resumind.utils.logger import get_logger

logger = get_logger(__name__)
console = Console()


async def run_benchmark(input_path: str, scales: list[float], runs: int = 3) -> bool:
    """
    Render page 1 of ``input_path`` ``runs`` times at every scale.

    Args:
        input_path: Path to a PDF file.
        scales: Viewport scales to compare.
        runs: Renders per scale; latency stats are taken over these.

    Returns:
        False if no rendering engine could be loaded.
    """
    console.print(Panel(
        f"[bold yellow]Render Scale Benchmark[/bold yellow]\n"
        f"Input:  {input_path}\n"
        f"Scales: {', '.join(f'{s:g}x' for s in scales)}\n"
        f"Runs:   {runs}",
        title="⚡ Benchmark",
        border_style="yellow",
    ))

    document = SourceDocument.from_path(input_path)

    # Engine load is a one-off cost; keep it out of the per-render numbers
    load_start = time.perf_counter()
    try:
        engine = await engine_loader.acquire()
    except LoadFailure as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        for strategy, cause in e.causes.items():
            console.print(f"  [bold]{strategy}[/bold]: {escape(str(cause))}")
        return False
    load_time = (time.perf_counter() - load_start) * 1000
    console.print(f"Engine [bold]{engine.name} {engine.version}[/bold] loaded in [cyan]{load_time:.0f}ms[/cyan]\n")

    table = Table(title="📊 Render Results", border_style="bright_blue")
    table.add_column("Scale", justify="right")
    table.add_column("Pixels", justify="right")
    table.add_column("PNG", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")

    for scale in scales:
        latencies = []
        result = None
        for _ in range(runs):
            start = time.perf_counter()
            result = await convert_page(document, scale=scale)
            latencies.append((time.perf_counter() - start) * 1000)
            if result.file is None:
                break

        if result is None or result.file is None:
            error = result.error if result else "no runs"
            table.add_row(f"{scale:g}x", "[red]failed[/red]", "-", "-", "-", error)
            continue

        table.add_row(
            f"{scale:g}x",
            f"{result.file.width}x{result.file.height}",
            f"{len(result.file.data) / 1024:,.0f} KB",
            f"[cyan]{statistics.mean(latencies):.0f}ms[/cyan]",
            f"[green]{min(latencies):.0f}ms[/green]",
            f"[yellow]{max(latencies):.0f}ms[/yellow]",
        )

    console.print(table)
    return True


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render scale benchmark")
    parser.add_argument("input_path", help="Path to the PDF to render")
    parser.add_argument("--scales", type=float, nargs="+", default=[1.0, 2.0, 3.0, 4.0])
    parser.add_argument("--runs", type=int, default=3, help="Renders per scale")
    args = parser.parse_args()

    ok = asyncio.run(run_benchmark(args.input_path, args.scales, args.runs))
    raise SystemExit(0 if ok else 1)

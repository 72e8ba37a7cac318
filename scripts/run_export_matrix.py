"""Run a matrix of demo exports and summarize timing and output size.

Usage:
    python scripts/run_export_matrix.py                       # All scenarios
    python scripts/run_export_matrix.py --scenario ring_prores
    python scripts/run_export_matrix.py --output-dir data/exports
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

app = typer.Typer(name="run_export_matrix")
console = Console()
logger = logging.getLogger("chunkex.run_matrix")

# Scenario registry
SCENARIOS = {
    "square_qtrle": {
        "source": "chunkex.demo.sample_animation:RotatingSquareAnimation",
        "size": (1080, 1080),
        "source_duration": 5.0,
        "export": {"codec": "qtrle", "fps": 30, "duration": 5.0},
        "desc": "Rotating square, Animation codec",
    },
    "square_prores": {
        "source": "chunkex.demo.sample_animation:RotatingSquareAnimation",
        "size": (1080, 1080),
        "source_duration": 5.0,
        "export": {"codec": "prores_4444", "fps": 30, "duration": 5.0},
        "desc": "Rotating square, ProRes 4444",
    },
    "ring_prores": {
        "source": "chunkex.demo.sample_animation:PulsingRingAnimation",
        "size": (720, 720),
        "source_duration": 2.0,
        "export": {"codec": "prores_4444", "fps": 60, "duration": 6.0},
        "desc": "Pulsing ring looped 3x at 60fps",
    },
    "portrait_half_speed": {
        "source": "chunkex.demo.sample_animation:PulsingRingAnimation",
        "size": (720, 1280),
        "source_duration": 2.0,
        "export": {"codec": "qtrle", "fps": 30, "duration": 4.0, "playback_rate": 0.5},
        "desc": "Portrait ring at half playback speed",
    },
}


def run_scenario(name: str, info: dict, output_dir: Path) -> dict:
    """Export one scenario and write the clip under ``output_dir``."""
    from chunkex.core.config import import_frame_source
    from chunkex.core.contracts import ExportConfig
    from chunkex.core.session import ExportController
    from chunkex.utils.io import write_output
    from chunkex.utils.memory import check_memory_risk, format_memory

    width, height = info["size"]
    config = ExportConfig(width=width, height=height, **info["export"])
    risk = check_memory_risk(width, height, config.fps, config.duration, config.chunk_frame_count)

    console.print(Panel(
        f"[bold]{info['desc']}[/bold]\n"
        f"Source: {info['source']}\n"
        f"{width}x{height} @ {config.fps}fps, {config.duration}s, {config.codec.value}\n"
        f"{config.total_frames} frames in {config.total_chunks} chunks, "
        f"peak ~{format_memory(risk.required_bytes)}",
        title=f"Scenario: {name}",
        border_style="cyan",
    ))

    source = import_frame_source(
        info["source"], width=width, height=height, duration=info["source_duration"]
    )
    controller = ExportController(source, config, filename_prefix=name)

    t0 = time.time()
    result = asyncio.run(controller.start())
    elapsed = time.time() - t0

    if not result.success:
        console.print(f"  [red]{result.phase.value}[/red] {escape(result.error or '')}")
        return {"error": result.error or result.phase.value, "elapsed_s": elapsed}

    path = write_output(result.data, output_dir, result.filename)
    console.print(f"  [green]OK[/green] {path.name} ({len(result.data) / (1024 * 1024):.1f}MB, {elapsed:.1f}s)")
    return {
        "file": str(path),
        "bytes": len(result.data),
        "elapsed_s": elapsed,
        "frames": config.total_frames,
        "chunks": config.total_chunks,
        "peak_resident_frames": controller.session.peak_resident_frames,
    }


@app.command()
def main(
    scenario: str = typer.Option(
        None, "--scenario", "-s",
        help="Scenario name. Omit for all.",
    ),
    output_dir: Path = typer.Option(
        PROJECT_ROOT / "data" / "exports", help="Where clips and run_summary.json go",
    ),
) -> None:
    """Export every demo scenario end-to-end."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    if scenario:
        if scenario not in SCENARIOS:
            console.print(f"[red]Unknown scenario: {scenario}[/red]")
            console.print(f"Available: {', '.join(SCENARIOS.keys())}")
            raise typer.Exit(1)
        to_run = {scenario: SCENARIOS[scenario]}
    else:
        to_run = SCENARIOS

    all_results = {}
    for name, info in to_run.items():
        try:
            all_results[name] = run_scenario(name, info, output_dir)
        except Exception as e:
            console.print(f"\n[red]FAILED: {name}[/red]")
            console.print(f"  {type(e).__name__}: {e}")
            logger.exception(f"Scenario {name} crashed")
            all_results[name] = {"error": str(e)}

    # ── Summary ────────────────────────────────────────────────
    console.print("\n")
    table = Table(title="Export Matrix Summary")
    table.add_column("Scenario", style="cyan")
    table.add_column("Frames", style="magenta")
    table.add_column("Chunks", style="magenta")
    table.add_column("Size", style="green")
    table.add_column("Time", style="green")
    table.add_column("Status", style="bold")

    for name, res in all_results.items():
        if "error" in res:
            table.add_row(name, "-", "-", "-", "-", f"[red]{escape(res['error'])}[/red]")
        else:
            table.add_row(
                name,
                str(res["frames"]),
                str(res["chunks"]),
                f"{res['bytes'] / (1024 * 1024):.1f}MB",
                f"{res['elapsed_s']:.1f}s",
                "[green]OK[/green]",
            )
    console.print(table)

    output_dir.mkdir(parents=True, exist_ok=True)
    summary_path = output_dir / "run_summary.json"
    with open(summary_path, "w", encoding="utf-8") as f:
        json.dump(all_results, f, indent=2)
    console.print(f"\nSummary: {summary_path}")


if __name__ == "__main__":
    app()

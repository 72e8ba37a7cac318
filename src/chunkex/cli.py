"""CLI entry point for chunkex.

Usage:
    chunkex export                   # Export with configs/export.yaml
    chunkex export --codec qtrle     # Override a single export setting
    chunkex plan                     # Show chunk plan and memory estimate
    chunkex codecs                   # List codecs and resolution presets
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from chunkex.core.contracts import RESOLUTION_PRESETS, Codec, ExportConfig, ExportProgress, ExportResult
from chunkex.core.logging import setup_logging

app = typer.Typer(name="chunkex", help="Chunked alpha-video exporter")
console = Console()

DEFAULT_CONFIG = Path("configs/export.yaml")


def _load_job(config: Path, **overrides: Any):
    from chunkex.core.config import ExportJobConfig, load_job_config

    if config.exists():
        job = load_job_config(config)
    else:
        console.print(f"[yellow]{config} not found, using defaults[/yellow]")
        job = ExportJobConfig()

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        # re-validate rather than model_copy(update=...), which skips validation
        try:
            export = ExportConfig(**{**job.export.model_dump(), **overrides})
        except ValidationError as exc:
            console.print(f"[red]Invalid export settings:[/red] {escape(str(exc))}")
            raise typer.Exit(1) from exc
        job = job.model_copy(update={"export": export})
    return job


async def _run_with_progress(job, source) -> ExportResult:
    from chunkex.core.session import ExportController

    columns = (
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>5.1f}%"),
        TimeRemainingColumn(),
    )
    with Progress(*columns, console=console) as bar:
        task = bar.add_task("initializing", total=100)

        def on_progress(progress: ExportProgress) -> None:
            chunk = min(progress.current_chunk + 1, progress.total_chunks)
            bar.update(
                task,
                completed=progress.percent,
                description=(
                    f"{progress.phase.value:<12} chunk {chunk}/{progress.total_chunks} "
                    f"frame {progress.current_frame}/{progress.total_frames}"
                ),
            )

        controller = ExportController.from_job(job, source, on_progress=on_progress)
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, controller.cancel)
            handles_sigint = True
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers
            handles_sigint = False
        try:
            return await controller.start()
        finally:
            if handles_sigint:
                loop.remove_signal_handler(signal.SIGINT)


@app.command()
def export(
    config: Path = typer.Option(DEFAULT_CONFIG, help="Job config path"),
    output_dir: Path = typer.Option(None, help="Override output directory"),
    codec: Codec = typer.Option(None, help="Override codec"),
    fps: int = typer.Option(None, help="Override frame rate (30 or 60)"),
    duration: float = typer.Option(None, help="Override duration in seconds"),
    log_level: str = typer.Option("WARNING", help="Log level"),
    verbose_engine: bool = typer.Option(False, "--verbose-engine", help="Show ffmpeg worker logs"),
) -> None:
    """Render, encode and merge the configured frame source into a .mov file."""
    setup_logging(log_level, verbose_engine=verbose_engine)
    from chunkex.core.config import import_frame_source
    from chunkex.utils.io import format_file_size, write_output

    job = _load_job(config, codec=codec, fps=fps, duration=duration)
    source = import_frame_source(job.source, **job.source_kwargs)

    cfg = job.export
    console.print(
        f"[green]Exporting {job.source}[/green] "
        f"{cfg.width}x{cfg.height} @ {cfg.fps}fps, {cfg.duration}s, {cfg.codec.value}"
    )
    result = asyncio.run(_run_with_progress(job, source))

    if not result.success:
        color = "yellow" if result.phase.value == "cancelled" else "red"
        console.print(f"[{color}]Export {result.phase.value}: {escape(result.error or '')}[/{color}]")
        raise typer.Exit(1)

    path = write_output(result.data, output_dir or job.output_dir, result.filename)
    console.print(f"[green]Done.[/green] {path} ({format_file_size(len(result.data))})")


@app.command()
def plan(
    config: Path = typer.Option(DEFAULT_CONFIG, help="Job config path"),
    codec: Codec = typer.Option(None, help="Override codec"),
    fps: int = typer.Option(None, help="Override frame rate (30 or 60)"),
    duration: float = typer.Option(None, help="Override duration in seconds"),
) -> None:
    """Show the chunk plan and the estimated peak memory of an export."""
    from chunkex.core.clock import plan_export, sample_time
    from chunkex.utils.memory import check_memory_risk, format_memory

    job = _load_job(config, codec=codec, fps=fps, duration=duration)
    cfg = job.export
    chunks = plan_export(cfg)

    table = Table(title=f"{cfg.total_frames} frames, {len(chunks)} chunks")
    table.add_column("Chunk", style="dim")
    table.add_column("Frames", style="cyan")
    table.add_column("Count", style="green")
    table.add_column("Time (s)", style="yellow")
    for chunk in chunks:
        last = chunk.end_frame_index - 1
        t0 = sample_time(chunk.first_frame_index, cfg)
        t1 = sample_time(last, cfg)
        table.add_row(
            str(chunk.chunk_index),
            f"{chunk.first_frame_index}-{last}",
            str(chunk.frame_count),
            f"{t0:.3f}-{t1:.3f}",
        )
    console.print(table)

    risk = check_memory_risk(cfg.width, cfg.height, cfg.fps, cfg.duration, cfg.chunk_frame_count)
    console.print(f"Estimated peak memory: {format_memory(risk.required_bytes)}")
    if risk.is_risky:
        console.print(f"[yellow]{risk.message}[/yellow]")


@app.command()
def codecs() -> None:
    """List supported codecs and resolution presets."""
    from chunkex.engine.commands import ENCODER_PROFILES, codec_description, codec_display_name

    table = Table(title="Codecs")
    table.add_column("Codec", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Encoder", style="yellow")
    table.add_column("Pixel format", style="dim")
    table.add_column("Description")
    for codec in Codec:
        profile = ENCODER_PROFILES[codec]
        table.add_row(
            codec.value,
            codec_display_name(codec),
            profile.encoder,
            profile.pix_fmt,
            codec_description(codec),
        )
    console.print(table)

    presets = Table(title="Resolution presets")
    presets.add_column("Label", style="cyan")
    presets.add_column("Size", style="green")
    for preset in RESOLUTION_PRESETS:
        presets.add_row(preset.label, f"{preset.width}x{preset.height}")
    console.print(presets)


if __name__ == "__main__":
    app()
